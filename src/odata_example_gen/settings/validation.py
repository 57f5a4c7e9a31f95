"""
Settings validation system for odata-example-gen.
"""

import logging
import os
from typing import List, TYPE_CHECKING
from urllib.parse import urlparse

from ..generation.id_providers import DEFAULT_REGISTRY
from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []

        # Base URI must be an absolute http(s) URI
        base_uri = self.settings.generation.base_uri
        parsed = urlparse(base_uri)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            errors.append(f"Base URI must be an absolute http(s) URI: {base_uri}")

        # Default ID provider must be registered
        provider = self.settings.generation.default_id_provider
        if provider and DEFAULT_REGISTRY.find(provider) is None:
            errors.append(
                f"Unknown default ID provider: {provider} "
                f"(known: {', '.join(DEFAULT_REGISTRY.names)})"
            )

        # Default CSDL document
        csdl_path = self.settings.generation.csdl_path
        if csdl_path and not csdl_path.is_file():
            warnings.append(f"Default CSDL file does not exist: {csdl_path}")

        # Log directory must be writable when file logging is on
        if self.settings.logging.file_logging:
            log_dir = self.settings.logging.log_file_absolute_path.parent
            existing = log_dir
            while not existing.exists() and existing != existing.parent:
                existing = existing.parent
            if not os.access(existing, os.W_OK):
                warnings.append(f"Log directory is not writable: {log_dir}")

        for warning in warnings:
            logger.debug(f"Settings warning: {warning}")

        return ValidationResult(
            is_valid=len(errors) == 0, errors=errors, warnings=warnings
        )
