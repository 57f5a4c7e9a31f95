"""
Core settings management for odata-example-gen.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PySide6.QtCore import QSettings

from .types import ConfigError, ConfigVersion, ValidationResult
from .migration import SettingsMigrator
from .validation import SettingsValidator
from .generation import GenerationSettings
from .logging import LoggingSettings

logger = logging.getLogger(__name__)

ORGANIZATION = "odata-example-gen"
APPLICATION = "odata_example_gen"


class AppSettings:
    """
    Configuration management using QSettings.

    Provides type-safe access to persisted defaults with native
    cross-platform storage, or an INI file when a storage path is given.
    """

    def __init__(self, profile: str = "default", storage_path: Optional[Union[str, Path]] = None):
        """Initialize settings for a profile.

        Args:
            profile: Settings profile name (default: "default")
            storage_path: INI file to use instead of native storage
        """
        if storage_path is not None:
            self.settings = QSettings(str(storage_path), QSettings.Format.IniFormat)
        else:
            self.settings = QSettings(ORGANIZATION, APPLICATION)
        self.profile = profile

        # Use profile as a group: odata-example-gen/odata_example_gen/default/...
        self.settings.beginGroup(profile)

        # Initialize subsystems
        self._migrator = SettingsMigrator(self.settings)
        self._validator = SettingsValidator(self)
        self._generation = GenerationSettings(self.settings)
        self._logging = LoggingSettings(self.settings)

        # Ensure version and migrate if needed
        self._migrator.ensure_version()

        logger.debug(
            f"Settings initialized for profile '{profile}', stored at: {self.settings.fileName()}"
        )

    # === SUBSYSTEM ACCESS ===

    @property
    def generation(self) -> GenerationSettings:
        """Access generation defaults subsystem."""
        return self._generation

    @property
    def logging(self) -> LoggingSettings:
        """Access logging settings subsystem."""
        return self._logging

    # === VERSION ===

    @property
    def version(self) -> str:
        """Get configuration version."""
        return self._get_str("app/version", ConfigVersion.CURRENT.value)

    # === HELPER METHODS ===

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    # === VALIDATION ===

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        return self._validator.validate()

    # === UTILITY METHODS ===

    def get_settings_file_path(self) -> str:
        """Get the file path where settings are stored."""
        return self.settings.fileName()

    def sync(self) -> None:
        """Force synchronization of settings to storage.

        Raises:
            ConfigError: If the storage cannot be written
        """
        self.settings.sync()
        if self.settings.status() != QSettings.Status.NoError:
            raise ConfigError(
                f"Unable to write settings to {self.settings.fileName()}: {self.settings.status()}"
            )
