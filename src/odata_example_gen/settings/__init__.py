"""
Settings package for odata-example-gen.

This package provides persistent, per-profile defaults using Qt's QSettings
for cross-platform storage.

Usage:
    from odata_example_gen.settings import AppSettings

    settings = AppSettings()
    result = settings.validate()
"""

from .core import AppSettings
from .types import ConfigVersion, ConfigError, ValidationResult
from .generation import GenerationSettings
from .logging import LoggingSettings

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "ValidationResult",
    "GenerationSettings",
    "LoggingSettings",
]
