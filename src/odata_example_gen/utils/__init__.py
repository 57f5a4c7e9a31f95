"""
Utility helpers for odata-example-gen.
"""

from .logging_config import ColoredFormatter, CSVFormatter, setup_logging

__all__ = [
    "ColoredFormatter",
    "CSVFormatter",
    "setup_logging",
]
