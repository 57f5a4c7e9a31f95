"""
odata-example-gen: Example payload generator for OData services

Reads a service's CSDL metadata and produces plausible request and response
bodies for a relative URI and an HTTP method.
"""

__version__ = "0.1.0"
__author__ = "odata-example-gen Contributors"

# Core service imports
from .edm import MetadataService
from .generation import ExampleGenerator, ExampleResult
from .utils.logging_config import setup_logging

# Parameters and errors
from .generation.parameters import Direction, GenerationParameters, HttpMethod
from .generation.options import apply_options
from .errors import (
    ExampleGenerationError, ConfigurationError, ValidationError,
    ModelIntegrityError, ModelLoadError, ValueConversionError, UnsupportedTypeError,
)

__all__ = [
    # Services
    'MetadataService',
    'ExampleGenerator',
    'ExampleResult',

    # Logging
    'setup_logging',

    # Parameters
    'Direction',
    'GenerationParameters',
    'HttpMethod',
    'apply_options',

    # Errors
    'ExampleGenerationError',
    'ConfigurationError',
    'ValidationError',
    'ModelIntegrityError',
    'ModelLoadError',
    'ValueConversionError',
    'UnsupportedTypeError',
]
