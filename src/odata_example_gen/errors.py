"""
Exceptions raised while loading models and generating examples.

None of these are retried: any of them terminates the current
`create_example` call and propagates to the caller.
"""


class ExampleGenerationError(Exception):
    """Base class for all errors raised by the generator."""
    pass


class ConfigurationError(ExampleGenerationError):
    """Raised for malformed `name:value` options or unknown override targets."""
    pass


class ValidationError(ExampleGenerationError):
    """Raised when the path or method cannot produce an example."""
    pass


class ModelIntegrityError(ExampleGenerationError):
    """Raised when the model is internally inconsistent (e.g. a broken binding)."""
    pass


class ModelLoadError(ExampleGenerationError):
    """Raised when a CSDL document cannot be read or parsed."""
    pass


class ValueConversionError(ExampleGenerationError):
    """Raised when a supplied literal cannot be parsed as the property's type."""

    def __init__(self, property_name: str, value: str, type_name: str):
        self.property_name = property_name
        self.value = value
        self.type_name = type_name
        super().__init__(
            f"Value {value} supplied for property {property_name} can't be "
            f"converted to the property type {type_name}."
        )


class UnsupportedTypeError(ExampleGenerationError):
    """Raised for primitive kinds the value heuristics do not cover."""

    def __init__(self, kind_name: str):
        self.kind_name = kind_name
        super().__init__(f"Unknown primitive type '{kind_name}'.")
