"""
Module for generating example request and response payloads.

Provides the ExampleGenerator service and the components it orchestrates:
type resolution, property filtering, value synthesis, reference links and
the payload tree builder.
"""

from .service import ExampleGenerator, ExampleResult, METHOD_RULES, MethodRule, UrlMode
from .parameters import (
    DEFAULT_ID_PROVIDER_KEY,
    DEFAULT_SERVICE_ROOT,
    Direction,
    GenerationContext,
    GenerationParameters,
    HttpMethod,
)
from .options import apply_options, split_pair, SKIP_MARKER
from .type_resolver import TypeResolver
from .property_filter import PropertyFilter
from .id_providers import (
    DEFAULT_REGISTRY,
    ExchangeIdProvider,
    GuidIdProvider,
    IdProvider,
    IdProviderRegistry,
    OdspIdProvider,
)
from .values import ValueSynthesizer
from .links import ReferenceLinkResolver
from .builder import PayloadTreeBuilder

__all__ = [
    # Main service
    "ExampleGenerator",
    "ExampleResult",
    "METHOD_RULES",
    "MethodRule",
    "UrlMode",
    # Parameters
    "Direction",
    "HttpMethod",
    "GenerationParameters",
    "GenerationContext",
    "DEFAULT_ID_PROVIDER_KEY",
    "DEFAULT_SERVICE_ROOT",
    # Options
    "apply_options",
    "split_pair",
    "SKIP_MARKER",
    # ID providers
    "IdProvider",
    "IdProviderRegistry",
    "GuidIdProvider",
    "ExchangeIdProvider",
    "OdspIdProvider",
    "DEFAULT_REGISTRY",
    # Component classes (for advanced usage)
    "TypeResolver",
    "PropertyFilter",
    "ValueSynthesizer",
    "ReferenceLinkResolver",
    "PayloadTreeBuilder",
]
