"""
Module for working with OData metadata (EDM).

Provides the in-memory model of a service's schema, the CSDL loader that
builds it, and the inheritance resolution behind derived-type lookups.
"""

from .service import MetadataService
from .models import (
    AnnotationMap,
    Annotatable,
    EnumMember,
    EnumType,
    NavigationBinding,
    NavigationProperty,
    NavigationSource,
    PrimitiveKind,
    Property,
    SourceKind,
    StructuralProperty,
    StructuredKind,
    StructuredType,
    Term,
    TypeDefinition,
    TypeRef,
)
from .managers import EdmModel
from .loaders import CsdlLoader
from .inheritance import InheritanceResolver

# Public exports
__all__ = [
    # Main service
    "MetadataService",
    # Model types
    "EnumMember",
    "EnumType",
    "NavigationBinding",
    "NavigationProperty",
    "NavigationSource",
    "PrimitiveKind",
    "SourceKind",
    "StructuralProperty",
    "StructuredKind",
    "StructuredType",
    "Term",
    "TypeRef",
    # Type aliases
    "AnnotationMap",
    "Annotatable",
    "Property",
    "TypeDefinition",
    # Component classes (for advanced usage)
    "EdmModel",
    "CsdlLoader",
    "InheritanceResolver",
]
