"""
Data models for the OData metadata (EDM) model.

Contains the type definitions consumed by the generation engine: structured
types, their properties, enum types, navigation sources and bindings. Each
model is intentionally lightweight: no parsing or lookup logic lives here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, TypeAlias, Union


# =============================================================================
# Vocabulary terms
# =============================================================================

class Term(Enum):
    """Vocabulary terms recognised by the generator.

    Annotations with any other term are dropped at load time.
    """
    COMPUTED = "Org.OData.Core.V1.Computed"
    AUTO_EXPAND = "Org.OData.Core.V1.AutoExpand"
    MAX_ITEMS = "Org.OData.Validation.V1.MaxItems"
    NAVIGATION_RESTRICTIONS = "Org.OData.Capabilities.V1.NavigationRestrictions"

    @classmethod
    def from_name(cls, full_name: str) -> Optional["Term"]:
        """Return the term with the given namespace-qualified name, if recognised."""
        lowered = full_name.lower()
        for term in cls:
            if term.value.lower() == lowered:
                return term
        return None


AnnotationMap: TypeAlias = Dict[Term, Any]
"""Maps a recognised term to its value (bool, int, str, record dict or list)."""


# =============================================================================
# Primitive and enum types
# =============================================================================

class PrimitiveKind(Enum):
    """EDM primitive type kinds, valued by their qualified names."""
    BINARY = "Edm.Binary"
    BOOLEAN = "Edm.Boolean"
    BYTE = "Edm.Byte"
    DATE = "Edm.Date"
    DATE_TIME_OFFSET = "Edm.DateTimeOffset"
    DECIMAL = "Edm.Decimal"
    DOUBLE = "Edm.Double"
    DURATION = "Edm.Duration"
    GUID = "Edm.Guid"
    INT16 = "Edm.Int16"
    INT32 = "Edm.Int32"
    INT64 = "Edm.Int64"
    SBYTE = "Edm.SByte"
    SINGLE = "Edm.Single"
    STREAM = "Edm.Stream"
    STRING = "Edm.String"
    TIME_OF_DAY = "Edm.TimeOfDay"
    GEOGRAPHY = "Edm.Geography"
    GEOGRAPHY_POINT = "Edm.GeographyPoint"
    GEOGRAPHY_LINE_STRING = "Edm.GeographyLineString"
    GEOGRAPHY_POLYGON = "Edm.GeographyPolygon"
    GEOGRAPHY_MULTI_POINT = "Edm.GeographyMultiPoint"
    GEOGRAPHY_MULTI_LINE_STRING = "Edm.GeographyMultiLineString"
    GEOGRAPHY_MULTI_POLYGON = "Edm.GeographyMultiPolygon"
    GEOGRAPHY_COLLECTION = "Edm.GeographyCollection"
    GEOMETRY = "Edm.Geometry"
    GEOMETRY_POINT = "Edm.GeometryPoint"
    GEOMETRY_LINE_STRING = "Edm.GeometryLineString"
    GEOMETRY_POLYGON = "Edm.GeometryPolygon"
    GEOMETRY_MULTI_POINT = "Edm.GeometryMultiPoint"
    GEOMETRY_MULTI_LINE_STRING = "Edm.GeometryMultiLineString"
    GEOMETRY_MULTI_POLYGON = "Edm.GeometryMultiPolygon"
    GEOMETRY_COLLECTION = "Edm.GeometryCollection"

    @property
    def short_name(self) -> str:
        """Name without the `Edm.` prefix (e.g. `Int32`)."""
        return self.value.split(".", 1)[1]

    @classmethod
    def from_name(cls, qualified_name: str) -> Optional["PrimitiveKind"]:
        """Look up a kind by its qualified name (`Edm.String`)."""
        try:
            return cls(qualified_name)
        except ValueError:
            return None


@dataclass
class EnumMember:
    """A single named member of an enum type."""
    name: str
    value: Optional[int] = None


@dataclass(eq=False)
class EnumType:
    """A named enumeration type."""
    namespace: str
    name: str
    members: List[EnumMember] = field(default_factory=list)
    is_flags: bool = False

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    def find_member(self, name: str) -> Optional[EnumMember]:
        """Find a member by name, ignoring case."""
        lowered = name.lower()
        for member in self.members:
            if member.name.lower() == lowered:
                return member
        return None

    def __repr__(self) -> str:
        return f"EnumType({self.full_name})"


# =============================================================================
# Structured types and properties
# =============================================================================

class StructuredKind(Enum):
    """Kind of a structured type."""
    ENTITY = "EntityType"
    COMPLEX = "ComplexType"


TypeDefinition: TypeAlias = Union[PrimitiveKind, EnumType, "StructuredType"]
"""Anything a property type reference can point at."""


@dataclass
class TypeRef:
    """Reference to a type as used by a property or navigation source.

    Collection-ness lives on the reference, not on the referenced type.
    """
    definition: TypeDefinition
    is_collection: bool = False
    nullable: bool = True

    @property
    def is_primitive(self) -> bool:
        return isinstance(self.definition, PrimitiveKind)

    @property
    def is_enum(self) -> bool:
        return isinstance(self.definition, EnumType)

    @property
    def is_structured(self) -> bool:
        return isinstance(self.definition, StructuredType)

    @property
    def is_complex(self) -> bool:
        return (
            isinstance(self.definition, StructuredType)
            and self.definition.kind is StructuredKind.COMPLEX
        )

    @property
    def display_name(self) -> str:
        """Short human readable name, e.g. `Collection(Edm.String)`."""
        if isinstance(self.definition, PrimitiveKind):
            name = self.definition.value
        else:
            name = self.definition.full_name
        return f"Collection({name})" if self.is_collection else name


@dataclass(eq=False)
class StructuralProperty:
    """A data-valued property (scalar, enum, complex or collection thereof)."""
    name: str
    type: TypeRef
    declaring_type: "StructuredType"
    is_key: bool = False
    annotations: AnnotationMap = field(default_factory=dict)

    @property
    def full_name(self) -> str:
        return f"{self.declaring_type.full_name}/{self.name}"

    def __repr__(self) -> str:
        return f"StructuralProperty({self.full_name}: {self.type.display_name})"


@dataclass(eq=False)
class NavigationProperty:
    """A property linking to another structured type.

    `contains_target` selects containment (owned, inlined) over reference
    (linked by URL) semantics.
    """
    name: str
    type: TypeRef
    declaring_type: "StructuredType"
    contains_target: bool = False
    partner: Optional[str] = None
    annotations: AnnotationMap = field(default_factory=dict)

    @property
    def target_type(self) -> "StructuredType":
        definition = self.type.definition
        assert isinstance(definition, StructuredType)
        return definition

    @property
    def full_name(self) -> str:
        return f"{self.declaring_type.full_name}/{self.name}"

    def __repr__(self) -> str:
        return f"NavigationProperty({self.full_name}: {self.type.display_name})"


Property: TypeAlias = Union[StructuralProperty, NavigationProperty]


@dataclass(eq=False)
class StructuredType:
    """A named entity or complex type with single inheritance.

    Only declared members are stored here; inherited members are merged by
    the model (see `EdmModel.structural_properties`).
    """
    namespace: str
    name: str
    kind: StructuredKind = StructuredKind.ENTITY
    is_abstract: bool = False
    base_type_name: Optional[str] = None
    key_names: List[str] = field(default_factory=list)
    declared_properties: List[StructuralProperty] = field(default_factory=list)
    declared_navigation_properties: List[NavigationProperty] = field(
        default_factory=list
    )
    annotations: AnnotationMap = field(default_factory=dict)
    # Linked by the model after all schemas are loaded
    base_type: Optional["StructuredType"] = None

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def is_entity(self) -> bool:
        return self.kind is StructuredKind.ENTITY

    def __repr__(self) -> str:
        abstract = " abstract" if self.is_abstract else ""
        return f"StructuredType({self.full_name}{abstract})"


# =============================================================================
# Entity container
# =============================================================================

class SourceKind(Enum):
    """Kind of a top-level navigation source."""
    ENTITY_SET = "EntitySet"
    SINGLETON = "Singleton"


@dataclass
class NavigationBinding:
    """Binds a navigation property path to a target navigation source path.

    `path` is relative to the declaring source's entity type and may contain
    type casts (`ns.Derived/manager`); `target` is a `/`-separated path whose
    first segment names a navigation source.
    """
    path: str
    target: str

    @property
    def property_name(self) -> str:
        return self.path.rsplit("/", 1)[-1]

    @property
    def target_segments(self) -> List[str]:
        return [segment for segment in self.target.split("/") if segment]


@dataclass(eq=False)
class NavigationSource:
    """An entity set or singleton declared in the entity container."""
    name: str
    kind: SourceKind
    entity_type: StructuredType
    bindings: List[NavigationBinding] = field(default_factory=list)
    annotations: AnnotationMap = field(default_factory=dict)

    @property
    def is_collection(self) -> bool:
        return self.kind is SourceKind.ENTITY_SET

    @property
    def type_ref(self) -> TypeRef:
        return TypeRef(self.entity_type, is_collection=self.is_collection, nullable=False)

    def __repr__(self) -> str:
        return f"NavigationSource({self.kind.value} {self.name})"


Annotatable: TypeAlias = Union[
    StructuralProperty, NavigationProperty, StructuredType, NavigationSource
]
"""Model elements that can carry recognised annotations."""
