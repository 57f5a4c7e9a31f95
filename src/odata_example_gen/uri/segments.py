"""
Resource path segments.

A ResourcePath is an immutable, ordered sequence of segments describing where
in the type graph a node sits: the navigation source it starts from, keys,
navigation hops, type casts and structural (complex) properties.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from ..edm.models import (
    NavigationProperty,
    NavigationSource,
    StructuralProperty,
    StructuredType,
    TypeRef,
)


class SegmentKind(Enum):
    """Kind of a single path segment."""
    NAVIGATION_SOURCE = "navigationSource"
    KEY = "key"
    NAVIGATION_PROPERTY = "navigationProperty"
    TYPE_CAST = "typeCast"
    PROPERTY = "property"


@dataclass(frozen=True, eq=False)
class PathSegment:
    """One step of a resource path.

    `type_ref` is the type reached after the step, including whether it is
    collection-valued.
    """
    kind: SegmentKind
    identifier: str
    type_ref: TypeRef
    source: Optional[NavigationSource] = None
    navigation_property: Optional[NavigationProperty] = None
    structural_property: Optional[StructuralProperty] = None
    key_value: Optional[str] = None

    @property
    def is_collection(self) -> bool:
        return self.type_ref.is_collection

    @classmethod
    def for_source(cls, source: NavigationSource) -> "PathSegment":
        return cls(SegmentKind.NAVIGATION_SOURCE, source.name, source.type_ref, source=source)

    @classmethod
    def for_key(cls, previous: "PathSegment", key_value: str) -> "PathSegment":
        single = TypeRef(previous.type_ref.definition, is_collection=False, nullable=False)
        return cls(SegmentKind.KEY, key_value, single, key_value=key_value)

    @classmethod
    def for_navigation(cls, navigation_property: NavigationProperty) -> "PathSegment":
        return cls(
            SegmentKind.NAVIGATION_PROPERTY,
            navigation_property.name,
            navigation_property.type,
            navigation_property=navigation_property,
        )

    @classmethod
    def for_property(cls, structural_property: StructuralProperty) -> "PathSegment":
        return cls(
            SegmentKind.PROPERTY,
            structural_property.name,
            structural_property.type,
            structural_property=structural_property,
        )

    @classmethod
    def for_cast(cls, previous: "PathSegment", cast_type: StructuredType) -> "PathSegment":
        cast_ref = TypeRef(cast_type, previous.type_ref.is_collection, previous.type_ref.nullable)
        return cls(SegmentKind.TYPE_CAST, cast_type.full_name, cast_ref)

    def __str__(self) -> str:
        if self.kind is SegmentKind.KEY:
            return f"({self.identifier})"
        return self.identifier


class ResourcePath:
    """Ordered, immutable sequence of path segments."""

    def __init__(self, segments: Tuple[PathSegment, ...] = ()):
        self._segments: Tuple[PathSegment, ...] = tuple(segments)

    @property
    def segments(self) -> Tuple[PathSegment, ...]:
        return self._segments

    @property
    def first(self) -> PathSegment:
        return self._segments[0]

    @property
    def last(self) -> PathSegment:
        return self._segments[-1]

    @property
    def root_source(self) -> NavigationSource:
        """The entity set or singleton the path starts from."""
        source = self.first.source
        assert source is not None
        return source

    @property
    def target_type_ref(self) -> TypeRef:
        """Type reached by the whole path."""
        return self.last.type_ref

    @property
    def is_collection(self) -> bool:
        return self.last.is_collection

    def append(self, segment: PathSegment) -> "ResourcePath":
        """Return a new path extended by one segment."""
        return ResourcePath(self._segments + (segment,))

    def path_expression(self, skip_root: bool = True) -> str:
        """Translate the path to a CSDL path expression.

        Keys are dropped and type casts are written with their qualified
        names, e.g. `Example.People.FullTimeEmployee/office`.

        Args:
            skip_root: Leave out the navigation source segment

        Returns:
            `/`-separated path expression without a leading slash
        """
        segments = self._segments[1:] if skip_root else self._segments
        return "/".join(
            segment.identifier for segment in segments if segment.kind is not SegmentKind.KEY
        )

    def context_names(self) -> List[str]:
        """Segment names used to build a response context URL."""
        return [segment.identifier for segment in self._segments if segment.kind is not SegmentKind.KEY]

    def __len__(self) -> int:
        return len(self._segments)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourcePath):
            return NotImplemented
        return len(self) == len(other) and all(
            a is b for a, b in zip(self._segments, other._segments)
        )

    def __hash__(self) -> int:
        return hash(tuple(id(segment) for segment in self._segments))

    def __str__(self) -> str:
        text = ""
        for segment in self._segments:
            if segment.kind is SegmentKind.KEY:
                text += str(segment)
            else:
                text += f"/{segment.identifier}" if text else segment.identifier
        return text

    def __repr__(self) -> str:
        return f"ResourcePath({self})"
