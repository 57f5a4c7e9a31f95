"""
Payload tree construction.

The builder walks the type graph depth first from the requested path and
emits events to a WriterSink. Inside each resource the order is fixed:
primitive and enum properties, inlined navigation properties (contained, or
expanded in responses), complex properties, then reference links (requests
only).
"""

import logging
from typing import List, Optional, Set, Tuple

from ..edm.models import (
    Annotatable,
    NavigationProperty,
    PrimitiveKind,
    Property,
    StructuralProperty,
    StructuredType,
    Term,
)
from ..errors import ValidationError
from ..output.sink import WriterSink
from ..uri.segments import PathSegment, ResourcePath, SegmentKind
from .id_providers import DEFAULT_REGISTRY, IdProviderRegistry
from .links import ReferenceLinkResolver
from .parameters import GenerationContext, GenerationParameters, HttpMethod
from .property_filter import PropertyFilter
from .type_resolver import TypeResolver
from .values import ValueSynthesizer

# Property currently being expanded, by (declaring type, property name)
_ExpansionKey = Tuple[str, str]


def terminal_segment(path: ResourcePath) -> PathSegment:
    """Last segment of a path that names something (not a key or a type cast)."""
    for segment in reversed(path.segments):
        if segment.kind not in (SegmentKind.KEY, SegmentKind.TYPE_CAST):
            return segment
    return path.first


def segment_annotatable(segment: PathSegment) -> Optional[Annotatable]:
    """Model element carrying annotations (such as MaxItems) for a named segment."""
    return segment.navigation_property or segment.structural_property or segment.source


class PayloadTreeBuilder:
    """Builds one request or response body for a resource path.

    Each instance writes to one sink with one set of parameters; the
    GenerationContext may be shared with other builders of the same run.
    """

    def __init__(
        self,
        parameters: GenerationParameters,
        context: GenerationContext,
        sink: WriterSink,
        request_path: ResourcePath,
        registry: IdProviderRegistry = DEFAULT_REGISTRY,
    ):
        self.parameters = parameters
        self.model = parameters.model
        self.context = context
        self.sink = sink
        self.request_path = request_path

        self.type_resolver = TypeResolver(parameters)
        self.property_filter = PropertyFilter(parameters, request_path)
        self.values = ValueSynthesizer(parameters, registry)
        self.links = ReferenceLinkResolver(parameters)

        self._expanding: Set[_ExpansionKey] = set()
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # === ENTRY POINT ===

    def write(
        self, force_single: bool = False, root_type: Optional[StructuredType] = None
    ) -> Optional[StructuredType]:
        """Write the body for the request path.

        Args:
            force_single: Write a single resource even for a collection path
                (the created resource of a POST)
            root_type: Concrete type for a single root resource, instead of
                choosing one (keeps a POST response shaped like its request)

        Returns:
            The concrete type of the single root resource, or None for a set

        Raises:
            ValidationError: If the path does not end at a structured type
        """
        declared = self.request_path.target_type_ref.definition
        if not isinstance(declared, StructuredType):
            raise ValidationError(
                f"Path '{self.request_path}' must end in an entity set, a singleton, "
                f"a navigation property, a complex property or a key."
            )

        named = terminal_segment(self.request_path)
        self.logger.debug(
            f"Writing {self.parameters.direction.value} body for {self.request_path} "
            f"({declared.full_name}, force_single={force_single})"
        )
        if self.request_path.is_collection and not force_single:
            self.write_resource_set(declared, named.identifier, self.request_path, segment_annotatable(named))
            return None
        return self.write_resource(declared, named.identifier, self.request_path, concrete=root_type)

    # === RESOURCES ===

    def write_resource(
        self,
        declared: StructuredType,
        lookup_name: str,
        path: ResourcePath,
        concrete: Optional[StructuredType] = None,
    ) -> StructuredType:
        """Write one resource, choosing a concrete type for it unless one is given."""
        if concrete is None:
            concrete = self.type_resolver.resolve_single(declared, lookup_name, self.context)
        self.write_resource_detail(declared, concrete, path)
        return concrete

    def write_resource_set(
        self,
        declared: StructuredType,
        lookup_name: str,
        path: ResourcePath,
        annotatable: Optional[Annotatable] = None,
    ) -> None:
        """Write a resource set; member `i` uses candidate type `min(i, len - 1)`."""
        candidates = self.type_resolver.resolve_for_set(declared, lookup_name)
        max_items = self.model.annotation_value(annotatable, Term.MAX_ITEMS) if annotatable else None
        size = self.type_resolver.set_size(candidates, max_items)

        self.sink.start_resource_set()
        for index in range(size):
            member_type = self.type_resolver.type_for_member(candidates, index)
            self.write_resource_detail(declared, member_type, path)
        self.sink.end_resource_set()

    def write_resource_detail(
        self, declared: StructuredType, concrete: StructuredType, path: ResourcePath
    ) -> None:
        """Write the properties of one resource materialised as `concrete`."""
        structural = self.property_filter.structural_properties(concrete, path)
        navigation = self.property_filter.navigation_properties(concrete, path)

        scalars = [p for p in structural if not p.type.is_complex]
        complexes = [p for p in structural if p.type.is_complex]

        if self.parameters.is_request and self.parameters.http_method is HttpMethod.PATCH:
            scalars = self.narrow_for_patch(scalars)
            complexes = []
            navigation = []

        if self.parameters.is_request:
            inlined = [n for n in navigation if n.contains_target]
            referenced = [n for n in navigation if not n.contains_target]
        else:
            inlined = navigation
            referenced = []

        self.sink.start_resource(concrete.full_name, annotate_type=concrete is not declared)

        for prop in scalars:
            value = self.values.value_for(concrete, prop, self.context)
            kind = prop.type.definition if isinstance(prop.type.definition, PrimitiveKind) else None
            self.sink.property(prop.name, value, kind)

        for nav in inlined:
            self.write_nested(nav, path.append(PathSegment.for_navigation(nav)))

        for prop in complexes:
            self.write_nested(prop, path.append(PathSegment.for_property(prop)))

        for nav in referenced:
            self.write_reference_links(nav)

        self.sink.end_resource()

    @staticmethod
    def narrow_for_patch(scalars: List[StructuralProperty]) -> List[StructuralProperty]:
        """Keep the key and the first non-key, single-valued primitive property."""
        single = next(
            (
                p for p in scalars
                if not p.is_key and p.type.is_primitive and not p.type.is_collection
            ),
            None,
        )
        return [p for p in scalars if p.is_key or p is single]

    # === NESTED CONTENT ===

    def write_nested(self, prop: Property, nested_path: ResourcePath) -> None:
        """Write a contained, expanded or complex property as a nested resource (set).

        A property already being expanded further up the current branch is
        skipped, which bounds recursion through self-referencing types.
        """
        expansion: _ExpansionKey = (prop.declaring_type.full_name, prop.name)
        if expansion in self._expanding:
            self.logger.warning(
                f"Not expanding {prop.full_name} again below {nested_path}: self-referencing type"
            )
            return

        target = prop.type.definition
        assert isinstance(target, StructuredType)

        self._expanding.add(expansion)
        try:
            self.sink.start_nested_info(prop.name, prop.type.is_collection)
            if prop.type.is_collection:
                self.write_resource_set(target, prop.name, nested_path, prop)
            else:
                self.write_resource(target, prop.name, nested_path)
            self.sink.end_nested_info()
        finally:
            self._expanding.discard(expansion)

    def write_reference_links(self, nav: NavigationProperty) -> None:
        """Write `<name>@odata.bind` links for a non-contained navigation property.

        Bindings are looked up on the root source of the request path. All
        links are built before any event is emitted, so a skipped binding
        leaves nothing behind.
        """
        urls = self.links.links_for(self.request_path.root_source, nav, self.context)
        if not urls:
            return
        self.sink.start_nested_info(nav.name, nav.type.is_collection)
        for url in urls:
            self.sink.write_reference_link(url)
        self.sink.end_nested_info()
