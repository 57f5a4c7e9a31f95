"""
Model manager for EDM type indexing and retrieval.

Provides the EdmModel class that stores loaded schema elements, indexes them
by qualified name, and answers the structural questions the generator asks
(inherited properties, derived types, annotations, bindings).
"""

import logging
from typing import Any, Dict, List, Optional, Union

from ..errors import ModelIntegrityError
from .inheritance import InheritanceResolver
from .models import (
    Annotatable,
    EnumMember,
    EnumType,
    NavigationBinding,
    NavigationProperty,
    NavigationSource,
    StructuralProperty,
    StructuredType,
    Term,
)


class EdmModel:
    """In-memory EDM model.

    Maintains three indices:
    - types: qualified name -> structured or enum type
    - aliases: schema alias -> namespace, for resolving alias-qualified names
    - sources: name -> entity set or singleton of the entity container

    Call `finalize()` once every schema has been added; it links base types and
    builds the derived-type index.
    """

    def __init__(self):
        self.types: Dict[str, Union[StructuredType, EnumType]] = {}
        self.aliases: Dict[str, str] = {}
        self.sources: Dict[str, NavigationSource] = {}

        # Declared namespaces in order of discovery
        self.namespaces: List[str] = []
        self.container_name: Optional[str] = None

        self._resolver = InheritanceResolver(type_lookup=self.find_structured_type)
        self._finalized = False
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    # === BUILDING ===

    def add_namespace(self, namespace: str, alias: Optional[str] = None) -> None:
        """Register a schema namespace and its optional alias."""
        if namespace not in self.namespaces:
            self.namespaces.append(namespace)
        if alias:
            self.aliases[alias] = namespace

    def add_type(self, schema_type: Union[StructuredType, EnumType]) -> None:
        """Add a structured or enum type, keyed by its qualified name."""
        self.types[schema_type.full_name] = schema_type
        self._finalized = False

    def add_source(self, source: NavigationSource) -> None:
        """Add an entity set or singleton."""
        self.sources[source.name] = source

    def finalize(self) -> None:
        """Link base types, assign key flags and build the derived-type index.

        Raises:
            ModelIntegrityError: If a base type is missing or inheritance cycles
        """
        structured = self.structured_types()
        for structured_type in structured:
            self._resolver.resolve_chain(structured_type)
        for structured_type in structured:
            self._resolver.assign_key_flags(structured_type)
        self._resolver.build_derived_index(structured)
        self._finalized = True
        self.logger.debug(
            f"Model finalized: {len(structured)} structured types, "
            f"{len(self.sources)} navigation sources"
        )

    # === LOOKUP ===

    def qualify(self, name: str) -> str:
        """Replace a leading schema alias with its namespace."""
        if "." in name:
            prefix, local = name.rsplit(".", 1)
            namespace = self.aliases.get(prefix)
            if namespace:
                return f"{namespace}.{local}"
        return name

    def find_type(self, qualified_name: str) -> Optional[Union[StructuredType, EnumType]]:
        """Return the type with the given (possibly alias-qualified) name."""
        return self.types.get(self.qualify(qualified_name))

    def find_structured_type(self, qualified_name: str) -> Optional[StructuredType]:
        """Return the structured type with the given name, or None."""
        found = self.find_type(qualified_name)
        return found if isinstance(found, StructuredType) else None

    def find_type_by_short_name(self, name: str) -> Optional[Union[StructuredType, EnumType]]:
        """Find a type by unqualified or qualified name, searching every namespace."""
        direct = self.find_type(name)
        if direct is not None:
            return direct
        for namespace in self.namespaces:
            found = self.types.get(f"{namespace}.{name}")
            if found is not None:
                return found
        return None

    def find_navigation_source(self, name: str) -> Optional[NavigationSource]:
        """Return the entity set or singleton with the given name.

        Exact matches win; otherwise the name is compared ignoring case.
        A container-qualified name (`Container/users`) is accepted too.
        """
        if "/" in name:
            name = name.rsplit("/", 1)[-1]
        source = self.sources.get(name)
        if source is not None:
            return source
        lowered = name.lower()
        for candidate in self.sources.values():
            if candidate.name.lower() == lowered:
                return candidate
        return None

    def structured_types(self) -> List[StructuredType]:
        """Return all structured types in load order."""
        return [t for t in self.types.values() if isinstance(t, StructuredType)]

    def enum_types(self) -> List[EnumType]:
        """Return all enum types in load order."""
        return [t for t in self.types.values() if isinstance(t, EnumType)]

    # === STRUCTURE ===

    def structural_properties(self, structured_type: StructuredType) -> List[StructuralProperty]:
        """Return declared and inherited structural properties, base-most first."""
        self._ensure_finalized()
        return self._resolver.merged_structural_properties(structured_type)

    def navigation_properties(self, structured_type: StructuredType) -> List[NavigationProperty]:
        """Return declared and inherited navigation properties, base-most first."""
        self._ensure_finalized()
        return self._resolver.merged_navigation_properties(structured_type)

    def find_property(
        self, structured_type: StructuredType, name: str
    ) -> Optional[Union[StructuralProperty, NavigationProperty]]:
        """Find a structural or navigation property by name on a type, ignoring case."""
        lowered = name.lower()
        for prop in self.structural_properties(structured_type):
            if prop.name.lower() == lowered:
                return prop
        for nav in self.navigation_properties(structured_type):
            if nav.name.lower() == lowered:
                return nav
        return None

    def find_all_derived_types(self, structured_type: StructuredType) -> List[StructuredType]:
        """Return every type transitively derived from the given type."""
        self._ensure_finalized()
        return self._resolver.find_all_derived_types(structured_type)

    def find_derived_concrete_types(self, structured_type: StructuredType) -> List[StructuredType]:
        """Return the non-abstract types transitively derived from the given type."""
        return [t for t in self.find_all_derived_types(structured_type) if not t.is_abstract]

    def inherits_from(self, structured_type: StructuredType, base: StructuredType) -> bool:
        """Check whether `base` is a strict ancestor of `structured_type`."""
        self._ensure_finalized()
        return self._resolver.inherits_from(structured_type, base)

    # === ANNOTATIONS AND BINDINGS ===

    @staticmethod
    def annotation_value(annotatable: Annotatable, term: Term, default: Any = None) -> Any:
        """Return the value of a recognised annotation on a model element."""
        return annotatable.annotations.get(term, default)

    def find_navigation_bindings(
        self, source: NavigationSource, navigation_property: NavigationProperty
    ) -> List[NavigationBinding]:
        """Return the bindings of a source that apply to a navigation property.

        A binding applies when the last segment of its path names the property
        and any type cast in the path is the declaring type or one of its bases.
        """
        matches: List[NavigationBinding] = []
        for binding in source.bindings:
            segments = binding.path.split("/")
            if segments[-1] != navigation_property.name:
                continue
            casts = [s for s in segments[:-1] if "." in s]
            if casts:
                cast_type = self.find_structured_type(casts[-1])
                declaring = navigation_property.declaring_type
                if cast_type is None or not (
                    cast_type is declaring or self.inherits_from(cast_type, declaring)
                ):
                    continue
            matches.append(binding)
        return matches

    def find_enum_member(self, property_name: str, literal: str) -> Optional[EnumMember]:
        """Find an enum member by literal among enum-typed properties of a given name.

        Both names compare ignoring case. The first structured type declaring a
        matching property with a matching member wins.
        """
        lowered = property_name.lower()
        for structured_type in self.structured_types():
            for prop in structured_type.declared_properties:
                definition = prop.type.definition
                if prop.name.lower() != lowered or not isinstance(definition, EnumType):
                    continue
                member = definition.find_member(literal)
                if member is not None:
                    return member
        return None

    def _ensure_finalized(self) -> None:
        if not self._finalized:
            raise ModelIntegrityError("Model must be finalized before it is queried.")
