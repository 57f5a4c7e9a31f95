"""
Inheritance resolution for EDM structured types.

Handles resolving 'BaseType' chains, merging inherited and declared
properties, and building the derived-type index used to enumerate concrete
candidates for a (possibly abstract) type.
"""

from collections import defaultdict
from typing import Callable, Dict, List, Optional

from ..errors import ModelIntegrityError
from .models import NavigationProperty, StructuralProperty, StructuredType


class InheritanceResolver:
    """Resolves base-type chains through a name lookup function.

    Chains are resolved once per type and cached; the derived-type index is
    built in one pass over all known types.
    """

    def __init__(self, type_lookup: Callable[[str], Optional[StructuredType]]):
        """Initialize the resolver with a type lookup function.

        Args:
            type_lookup: Function that takes a qualified type name and returns
                         the structured type, or None if not found
        """
        self._type_lookup = type_lookup
        self._chains: Dict[str, List[StructuredType]] = {}
        self._derived: Dict[str, List[StructuredType]] = defaultdict(list)

    def resolve_chain(self, structured_type: StructuredType) -> List[StructuredType]:
        """Return the inheritance chain of a type, base-most first.

        Also links `base_type` on every type in the chain.

        Args:
            structured_type: Type whose chain to resolve

        Returns:
            List of types from the root base type down to `structured_type`

        Raises:
            ModelIntegrityError: If a base type is missing or the chain cycles
        """
        cached = self._chains.get(structured_type.full_name)
        if cached is not None:
            return cached

        visited: set[str] = set()
        chain = self._resolve_recursive(structured_type, visited)
        self._chains[structured_type.full_name] = chain
        return chain

    def _resolve_recursive(
        self, structured_type: StructuredType, visited: set[str]
    ) -> List[StructuredType]:
        """Walk up the base types, failing on cycles."""
        if structured_type.full_name in visited:
            raise ModelIntegrityError(
                f"Type '{structured_type.full_name}' inherits from itself."
            )
        visited.add(structured_type.full_name)

        if not structured_type.base_type_name:
            return [structured_type]

        base = self._type_lookup(structured_type.base_type_name)
        if base is None:
            raise ModelIntegrityError(
                f"Base type '{structured_type.base_type_name}' of "
                f"'{structured_type.full_name}' not found in model."
            )
        if base.kind is not structured_type.kind:
            raise ModelIntegrityError(
                f"Type '{structured_type.full_name}' and its base type "
                f"'{base.full_name}' must both be {structured_type.kind.value}s."
            )
        structured_type.base_type = base

        cached = self._chains.get(base.full_name)
        parent_chain = cached if cached is not None else self._resolve_recursive(base, visited)
        return parent_chain + [structured_type]

    def build_derived_index(self, types: List[StructuredType]) -> None:
        """Index every type under its direct base type.

        Args:
            types: All structured types of the model
        """
        self._derived.clear()
        for structured_type in types:
            chain = self.resolve_chain(structured_type)
            if len(chain) > 1:
                self._derived[chain[-2].full_name].append(structured_type)

    def find_all_derived_types(self, structured_type: StructuredType) -> List[StructuredType]:
        """Return all types transitively derived from a type (breadth first)."""
        result: List[StructuredType] = []
        pending = list(self._derived.get(structured_type.full_name, []))
        while pending:
            derived = pending.pop(0)
            result.append(derived)
            pending.extend(self._derived.get(derived.full_name, []))
        return result

    def inherits_from(self, structured_type: StructuredType, base: StructuredType) -> bool:
        """Check whether `base` is a strict ancestor of `structured_type`."""
        chain = self.resolve_chain(structured_type)
        return any(t is base for t in chain[:-1])

    def merged_structural_properties(
        self, structured_type: StructuredType
    ) -> List[StructuralProperty]:
        """Return inherited plus declared structural properties, base-most first."""
        merged: List[StructuralProperty] = []
        for ancestor in self.resolve_chain(structured_type):
            merged.extend(ancestor.declared_properties)
        return merged

    def assign_key_flags(self, structured_type: StructuredType) -> None:
        """Flag declared properties that are part of the entity key.

        The key comes from the first type in the chain that declares one, so
        properties declared further down are never keys.
        """
        key_names = self._key_names(self.resolve_chain(structured_type))
        for prop in structured_type.declared_properties:
            prop.is_key = prop.name in key_names

    def merged_navigation_properties(
        self, structured_type: StructuredType
    ) -> List[NavigationProperty]:
        """Return inherited plus declared navigation properties, base-most first."""
        merged: List[NavigationProperty] = []
        for ancestor in self.resolve_chain(structured_type):
            merged.extend(ancestor.declared_navigation_properties)
        return merged

    @staticmethod
    def _key_names(chain: List[StructuredType]) -> set[str]:
        """The key is declared once, on the first type in the chain that has one."""
        for ancestor in chain:
            if ancestor.key_names:
                return set(ancestor.key_names)
        return set()
