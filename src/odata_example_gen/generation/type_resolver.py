"""
Concrete type selection for (possibly abstract) structured types.
"""

import logging
from typing import List, Optional

from ..edm.models import StructuredType
from .parameters import GenerationContext, GenerationParameters


class TypeResolver:
    """Chooses the concrete types materialised for a property or source."""

    def __init__(self, parameters: GenerationParameters):
        self.parameters = parameters
        self.model = parameters.model
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def resolve_candidates(self, structured_type: StructuredType, property_name: str) -> List[StructuredType]:
        """Return the ordered, non-empty list of types to materialise.

        An explicit choice for `property_name` wins. Otherwise the concrete
        types derived from `structured_type` are returned, followed by the
        type itself when it is concrete. With no candidates, the type alone.
        """
        chosen = self.parameters.chosen_types.get(property_name)
        if chosen is not None:
            return [chosen]

        candidates = self.model.find_derived_concrete_types(structured_type)
        if not candidates:
            return [structured_type]
        if not structured_type.is_abstract:
            candidates.append(structured_type)
        return candidates

    def resolve_single(
        self, structured_type: StructuredType, property_name: str, context: GenerationContext
    ) -> StructuredType:
        """Pick one candidate uniformly at random."""
        candidates = self.resolve_candidates(structured_type, property_name)
        chosen = candidates[context.next_random(len(candidates))]
        if chosen is not structured_type:
            self.logger.debug(f"Materialising {property_name} as {chosen.full_name}")
        return chosen

    def resolve_for_set(self, structured_type: StructuredType, property_name: str) -> List[StructuredType]:
        """Return all candidates; member `i` of a set uses candidate `min(i, len - 1)`."""
        return self.resolve_candidates(structured_type, property_name)

    @staticmethod
    def set_size(candidates: List[StructuredType], max_items: Optional[int] = None) -> int:
        """Number of members to write for a resource set.

        One member per candidate, but at least two so the collection shape is
        visible, then capped by `max_items` and never below one.
        """
        size = len(candidates) if len(candidates) > 1 else 2
        if max_items is not None:
            size = min(size, max_items)
        return max(size, 1)

    @staticmethod
    def type_for_member(candidates: List[StructuredType], index: int) -> StructuredType:
        return candidates[min(index, len(candidates) - 1)]
