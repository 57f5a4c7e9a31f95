"""
Reference link URLs for non-contained navigation properties.
"""

import logging
from typing import List, Optional

from ..edm.models import NavigationBinding, NavigationProperty, NavigationSource, StructuredType, TypeRef
from ..errors import ModelIntegrityError
from .parameters import GenerationContext, GenerationParameters


class ReferenceLinkResolver:
    """Builds absolute URLs by walking a binding's target path against the model."""

    def __init__(self, parameters: GenerationParameters):
        self.parameters = parameters
        self.model = parameters.model
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def link_for(self, binding: NavigationBinding, context: GenerationContext) -> str:
        """Build one URL for a binding target.

        Each target segment is appended to the service root; after every
        collection-valued step a synthetic `id<n>` key is appended, `n` taken
        from the run's monotonic counter.

        Raises:
            ModelIntegrityError: If a target segment does not resolve
        """
        segments = binding.target_segments
        root = self.model.find_navigation_source(segments[0]) if segments else None
        if root is None:
            raise self._broken(binding)

        url = self.parameters.service_root.rstrip("/")
        cursor: TypeRef = root.type_ref
        for index, segment in enumerate(segments):
            url += f"/{segment}"
            if cursor.is_collection:
                url += f"/id{context.next_monotonic()}"
            if index < len(segments) - 1:
                cursor = self._advance(cursor, segments[index + 1], binding)
        return url

    def links_for(
        self,
        bindings_host: NavigationSource,
        navigation_property: NavigationProperty,
        context: GenerationContext,
    ) -> Optional[List[str]]:
        """Build every link written for one navigation property.

        Two links are built for collection-valued properties, one otherwise.
        All links are built before any is returned.

        Returns:
            The URLs, or None when the property has no binding (or a broken
            one that the run is configured to skip)
        """
        bindings = self.model.find_navigation_bindings(bindings_host, navigation_property)
        if not bindings:
            self.logger.debug(
                f"No binding for {navigation_property.full_name} on {bindings_host.name}, skipping"
            )
            return None

        count = 2 if navigation_property.type.is_collection else 1
        try:
            return [self.link_for(bindings[0], context) for _ in range(count)]
        except ModelIntegrityError as e:
            if not self.parameters.skip_broken_bindings:
                raise
            self.logger.warning(f"{e} Skipping reference link for {navigation_property.name}.")
            return None

    def _advance(self, cursor: TypeRef, next_segment: str, binding: NavigationBinding) -> TypeRef:
        structure = cursor.definition
        if isinstance(structure, StructuredType):
            lowered = next_segment.lower()
            for nav in self.model.navigation_properties(structure):
                if nav.name.lower() == lowered:
                    return nav.type
        raise self._broken(binding)

    @staticmethod
    def _broken(binding: NavigationBinding) -> ModelIntegrityError:
        return ModelIntegrityError(
            f"Error: bindingTarget '{binding.target}' for {binding.property_name} is erroneous."
        )
