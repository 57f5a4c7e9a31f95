"""
Inclusion rules for properties, by direction.

Rules are applied in priority order:
1. key properties are always included
2. stream properties are always excluded
3. explicitly skipped properties are excluded
4. responses include a navigation property only when it is contained,
   auto-expanded, or named in `$expand` at the request path
5. requests exclude computed structural properties, and non-contained
   navigation properties the root source marks as non-insertable
"""

import logging
from typing import Any, List, Optional

from ..edm.models import (
    NavigationProperty,
    PrimitiveKind,
    Property,
    StructuralProperty,
    StructuredType,
    Term,
)
from ..uri.segments import ResourcePath
from .parameters import GenerationParameters

EXPAND_ALL = "*"


def record_value(record: Any, name: str) -> Any:
    """Read a property of an annotation record, ignoring case."""
    if not isinstance(record, dict):
        return None
    lowered = name.lower()
    for key, value in record.items():
        if key.lower() == lowered:
            return value
    return None


def is_insert_restricted(restrictions: Any, property_path: str) -> bool:
    """Check a NavigationRestrictions record for a non-insertable entry matching a path."""
    restricted = record_value(restrictions, "RestrictedProperties")
    if not isinstance(restricted, list):
        return False
    lowered = property_path.lower()
    for entry in restricted:
        path = record_value(entry, "NavigationProperty")
        insertable = record_value(record_value(entry, "InsertRestrictions"), "Insertable")
        if isinstance(path, str) and path.lower() == lowered and insertable is False:
            return True
    return False


class PropertyFilter:
    """Decides which properties of a node are emitted."""

    def __init__(self, parameters: GenerationParameters, request_path: Optional[ResourcePath] = None):
        """
        Args:
            parameters: Run parameters; `direction` selects the rule set
            request_path: Path the example was requested for; `$expand`
                names only apply to nodes at exactly this path
        """
        self.parameters = parameters
        self.model = parameters.model
        self.request_path = request_path
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def is_included(self, prop: Property, owner_path: ResourcePath) -> bool:
        """Decide whether a property of the node at `owner_path` is emitted."""
        if isinstance(prop, StructuralProperty):
            if prop.is_key:
                return True
            if prop.type.definition is PrimitiveKind.STREAM:
                return False

        if prop.name in self.parameters.skipped_properties:
            self.logger.debug(f"Skipping {prop.full_name}: explicitly skipped")
            return False

        if self.parameters.is_response:
            if isinstance(prop, NavigationProperty):
                return self._is_expanded(prop, owner_path)
            return True

        if isinstance(prop, StructuralProperty):
            if self.model.annotation_value(prop, Term.COMPUTED) is True:
                self.logger.debug(f"Skipping {prop.full_name}: computed")
                return False
            return True

        if not prop.contains_target and self._is_insert_restricted(prop, owner_path):
            self.logger.debug(f"Skipping {prop.full_name}: not insertable")
            return False
        return True

    def structural_properties(
        self, structured_type: StructuredType, owner_path: ResourcePath
    ) -> List[StructuralProperty]:
        """Included structural properties of a type, base-most first."""
        return [
            p for p in self.model.structural_properties(structured_type)
            if self.is_included(p, owner_path)
        ]

    def navigation_properties(
        self, structured_type: StructuredType, owner_path: ResourcePath
    ) -> List[NavigationProperty]:
        """Included navigation properties of a type, base-most first."""
        return [
            p for p in self.model.navigation_properties(structured_type)
            if self.is_included(p, owner_path)
        ]

    def _is_expanded(self, prop: NavigationProperty, owner_path: ResourcePath) -> bool:
        if prop.contains_target:
            return True
        if self.model.annotation_value(prop, Term.AUTO_EXPAND) is True:
            return True
        if self.request_path is not None and owner_path == self.request_path:
            expand = self.parameters.expand
            return EXPAND_ALL in expand or prop.name in expand
        return False

    def _is_insert_restricted(self, prop: NavigationProperty, owner_path: ResourcePath) -> bool:
        restrictions = self.model.annotation_value(
            owner_path.root_source, Term.NAVIGATION_RESTRICTIONS
        )
        if restrictions is None:
            return False
        return is_insert_restricted(restrictions, self.restriction_path(prop, owner_path))

    def restriction_path(self, prop: NavigationProperty, owner_path: ResourcePath) -> str:
        """Path of a property relative to the root source, as used by NavigationRestrictions.

        Drops the root and key segments, and adds a type cast when the
        property is declared on a type derived from the owner's declared type.
        """
        steps: List[str] = []
        owner_expression = owner_path.path_expression(skip_root=True)
        if owner_expression:
            steps.append(owner_expression)

        declared = owner_path.target_type_ref.definition
        declaring = prop.declaring_type
        if (
            isinstance(declared, StructuredType)
            and declaring is not declared
            and self.model.inherits_from(declaring, declared)
        ):
            steps.append(declaring.full_name)
        steps.append(prop.name)
        return "/".join(steps)
