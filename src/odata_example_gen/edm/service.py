"""
Main service for working with OData metadata.

Provides a high-level API for loading a CSDL document and answering the
name lookups the command line and option layer need.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from .loaders import CsdlLoader
from .managers import EdmModel
from .models import NavigationSource, StructuredType


class MetadataService:
    """Service for working with a single service's metadata.

    Responsible for reading the CSDL document and exposing the finalized
    model. Loading happens once, at construction.
    """

    def __init__(
        self,
        csdl_path: Optional[Union[str, Path]] = None,
        document: Optional[Union[str, bytes]] = None,
    ):
        """Initialize the service and load the model.

        Args:
            csdl_path: Path to the CSDL XML document describing the service
            document: In-memory CSDL document, used instead of a path

        Raises:
            ValueError: If neither or both of `csdl_path` and `document` are given
            ModelLoadError: If the document cannot be read or parsed
            ModelIntegrityError: If the document is internally inconsistent
        """
        if (csdl_path is None) == (document is None):
            raise ValueError("Pass exactly one of csdl_path or document")

        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.loader = CsdlLoader()

        if csdl_path is not None:
            self.csdl_path: Optional[Path] = Path(csdl_path)
            self.logger.info(f"Initializing MetadataService with path: {self.csdl_path}")
            self.model: EdmModel = self.loader.load(self.csdl_path)
        else:
            self.csdl_path = None
            self.logger.info("Initializing MetadataService from an in-memory document")
            self.model = self.loader.parse(document)

    @classmethod
    def from_string(cls, document: Union[str, bytes]) -> "MetadataService":
        """Build a service around an in-memory CSDL document."""
        return cls(document=document)

    # === QUERIES ===

    def get_navigation_source(self, name: str) -> Optional[NavigationSource]:
        """Get an entity set or singleton by name (case-insensitive fallback)."""
        return self.model.find_navigation_source(name)

    def get_type(self, name: str) -> Optional[StructuredType]:
        """Get a structured type by qualified or short name."""
        found = self.model.find_type_by_short_name(name)
        return found if isinstance(found, StructuredType) else None

    def list_navigation_sources(self) -> List[str]:
        """Get the names of all entity sets and singletons, sorted."""
        return sorted(self.model.sources)

    def get_statistics(self) -> Dict[str, int]:
        """Get counts of the loaded model elements."""
        structured = self.model.structured_types()
        return {
            "entity_types": sum(1 for t in structured if t.is_entity),
            "complex_types": sum(1 for t in structured if not t.is_entity),
            "enum_types": len(self.model.enum_types()),
            "navigation_sources": len(self.model.sources),
        }
