"""
Generation defaults for odata-example-gen.

These are the values used when the command line does not supply them.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..generation.parameters import DEFAULT_SERVICE_ROOT

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)


class GenerationSettings:
    """Manages default generation options."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings

    def _get_str(self, key: str, default: str = "") -> str:
        """Type-safe string retrieval from settings."""
        value = self.settings.value(key, default)
        return str(value) if value is not None else default

    @property
    def base_uri(self) -> str:
        """Get the service root used to build reference links and context URLs."""
        return self._get_str("generation/base_uri", DEFAULT_SERVICE_ROOT)

    @base_uri.setter
    def base_uri(self, value: str) -> None:
        """Set the default service root."""
        self.settings.setValue("generation/base_uri", value)
        self.settings.sync()

    @property
    def default_id_provider(self) -> str:
        """Get the ID provider used for `@default` (empty means the first registered)."""
        return self._get_str("generation/default_id_provider", "")

    @default_id_provider.setter
    def default_id_provider(self, value: str) -> None:
        """Set the default ID provider."""
        self.settings.setValue("generation/default_id_provider", value)
        self.settings.sync()

    @property
    def csdl_path(self) -> Optional[Path]:
        """Get the CSDL document used when none is given."""
        path_str = self._get_str("generation/csdl_path", "")
        return Path(path_str) if path_str else None

    @csdl_path.setter
    def csdl_path(self, value: Optional[Path]) -> None:
        """Set the default CSDL document."""
        self.settings.setValue("generation/csdl_path", str(value) if value else "")
        self.settings.sync()
