"""
Relative resource URI parsing.

Turns a service-relative URI such as `employees('1')/manager?$expand=office`
into a ResourcePath walked against the model, plus the navigation property
names explicitly expanded at the root level.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional, Tuple
from urllib.parse import parse_qsl, unquote

from ..edm.managers import EdmModel
from ..edm.models import NavigationProperty, StructuredType
from ..errors import ValidationError
from .segments import PathSegment, ResourcePath

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedUri:
    """A parsed relative URI."""
    raw: str
    path: ResourcePath
    expand: FrozenSet[str] = field(default_factory=frozenset)


def split_top_level(text: str, separator: str) -> List[str]:
    """Split on a separator that is not nested in parentheses or quotes.

    Args:
        text: Text to split
        separator: Single separator character

    Returns:
        List of parts, possibly with empty entries
    """
    parts: List[str] = []
    depth = 0
    in_quote = False
    current = ""
    for char in text:
        if char == "'":
            in_quote = not in_quote
        elif not in_quote and char == "(":
            depth += 1
        elif not in_quote and char == ")":
            depth -= 1
        if char == separator and depth == 0 and not in_quote:
            parts.append(current)
            current = ""
            continue
        current += char
    parts.append(current)
    return parts


def parse_expand(expand: str) -> FrozenSet[str]:
    """Extract the root-level navigation property names of an `$expand` clause.

    Nested options in parentheses and type casts are discarded; the last path
    segment of each item names the expanded property. `*` is kept as is.
    """
    names = set()
    for item in split_top_level(expand, ","):
        item = item.split("(", 1)[0].strip()
        steps = [s for s in item.split("/") if s and not s.startswith("$") and "." not in s]
        if steps:
            names.add(steps[-1])
    return frozenset(names)


def _split_key(raw_segment: str) -> Tuple[str, Optional[str]]:
    """Split `name(key)` into its name and key parts."""
    if raw_segment.endswith(")") and "(" in raw_segment:
        name, key = raw_segment[:-1].split("(", 1)
        return name, key
    return raw_segment, None


class UriParser:
    """Parses relative URIs against an EdmModel."""

    def __init__(self, model: EdmModel):
        self.model = model
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    def parse(self, relative_uri: str) -> ParsedUri:
        """Parse a service-relative URI.

        Args:
            relative_uri: URI such as `/employees/{id}/directReports?$expand=manager`

        Returns:
            ParsedUri with the walked path and root-level expand names

        Raises:
            ValidationError: If the URI cannot be walked against the model
        """
        path_text, _, query = relative_uri.partition("?")
        path = self.parse_path(path_text)

        expand: FrozenSet[str] = frozenset()
        for name, value in parse_qsl(query, keep_blank_values=True):
            if name == "$expand":
                expand = expand | parse_expand(value)

        self.logger.debug(f"Parsed '{relative_uri}' into {path!r}, expand={sorted(expand)}")
        return ParsedUri(raw=relative_uri, path=path, expand=expand)

    def parse_path(self, path_text: str) -> ResourcePath:
        """Walk the path part of a relative URI against the model."""
        raw_segments = [unquote(s) for s in split_top_level(path_text.strip("/"), "/") if s]
        if not raw_segments:
            raise ValidationError("The resource path is empty.")

        name, key = _split_key(raw_segments[0])
        source = self.model.find_navigation_source(name)
        if source is None:
            raise ValidationError(f"Resource path must start with an entity set or singleton; found '{name}'.")

        path = ResourcePath((PathSegment.for_source(source),))
        if key is not None:
            path = self._append_key(path, key)

        for raw_segment in raw_segments[1:]:
            path = self._append_segment(path, raw_segment)
        return path

    def _append_segment(self, path: ResourcePath, raw_segment: str) -> ResourcePath:
        if raw_segment.startswith("$"):
            raise ValidationError(f"Path segment '{raw_segment}' is not supported for example generation.")

        current = path.last
        definition = current.type_ref.definition
        if not isinstance(definition, StructuredType):
            raise ValidationError(
                f"Segment '{raw_segment}' follows '{current.identifier}', which is not a structured type."
            )

        cast_type = self._find_cast(raw_segment, definition)
        if cast_type is not None:
            return path.append(PathSegment.for_cast(current, cast_type))

        if current.is_collection:
            # Key as segment: employees/1 or employees/{id}
            return self._append_key(path, raw_segment)

        name, key = _split_key(raw_segment)
        found = self.model.find_property(definition, name)
        if found is None:
            raise ValidationError(f"Type '{definition.full_name}' has no property '{name}'.")

        if isinstance(found, NavigationProperty):
            path = path.append(PathSegment.for_navigation(found))
        else:
            path = path.append(PathSegment.for_property(found))

        if key is not None:
            path = self._append_key(path, key)
        return path

    def _find_cast(self, raw_segment: str, current: StructuredType) -> Optional[StructuredType]:
        if "." not in raw_segment or "(" in raw_segment:
            return None
        cast_type = self.model.find_structured_type(raw_segment)
        if cast_type is None:
            return None
        if cast_type is not current and not self.model.inherits_from(cast_type, current):
            raise ValidationError(
                f"Type cast '{raw_segment}' is not derived from '{current.full_name}'."
            )
        return cast_type

    @staticmethod
    def _append_key(path: ResourcePath, key: str) -> ResourcePath:
        if not path.last.is_collection:
            raise ValidationError(f"Key '{key}' applied to single-valued segment '{path.last.identifier}'.")
        return path.append(PathSegment.for_key(path.last, key.strip("'")))
