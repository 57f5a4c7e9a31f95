"""
Writer sinks consuming the payload builder's event stream.

The builder never produces JSON itself; it emits events (start a resource,
write a property, start a nested info, ...) to a sink. JsonTreeSink turns
them into plain Python trees in OData JSON shape, ready for the printer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Union

from ..edm.models import PrimitiveKind

JsonTree = Union[Dict[str, Any], List[Any]]

CONTEXT_ANNOTATION = "@odata.context"
TYPE_ANNOTATION = "@odata.type"
BIND_SUFFIX = "@odata.bind"


class WriterSink(Protocol):
    """Receiver of tree-building events, in document order."""

    def start_resource(self, type_name: str, annotate_type: bool = False) -> None: ...

    def property(self, name: str, value: Any, kind: Optional[PrimitiveKind] = None) -> None: ...

    def start_nested_info(self, name: str, is_collection: bool) -> None: ...

    def start_resource_set(self) -> None: ...

    def write_reference_link(self, url: str) -> None: ...

    def end_resource(self) -> None: ...

    def end_resource_set(self) -> None: ...

    def end_nested_info(self) -> None: ...


@dataclass
class _NestedInfo:
    """Open nested-info frame: the owning resource and links written so far."""
    name: str
    is_collection: bool
    owner: Dict[str, Any]
    links: List[str] = field(default_factory=list)


class SinkStateError(RuntimeError):
    """Raised when events arrive out of order."""
    pass


class JsonTreeSink:
    """Builds an OData JSON tree from builder events.

    Root resources get `@odata.context` when a context URL is given; a root
    resource set is wrapped as `{"value": [...]}`. Reference links become
    `<name>@odata.bind` entries on the owning resource.
    """

    def __init__(self, context_url: Optional[str] = None):
        self.context_url = context_url
        self.root: Optional[Dict[str, Any]] = None
        self._stack: List[Union[Dict[str, Any], List[Any], _NestedInfo]] = []

    @property
    def result(self) -> Dict[str, Any]:
        """The finished tree."""
        if self.root is None or self._stack:
            raise SinkStateError("Tree is not complete.")
        return self.root

    # === RESOURCES ===

    def start_resource(self, type_name: str, annotate_type: bool = False) -> None:
        resource: Dict[str, Any] = {}
        if not self._stack and self.context_url:
            resource[CONTEXT_ANNOTATION] = self.context_url
        if annotate_type:
            resource[TYPE_ANNOTATION] = f"#{type_name}"
        self._attach(resource)
        self._stack.append(resource)

    def property(self, name: str, value: Any, kind: Optional[PrimitiveKind] = None) -> None:
        top = self._top(dict)
        top[name] = list(value) if isinstance(value, list) else value

    def end_resource(self) -> None:
        self._pop(dict)

    # === SETS ===

    def start_resource_set(self) -> None:
        members: List[Any] = []
        if not self._stack:
            self.root = {CONTEXT_ANNOTATION: self.context_url} if self.context_url else {}
            self.root["value"] = members
        else:
            self._attach(members)
        self._stack.append(members)

    def end_resource_set(self) -> None:
        self._pop(list)

    # === NESTED INFOS ===

    def start_nested_info(self, name: str, is_collection: bool) -> None:
        self._stack.append(_NestedInfo(name, is_collection, self._top(dict)))

    def write_reference_link(self, url: str) -> None:
        self._top(_NestedInfo).links.append(url)

    def end_nested_info(self) -> None:
        nested = self._pop(_NestedInfo)
        if nested.links:
            key = f"{nested.name}{BIND_SUFFIX}"
            nested.owner[key] = list(nested.links) if nested.is_collection else nested.links[0]

    # === HELPERS ===

    def _attach(self, node: Union[Dict[str, Any], List[Any]]) -> None:
        if not self._stack:
            if not isinstance(node, dict):
                raise SinkStateError("A root resource set must be started with start_resource_set.")
            self.root = node
            return
        top = self._stack[-1]
        if isinstance(top, list):
            top.append(node)
        elif isinstance(top, _NestedInfo):
            top.owner[top.name] = node
        else:
            raise SinkStateError("Resources must be nested in a resource set or nested info.")

    def _top(self, expected: type) -> Any:
        if not self._stack or not isinstance(self._stack[-1], expected):
            raise SinkStateError(f"Expected an open {expected.__name__} frame.")
        return self._stack[-1]

    def _pop(self, expected: type) -> Any:
        top = self._top(expected)
        self._stack.pop()
        return top


class RecordingSink:
    """Records events as tuples; useful for inspecting traversal order."""

    def __init__(self):
        self.events: List[tuple] = []

    def start_resource(self, type_name: str, annotate_type: bool = False) -> None:
        self.events.append(("start_resource", type_name, annotate_type))

    def property(self, name: str, value: Any, kind: Optional[PrimitiveKind] = None) -> None:
        self.events.append(("property", name, value))

    def start_nested_info(self, name: str, is_collection: bool) -> None:
        self.events.append(("start_nested_info", name, is_collection))

    def start_resource_set(self) -> None:
        self.events.append(("start_resource_set",))

    def write_reference_link(self, url: str) -> None:
        self.events.append(("reference_link", url))

    def end_resource(self) -> None:
        self.events.append(("end_resource",))

    def end_resource_set(self) -> None:
        self.events.append(("end_resource_set",))

    def end_nested_info(self) -> None:
        self.events.append(("end_nested_info",))
