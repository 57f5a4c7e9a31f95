"""
JSON pretty printing of payload trees.

Uses orjson with two-space indentation. Request bodies have bookkeeping
members (`@odata.context`, `id`) removed at every depth; response bodies are
printed as built.
"""

from datetime import timedelta
from decimal import Decimal
from typing import Any, FrozenSet, Iterable

import orjson

from .sink import CONTEXT_ANNOTATION

REQUEST_STRIPPED_MEMBERS: FrozenSet[str] = frozenset({CONTEXT_ANNOTATION.lower(), "id"})
"""Member names (lower-cased) removed from request bodies."""


def format_duration(span: timedelta) -> str:
    """Format a timedelta as an ISO 8601 duration, e.g. `PT1H30M` or `P2DT4H`."""
    total = span.total_seconds()
    sign = "-" if total < 0 else ""
    total = abs(total)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    text = f"{sign}P"
    if days:
        text += f"{int(days)}D"
    clock = ""
    if hours:
        clock += f"{int(hours)}H"
    if minutes:
        clock += f"{int(minutes)}M"
    if seconds or not (days or clock):
        rounded = round(seconds, 6)
        clock += f"{int(rounded)}S" if rounded == int(rounded) else f"{rounded}S"
    return text + (f"T{clock}" if clock else "")


def _default(obj: Any) -> Any:
    """orjson fallback for types it does not serialise natively."""
    if isinstance(obj, Decimal):
        return float(obj)
    if isinstance(obj, timedelta):
        return format_duration(obj)
    raise TypeError(f"Type is not JSON serializable: {type(obj).__name__}")


def strip_members(node: Any, names: Iterable[str]) -> Any:
    """Return a copy of a JSON tree without the named members, ignoring case, at any depth."""
    lowered = frozenset(name.lower() for name in names)
    if isinstance(node, dict):
        return {
            key: strip_members(value, lowered)
            for key, value in node.items()
            if key.lower() not in lowered
        }
    if isinstance(node, list):
        return [strip_members(item, lowered) for item in node]
    return node


def pretty_print(tree: Any, strip_bookkeeping: bool = False) -> str:
    """Render a payload tree as indented JSON.

    Args:
        tree: Tree produced by JsonTreeSink
        strip_bookkeeping: Remove `@odata.context` and `id` members (request bodies)

    Returns:
        JSON text with two-space indentation
    """
    if strip_bookkeeping:
        tree = strip_members(tree, REQUEST_STRIPPED_MEMBERS)
    return orjson.dumps(
        tree,
        default=_default,
        option=orjson.OPT_INDENT_2 | orjson.OPT_UTC_Z,
    ).decode("utf-8")
