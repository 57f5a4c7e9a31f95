"""
Module for turning builder events into printed JSON payloads.
"""

from .sink import JsonTree, JsonTreeSink, RecordingSink, SinkStateError, WriterSink
from .printer import format_duration, pretty_print, strip_members

__all__ = [
    # Sinks
    "WriterSink",
    "JsonTreeSink",
    "RecordingSink",
    "SinkStateError",
    "JsonTree",
    # Printing
    "pretty_print",
    "strip_members",
    "format_duration",
]
