"""
Module for parsing service-relative resource URIs.

Provides the ResourcePath segment model and a parser that walks a URI's path
against an EdmModel and extracts root-level `$expand` names.
"""

from .segments import PathSegment, ResourcePath, SegmentKind
from .parser import ParsedUri, UriParser, parse_expand, split_top_level

__all__ = [
    # Path model
    "PathSegment",
    "ResourcePath",
    "SegmentKind",
    # Parsing
    "ParsedUri",
    "UriParser",
    "parse_expand",
    "split_top_level",
]
