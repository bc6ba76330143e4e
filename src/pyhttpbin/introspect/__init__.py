"""
Request introspection: descriptor building, origin resolution and status
spec resolution. Pure functions over HTTPRequest plus one RandomSource.
"""

from .descriptor import RequestDescriptor, build_descriptor, read_body
from .origin import format_peer, resolve_origin
from .status import StatusResolver, StatusWeight, parse_status_spec

__all__ = [
    "RequestDescriptor",
    "build_descriptor",
    "read_body",
    "format_peer",
    "resolve_origin",
    "StatusResolver",
    "StatusWeight",
    "parse_status_spec",
]
