"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Turns bytes from the socket into HTTPRequest objects and HTTPResponse
objects back into bytes.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ request.py       RequestParser, HTTPRequest, HTTPParseError          │
    │                  raw target, ordered headers, single-use body stream │
    ├─────────────────────────────────────────────────────────────────────┤
    │ response.py      HTTPResponse, ResponseWriter (first write wins),    │
    │                  json_response / error_response / status_response    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ router.py        Router: :param and *wildcard patterns, 404 / 405    │
    ├─────────────────────────────────────────────────────────────────────┤
    │ status_codes.py  HTTPStatus table, reason_phrase() with "Unknown"    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .request import HTTPRequest, RequestParser, HTTPParseError, canonical_header_name
from .response import (
    HTTPResponse,
    ResponseWriter,
    json_response,       # JSON body, application/json
    error_response,      # {"error": message}
    status_response,     # bare status, no body
    not_found,           # 404 No route matches
    method_not_allowed,  # 405 with Allow
    internal_error,      # 500
)
from .router import Router, Route
from .status_codes import HTTPStatus, reason_phrase

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "canonical_header_name",

    # Responses
    "HTTPResponse",
    "ResponseWriter",
    "json_response",
    "error_response",
    "status_response",
    "not_found",
    "method_not_allowed",
    "internal_error",

    # Routing
    "Router",
    "Route",

    # Status codes
    "HTTPStatus",
    "reason_phrase",
]
