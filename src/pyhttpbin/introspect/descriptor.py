"""
=============================================================================
REQUEST DESCRIPTOR
=============================================================================

The canonical "here is what you sent" record returned by /get, /post,
/delay and friends.

    {
        "method":  "POST",
        "url":     "/post?a=1&a=2",            request-target as received
        "args":    {"a": ["1", "2"]},          duplicates kept in order
        "headers": {"Content-Type": ["application/json"], ...},
        "origin":  "203.0.113.7",
        "body":    "{\\"k\\": \\"v\\"}",
        "json":    {"k": "v"}                  only when it parsed
    }

=============================================================================
BODY HANDLING
=============================================================================

The request body is a stream and is read exactly once, inside a
`closing()` block so the stream is released whatever happens. A read
failure is the only way building a descriptor can fail; it surfaces as
InternalError (500). JSON decoding is best effort: a body that does not
parse simply leaves the "json" key out.

=============================================================================
"""

from contextlib import closing
from dataclasses import dataclass, field
from typing import Any, Dict, List
import json
import logging

from ..errors import InternalError
from ..http.request import HTTPRequest
from .origin import format_peer, resolve_origin


logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class RequestDescriptor:
    """One request, normalized. Transient: built and serialized per request."""

    method: str
    url: str
    args: Dict[str, List[str]] = field(default_factory=dict)
    headers: Dict[str, List[str]] = field(default_factory=dict)
    origin: str = ""
    body: str = ""
    json: Any = _MISSING

    @property
    def has_json(self) -> bool:
        return self.json is not _MISSING

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "method": self.method,
            "url": self.url,
            "args": self.args,
            "headers": self.headers,
            "origin": self.origin,
            "body": self.body,
        }
        if self.has_json:
            data["json"] = self.json
        return data


def read_body(request: HTTPRequest) -> bytes:
    """
    Drain and close the request body stream.

    Raises:
        InternalError: If the stream cannot be read.
    """
    try:
        with closing(request.stream) as stream:
            return stream.read()
    except (OSError, ValueError) as e:
        logger.warning("Failed to read request body: %s", e)
        raise InternalError("Failed to read request body") from e


def build_descriptor(request: HTTPRequest) -> RequestDescriptor:
    """
    Build the RequestDescriptor for a request.

    Consumes request.stream. Raises InternalError when the body cannot be
    read; never fails on a malformed JSON body.
    """
    raw_body = read_body(request)
    headers = request.header_map()

    descriptor = RequestDescriptor(
        method=request.method,
        url=request.target,
        args={name: list(values) for name, values in request.query_params.items()},
        headers=headers,
        origin=resolve_origin(headers, format_peer(request.client_address)),
        body=raw_body.decode("utf-8", errors="replace"),
    )

    if raw_body and request.is_json:
        try:
            descriptor.json = json.loads(raw_body)
        except ValueError:
            logger.debug("Body advertised as JSON did not parse, leaving it out")

    return descriptor
