"""
=============================================================================
HTTP RESPONSE & RESPONSE EMITTER
=============================================================================

Everything a handler hands back to the transport ends up as an
HTTPResponse. Handlers do not build those directly; they go through a
ResponseWriter, or one of the emitter helpers on top of it.

=============================================================================
FIRST WRITE WINS
=============================================================================

A ResponseWriter behaves like a real socket-backed response: once the
status line has "gone out", headers and status are frozen.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                                                                       │
    │   w = ResponseWriter()                                                │
    │   w.header("Content-Type", "application/json")   ✓ applied            │
    │   w.write_header(401)                             ✓ commits           │
    │   w.header("X-Late", "1")                         ✗ ignored           │
    │   w.write_header(200)                             ✗ ignored           │
    │   w.write(b'{"error": "..."}')                    ✓ body appended     │
    │                                                                       │
    │   ResponseWriter().write(b"hi")   → implicit 200, then body           │
    │                                                                       │
    └──────────────────────────────────────────────────────────────────────┘

=============================================================================
EMITTERS
=============================================================================

    json_response(status, data)     Content-Type: application/json,
                                    body is JSON plus a trailing "\\n"
    error_response(status, msg)     json_response(status, {"error": msg})
    status_response(code)           status only, no Content-Type, empty body

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union
import json

from .status_codes import HTTPStatus, reason_phrase


JSON_CONTENT_TYPE = "application/json"


@dataclass
class HTTPResponse:
    """
    A complete HTTP response, ready to be serialized.

        HTTPResponse(               to_bytes()         b"HTTP/1.1 200 OK\\r\\n
          status=200,            ─────────────►         Content-Type: ...\\r\\n
          headers={...},                                Content-Length: 27\\r\\n
          body=b"...")                                  \\r\\n
                                                        {...}"

    `status` is a plain int so that codes missing from the HTTPStatus
    table (299, 599...) can still be sent.
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """e.g. "HTTP/1.1 200 OK" or "HTTP/1.1 299 Unknown"."""
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def set_body(self, body: Union[str, bytes]) -> "HTTPResponse":
        if isinstance(body, str):
            self.body = body.encode("utf-8")
        else:
            self.body = body
        return self

    def to_bytes(
        self,
        server_name: str = "pyhttpbin",
        include_body: bool = True
    ) -> bytes:
        """
        Serialize the response for socket.sendall().

        Content-Length, Date and Server are added when the handler did not
        set them. With include_body=False (responses to HEAD) the headers,
        Content-Length included, describe the body that would have been
        sent, but no body bytes follow.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if "Date" not in response_headers:
            response_headers["Date"] = format_http_date(datetime.now(timezone.utc))

        if "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        header_bytes = "\r\n".join(lines).encode("utf-8") + b"\r\n"
        if not include_body:
            return header_bytes
        return header_bytes + self.body


class ResponseWriter:
    """
    Fluent, commit-once response writer.

    Every mutator returns `self`, so short responses read as one chain:

        return (ResponseWriter()
            .header("Content-Type", "application/json")
            .write_header(200)
            .write(payload)
            .build())

    Once committed (by write_header() or the first write()), header() and
    write_header() are silently ignored.
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body = bytearray()
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    @property
    def status(self) -> int:
        return self._status

    def header(self, name: str, value: str) -> "ResponseWriter":
        if not self._committed:
            self._headers[name] = value
        return self

    def headers(self, headers: Optional[Dict[str, str]]) -> "ResponseWriter":
        for name, value in (headers or {}).items():
            self.header(name, value)
        return self

    def write_header(self, status: int) -> "ResponseWriter":
        if not self._committed:
            self._status = status
            self._committed = True
        return self

    def write(self, data: Union[str, bytes]) -> "ResponseWriter":
        if not self._committed:
            self.write_header(HTTPStatus.OK)
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._body.extend(data)
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=bytes(self._body),
        )


def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an RFC 7231 HTTP-date.

    Example: "Wed, 01 Jan 2026 12:00:00 GMT". Always GMT.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# EMITTERS
# =============================================================================
#
#     return json_response(200, {"origin": "1.2.3.4"})
#     return error_response(400, "Invalid delay value")
#     return status_response(503)
#
# =============================================================================

def json_response(
    status: int,
    data: Any,
    headers: Optional[Dict[str, str]] = None
) -> HTTPResponse:
    """
    Serialize `data` as a JSON response.

    Content-Type is set before the status is committed, and extra headers
    (Allow, WWW-Authenticate...) go on with it. The body always ends in a
    newline.
    """
    payload = json.dumps(data, ensure_ascii=False) + "\n"
    return (ResponseWriter()
        .header("Content-Type", JSON_CONTENT_TYPE)
        .headers(headers)
        .write_header(status)
        .write(payload)
        .build())


def error_response(
    status: int,
    message: str,
    headers: Optional[Dict[str, str]] = None
) -> HTTPResponse:
    """{"error": message} with the given status."""
    return json_response(status, {"error": message}, headers)


def status_response(status: int) -> HTTPResponse:
    """A bare status: no Content-Type, empty body."""
    return ResponseWriter().write_header(status).build()


def not_found(path: str) -> HTTPResponse:
    return error_response(HTTPStatus.NOT_FOUND, f"No route matches {path}")


def method_not_allowed(allowed_methods: list[str]) -> HTTPResponse:
    """405 with the Allow header RFC 7231 asks for."""
    return error_response(
        HTTPStatus.METHOD_NOT_ALLOWED,
        "Method not allowed",
        {"Allow": ", ".join(allowed_methods)},
    )


def internal_error(message: str = "Internal Server Error") -> HTTPResponse:
    return error_response(HTTPStatus.INTERNAL_SERVER_ERROR, message)
