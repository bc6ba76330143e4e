"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Parses raw HTTP/1.1 request bytes into structured HTTPRequest objects.
Implements the message syntax of RFC 7230.

=============================================================================
WHAT AN ECHO SERVICE NEEDS FROM A PARSER
=============================================================================

A normal application server throws away a lot of the wire detail once it
has routed the request. An echo service has to keep it, because the whole
point is to show the client exactly what arrived:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHAT WE KEEP FROM THE WIRE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   GET /get?a=1&a=2 HTTP/1.1\\r\\n                                     │
    │   ─┬─ ──────┬───── ────┬───                                         │
    │    │        │          └── version                                  │
    │    │        └───────────── target  (verbatim, echoed as "url")      │
    │    │                        ├─ path   "/get"   (decoded, routed)    │
    │    │                        └─ query  {"a": ["1", "2"]}             │
    │    └────────────────────── method                                   │
    │                                                                      │
    │   X-Forwarded-For: 1.2.3.4\\r\\n     ┐                                │
    │   Accept: text/html\\r\\n            ├─ header_list (order + case)    │
    │   Accept: text/plain\\r\\n           ┘  headers     (lowercase, joined)│
    │   \\r\\n                                                              │
    │   {"k": "v"}                       ── stream (read exactly once)     │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Two header views are kept:

    headers      Dict[str, str]              lowercase name → joined value
                                             (what handlers use for lookups)
    header_list  list[tuple[str, str]]       raw (name, value) pairs in
                                             arrival order (what gets echoed)

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, BinaryIO
from urllib.parse import parse_qs, urlparse, unquote
import io
import re


class HTTPParseError(Exception):
    """
    Raised when HTTP request parsing fails.

    Carries the status code that should be returned to the client:

        400 Bad Request                - Malformed request syntax
        405 Method Not Allowed         - Unknown method token
        413 Payload Too Large          - Request exceeds size limit
        505 HTTP Version Not Supported - Unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def canonical_header_name(name: str) -> str:
    """
    Canonicalize a header name the way most HTTP stacks print them.

    The first letter and every letter following a hyphen are uppercased,
    the rest lowercased:

        "x-forwarded-for"  → "X-Forwarded-For"
        "X-REAL-IP"        → "X-Real-Ip"
        "content-type"     → "Content-Type"
    """
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


@dataclass
class HTTPRequest:
    """
    Represents a parsed HTTP request.

    =========================================================================
    ATTRIBUTES
    =========================================================================

        method:         The HTTP method (GET, POST, ...)

        path:           Decoded request path WITHOUT query string.
                        This is what the router matches against.

        target:         The request-target exactly as it appeared on the
                        request line, e.g. "/get?a=1&a=2". Echoed back to
                        the client unchanged.

        version:        "HTTP/1.1" or "HTTP/1.0"

        headers:        Lowercase name → value. Repeated headers are joined
                        with ", " (RFC 7230 section 3.2.2).

        header_list:    Raw (name, value) pairs in arrival order.

        query_params:   "?a=1&a=2&b=3" → {"a": ["1", "2"], "b": ["3"]}

        body:           Raw body bytes.

        stream:         Readable binary stream over the body. Defaults to a
                        BytesIO over `body`. Consumers that echo the body
                        read it once and close it.

        path_params:    Filled in by the router: "/status/:code" → {"code": ...}

        client_address: (host, port) of the transport peer.

    =========================================================================
    """

    # Core request line components
    method: str
    path: str
    version: str = "HTTP/1.1"
    target: str = ""

    # Parsed components
    headers: Dict[str, str] = field(default_factory=dict)
    header_list: list[tuple[str, str]] = field(default_factory=list)
    query_params: Dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""
    stream: Optional[BinaryIO] = field(default=None, repr=False)

    # Router-injected parameters
    path_params: Dict[str, str] = field(default_factory=dict)

    # Metadata
    client_address: tuple[str, int] = ("", 0)

    def __post_init__(self):
        if not self.target:
            self.target = self.path
        if self.stream is None:
            self.stream = io.BytesIO(self.body)
        if self.header_list and not self.headers:
            for name, value in self.header_list:
                key = name.lower()
                if key in self.headers:
                    self.headers[key] += ", " + value
                else:
                    self.headers[key] = value

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def user_agent(self) -> str:
        return self.headers.get("user-agent", "")

    @property
    def is_json(self) -> bool:
        """
        True when the Content-Type mentions application/json anywhere.

        A substring check on the full header value, so
        "application/json; charset=utf-8" and "application/json-patch"
        style values both count.
        """
        return "application/json" in self.headers.get("content-type", "").lower()

    @property
    def is_keep_alive(self) -> bool:
        """
        Check if this connection should be kept alive.

            HTTP/1.1:  keep alive unless "Connection: close"
            HTTP/1.0:  close unless "Connection: keep-alive"
        """
        connection = self.headers.get("connection", "").lower()
        if self.version == "HTTP/1.1":
            return connection != "close"
        return connection == "keep-alive"

    # =========================================================================
    # ACCESSOR METHODS
    # =========================================================================

    def get_header_values(self, name: str) -> list[str]:
        """
        Get every value sent for a header, in arrival order.

        Example:
            # X-Forwarded-For: 1.1.1.1
            # X-Forwarded-For: 2.2.2.2
            request.get_header_values("x-forwarded-for")
            # → ["1.1.1.1", "2.2.2.2"]
        """
        wanted = name.lower()
        values = [value for key, value in self.header_list if key.lower() == wanted]
        if not values and not self.header_list and wanted in self.headers:
            values = [self.headers[wanted]]
        return values

    def get_first_header(self, name: str, default: str = "") -> str:
        """First value of a possibly repeated header."""
        values = self.get_header_values(name)
        return values[0] if values else default

    def header_map(self) -> Dict[str, list[str]]:
        """
        Headers as canonical name → list of values.

        This is the shape echoed back in descriptors and on /headers.
        Names are canonicalized (see canonical_header_name) so that
        "x-real-ip" and "X-Real-IP" land under the same key.
        """
        mapping: Dict[str, list[str]] = {}
        if self.header_list:
            for name, value in self.header_list:
                mapping.setdefault(canonical_header_name(name), []).append(value)
        else:
            for name, value in self.headers.items():
                mapping[canonical_header_name(name)] = [value]
        return mapping


class RequestParser:
    """
    Parses raw HTTP request bytes into HTTPRequest objects.

    ==========================================================================
    PARSER STEPS
    ==========================================================================

        Raw Request Bytes
              │
              ▼
        1. Size check              too large? → HTTPParseError(413)
        2. Split at \\r\\n\\r\\n      missing?   → HTTPParseError(400)
        3. Request line            METHOD SP TARGET SP VERSION
                                   bad method  → 405, bad version → 505
        4. Headers                 "Name: Value", order and case kept
        5. Body                    exactly Content-Length bytes
        6. HTTPRequest

    ==========================================================================
    """

    VALID_METHODS = {
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "PATCH",
        "HEAD",
        "OPTIONS",
        "TRACE",
        "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:]+):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0)
    ) -> HTTPRequest:
        """
        Parse raw HTTP request data into an HTTPRequest object.

        Args:
            data: Raw HTTP request bytes from socket.
            client_address: Peer (host, port) of the connection.

        Returns:
            Parsed HTTPRequest object.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(data)} bytes",
                status_code=413
            )

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        header_section = data[:header_end].decode("utf-8", errors="replace")
        body = data[header_end + 4:]

        lines = header_section.split("\r\n")
        method, target, path, query_params, version = self._parse_request_line(lines[0])
        headers, header_list = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")
        if content_length < 0:
            raise HTTPParseError("Invalid Content-Length header")

        if len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        # Anything past Content-Length belongs to the next pipelined request
        body = body[:content_length]

        return HTTPRequest(
            method=method,
            path=path,
            target=target,
            version=version,
            headers=headers,
            header_list=header_list,
            query_params=query_params,
            body=body,
            client_address=client_address,
        )

    def _parse_request_line(
        self,
        line: str
    ) -> tuple[str, str, str, Dict[str, list[str]], str]:
        """
        Split the request line into (method, target, path, query, version).

            "GET /get?a=1 HTTP/1.1"
             ─┬─ ───┬──── ────┬───
              │     │         │
            Method Target   Version
        """
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, target, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("HTTP/1.0", "HTTP/1.1"):
            raise HTTPParseError(
                f"Unsupported HTTP version: {version}",
                status_code=505
            )

        parsed = urlparse(target)
        path = unquote(parsed.path) or "/"
        query_params = parse_qs(parsed.query, keep_blank_values=True)

        return method, target, path, query_params, version

    def _parse_headers(
        self,
        lines: list[str]
    ) -> tuple[Dict[str, str], list[tuple[str, str]]]:
        """
        Parse header lines.

        Returns both views: the lowercase joined dict and the ordered raw
        list. Obsolete line folding (continuation lines starting with
        whitespace) is folded into the previous header. Malformed lines
        are skipped.
        """
        headers: Dict[str, str] = {}
        header_list: list[tuple[str, str]] = []

        for line in lines:
            if not line:
                continue

            if line[0] in (" ", "\t"):
                if header_list:
                    name, value = header_list[-1]
                    header_list[-1] = (name, value + " " + line.strip())
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                continue

            name, value = match.groups()
            header_list.append((name.strip(), value.strip()))

        for name, value in header_list:
            key = name.lower()
            if key in headers:
                headers[key] += ", " + value
            else:
                headers[key] = value

        return headers, header_list


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
    max_size: int = 10 * 1024 * 1024
) -> HTTPRequest:
    """Parse one request with a throwaway RequestParser."""
    parser = RequestParser(max_request_size=max_size)
    return parser.parse(data, client_address)
