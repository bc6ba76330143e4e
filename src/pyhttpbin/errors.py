"""
=============================================================================
ERRORS
=============================================================================

Exceptions raised by handlers. Each one knows the status code and the
message the client should see; error_middleware turns them into
`{"error": message}` JSON responses.

    ┌──────────────────────┬────────┬────────────────────────────────────┐
    │ Exception            │ Status │ Raised for                          │
    ├──────────────────────┼────────┼────────────────────────────────────┤
    │ ClientError          │  400   │ bad delay, bad status spec          │
    │ RoutingConfigError   │  400   │ too few auth path segments          │
    │ AuthError            │  401   │ missing / bad credentials           │
    │ MethodMismatch       │  405   │ /post hit with GET, etc.            │
    │ InternalError        │  500   │ body stream could not be read       │
    └──────────────────────┴────────┴────────────────────────────────────┘

Transport-level problems (bad request line, oversize request) are not
here; the parser raises HTTPParseError for those before any handler runs.

=============================================================================
"""

from typing import Dict, Optional

from .http.status_codes import HTTPStatus


class HTTPBinError(Exception):
    """
    Base class for errors that map onto an HTTP response.

    Attributes:
        status_code: Status to send.
        message: Text for the {"error": ...} body.
        headers: Extra response headers (e.g. WWW-Authenticate).
    """

    status_code: int = HTTPStatus.INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        headers: Optional[Dict[str, str]] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.headers: Dict[str, str] = dict(headers or {})
        if status_code is not None:
            self.status_code = status_code


class ClientError(HTTPBinError):
    """Malformed path parameter."""

    status_code = HTTPStatus.BAD_REQUEST


class RoutingConfigError(HTTPBinError):
    """An auth path without enough segments. Never carries a challenge."""

    status_code = HTTPStatus.BAD_REQUEST


class AuthError(HTTPBinError):
    """
    Authentication failed or was missing.

    The challenge becomes the WWW-Authenticate header:

        raise AuthError("Authorization required", 'Basic realm="Restricted"')
    """

    status_code = HTTPStatus.UNAUTHORIZED

    def __init__(self, message: str, challenge: str):
        super().__init__(message, headers={"WWW-Authenticate": challenge})
        self.challenge = challenge


class MethodMismatch(HTTPBinError):
    status_code = HTTPStatus.METHOD_NOT_ALLOWED

    def __init__(self, message: str = "Method not allowed"):
        super().__init__(message)


class InternalError(HTTPBinError):
    status_code = HTTPStatus.INTERNAL_SERVER_ERROR
