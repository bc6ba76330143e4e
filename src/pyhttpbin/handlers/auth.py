"""
=============================================================================
AUTHENTICATION NEGOTIATORS
=============================================================================

Three challenge/response flows, each checking credentials that are baked
into the request path. Nothing is stored between requests.

=============================================================================
THE COMMON SHAPE
=============================================================================

    Authorization header?
          │
          ├── missing ────────────────► 401 + WWW-Authenticate challenge
          │
          ├── wrong scheme ───────────► 401 + challenge
          │
          └── validate
                 ├── bad ─────────────► 401 + challenge
                 └── good ────────────► 200 {"authenticated": true, ...}

    Too few path segments → 400, no challenge. That is a badly built URL,
    not a failed login.

=============================================================================
CHALLENGES
=============================================================================

    Basic   realm="Restricted"
    Bearer  realm="Restricted"
    Digest  realm="Restricted", qop="auth", nonce="<32 hex>", opaque="<32 hex>"

The digest flow is deliberately simplified: a request passes when its
`username` directive matches the path user. The response hash is never
checked, and every failure gets a fresh nonce.

=============================================================================
"""

from typing import Dict, List
import base64
import binascii
import hashlib
import logging

from ..core.random_source import RandomSource
from ..errors import AuthError, RoutingConfigError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, json_response
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

DEFAULT_REALM = "Restricted"

BASIC_USAGE = "Invalid path format. Use /basic-auth/{user}/{passwd}"
DIGEST_USAGE = "Invalid path format. Use /digest-auth/{qop}/{user}/{passwd}"


def parse_digest_params(value: str) -> Dict[str, str]:
    """
    Parse the directives of a Digest Authorization header.

        'username="alice", realm="Restricted", nc=00000001'
        → {"username": "alice", "realm": "Restricted", "nc": "00000001"}

    Segments without "=" are skipped. One layer of surrounding double
    quotes is stripped from each value.
    """
    params: Dict[str, str] = {}
    for part in value.split(","):
        key, sep, raw = part.strip().partition("=")
        if not sep:
            continue
        raw = raw.strip()
        if len(raw) >= 2 and raw[0] == '"' and raw[-1] == '"':
            raw = raw[1:-1]
        params[key.strip()] = raw
    return params


def _path_segments(request: HTTPRequest, name: str) -> List[str]:
    return request.path_params.get(name, "").split("/")


class AuthHandler:
    """
    Basic, Bearer and Digest endpoints.

    Args:
        rng: Source for digest nonces and opaques.
        realm: Realm advertised in every challenge.
    """

    def __init__(self, rng: RandomSource, realm: str = DEFAULT_REALM):
        self.rng = rng
        self.realm = realm

    # =========================================================================
    # CHALLENGE BUILDERS
    # =========================================================================

    def basic_challenge(self) -> str:
        return f'Basic realm="{self.realm}"'

    def bearer_challenge(self) -> str:
        return f'Bearer realm="{self.realm}"'

    def digest_challenge(self, qop: str) -> str:
        """Fresh nonce (16 random bytes) and opaque (md5 of 16 more)."""
        nonce = self.rng.token_hex(16)
        opaque = hashlib.md5(self.rng.token_bytes(16)).hexdigest()
        return (
            f'Digest realm="{self.realm}", qop="{qop}", '
            f'nonce="{nonce}", opaque="{opaque}"'
        )

    # =========================================================================
    # BASIC
    # =========================================================================

    def basic(self, request: HTTPRequest) -> HTTPResponse:
        """
        /basic-auth/{user}/{passwd}

        The base64 payload is decoded strictly; anything that is not clean
        base64 is reported the same way as a wrong password would be, with
        a 401 and the challenge.
        """
        segments = _path_segments(request, "credentials")
        if len(segments) < 2:
            raise RoutingConfigError(BASIC_USAGE)
        expected_user, expected_passwd = segments[0], segments[1]

        challenge = self.basic_challenge()
        auth = request.get_first_header("Authorization")
        if not auth:
            raise AuthError("Authorization required", challenge)
        if not auth.startswith("Basic "):
            raise AuthError("Basic authentication required", challenge)

        try:
            payload = base64.b64decode(auth[len("Basic "):], validate=True)
            decoded = payload.decode("utf-8")
        except (binascii.Error, ValueError):
            raise AuthError("Invalid authorization format", challenge)

        user, sep, passwd = decoded.partition(":")
        if not sep:
            raise AuthError("Invalid credentials format", challenge)

        if user != expected_user or passwd != expected_passwd:
            logger.debug("Basic auth rejected for user %r", user)
            raise AuthError("Invalid username or password", challenge)

        return json_response(HTTPStatus.OK, {"authenticated": True, "user": user})

    # =========================================================================
    # BEARER
    # =========================================================================

    def bearer(self, request: HTTPRequest) -> HTTPResponse:
        """/bearer: any non-empty token is accepted."""
        challenge = self.bearer_challenge()
        auth = request.get_first_header("Authorization")
        if not auth:
            raise AuthError("Authorization required", challenge)
        if not auth.startswith("Bearer "):
            raise AuthError("Bearer token required", challenge)

        token = auth[len("Bearer "):]
        if not token:
            raise AuthError("Bearer token is empty", challenge)

        return json_response(HTTPStatus.OK, {"authenticated": True, "token": token})

    # =========================================================================
    # DIGEST
    # =========================================================================

    def digest(self, request: HTTPRequest) -> HTTPResponse:
        """/digest-auth/{qop}/{user}/{passwd}; the password is never checked."""
        segments = _path_segments(request, "params")
        if len(segments) < 3:
            raise RoutingConfigError(DIGEST_USAGE)
        qop, expected_user = segments[0], segments[1]

        auth = request.get_first_header("Authorization")
        if not auth:
            raise AuthError("Authorization required", self.digest_challenge(qop))
        if not auth.startswith("Digest "):
            raise AuthError("Digest authentication required", self.digest_challenge(qop))

        params = parse_digest_params(auth[len("Digest "):])
        username = params.get("username")
        if username is None or username != expected_user:
            raise AuthError("Invalid username", self.digest_challenge(qop))

        return json_response(HTTPStatus.OK, {"authenticated": True, "user": username})
