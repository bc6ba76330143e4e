"""
Unit tests for the Basic, Bearer and Digest negotiators.
"""

import base64
import json
import re

import pytest

from pyhttpbin.errors import AuthError, RoutingConfigError
from pyhttpbin.handlers.auth import (
    AuthHandler,
    BASIC_USAGE,
    DIGEST_USAGE,
    parse_digest_params,
)


BASIC_CHALLENGE = 'Basic realm="Restricted"'
BEARER_CHALLENGE = 'Bearer realm="Restricted"'
DIGEST_CHALLENGE = re.compile(
    r'^Digest realm="Restricted", qop="auth", nonce="[0-9a-f]{32}", opaque="[0-9a-f]{32}"$'
)


def basic_header(user: str, passwd: str) -> str:
    token = base64.b64encode(f"{user}:{passwd}".encode()).decode()
    return f"Basic {token}"


@pytest.fixture
def auth(rng) -> AuthHandler:
    return AuthHandler(rng)


@pytest.fixture
def basic_request(request_factory):
    def build(authorization=None, credentials="user/passwd"):
        headers = [("Authorization", authorization)] if authorization is not None else []
        return request_factory(
            "GET",
            f"/basic-auth/{credentials}",
            headers=headers,
            path_params={"credentials": credentials},
        )
    return build


@pytest.fixture
def digest_request(request_factory):
    def build(authorization=None, params="auth/alice/secret"):
        headers = [("Authorization", authorization)] if authorization is not None else []
        return request_factory(
            "GET",
            f"/digest-auth/{params}",
            headers=headers,
            path_params={"params": params},
        )
    return build


class TestBasicAuth:
    """Tests for /basic-auth/{user}/{passwd}."""

    def test_success(self, auth, basic_request):
        response = auth.basic(basic_request(basic_header("user", "passwd")))

        assert response.status == 200
        assert json.loads(response.body) == {"authenticated": True, "user": "user"}

    def test_password_may_contain_colon(self, auth, basic_request):
        request = basic_request(basic_header("user", "pa:ss"), credentials="user/pa:ss")

        assert auth.basic(request).status == 200

    def test_missing_header(self, auth, basic_request):
        with pytest.raises(AuthError) as exc_info:
            auth.basic(basic_request())

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Authorization required"
        assert exc_info.value.headers == {"WWW-Authenticate": BASIC_CHALLENGE}

    def test_wrong_scheme(self, auth, basic_request):
        with pytest.raises(AuthError) as exc_info:
            auth.basic(basic_request("Bearer abc"))

        assert exc_info.value.message == "Basic authentication required"
        assert exc_info.value.challenge == BASIC_CHALLENGE

    def test_invalid_base64(self, auth, basic_request):
        with pytest.raises(AuthError) as exc_info:
            auth.basic(basic_request("Basic !!!not-base64"))

        assert exc_info.value.message == "Invalid authorization format"

    def test_missing_colon(self, auth, basic_request):
        token = base64.b64encode(b"userpasswd").decode()

        with pytest.raises(AuthError) as exc_info:
            auth.basic(basic_request(f"Basic {token}"))

        assert exc_info.value.message == "Invalid credentials format"

    def test_wrong_password(self, auth, basic_request):
        with pytest.raises(AuthError) as exc_info:
            auth.basic(basic_request(basic_header("user", "nope")))

        assert exc_info.value.message == "Invalid username or password"
        assert exc_info.value.challenge == BASIC_CHALLENGE

    def test_too_few_segments(self, auth, basic_request):
        with pytest.raises(RoutingConfigError) as exc_info:
            auth.basic(basic_request(basic_header("user", "passwd"), credentials="user"))

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == BASIC_USAGE
        assert exc_info.value.headers == {}

    def test_no_path_params(self, auth, request_factory):
        with pytest.raises(RoutingConfigError):
            auth.basic(request_factory("GET", "/basic-auth"))


class TestBearerAuth:
    """Tests for /bearer."""

    def test_success(self, auth, request_factory):
        request = request_factory("GET", "/bearer", headers=[("Authorization", "Bearer abc123")])

        response = auth.bearer(request)

        assert response.status == 200
        assert json.loads(response.body) == {"authenticated": True, "token": "abc123"}

    def test_missing_header(self, auth, request_factory):
        with pytest.raises(AuthError) as exc_info:
            auth.bearer(request_factory("GET", "/bearer"))

        assert exc_info.value.message == "Authorization required"
        assert exc_info.value.challenge == BEARER_CHALLENGE

    def test_wrong_scheme(self, auth, request_factory):
        request = request_factory("GET", "/bearer", headers=[("Authorization", "Basic abc")])

        with pytest.raises(AuthError) as exc_info:
            auth.bearer(request)

        assert exc_info.value.message == "Bearer token required"

    def test_empty_token(self, auth, request_factory):
        request = request_factory("GET", "/bearer", headers=[("Authorization", "Bearer ")])

        with pytest.raises(AuthError) as exc_info:
            auth.bearer(request)

        assert exc_info.value.message == "Bearer token is empty"

    def test_first_authorization_header_wins(self, auth, request_factory):
        request = request_factory(
            "GET",
            "/bearer",
            headers=[("Authorization", "Bearer first"), ("Authorization", "Bearer second")],
        )

        assert json.loads(auth.bearer(request).body)["token"] == "first"


class TestDigestAuth:
    """Tests for /digest-auth/{qop}/{user}/{passwd}."""

    def test_success(self, auth, digest_request):
        request = digest_request('Digest username="alice", realm="Restricted", response="x"')

        response = auth.digest(request)

        assert response.status == 200
        assert json.loads(response.body) == {"authenticated": True, "user": "alice"}

    def test_missing_header_challenge(self, auth, digest_request):
        with pytest.raises(AuthError) as exc_info:
            auth.digest(digest_request())

        assert exc_info.value.message == "Authorization required"
        assert DIGEST_CHALLENGE.match(exc_info.value.challenge)

    def test_fresh_nonce_per_challenge(self, auth, digest_request):
        challenges = set()
        for _ in range(3):
            with pytest.raises(AuthError) as exc_info:
                auth.digest(digest_request())
            challenges.add(exc_info.value.challenge)

        assert len(challenges) == 3

    def test_qop_from_path(self, auth, digest_request):
        with pytest.raises(AuthError) as exc_info:
            auth.digest(digest_request(params="auth-int/alice/secret"))

        assert 'qop="auth-int"' in exc_info.value.challenge

    def test_wrong_scheme(self, auth, digest_request):
        with pytest.raises(AuthError) as exc_info:
            auth.digest(digest_request("Basic abc"))

        assert exc_info.value.message == "Digest authentication required"

    def test_wrong_user(self, auth, digest_request):
        with pytest.raises(AuthError) as exc_info:
            auth.digest(digest_request('Digest username="bob"'))

        assert exc_info.value.message == "Invalid username"
        assert DIGEST_CHALLENGE.match(exc_info.value.challenge)

    def test_missing_username(self, auth, digest_request):
        with pytest.raises(AuthError) as exc_info:
            auth.digest(digest_request('Digest realm="Restricted"'))

        assert exc_info.value.message == "Invalid username"

    def test_too_few_segments(self, auth, digest_request):
        with pytest.raises(RoutingConfigError) as exc_info:
            auth.digest(digest_request(params="auth/alice"))

        assert exc_info.value.message == DIGEST_USAGE


class TestParseDigestParams:

    def test_quoted_and_bare(self):
        params = parse_digest_params('username="alice", realm="Restricted", nc=00000001')

        assert params == {"username": "alice", "realm": "Restricted", "nc": "00000001"}

    def test_segments_without_equals_skipped(self):
        assert parse_digest_params('garbage, username="a"') == {"username": "a"}

    def test_one_quote_layer_stripped(self):
        assert parse_digest_params('username=""alice""') == {"username": '"alice"'}

    def test_value_with_equals(self):
        assert parse_digest_params("uri=/a?b=c") == {"uri": "/a?b=c"}
