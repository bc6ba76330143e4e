"""
Unit tests for HTTP request parsing.
"""

import json

import pytest

from pyhttpbin.http.request import (
    HTTPRequest,
    RequestParser,
    HTTPParseError,
    canonical_header_name,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert request.method == "GET"
        assert request.path == "/get"
        assert request.version == "HTTP/1.1"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_target_kept_verbatim(self, sample_get_request: bytes):
        """The raw request-target is what gets echoed as the URL."""
        request = parse_request(sample_get_request)

        assert request.target == "/get?a=1&a=2&b=3"

    def test_parse_headers(self, sample_get_request: bytes):
        """Test that headers are parsed correctly."""
        request = parse_request(sample_get_request)

        assert request.headers["host"] == "localhost:8080"
        assert request.user_agent == "pytest"
        assert request.headers["accept"] == "application/json"
        assert request.is_keep_alive is True

    def test_parse_query_params(self, sample_get_request: bytes):
        """Duplicate query keys keep every value in order."""
        request = parse_request(sample_get_request)

        assert request.query_params == {"a": ["1", "2"], "b": ["3"]}
        assert "missing" not in request.query_params

    def test_parse_blank_query_value(self):
        request = parse_request(b"GET /get?flag= HTTP/1.1\r\nHost: t\r\n\r\n")

        assert request.query_params == {"flag": [""]}

    def test_parse_post_with_body(self, sample_post_request: bytes):
        """Test parsing POST request with JSON body."""
        request = parse_request(sample_post_request)

        assert request.method == "POST"
        assert request.path == "/post"
        assert request.headers["content-type"] == "application/json"
        assert request.is_json is True
        assert request.stream.read() == request.body

        json_body = json.loads(request.body)
        assert json_body["name"] == "John"
        assert json_body["email"] == "john@example.com"

    def test_parse_path_with_special_chars(self):
        """Test URL-encoded path parsing."""
        raw = b"GET /search?q=hello%20world HTTP/1.1\r\nHost: test\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/search"
        assert request.query_params["q"] == ["hello world"]

    def test_parse_invalid_method(self):
        """Test that invalid methods are rejected."""
        raw = b"INVALID /path HTTP/1.1\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 405

    def test_parse_invalid_request_line(self):
        """Test handling of malformed request line."""
        raw = b"GET\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_parse_unsupported_version(self):
        raw = b"GET / HTTP/2.0\r\nHost: test\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 505

    def test_parse_missing_terminator(self):
        with pytest.raises(HTTPParseError):
            parse_request(b"GET / HTTP/1.1\r\nHost: test\r\n")

    def test_parse_missing_headers(self):
        """Test parsing request with no headers."""
        raw = b"GET / HTTP/1.1\r\n\r\n"
        request = parse_request(raw)

        assert request.method == "GET"
        assert request.path == "/"
        assert len(request.headers) == 0
        assert request.header_list == []

    def test_parse_request_too_large(self):
        """Test that oversized requests are rejected."""
        parser = RequestParser(max_request_size=100)
        raw = b"GET / HTTP/1.1\r\n" + b"X-Large: " + b"A" * 200 + b"\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parser.parse(raw)

        assert exc_info.value.status_code == 413

    def test_http_version_parsing(self):
        """Test HTTP/1.0 and HTTP/1.1 version handling."""
        # HTTP/1.0 (Connection: close by default)
        raw_10 = b"GET / HTTP/1.0\r\nHost: test\r\n\r\n"
        request_10 = parse_request(raw_10)
        assert request_10.version == "HTTP/1.0"
        assert request_10.is_keep_alive is False

        # HTTP/1.1 (keep-alive by default)
        raw_11 = b"GET / HTTP/1.1\r\nHost: test\r\n\r\n"
        request_11 = parse_request(raw_11)
        assert request_11.version == "HTTP/1.1"
        assert request_11.is_keep_alive is True

    def test_content_length_handling(self):
        """Test Content-Length validation."""
        body = b"test body"
        raw = (
            b"POST / HTTP/1.1\r\n"
            b"Content-Length: 9\r\n"
            b"\r\n"
        ) + body

        request = parse_request(raw)
        assert request.headers["content-length"] == "9"
        assert request.body == body

    def test_invalid_content_length(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: nine\r\n\r\n"

        with pytest.raises(HTTPParseError) as exc_info:
            parse_request(raw)

        assert exc_info.value.status_code == 400

    def test_incomplete_body(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 20\r\n\r\nshort"

        with pytest.raises(HTTPParseError):
            parse_request(raw)

    def test_extra_bytes_after_body_ignored(self):
        raw = b"POST / HTTP/1.1\r\nContent-Length: 3\r\n\r\nabcGET / HTTP/1.1"

        assert parse_request(raw).body == b"abc"

    def test_case_insensitive_headers(self):
        """Test that header names are case-insensitive."""
        raw = b"GET / HTTP/1.1\r\nCONTENT-TYPE: text/html\r\n\r\n"
        request = parse_request(raw)

        assert request.headers["content-type"] == "text/html"
        assert request.get_first_header("Content-Type") == "text/html"
        assert request.get_first_header("content-type") == "text/html"

    def test_repeated_headers_kept_in_order(self):
        raw = (
            b"GET / HTTP/1.1\r\n"
            b"Accept: text/html\r\n"
            b"X-Trace: one\r\n"
            b"accept: text/plain\r\n"
            b"\r\n"
        )
        request = parse_request(raw)

        assert request.headers["accept"] == "text/html, text/plain"
        assert request.get_header_values("Accept") == ["text/html", "text/plain"]
        assert request.header_list == [
            ("Accept", "text/html"),
            ("X-Trace", "one"),
            ("accept", "text/plain"),
        ]

    def test_folded_header_line(self):
        raw = b"GET / HTTP/1.1\r\nX-Long: part one\r\n  part two\r\n\r\n"
        request = parse_request(raw)

        assert request.get_first_header("X-Long") == "part one part two"


class TestHTTPRequest:
    """Tests for HTTPRequest dataclass."""

    def test_get_first_header_default(self):
        """Test get_first_header with default value."""
        request = HTTPRequest(method="GET", path="/")

        assert request.get_first_header("X-Missing") == ""
        assert request.get_first_header("X-Missing", "default") == "default"

    def test_target_defaults_to_path(self):
        assert HTTPRequest(method="GET", path="/ip").target == "/ip"

    def test_headers_built_from_header_list(self):
        request = HTTPRequest(
            method="GET",
            path="/",
            header_list=[("X-A", "1"), ("x-a", "2")],
        )

        assert request.headers == {"x-a": "1, 2"}
        assert request.get_first_header("X-A") == "1"

    def test_header_map_canonicalizes_names(self):
        request = HTTPRequest(
            method="GET",
            path="/",
            header_list=[("x-real-ip", "10.0.0.1"), ("ACCEPT", "a"), ("Accept", "b")],
        )

        assert request.header_map() == {
            "X-Real-Ip": ["10.0.0.1"],
            "Accept": ["a", "b"],
        }

    def test_header_values_fall_back_to_dict(self):
        request = HTTPRequest(method="GET", path="/", headers={"user-agent": "curl"})

        assert request.get_header_values("User-Agent") == ["curl"]
        assert request.header_map() == {"User-Agent": ["curl"]}

    def test_is_json_substring_match(self):
        request = HTTPRequest(
            method="POST",
            path="/",
            headers={"content-type": "application/json; charset=utf-8"},
        )

        assert request.is_json is True

    def test_is_json_false_without_content_type(self):
        request = HTTPRequest(method="POST", path="/", body=b'{"a": 1}')

        assert request.is_json is False

    def test_query_params_keep_every_value(self):
        """Repeated query keys are kept as lists."""
        request = HTTPRequest(
            method="GET",
            path="/",
            query_params={"tags": ["python", "http", "server"]},
        )

        assert request.query_params["tags"] == ["python", "http", "server"]

class TestCanonicalHeaderName:

    @pytest.mark.parametrize("name, expected", [
        ("x-forwarded-for", "X-Forwarded-For"),
        ("X-REAL-IP", "X-Real-Ip"),
        ("content-type", "Content-Type"),
        ("dnt", "Dnt"),
    ])
    def test_canonical(self, name, expected):
        assert canonical_header_name(name) == expected
