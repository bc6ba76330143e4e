"""
pytest configuration and fixtures.
"""

import socket
import threading
from typing import Generator, Optional
from urllib.parse import urlparse, parse_qs, unquote
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pyhttpbin import HTTPServer, ServerConfig, create_app
from pyhttpbin.core.random_source import RandomSource
from pyhttpbin.http import HTTPRequest


def make_request(
    method: str = "GET",
    target: str = "/get",
    headers: Optional[list] = None,
    body: bytes = b"",
    path_params: Optional[dict] = None,
    client_address: tuple = ("192.0.2.10", 53211),
) -> HTTPRequest:
    """Build an HTTPRequest by hand, the way the parser would."""
    parsed = urlparse(target)
    return HTTPRequest(
        method=method,
        path=unquote(parsed.path) or "/",
        target=target,
        header_list=list(headers or []),
        query_params=parse_qs(parsed.query, keep_blank_values=True),
        body=body,
        path_params=dict(path_params or {}),
        client_address=client_address,
    )


@pytest.fixture
def request_factory():
    """make_request as a fixture."""
    return make_request


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /get?a=1&a=2&b=3 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /post HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        + b"\r\n"
        + body
    )


@pytest.fixture
def rng() -> RandomSource:
    """Seeded random source for repeatable draws."""
    return RandomSource(seed=1234)


@pytest.fixture
def config() -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        min_workers=2,
        max_workers=4,
        timeout=5.0,
        keep_alive=False,
        max_delay=2,
        shutdown_timeout=2.0,
        log_level="WARNING",
    )


@pytest.fixture
def app(config: ServerConfig, rng: RandomSource) -> HTTPServer:
    """Fully wired app for socket-free tests through HTTPServer.handle()."""
    return create_app(config, rng=rng, sleep=lambda seconds: None)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.port

    def start(self):
        """Start server in background thread."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"port": 0, "configure_logging": False},
            daemon=True
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=10.0)


@pytest.fixture
def test_server(config: ServerConfig, rng: RandomSource) -> Generator[TestServer, None, None]:
    """The echo service on an ephemeral port."""
    test_srv = TestServer(create_app(config, rng=rng))
    test_srv.start()

    yield test_srv

    test_srv.stop()
