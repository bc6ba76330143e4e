"""
=============================================================================
CLIENT CONNECTION
=============================================================================

Wraps one accepted client socket: buffered reads of whole HTTP requests,
timeouts, and an orderly close.

=============================================================================
READING A REQUEST
=============================================================================

TCP hands over bytes in arbitrary chunks. read_request() keeps a buffer
and returns exactly one request at a time:

    recv() until "\\r\\n\\r\\n"  →  headers complete
    Content-Length: N        →  recv() until N body bytes are buffered
    return headers + body    →  anything after stays buffered (pipelining)

    ┌──────────────────────────┬──────────────────────────────────────────┐
    │ first request            │ `timeout` (default 30s), then 408        │
    │ later keep-alive request │ `keep_alive_timeout` (5s), then close    │
    │ buffer > max size        │ HTTPParseError(413)                      │
    │ peer closed              │ None                                     │
    └──────────────────────────┴──────────────────────────────────────────┘

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid

from ..http.request import HTTPParseError


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    NEW = "new"
    READING = "reading"
    PROCESSING = "processing"
    WRITING = "writing"
    KEEP_ALIVE = "keep_alive"
    CLOSING = "closing"
    CLOSED = "closed"


@dataclass
class Connection:
    """
    One client connection.

    Attributes:
        socket: The client socket.
        address: Peer address as returned by accept().
        id: Short id used in log lines.
        state: Current ConnectionState.
        requests_handled: Requests read so far on this connection.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    state: ConnectionState = ConnectionState.NEW
    last_activity: float = field(default_factory=time.monotonic)
    requests_handled: int = 0

    buffer_size: int = 8192
    timeout: float = 30.0
    keep_alive_timeout: float = 5.0
    max_request_size: int = 10 * 1024 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    DRAIN_TIMEOUT = 0.5
    DRAIN_LIMIT = 64 * 1024

    def __post_init__(self):
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    def read_request(self) -> Optional[bytes]:
        """
        Read one complete HTTP request.

        Returns:
            Request bytes, or None when the peer closed the connection or
            went quiet between keep-alive requests.

        Raises:
            TimeoutError: The first request did not arrive in time.
            HTTPParseError: The request grew beyond max_request_size.
        """
        self.state = ConnectionState.READING
        self.last_activity = time.monotonic()

        if self.requests_handled > 0 and not self._buffer:
            self.socket.settimeout(self.keep_alive_timeout)

        try:
            while b"\r\n\r\n" not in self._buffer:
                chunk = self._recv()
                if not chunk:
                    return None
                self._buffer += chunk
                self._check_size()

            header_end = self._buffer.find(b"\r\n\r\n")
            body_start = header_end + 4
            content_length = self._parse_content_length(self._buffer[:header_end])

            while len(self._buffer) - body_start < content_length:
                chunk = self._recv()
                if not chunk:
                    # Peer went away mid-body; the parser reports the short body
                    break
                self._buffer += chunk
                self._check_size()

            request_end = body_start + content_length
            request_data = self._buffer[:request_end]
            self._buffer = self._buffer[request_end:]

            self.requests_handled += 1
            self.last_activity = time.monotonic()
            return request_data

        except socket.timeout:
            if self.requests_handled > 0:
                logger.debug("[%s] Keep-alive timeout", self.id)
                return None
            raise TimeoutError("Request read timeout")

        finally:
            self.socket.settimeout(self.timeout)

    def _check_size(self):
        if len(self._buffer) > self.max_request_size:
            raise HTTPParseError(
                f"Request too large: {len(self._buffer)} bytes",
                status_code=413,
            )

    def _recv(self) -> bytes:
        try:
            data = self.socket.recv(self.buffer_size)
        except (ConnectionResetError, BrokenPipeError):
            return b""
        self.last_activity = time.monotonic()
        return data

    def _parse_content_length(self, headers: bytes) -> int:
        """
        Pull Content-Length out of raw header bytes, 0 if absent or bad.

        The full parse happens later; this only decides how much to read.
        """
        header_str = headers.decode("utf-8", errors="replace").lower()
        for line in header_str.split("\r\n"):
            if line.startswith("content-length:"):
                try:
                    return max(int(line.split(":", 1)[1].strip()), 0)
                except ValueError:
                    return 0
        return 0

    def send_response(self, data: bytes) -> bool:
        """
        sendall() the response.

        Returns:
            False if the peer is gone (e.g. it gave up during a /delay).
        """
        self.state = ConnectionState.WRITING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning("[%s] Send failed: %s", self.id, e)
            return False
        self.last_activity = time.monotonic()
        return True

    def close(self):
        """
        Close gracefully: send FIN, drain what the peer still sends, then
        release the socket.

        The drain stops after DRAIN_TIMEOUT seconds in total or
        DRAIN_LIMIT bytes, whichever comes first.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            logger.debug("[%s] Peer already disconnected", self.id)

        deadline = time.monotonic() + self.DRAIN_TIMEOUT
        drained = 0
        try:
            while drained < self.DRAIN_LIMIT:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self.socket.settimeout(remaining)
                chunk = self.socket.recv(1024)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            logger.debug("[%s] Drain on close ended early", self.id)

        try:
            self.socket.close()
        except OSError:
            logger.debug("[%s] Socket already closed", self.id)

        self.state = ConnectionState.CLOSED
        logger.debug("[%s] Connection closed after %s requests", self.id, self.requests_handled)

    def set_keep_alive(self):
        self.state = ConnectionState.KEEP_ALIVE

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
