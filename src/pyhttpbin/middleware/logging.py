"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

Two entries per request on the "pyhttpbin.access" logger:

    DEBUG  [GET] /status/503 HTTP/1.1 from 127.0.0.1:53122
    INFO   [GET] /status/503 HTTP/1.1 from 127.0.0.1:53122 - 503 0B (0.41ms) id=3f2a9c1e

The first is written when the request reaches the pipeline, the second
once the response exists. With log_format="json" the completion entry is
the JSON form of RequestLog instead:

    {"request_id": "3f2a9c1e", "method": "GET", "path": "/status/503",
     "protocol": "HTTP/1.1", "remote_addr": "127.0.0.1:53122",
     "status_code": 503, "content_length": 0, "duration_ms": 0.41, ...}

Place it FIRST in the pipeline so the duration covers everything and the
status is the one the client receives.

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse
from ..introspect.origin import format_peer


# Configure separately from the rest of the app, e.g.
#   logging.getLogger("pyhttpbin.access").setLevel(logging.WARNING)
logger = logging.getLogger("pyhttpbin.access")

LOG_FORMATS = ("text", "json")


@dataclass
class RequestLog:
    """
    One completed request.

    Fields:
        request_id:     Short random id, echoed as X-Request-ID
        method:         HTTP method
        path:           Decoded request path
        protocol:       HTTP/1.0 or HTTP/1.1
        remote_addr:    Transport peer as host:port
        user_agent:     User-Agent or "-"
        status_code:    Status sent to the client
        content_length: Response body size in bytes
        duration_ms:    Time spent inside the pipeline
        timestamp:      Local time, Apache style
    """

    request_id: str
    method: str
    path: str
    protocol: str
    remote_addr: str
    user_agent: str
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "protocol": self.protocol,
            "remote_addr": self.remote_addr,
            "user_agent": self.user_agent,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        return (
            f"[{self.method}] {self.path} {self.protocol} from {self.remote_addr} "
            f"- {self.status_code} {self.content_length}B "
            f"({self.duration_ms:.2f}ms) id={self.request_id}"
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

    Args:
        log_format: "text" (one line) or "json" (RequestLog.to_dict()).
        include_request_id: Add an X-Request-ID header to every response.
        log_level: Level of the completion entry.
        skip_paths: Paths that are never logged.
    """

    def __init__(
        self,
        log_format: str = "text",
        include_request_id: bool = True,
        log_level: int = logging.INFO,
        skip_paths: Optional[list[str]] = None,
    ):
        if log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {log_format!r}")
        self.log_format = log_format
        self.include_request_id = include_request_id
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = uuid.uuid4().hex[:8]
        remote_addr = format_peer(request.client_address)
        skip = request.path in self.skip_paths

        if not skip:
            logger.debug(
                "[%s] %s %s from %s",
                request.method, request.path, request.version, remote_addr,
            )

        start_time = time.perf_counter()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "[%s] %s %s from %s - %s: %s (%.2fms)",
                request.method, request.path, request.version, remote_addr,
                type(e).__name__, e, duration_ms,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000

        if self.include_request_id:
            response.headers["X-Request-ID"] = request_id

        if skip:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            protocol=request.version,
            remote_addr=remote_addr,
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
