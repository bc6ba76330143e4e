"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

All tunables live in one dataclass. Values come from, in increasing
priority:

    defaults below  →  HTTPBIN_* environment variables  →  CLI flags

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional

from . import __version__


LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the echo server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK     host, port, backlog, buffer_size, timeout
    HTTP        keep_alive, keep_alive_timeout, max_request_size
    THREADING   min_workers, max_workers
    BEHAVIOUR   max_delay, shutdown_timeout
    LOGGING     log_level, log_format

    =========================================================================
    EXAMPLES
    =========================================================================

    Local debugging:
        ServerConfig(host="127.0.0.1", log_level="DEBUG")

    Container:
        ServerConfig(host="0.0.0.0", port=8080, log_format="json")

    =========================================================================
    """

    # NETWORK SETTINGS

    host: str = "0.0.0.0"
    """Address to bind. The default listens on every interface."""

    port: int = 8080
    """TCP port. 0 asks the kernel for a free one (used by tests)."""

    backlog: int = 128
    """Queued connections waiting for accept()."""

    buffer_size: int = 8192
    """Bytes per recv() call."""

    timeout: Optional[float] = 30.0
    """
    Socket timeout in seconds for reading the first request on a
    connection. None blocks forever.
    """

    # HTTP SETTINGS

    keep_alive: bool = True
    """Serve several requests per TCP connection."""

    keep_alive_timeout: float = 5.0
    """Idle seconds before a kept-alive connection is closed."""

    max_request_size: int = 10 * 1024 * 1024
    """Largest accepted request (headers plus body), in bytes."""

    # THREAD POOL SETTINGS

    min_workers: int = 4
    """Worker threads started up front."""

    max_workers: int = 16
    """
    Upper bound on worker threads. Each in-flight /delay request holds
    one worker for its whole sleep.
    """

    # BEHAVIOUR

    max_delay: int = 10
    """Cap applied to /delay/{seconds}."""

    shutdown_timeout: float = 10.0
    """Seconds to let in-flight requests finish after SIGINT/SIGTERM."""

    # LOGGING

    log_level: str = "INFO"
    """DEBUG also prints each request on arrival and the routing table."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    # SERVER IDENTITY

    server_name: str = f"pyhttpbin/{__version__}"
    """Value of the Server response header."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Build a configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTPBIN_HOST               bind address (default: 0.0.0.0)
        HTTPBIN_PORT               port (default: 8080)
        HTTPBIN_TIMEOUT            first-request read timeout (default: 30)
        HTTPBIN_WORKERS            max worker threads (default: 16)
        HTTPBIN_MAX_DELAY          /delay cap in seconds (default: 10)
        HTTPBIN_SHUTDOWN_TIMEOUT   graceful drain in seconds (default: 10)
        HTTPBIN_LOG_LEVEL          DEBUG, INFO, ... (default: INFO)
        HTTPBIN_LOG_FORMAT         text or json (default: text)

        =====================================================================

        Raises:
            ValueError: A numeric variable does not parse.
        """
        defaults = cls()
        max_workers = int(os.getenv("HTTPBIN_WORKERS", str(defaults.max_workers)))
        return cls(
            host=os.getenv("HTTPBIN_HOST", defaults.host),
            port=int(os.getenv("HTTPBIN_PORT", str(defaults.port))),
            timeout=float(os.getenv("HTTPBIN_TIMEOUT", str(defaults.timeout))),
            min_workers=min(defaults.min_workers, max_workers),
            max_workers=max_workers,
            max_delay=int(os.getenv("HTTPBIN_MAX_DELAY", str(defaults.max_delay))),
            shutdown_timeout=float(
                os.getenv("HTTPBIN_SHUTDOWN_TIMEOUT", str(defaults.shutdown_timeout))
            ),
            log_level=os.getenv("HTTPBIN_LOG_LEVEL", defaults.log_level).upper(),
            log_format=os.getenv("HTTPBIN_LOG_FORMAT", defaults.log_format).lower(),
        )

    def validate(self) -> None:
        """
        Reject impossible values at startup rather than on first use.

        Raises:
            ValueError: Describing the first bad field.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535 (or 0 for any).")
        if self.min_workers < 1:
            raise ValueError("min_workers must be >= 1")
        if self.max_workers < self.min_workers:
            raise ValueError("max_workers must be >= min_workers")
        if self.buffer_size < 1024:
            raise ValueError("buffer_size must be >= 1024")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")
        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        if self.shutdown_timeout <= 0:
            raise ValueError("shutdown_timeout must be > 0")
        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"Unknown log format: {self.log_format}. Use 'text' or 'json'.")
