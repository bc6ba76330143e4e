"""
=============================================================================
HTTP SERVER
=============================================================================

Composes the transport pieces into a running HTTP/1.1 server.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  SocketServer.accept()                                              │
    │      └─► ThreadPool.submit(_process_connection, conn)               │
    │              └─► keep-alive loop:                                   │
    │                    Connection.read_request()                        │
    │                    RequestParser.parse()         HTTPParseError→4xx │
    │                    middleware chain → Router.handle → handler       │
    │                                              unexpected error → 500 │
    │                    Connection / Keep-Alive headers                  │
    │                    Connection.send_response()    (no body for HEAD) │
    └─────────────────────────────────────────────────────────────────────┘

Shutdown (SIGINT, SIGTERM or shutdown()):
    stop accepting → drain the pool for at most config.shutdown_timeout
    → close.

=============================================================================
"""

import logging
from typing import Optional, Callable

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, ThreadPool
from .http import (
    HTTPRequest, RequestParser, HTTPParseError,
    HTTPResponse, HTTPStatus, Router,
    error_response, internal_error,
)
from .middleware import MiddlewarePipeline, Middleware


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Multi-threaded HTTP/1.1 server.

        server = HTTPServer(ServerConfig(port=8080))

        @server.route("/ip")
        def ip(request):
            return json_response(200, {"origin": "..."})

        server.use(LoggingMiddleware())
        server.run()           # blocks until SIGINT / SIGTERM

    Most callers want pyhttpbin.app.create_app(), which registers every
    echo endpoint.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(
            min_workers=self.config.min_workers,
            max_workers=self.config.max_workers,
        )
        self._parser = RequestParser(max_request_size=self.config.max_request_size)
        self._router = Router()
        self._middleware = MiddlewarePipeline()
        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None
        self._running = False

    # =========================================================================
    # CONFIGURATION API
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware; the first added is the outermost layer."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def port(self) -> int:
        """Bound port once listening (useful with port 0)."""
        return self._socket_server.port

    @property
    def is_running(self) -> bool:
        return self._running

    def route(self, path: str, method: Optional[str] = None, **kwargs):
        return self._router.route(path, method, **kwargs)

    def get(self, path: str, **kwargs):
        return self._router.get(path, **kwargs)

    def post(self, path: str, **kwargs):
        return self._router.post(path, **kwargs)

    def put(self, path: str, **kwargs):
        return self._router.put(path, **kwargs)

    def delete(self, path: str, **kwargs):
        return self._router.delete(path, **kwargs)

    def patch(self, path: str, **kwargs):
        return self._router.patch(path, **kwargs)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Run one request through middleware and router, without a socket.

        Unexpected exceptions propagate.
        """
        if self._handler is None:
            self._handler = self._middleware.wrap(self._router.handle)
        return self._handler(request)

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        configure_logging: bool = True,
    ):
        """
        Start serving (blocking).

        Args:
            host: Override config.host.
            port: Override config.port; 0 binds an ephemeral port.
            configure_logging: Install the root logging config first.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if configure_logging:
            self._setup_logging()

        self._running = True
        self._handler = self._middleware.wrap(self._router.handle)
        self._thread_pool.start()

        logger.info(
            "Starting %s on %s:%s (workers %s-%s)",
            self.config.server_name, self.config.host, self.config.port,
            self.config.min_workers, self.config.max_workers,
        )
        self._router.print_routes()

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def shutdown(self):
        """Ask a running server to stop; run() then drains and returns."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("pyhttpbin").setLevel(level)

    def _shutdown(self):
        """
        Graceful shutdown.

        In-flight requests (a /delay in progress, say) get up to
        config.shutdown_timeout seconds to finish. Keep-alive loops stop
        after their current request because _running is cleared first.
        """
        logger.info("Shutting down server (drain timeout %ss)...", self.config.shutdown_timeout)
        self._running = False
        drained = self._thread_pool.shutdown(wait=True, timeout=self.config.shutdown_timeout)
        if not drained:
            logger.warning("Some requests were still running at shutdown")
        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Hand a new connection to the pool (called on the accept thread)."""
        submitted = self._thread_pool.submit(
            self._process_connection,
            args=(conn,),
            block=False,
        )

        if not submitted:
            logger.warning("[%s] Thread pool full, rejecting connection", conn.id)
            self._send_error(conn, HTTPStatus.SERVICE_UNAVAILABLE, "Server overloaded")
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        The keep-alive loop for one connection (runs on a worker).

            read → parse → handle → send → (keep alive? read again : close)
        """
        with conn:
            while self._running:
                try:
                    raw_request = conn.read_request()
                except TimeoutError:
                    self._send_error(conn, HTTPStatus.REQUEST_TIMEOUT, "Request timeout")
                    break
                except HTTPParseError as e:
                    self._send_error(conn, e.status_code, str(e))
                    break

                if raw_request is None:
                    break

                try:
                    request = self._parser.parse(raw_request, conn.address)
                except HTTPParseError as e:
                    logger.debug("[%s] Bad request: %s", conn.id, e)
                    self._send_error(conn, e.status_code, str(e))
                    break

                conn.state = ConnectionState.PROCESSING

                try:
                    response = self._handler(request)
                except Exception:
                    logger.exception("[%s] Handler error for %s %s", conn.id, request.method, request.path)
                    response = internal_error()

                keep_alive = request.is_keep_alive and self.config.keep_alive and self._running
                if keep_alive:
                    response.headers.setdefault("Connection", "keep-alive")
                    response.headers.setdefault(
                        "Keep-Alive",
                        f"timeout={int(self.config.keep_alive_timeout)}"
                    )
                else:
                    response.headers["Connection"] = "close"

                response_bytes = response.to_bytes(
                    self.config.server_name,
                    include_body=request.method != "HEAD",
                )

                if not conn.send_response(response_bytes):
                    break

                if not keep_alive:
                    break

                conn.set_keep_alive()

    def _send_error(self, conn: Connection, status: int, message: str):
        """Error for failures before any handler ran; always closes."""
        response = error_response(status, message, {"Connection": "close"})
        conn.send_response(response.to_bytes(self.config.server_name))
