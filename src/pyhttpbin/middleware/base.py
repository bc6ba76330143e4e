"""
=============================================================================
MIDDLEWARE BASE
=============================================================================

Middleware wraps the router: each layer sees the request on the way in
and the response on the way out.

=============================================================================
THE PIPELINE
=============================================================================

    pipeline.add(LoggingMiddleware())   # first added = outermost
    pipeline.add(error_middleware)      # last added  = next to the router

    ┌────────────────────────────────────────────────────────────────┐
    │  LoggingMiddleware                                             │
    │  │  error_middleware                                      │    │
    │  │  │                                                │    │    │
    │  │  │          router.handle → handler               │    │    │
    │  │  │          raises AuthError                      │    │    │
    │  │  │                                                │    │    │
    │  │  └─ AuthError → 401 JSON + WWW-Authenticate ──────┘    │    │
    │  └─ logs "... - 401 (0.4ms)" ─────────────────────────────┘    │
    └────────────────────────────────────────────────────────────────┘

Because error translation sits inside the logger, the access log always
records the status the client actually receives.

=============================================================================
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional
import logging

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger(__name__)

NextHandler = Callable[[HTTPRequest], HTTPResponse]


class Middleware(ABC):
    """
    Abstract base class for middleware.

        class AddHeader(Middleware):
            def __call__(self, request, next):
                response = next(request)
                response.set_header("X-Seen", "1")
                return response

    Call `next(request)` to continue the chain, or return a response
    directly to short-circuit it.
    """

    @abstractmethod
    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        pass

    @property
    def name(self) -> str:
        return self.__class__.__name__


class MiddlewarePipeline:
    """Ordered middleware wrapped around a final handler."""

    def __init__(self):
        self._middleware: List[Middleware] = []

    def add(self, middleware: Middleware) -> "MiddlewarePipeline":
        """Append a layer; first added is outermost."""
        self._middleware.append(middleware)
        logger.debug("Added middleware: %s", middleware.name)
        return self

    def use(self, *middleware: Middleware) -> "MiddlewarePipeline":
        for mw in middleware:
            self.add(mw)
        return self

    def wrap(self, handler: NextHandler) -> NextHandler:
        """
        Build the chain around `handler`.

        Wrapping happens in reverse so that, for [MW1, MW2, MW3], the call
        order is MW1 → MW2 → MW3 → handler.
        """
        current = handler
        for middleware in reversed(self._middleware):
            current = self._create_wrapped_handler(middleware, current)
        return current

    def _create_wrapped_handler(
        self,
        middleware: Middleware,
        next_handler: NextHandler
    ) -> NextHandler:
        def wrapped(request: HTTPRequest) -> HTTPResponse:
            return middleware(request, next_handler)
        return wrapped

    def __len__(self) -> int:
        return len(self._middleware)

    def __iter__(self):
        return iter(self._middleware)


class FunctionMiddleware(Middleware):
    """
    A plain `(request, next) -> response` function used as middleware.

    Usually created through the @function_middleware decorator.
    """

    def __init__(
        self,
        func: Callable[[HTTPRequest, NextHandler], HTTPResponse],
        name: Optional[str] = None
    ):
        self._func = func
        self._name = name or func.__name__

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        return self._func(request, next)

    @property
    def name(self) -> str:
        return self._name


def function_middleware(
    func: Callable[[HTTPRequest, NextHandler], HTTPResponse]
) -> FunctionMiddleware:
    """
    Decorator turning a function into middleware.

        @function_middleware
        def tag(request, next):
            response = next(request)
            response.set_header("X-Tag", "1")
            return response
    """
    return FunctionMiddleware(func)
