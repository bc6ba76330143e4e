"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting layers wrapped around the router.

    ┌───────────────────────────────────────────────────────────────────┐
    │ base.py      Middleware ABC, MiddlewarePipeline,                   │
    │              FunctionMiddleware / @function_middleware             │
    │ logging.py   LoggingMiddleware: access log on "pyhttpbin.access"   │
    │ errors.py    error_middleware: HTTPBinError → JSON error response   │
    └───────────────────────────────────────────────────────────────────┘

Typical order (outermost first):

    server.use(LoggingMiddleware())
    server.use(error_middleware)

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, FunctionMiddleware, function_middleware
from .errors import error_middleware
from .logging import LoggingMiddleware, RequestLog

__all__ = [
    "Middleware",
    "MiddlewarePipeline",
    "FunctionMiddleware",
    "function_middleware",
    "error_middleware",
    "LoggingMiddleware",
    "RequestLog",
]
