"""
Translate HTTPBinError into JSON error responses.

Handlers raise; this layer renders. Anything that is not an HTTPBinError
keeps propagating and ends up as a 500 from the connection loop.
"""

import logging

from ..errors import HTTPBinError
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, error_response
from .base import NextHandler, function_middleware


logger = logging.getLogger(__name__)


@function_middleware
def error_middleware(request: HTTPRequest, next: NextHandler) -> HTTPResponse:
    try:
        return next(request)
    except HTTPBinError as e:
        logger.debug(
            "%s %s raised %s (%s): %s",
            request.method, request.path, type(e).__name__, e.status_code, e.message,
        )
        return error_response(e.status_code, e.message, e.headers)
