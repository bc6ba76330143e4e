"""
=============================================================================
INSPECTION HANDLERS
=============================================================================

Endpoints that echo the request back:

    ┌───────────────────────┬──────────────────────────────────────────────┐
    │ /get /post /put       │ descriptor, but only for the matching verb;  │
    │ /patch /delete        │ any other verb → 405 "Method not allowed"     │
    │ /head                 │ 200, application/json, no body               │
    │ /options              │ descriptor plus an Allow header              │
    │ /headers              │ {"headers": {...}}                           │
    │ /ip                   │ {"origin": "..."}                            │
    │ /user-agent           │ {"user-agent": "..."}                        │
    │ /delay/{n}            │ sleep min(n, max_delay) seconds, descriptor  │
    └───────────────────────┴──────────────────────────────────────────────┘

=============================================================================
"""

from typing import Callable
import logging
import re
import time

from ..errors import ClientError, MethodMismatch
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ResponseWriter, json_response, JSON_CONTENT_TYPE
from ..http.router import Handler
from ..http.status_codes import HTTPStatus
from ..introspect import build_descriptor, format_peer, resolve_origin


logger = logging.getLogger(__name__)

ALLOW_HEADER = "GET, POST, PUT, PATCH, DELETE, HEAD, OPTIONS"

VERBS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

_SECONDS = re.compile(r"[+-]?[0-9]+")


class InspectionHandler:
    """
    Request-echo endpoints.

    Args:
        max_delay: Upper bound for /delay, in seconds.
        sleep: Called with the clamped delay. Tests swap in a recorder.
    """

    def __init__(
        self,
        max_delay: int = 10,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.max_delay = max_delay
        self.sleep = sleep

    def method(self, verb: str) -> Handler:
        """
        Build the handler for one verb endpoint.

        The route itself accepts every method; the verb check lives here
        so a mismatch answers 405 with a JSON body.
        """
        verb = verb.upper()

        def handler(request: HTTPRequest) -> HTTPResponse:
            if request.method != verb:
                raise MethodMismatch()

            descriptor = build_descriptor(request)

            if verb == "HEAD":
                return (ResponseWriter()
                    .header("Content-Type", JSON_CONTENT_TYPE)
                    .write_header(HTTPStatus.OK)
                    .build())

            headers = {"Allow": ALLOW_HEADER} if verb == "OPTIONS" else None
            return json_response(HTTPStatus.OK, descriptor.to_dict(), headers)

        handler.__name__ = f"{verb.lower()}_handler"
        return handler

    def headers(self, request: HTTPRequest) -> HTTPResponse:
        return json_response(HTTPStatus.OK, {"headers": request.header_map()})

    def ip(self, request: HTTPRequest) -> HTTPResponse:
        origin = resolve_origin(request.header_map(), format_peer(request.client_address))
        return json_response(HTTPStatus.OK, {"origin": origin})

    def user_agent(self, request: HTTPRequest) -> HTTPResponse:
        return json_response(
            HTTPStatus.OK,
            {"user-agent": request.get_first_header("User-Agent")},
        )

    def delay(self, request: HTTPRequest) -> HTTPResponse:
        """
        /delay/{seconds}

        Non-negative integers only. Values above max_delay are clamped,
        and the sleep happens on this worker thread before the body is
        read.
        """
        raw = request.path_params.get("seconds", "")
        if not _SECONDS.fullmatch(raw) or int(raw) < 0:
            raise ClientError("Invalid delay value")

        seconds = min(int(raw), self.max_delay)
        if seconds:
            logger.debug("Delaying response by %ss", seconds)
            self.sleep(seconds)

        descriptor = build_descriptor(request)
        return json_response(HTTPStatus.OK, descriptor.to_dict())
