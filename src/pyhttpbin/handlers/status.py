"""
/status/{spec}: answer with the resolved status code and nothing else.

    GET /status/418                 → 418, empty body
    GET /status/200:0.9,500:0.1     → 200 or 500
    GET /status/abc                 → 400 {"error": "Invalid status code specification"}
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, status_response
from ..introspect.status import StatusResolver


class StatusHandler:
    def __init__(self, resolver: StatusResolver):
        self.resolver = resolver

    def __call__(self, request: HTTPRequest) -> HTTPResponse:
        code = self.resolver.resolve(request.path_params.get("spec", ""))
        return status_response(code)
