"""
=============================================================================
HANDLERS
=============================================================================

Endpoint logic. Handlers take an HTTPRequest and return an HTTPResponse;
on failure they raise an HTTPBinError subclass and let the error
middleware render it.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Class              │ Endpoints                                       │
    ├─────────────────────────────────────────────────────────────────────┤
    │ InspectionHandler  │ /get /post /put /patch /delete /head /options   │
    │                    │ /headers /ip /user-agent /delay/{n}             │
    ├─────────────────────────────────────────────────────────────────────┤
    │ StatusHandler      │ /status/{spec}                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │ AuthHandler        │ /basic-auth/{user}/{passwd}  /bearer            │
    │                    │ /digest-auth/{qop}/{user}/{passwd}              │
    └─────────────────────────────────────────────────────────────────────┘

Handlers are classes because they carry configuration (max delay, a
shared RandomSource). pyhttpbin.app wires them into a Router.

=============================================================================
"""

from .auth import AuthHandler, parse_digest_params
from .inspection import InspectionHandler, ALLOW_HEADER, VERBS
from .status import StatusHandler

__all__ = [
    "AuthHandler",
    "parse_digest_params",
    "InspectionHandler",
    "ALLOW_HEADER",
    "VERBS",
    "StatusHandler",
]
