"""
=============================================================================
APPLICATION FACTORY
=============================================================================

create_app() builds an HTTPServer with the access log, error translation
and every echo endpoint registered.

=============================================================================
ROUTING TABLE
=============================================================================

Every route accepts any method; verb endpoints check the verb themselves
and answer 405 on a mismatch. Endpoints taking a path tail are registered
twice, bare and with the tail, so that "/status" reaches the handler and
fails with 400 instead of falling through to 404.

    ┌──────────────────────────────────┬──────────────────────────────────┐
    │ /get /post /put /patch /delete   │ InspectionHandler.method(verb)   │
    │ /head /options                   │                                  │
    │ /headers /ip /user-agent         │ InspectionHandler                │
    │ /delay, /delay/*seconds          │ InspectionHandler.delay          │
    │ /status, /status/*spec           │ StatusHandler                    │
    │ /basic-auth, /basic-auth/*...    │ AuthHandler.basic                │
    │ /bearer                          │ AuthHandler.bearer               │
    │ /digest-auth, /digest-auth/*...  │ AuthHandler.digest               │
    └──────────────────────────────────┴──────────────────────────────────┘

=============================================================================
"""

import logging
import time
from typing import Callable, Optional

from .config import ServerConfig
from .core.random_source import RandomSource
from .handlers import AuthHandler, InspectionHandler, StatusHandler, VERBS
from .introspect.status import StatusResolver
from .middleware import LoggingMiddleware, error_middleware
from .server import HTTPServer


def create_app(
    config: Optional[ServerConfig] = None,
    rng: Optional[RandomSource] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> HTTPServer:
    """
    Build the echo server.

    Args:
        config: Server configuration (defaults if omitted).
        rng: Random source for weighted statuses and digest nonces.
             Pass a seeded one for reproducible behaviour.
        sleep: Used by /delay.

    Returns:
        An HTTPServer ready for run().
    """
    config = config or ServerConfig()
    rng = rng or RandomSource()

    server = HTTPServer(config)
    server.use(LoggingMiddleware(log_format=config.log_format, log_level=logging.INFO))
    server.use(error_middleware)

    inspection = InspectionHandler(max_delay=config.max_delay, sleep=sleep)
    status = StatusHandler(StatusResolver(rng))
    auth = AuthHandler(rng)

    router = server.router

    for verb in VERBS:
        router.add_route(f"/{verb.lower()}", inspection.method(verb), name=verb.lower())

    router.add_route("/headers", inspection.headers, name="headers")
    router.add_route("/ip", inspection.ip, name="ip")
    router.add_route("/user-agent", inspection.user_agent, name="user-agent")

    router.add_route("/delay", inspection.delay, name="delay")
    router.add_route("/delay/*seconds", inspection.delay, name="delay")

    router.add_route("/status", status, name="status")
    router.add_route("/status/*spec", status, name="status")

    router.add_route("/basic-auth", auth.basic, name="basic-auth")
    router.add_route("/basic-auth/*credentials", auth.basic, name="basic-auth")
    router.add_route("/bearer", auth.bearer, name="bearer")
    router.add_route("/digest-auth", auth.digest, name="digest-auth")
    router.add_route("/digest-auth/*params", auth.digest, name="digest-auth")

    return server
