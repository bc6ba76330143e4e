"""
=============================================================================
HTTP ROUTER
=============================================================================

Maps URL paths to handler functions.

=============================================================================
PATTERN SYNTAX
=============================================================================

    ┌───────────────────────────────────────────────────────────────────────┐
    │  Pattern                   Path                     path_params       │
    ├───────────────────────────────────────────────────────────────────────┤
    │  /headers                  /headers                 {}                │
    │  /delay/:seconds           /delay/3                 {"seconds": "3"}  │
    │  /status/*spec             /status/200:1,500:0      {"spec": "..."}   │
    │  /basic-auth/*credentials  /basic-auth/u/p          {"credentials":   │
    │                                                        "u/p"}         │
    └───────────────────────────────────────────────────────────────────────┘

    :name   one path segment (no slashes)
    *name   everything that is left, slashes included

=============================================================================
MATCHING RULES
=============================================================================

    1. Trailing slashes are ignored ("/ip/" is "/ip").
    2. Routes are tried in registration order; the first match wins.
    3. A route registered without a method accepts every method.
    4. Path known, method not → 405 with an Allow header.
    5. Path unknown → 404.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Callable, Optional, Dict, List
import logging
import re

from .request import HTTPRequest
from .response import HTTPResponse, not_found, method_not_allowed


logger = logging.getLogger(__name__)

# A handler takes a request and returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]

ALL_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]


@dataclass
class Route:
    """
    A URL pattern bound to a handler.

        Route(
            path="/delay/:seconds",
            method=None,                  # any method
            handler=inspection.delay,
            name="delay",
        )
    """

    path: str
    method: Optional[str]
    handler: Handler
    name: Optional[str] = None

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)


@dataclass
class RouteMatch:
    """The matched route plus the parameters pulled out of the path."""

    route: Route
    params: Dict[str, str]


def _normalize(path: str) -> str:
    return "/" + path.strip("/") if path != "/" else "/"


class Router:
    """
    HTTP request router with dynamic path parameters.

    Routes are usually registered with decorators:

        router = Router()

        @router.route("/ip")
        def ip(request):
            return json_response(200, {"origin": ...})

        @router.get("/only-get")
        def only_get(request):
            ...

    Related routes can share a prefix through a group:

        auth = router.group("/auth")

        @auth.route("/bearer")          # matches /auth/bearer
        def bearer(request):
            ...
    """

    def __init__(self, prefix: str = ""):
        self.prefix = prefix.rstrip("/")
        self._routes: List[Route] = []
        self._groups: List["Router"] = []

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Route:
        """
        Register a route.

        Args:
            path: URL pattern (e.g. /delay/:seconds)
            handler: Callable taking a request and returning a response
            method: HTTP method, None for any method
            name: Optional label shown by print_routes()

        Returns:
            The registered Route
        """
        full_path = self.prefix + path
        pattern, param_names = self._compile_pattern(full_path)

        route = Route(
            path=full_path,
            method=method.upper() if method else None,
            handler=handler,
            name=name,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    def _compile_pattern(self, path: str) -> tuple[re.Pattern, List[str]]:
        """
        Compile a path pattern into an anchored regex.

            "/delay/:seconds"   → ^/delay/(?P<seconds>[^/]+)$
            "/status/*spec"     → ^/status/(?P<spec>.*)$
        """
        param_names: List[str] = []
        regex_parts = ["^"]

        for segment in path.split("/"):
            if not segment:
                continue

            regex_parts.append("/")

            if segment.startswith(":"):
                param_name = segment[1:]
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>[^/]+)")
            elif segment.startswith("*"):
                param_name = segment[1:] or "wildcard"
                param_names.append(param_name)
                regex_parts.append(f"(?P<{param_name}>.*)")
                # Wildcard consumes the rest of the path
                break
            else:
                regex_parts.append(re.escape(segment))

        if len(regex_parts) == 1:
            regex_parts.append("/")
        regex_parts.append("$")
        return re.compile("".join(regex_parts)), param_names

    # =========================================================================
    # ROUTE MATCHING
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        Groups are searched after this router's own routes.
        """
        path = _normalize(path)

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue
            if route._pattern:
                found = route._pattern.match(path)
                if found:
                    return RouteMatch(route=route, params=found.groupdict())

        for group in self._groups:
            if path == group.prefix or path.startswith(group.prefix + "/"):
                result = group.match(method, path)
                if result:
                    return result

        return None

    def get_allowed_methods(self, path: str) -> List[str]:
        """Methods accepted for a path, for the Allow header of a 405."""
        normalized = _normalize(path)
        methods = set()

        for route in self.routes():
            if route._pattern and route._pattern.match(normalized):
                if route.method is None:
                    return list(ALL_METHODS)
                methods.add(route.method)

        return sorted(methods)

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Route a request to its handler.

        Path parameters are stored on request.path_params before the
        handler runs.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        allowed = self.get_allowed_methods(request.path)
        if allowed:
            return method_not_allowed(allowed)

        return not_found(request.path)

    # =========================================================================
    # DECORATORS
    # =========================================================================

    def route(
        self,
        path: str,
        method: Optional[str] = None,
        name: Optional[str] = None,
    ) -> Callable[[Handler], Handler]:
        """Register the decorated function; method=None means any method."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, name)
            return handler
        return decorator

    def get(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", name)

    def post(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", name)

    def put(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT", name)

    def delete(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", name)

    def patch(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "PATCH", name)

    def head(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "HEAD", name)

    def options(self, path: str, name: Optional[str] = None) -> Callable[[Handler], Handler]:
        return self.route(path, "OPTIONS", name)

    # =========================================================================
    # GROUPS & INTROSPECTION
    # =========================================================================

    def group(self, prefix: str) -> "Router":
        """Create a sub-router whose routes all start with `prefix`."""
        sub_router = Router(self.prefix + prefix)
        self._groups.append(sub_router)
        return sub_router

    def routes(self) -> List[Route]:
        """Every registered route, groups included, in match order."""
        all_routes = list(self._routes)
        for group in self._groups:
            all_routes.extend(group.routes())
        return all_routes

    def print_routes(self) -> None:
        """
        Log the routing table at DEBUG level.

            Registered routes:
              ANY      /get
              ANY      /status/*spec
        """
        logger.debug("Registered routes:")
        for route in self.routes():
            logger.debug("  %-8s %s", route.method or "ANY", route.path)
