"""
=============================================================================
ORIGIN RESOLVER
=============================================================================

Best guess at the client address, as a proxy-aware echo service reports it.

=============================================================================
PRECEDENCE
=============================================================================

    ┌────────────────────────────────────────────────────────────────────┐
    │ 1. X-Forwarded-For   "203.0.113.7, 10.0.0.1"   → "203.0.113.7"      │
    │                      first comma token, trimmed, not validated      │
    │                                                                     │
    │ 2. X-Real-IP         "198.51.100.2"            → verbatim           │
    │                                                                     │
    │ 3. transport peer    "192.0.2.10:53211"        → "192.0.2.10"       │
    │                      "[::1]:8080"              → "[::1]"            │
    │                      split on the LAST colon                        │
    └────────────────────────────────────────────────────────────────────┘

Header values are client-controlled; nothing here is a security decision.

=============================================================================
"""

from typing import Mapping, Sequence, Union


HeaderValues = Union[str, Sequence[str]]


def _first_header(headers: Mapping[str, HeaderValues], name: str) -> str:
    """
    Case-insensitive lookup returning the first value, or "".

    Accepts both shapes used in the codebase: name → str and
    name → list of str.
    """
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() != wanted:
            continue
        if isinstance(value, str):
            return value
        return value[0] if value else ""
    return ""


def format_peer(address) -> str:
    """
    Render a socket address as "host:port".

    IPv6 hosts get brackets so the port can still be split off:

        ("127.0.0.1", 5555)    → "127.0.0.1:5555"
        ("::1", 5555, 0, 0)    → "[::1]:5555"
    """
    if isinstance(address, str):
        return address
    host, port = address[0], address[1]
    if ":" in host:
        host = f"[{host}]"
    return f"{host}:{port}"


def resolve_origin(headers: Mapping[str, HeaderValues], peer: str) -> str:
    """
    Resolve the client-visible origin address.

    Args:
        headers: Request headers (any casing, str or list values).
        peer: Transport peer as "host:port" (see format_peer).

    Returns:
        The origin string. Never raises.
    """
    forwarded = _first_header(headers, "X-Forwarded-For")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()

    real_ip = _first_header(headers, "X-Real-IP")
    if real_ip:
        return real_ip

    host, sep, _port = peer.rpartition(":")
    return host if sep else peer
