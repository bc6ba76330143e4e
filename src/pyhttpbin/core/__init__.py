"""
=============================================================================
CORE: TRANSPORT AND CONCURRENCY
=============================================================================

    ┌────────────────────┬────────────────────────────────────────────────┐
    │ SocketServer       │ bind / listen / accept, signal handling        │
    │ Connection         │ one client socket: buffered request reads      │
    │ ThreadPool         │ bounded workers, scale-up, drain on shutdown   │
    │ RandomSource       │ lock-guarded RNG shared by status and auth     │
    └────────────────────┴────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool
from .random_source import RandomSource

__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
    "RandomSource",
]
