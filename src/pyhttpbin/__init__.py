"""
pyhttpbin: a diagnostic HTTP echo service.

Reports back what a client sent (method, URL, args, headers, origin,
body) and simulates server behaviour: arbitrary or weighted-random status
codes, delays, and Basic / Bearer / Digest challenges.

    from pyhttpbin import create_app, ServerConfig

    create_app(ServerConfig(port=8080)).run()
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .server import HTTPServer
from .app import create_app

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
