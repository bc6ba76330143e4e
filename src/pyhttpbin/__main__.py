"""
=============================================================================
COMMAND LINE ENTRY POINT
=============================================================================

    python -m pyhttpbin                       # 0.0.0.0:8080
    python -m pyhttpbin --port 9000
    python -m pyhttpbin -H 127.0.0.1 -l DEBUG
    pyhttpbin --log-format json               # installed console script

Flags override HTTPBIN_* environment variables, which override defaults.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .app import create_app
from .config import ServerConfig, LOG_FORMATS, LOG_LEVELS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyhttpbin",
        description="Diagnostic HTTP echo service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pyhttpbin                          # Listen on 0.0.0.0:8080
  pyhttpbin --port 3000              # Custom port
  pyhttpbin --max-delay 30           # Allow /delay up to 30 seconds
  pyhttpbin --log-format json        # Structured access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0, env HTTPBIN_HOST)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, env HTTPBIN_PORT)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # BEHAVIOUR
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Maximum worker threads (default: 16, env HTTPBIN_WORKERS)"
    )

    parser.add_argument(
        "--max-delay",
        type=int,
        default=None,
        help="Cap for /delay in seconds (default: 10, env HTTPBIN_MAX_DELAY)"
    )

    parser.add_argument(
        "--shutdown-timeout",
        type=float,
        default=None,
        help="Seconds to drain in-flight requests on shutdown (default: 10)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: INFO, env HTTPBIN_LOG_LEVEL)"
    )

    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text, env HTTPBIN_LOG_FORMAT)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pyhttpbin {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment config with every flag that was given applied on top."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.workers is not None:
        config.max_workers = args.workers
        config.min_workers = min(config.min_workers, args.workers)
    if args.max_delay is not None:
        config.max_delay = args.max_delay
    if args.shutdown_timeout is not None:
        config.shutdown_timeout = args.shutdown_timeout
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        server = create_app(config)
    except ValueError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
