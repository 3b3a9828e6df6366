"""
=============================================================================
HTTP SERVER CLI ENTRY POINT
=============================================================================

Command-line interface for running the server.

=============================================================================
USAGE
=============================================================================

    # Serve the current directory on localhost:8080
    python -m minihttpd

    # Serve ./public on port 3000 with 8 workers
    python -m minihttpd --root ./public --port 3000 --workers 8

    # Listen on all interfaces (for containers)
    python -m minihttpd --host 0.0.0.0

    # JSON access log for a log aggregator
    python -m minihttpd --log-format json

=============================================================================
WHERE SETTINGS COME FROM
=============================================================================

    CLI flag  >  HTTP_* environment variable  >  ServerConfig default

Every flag defaults to None, so "not given" falls through to the
environment (see ServerConfig.from_env).

=============================================================================
EXIT CODES
=============================================================================

    0   stopped normally (SIGINT / SIGTERM)
    1   invalid configuration, bind failure, or the listener broke
    2   bad command-line usage (argparse)

=============================================================================
"""

import argparse
import sys
from typing import Optional

from . import __version__
from .config import LOG_FORMATS, ServerConfig
from .core import FatalListenerError
from .server import HTTPServer


# Flag dest → ServerConfig field
_CLI_OVERRIDES = {
    "host": "host",
    "port": "port",
    "workers": "workers",
    "root": "document_root",
    "queue_size": "max_queue_size",
    "log_level": "log_level",
    "log_format": "log_format",
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="minihttpd",
        description="Minimal multi-threaded static file HTTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m minihttpd                          # Serve . on 127.0.0.1:8080
  python -m minihttpd --port 3000              # Custom port
  python -m minihttpd --host 0.0.0.0           # Listen on all interfaces
  python -m minihttpd --workers 8              # 8 worker threads
  python -m minihttpd --root ./public          # Serve another directory
  python -m minihttpd --log-format json        # JSON access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080, 0 picks a free port)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=None,
        help="Number of worker threads (default: 4)"
    )
    parser.add_argument(
        "--queue-size",
        type=int,
        default=None,
        help="Max connections waiting for a worker, 0 = unbounded (default: 0)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--root", "-r",
        default=None,
        help="Document root to serve files from (default: current directory)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=None,
        help="Access log format (default: text)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"minihttpd {__version__}"
    )

    return parser


def load_config(args: argparse.Namespace) -> ServerConfig:
    """
    Merge environment and CLI settings into a ServerConfig.

    Raises:
        ValueError: A malformed HTTP_* environment variable.
    """
    config = ServerConfig.from_env()

    for dest, field_name in _CLI_OVERRIDES.items():
        value = getattr(args, dest)
        if value is not None:
            setattr(config, field_name, value)

    return config


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"minihttpd: configuration error: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        # Bind failures: address in use, permission denied
        print(f"minihttpd: cannot listen on {config.host}:{config.port}: {e}", file=sys.stderr)
        return 1
    except FatalListenerError as e:
        print(f"minihttpd: listener failed: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
