"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the server. Every tunable lives here, with a
default, so the rest of the code never reads os.environ or argv directly.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m minihttpd --port 3000 --root ./public           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── HTTP_PORT=3000 python -m minihttpd                        │
    │                                                                      │
    │   3. Default values (in this dataclass)                            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional


LOG_FORMATS = ("text", "json")


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, timeout, accept_timeout

    REQUEST SETTINGS
    - read_budget

    WORKER POOL
    - workers, max_queue_size, shutdown_timeout

    STATIC FILES
    - document_root, index_file

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces (containers)
    """

    port: int = 8080
    """
    The port number to listen on. 0 asks the OS for any free port.
    """

    backlog: int = 128
    """
    Kernel accept-queue length. Connections beyond this are refused by
    the OS before the acceptor ever sees them.
    """

    timeout: Optional[float] = 30.0
    """
    Per-connection socket timeout (seconds) for the request read and the
    response write. None = block forever, which lets one silent client pin
    a worker indefinitely.
    """

    accept_timeout: float = 1.0
    """
    How often (seconds) a blocked accept() wakes up to check for a stop
    request.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    read_budget: int = 8192
    """
    Maximum bytes read for one request, in a single recv(). A request whose
    headers don't end within this budget is answered with 400.
    """

    # ─────────────────────────────────────────────────────────────────────
    # WORKER POOL SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 4
    """
    Number of worker threads. Must be at least 1.
    Rule of thumb: num_cores * 2 for I/O-bound workloads.
    """

    max_queue_size: int = 0
    """
    Maximum connections waiting for a worker. 0 = unbounded.
    When bounded and full, new connections are closed immediately.
    """

    shutdown_timeout: Optional[float] = None
    """
    Upper bound (seconds) on waiting for workers during graceful shutdown.
    None waits until every queued and in-flight connection is done.
    """

    # ─────────────────────────────────────────────────────────────────────
    # STATIC FILES
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = "."
    """
    Directory files are served from. Nothing outside it is ever read.
    """

    index_file: str = "index.html"
    """
    File served for a directory request such as "/".
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """
    Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """

    log_format: str = "text"
    """
    Access log format: 'text' (Apache-style line) or 'json'.
    """

    # ─────────────────────────────────────────────────────────────────────
    # SERVER IDENTITY
    # ─────────────────────────────────────────────────────────────────────

    server_name: str = "minihttpd/1.0"
    """
    Value of the Server response header.
    """

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        HTTP_HOST        Server host (default: 127.0.0.1)
        HTTP_PORT        Server port (default: 8080)
        HTTP_WORKERS     Worker threads (default: 4)
        HTTP_QUEUE_SIZE  Max pending connections, 0 = unbounded (default: 0)
        HTTP_DOC_ROOT    Document root (default: current directory)
        HTTP_TIMEOUT     Connection timeout in seconds (default: 30)
        HTTP_LOG_LEVEL   Logging level (default: INFO)
        HTTP_LOG_FORMAT  Access log format, text or json (default: text)

        =====================================================================

        Raises:
            ValueError: If a numeric variable doesn't parse.
        """
        return cls(
            host=os.getenv("HTTP_HOST", "127.0.0.1"),
            port=int(os.getenv("HTTP_PORT", "8080")),
            workers=int(os.getenv("HTTP_WORKERS", "4")),
            max_queue_size=int(os.getenv("HTTP_QUEUE_SIZE", "0")),
            document_root=os.getenv("HTTP_DOC_ROOT", "."),
            timeout=float(os.getenv("HTTP_TIMEOUT", "30")),
            log_level=os.getenv("HTTP_LOG_LEVEL", "INFO"),
            log_format=os.getenv("HTTP_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Fail fast at startup rather than on the first request.

        Raises:
            ValueError: Describing the first invalid setting found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")

        if self.max_queue_size < 0:
            raise ValueError(f"max_queue_size must be >= 0, got {self.max_queue_size}")

        if self.backlog < 1:
            raise ValueError(f"backlog must be >= 1, got {self.backlog}")

        if self.read_budget < 64:
            raise ValueError(f"read_budget must be >= 64, got {self.read_budget}")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.accept_timeout <= 0:
            raise ValueError("accept_timeout must be > 0")

        if self.shutdown_timeout is not None and self.shutdown_timeout < 0:
            raise ValueError("shutdown_timeout must be >= 0")

        if not os.path.isdir(self.document_root):
            raise ValueError(f"document_root is not a directory: {self.document_root}")

        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log_level: {self.log_level}")

        if self.log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {self.log_format}")
