"""
=============================================================================
HTTP SERVER - MAIN ENTRY POINT
=============================================================================

Wires the pieces together:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         HTTPServer                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   ServerConfig ──► StaticFileHandler ──┐                             │
    │                    AccessLog ──────────┼──► ConnectionHandler       │
    │                                        │          │                  │
    │                                        │          ▼ (task body)      │
    │   create_listener() ──► Acceptor ──► ThreadPool ──► Worker × N       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
LIFECYCLE
=============================================================================

    server = HTTPServer(config)     validate config, build components
    server.start()                  bind listener, start workers
    server.serve_forever()          accept until stop() (blocks)
    server.stop()                   from another thread / signal handler

    server.run()                    all of the above, plus logging setup
                                    and SIGINT/SIGTERM handling

Stopping is graceful: the listener closes first, then every queued and
in-flight connection is answered before the workers exit.

=============================================================================
"""

import signal
import logging
import threading
from dataclasses import replace
from typing import Optional

from .access_log import AccessLog
from .config import ServerConfig
from .core import Acceptor, ThreadPool, create_listener
from .handlers import ConnectionHandler, StaticFileHandler


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    Static file HTTP server.

    Usage:
        server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
        server.run()  # Blocks until Ctrl+C / SIGTERM

    Embedded (e.g. in tests):
        server = HTTPServer(ServerConfig(port=0, document_root=tmp))
        server.start()
        threading.Thread(target=server.serve_forever).start()
        host, port = server.address
        ...
        server.stop()
        server.wait_stopped()
    """

    def __init__(
        self,
        config: Optional[ServerConfig] = None,
        access_log: Optional[AccessLog] = None,
    ):
        """
        Initialize the HTTP server.

        Args:
            config: Server configuration. Defaults if not provided.
            access_log: Access record sink. Built from config if not provided.

        Raises:
            ValueError: Invalid configuration.
        """
        self.config = config or ServerConfig()
        self.config.validate()

        # ─────────────────────────────────────────────────────────────────
        # REQUEST HANDLING
        # ─────────────────────────────────────────────────────────────────
        self.static_files = StaticFileHandler(
            self.config.document_root,
            index_file=self.config.index_file,
        )
        self.access_log = access_log or AccessLog(log_format=self.config.log_format)
        self.handler = ConnectionHandler(
            self.static_files,
            self.access_log,
            server_name=self.config.server_name,
        )

        # ─────────────────────────────────────────────────────────────────
        # CONCURRENCY
        # ─────────────────────────────────────────────────────────────────
        self.pool = ThreadPool(
            self.handler.handle,
            num_workers=self.config.workers,
            max_queue_size=self.config.max_queue_size,
        )
        self._acceptor: Optional[Acceptor] = None

        self._original_handlers: dict = {}

    @property
    def address(self) -> tuple[str, int]:
        """The bound (host, port). With port=0 this is the real port."""
        if self._acceptor is None:
            raise RuntimeError("Server not started")
        return self._acceptor.address

    @property
    def stats(self) -> dict:
        """Acceptor state plus worker pool statistics."""
        state = self._acceptor.state.value if self._acceptor else "new"
        return {"state": state, **self.pool.stats}

    def start(self):
        """
        Bind the listener and start the workers. Does not block.

        Raises:
            OSError: The address couldn't be bound.
            RuntimeError: Already started.
            PoolStopped: The server was stopped before and cannot restart.
        """
        if self._acceptor is not None:
            raise RuntimeError("Server already started")

        listener = create_listener(self.config.host, self.config.port, self.config.backlog)
        try:
            self.pool.start()
        except Exception:
            listener.close()
            raise
        self._acceptor = Acceptor(listener, self.pool, self.config)

        host, port = self._acceptor.address
        logger.info(
            f"{self.config.server_name} serving {self.static_files.root_dir} "
            f"on http://{host}:{port} with {self.config.workers} workers"
        )

    def serve_forever(self):
        """
        Accept connections until stop() is called.

        Starts the server first if start() wasn't called.

        Raises:
            FatalListenerError: The listener broke. Workers are drained first.
        """
        if self._acceptor is None:
            self.start()
        self._acceptor.run()

    def stop(self):
        """Request a graceful stop. Safe from any thread and from signal handlers."""
        if self._acceptor is not None:
            self._acceptor.stop()

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the server has fully stopped.

        Returns:
            True if stopped, False on timeout.
        """
        if self._acceptor is None:
            return True
        return self._acceptor.wait_stopped(timeout)

    def run(self):
        """
        Start the server (blocking).

        Configures logging, installs SIGINT/SIGTERM handlers when called
        from the main thread, and serves until one of them arrives.
        """
        self._setup_logging()
        self.start()

        install_signals = threading.current_thread() is threading.main_thread()
        if install_signals:
            self._setup_signals()

        try:
            self.serve_forever()
        except KeyboardInterrupt:
            # Only reachable without our handlers (not the main thread)
            logger.info("Received keyboard interrupt")
        finally:
            if install_signals:
                self._restore_signals()

        logger.info("Server stopped")

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("minihttpd").setLevel(level)

    def _setup_signals(self):
        """
        Route SIGTERM (docker stop, systemd, kill) and SIGINT (Ctrl+C) to
        a graceful stop().
        """
        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.stop()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        """Restore original signal handlers."""
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()


def create_server(config: Optional[ServerConfig] = None, **overrides) -> HTTPServer:
    """
    Create a server, optionally overriding config fields.

    Example:
        server = create_server(port=3000, document_root="./public")
    """
    return HTTPServer(replace(config or ServerConfig(), **overrides))
