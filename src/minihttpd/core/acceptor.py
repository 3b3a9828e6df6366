"""
=============================================================================
ACCEPTOR LOOP
=============================================================================

Owns the listening socket. Its only job is admission: accept a connection,
wrap it, hand it to the worker pool, go back to accept().

    ┌───────────────────────┐
    │   Listening Socket    │ ◄── Created once at startup
    └───────────┬───────────┘
                │ accept()
                ▼
    ┌───────────────────────┐       enqueue()      ┌──────────────────┐
    │      Connection       │ ───────────────────► │   ThreadPool     │
    └───────────────────────┘                      └──────────────────┘
                │
                │ PoolStopped / QueueFull?
                ▼
           conn.close()       (the acceptor still owns it)

=============================================================================
STATE MACHINE
=============================================================================

    LISTENING ──── stop() or fatal accept error ────► DRAINING ────► STOPPED
                                                         │
                                                         └─ pool.shutdown(GRACEFUL)

There is no way back to LISTENING. A stopped acceptor is done.

=============================================================================
ACCEPT ERRORS
=============================================================================

Not every accept() failure means the listener is broken:

    TRANSIENT (log, keep going)         FATAL (stop, drain, raise)
    ───────────────────────────         ──────────────────────────
    EMFILE / ENFILE  out of fds         EBADF   listener closed under us
    ENOBUFS / ENOMEM  kernel memory     EINVAL  listener not listening
    ECONNABORTED  client gave up        ENOTSOCK, anything unexpected
    EPROTO / EPERM  per-connection

Running out of file descriptors is the classic case: it clears up as soon
as a worker closes a connection, so killing the server would be the wrong
reaction.

=============================================================================
STOPPING A BLOCKED accept()
=============================================================================

stop() is called from another thread (or a signal handler) while the loop
sits in accept(). Two things get it out:

1. shutdown(SHUT_RDWR) on the listener wakes a blocked accept() on Linux,
   which then fails with EINVAL.
2. The listener has a short timeout (accept_timeout), so even where (1)
   has no effect the loop re-checks its state at least once a second.

Either way the loop sees it's no longer LISTENING and treats the error as
the expected "stopped" outcome, not a fatal one.

=============================================================================
"""

import errno
import socket
import logging
import threading
import time
from enum import Enum
from typing import Optional

from ..config import ServerConfig
from .connection import Connection
from .task_queue import QueueFull
from .thread_pool import ThreadPool, PoolStopped, ShutdownMode


logger = logging.getLogger(__name__)


TRANSIENT_ACCEPT_ERRORS = frozenset({
    errno.EMFILE,
    errno.ENFILE,
    errno.ENOBUFS,
    errno.ENOMEM,
    errno.ECONNABORTED,
    errno.EPROTO,
    errno.EPERM,
    errno.EAGAIN,
})

# Pause after a transient error so running out of fds doesn't become a busy loop
TRANSIENT_ERROR_BACKOFF = 0.05


class FatalListenerError(Exception):
    """The listening socket failed in a way the acceptor can't recover from."""


class AcceptorState(Enum):
    LISTENING = "listening"
    DRAINING = "draining"
    STOPPED = "stopped"


def create_listener(host: str, port: int, backlog: int = 128) -> socket.socket:
    """
    Create, bind and listen on a TCP socket.

    Args:
        host: Address to bind (e.g. "127.0.0.1", "0.0.0.0").
        port: Port to bind. 0 lets the OS pick a free one.
        backlog: Kernel accept-queue length before connections are refused.

    Returns:
        A listening socket.

    Raises:
        OSError: If the address can't be bound (in use, permission denied).
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

    try:
        # SO_REUSEADDR: restart without waiting out TIME_WAIT
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        logger.error(f"Failed to bind to {host}:{port}: {e}")
        raise

    return sock


class Acceptor:
    """
    Accept loop feeding a worker pool.

    Usage:
        listener = create_listener("127.0.0.1", 8080)
        pool = ThreadPool(handler.handle, num_workers=4)
        pool.start()

        acceptor = Acceptor(listener, pool, config)
        acceptor.run()          # blocks until stop() or a fatal error

        # from another thread / signal handler:
        acceptor.stop()
    """

    def __init__(
        self,
        listener: socket.socket,
        pool: ThreadPool,
        config: Optional[ServerConfig] = None,
    ):
        self.config = config or ServerConfig()
        self.pool = pool

        self._listener = listener
        self._listener.settimeout(self.config.accept_timeout)
        self._address = listener.getsockname()[:2]

        # Reentrant: stop() may run in a signal handler on the main thread
        # while that same thread is inside a locked section
        self._lock = threading.RLock()
        self._state = AcceptorState.LISTENING
        self._stopped_event = threading.Event()

    @property
    def state(self) -> AcceptorState:
        with self._lock:
            return self._state

    @property
    def address(self) -> tuple[str, int]:
        """The (host, port) the listener is bound to."""
        return self._address

    def run(self):
        """
        Accept connections until stopped.

        On return (normal stop) the pool has been drained and the listener
        closed.

        Raises:
            FatalListenerError: If accept() failed unrecoverably. The pool
                                is drained before this propagates.
        """
        logger.info(f"Accepting connections on {self.address[0]}:{self.address[1]}")

        fatal: Optional[FatalListenerError] = None
        try:
            self._accept_loop()
        except FatalListenerError as e:
            logger.error(f"Listener failed, shutting down: {e}")
            fatal = e
        finally:
            self._drain()

        if fatal is not None:
            raise fatal

    def _accept_loop(self):
        while self.state is AcceptorState.LISTENING:
            try:
                client_socket, client_address = self._listener.accept()
            except socket.timeout:
                # Periodic wake-up to re-check our state
                continue
            except OSError as e:
                if self.state is not AcceptorState.LISTENING:
                    # stop() closed the listener under us: the expected way out
                    break
                if e.errno in TRANSIENT_ACCEPT_ERRORS:
                    logger.warning(f"Transient accept error, continuing: {e}")
                    time.sleep(TRANSIENT_ERROR_BACKOFF)
                    continue
                raise FatalListenerError(f"accept() failed: {e}") from e

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")
            self._dispatch(client_socket, client_address)

    def _dispatch(self, client_socket: socket.socket, client_address):
        """Wrap an accepted socket and transfer it to the pool."""
        conn = Connection(
            socket=client_socket,
            address=client_address[:2],
            read_budget=self.config.read_budget,
            timeout=self.config.timeout,
        )

        try:
            self.pool.enqueue(conn)
        except PoolStopped:
            logger.warning(f"[{conn.id}] Pool stopped, dropping connection from {conn.client_ip}")
            conn.abort()
        except QueueFull:
            logger.warning(f"[{conn.id}] Task queue full, dropping connection from {conn.client_ip}")
            conn.abort()

    def stop(self):
        """
        Request the loop to stop.

        Safe to call from any thread, from a signal handler, and more than
        once. Returns immediately; use wait_stopped() to block until the
        pool has drained.
        """
        with self._lock:
            if self._state is not AcceptorState.LISTENING:
                return
            self._state = AcceptorState.DRAINING

        logger.info("Stop requested, closing listener...")
        self._close_listener()

    def _drain(self):
        with self._lock:
            self._state = AcceptorState.DRAINING

        self._close_listener()
        self.pool.shutdown(ShutdownMode.GRACEFUL, timeout=self.config.shutdown_timeout)

        with self._lock:
            self._state = AcceptorState.STOPPED
        self._stopped_event.set()
        logger.info("Acceptor stopped")

    def _close_listener(self):
        try:
            # Wakes a thread blocked in accept() on Linux
            self._listener.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Not connected / already closed; close() below still matters
        try:
            self._listener.close()
        except OSError:
            pass

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the acceptor to reach STOPPED.

        Returns:
            True if it stopped, False on timeout.
        """
        return self._stopped_event.wait(timeout)
