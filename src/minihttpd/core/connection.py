"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket with the three operations the handler
needs: read the request, write the response, close.

=============================================================================
ONE READ, FIXED BUDGET
=============================================================================

TCP is a byte stream. A client's request MAY arrive split over several
segments, and a full server would loop on recv() until it sees the blank
line that ends the headers.

This server deliberately doesn't:

    read_request()
        └─ recv(read_budget)     ONE call, at most read_budget bytes
        └─ return whatever came

If the bytes don't contain "\r\n\r\n", the parser rejects the request as
malformed (400). Well-behaved clients send a GET request in one write, and
on a LAN it arrives in one segment. Anything else is treated as broken
input rather than buffered.

    ┌─────────────────────────────────────────────────────────────────┐
    │   GET /index.html HTTP/1.1\r\n                                   │
    │   Host: localhost\r\n                     ← ignored              │
    │   \r\n                                    ← must be in budget    │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    OPEN ──────► READING ──────► WRITING ──────► CLOSED
     │              │                               ▲
     └──────────────┴───────────────────────────────┘
                 (errors / discard)

No KEEP_ALIVE state: every connection carries exactly one request.

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional
import uuid


logger = logging.getLogger(__name__)


DEFAULT_READ_BUDGET = 8192

# Bounds on the pre-close drain
DRAIN_TIMEOUT = 0.5
DRAIN_LIMIT = 64 * 1024


class ConnectionState(Enum):
    """Connection lifecycle states."""
    OPEN = "open"          # Accepted, nothing read yet
    READING = "reading"    # Receiving the request
    WRITING = "writing"    # Sending the response
    CLOSED = "closed"      # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Owned by exactly one task at a time. After close() the socket is gone
    and no further I/O is valid.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier (for logging).
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        read_budget: Maximum bytes read for the request.
        timeout: Socket timeout for read and write. None blocks forever.
    """

    socket: socket.socket
    address: tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.OPEN
    created_at: float = field(default_factory=time.time)

    read_budget: int = DEFAULT_READ_BUDGET
    timeout: Optional[float] = 30.0

    def __post_init__(self):
        # settimeout(None) puts the socket back in plain blocking mode
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return self.address[0]

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return self.address[1]

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    def read_request(self) -> bytes:
        """
        Read the request in a single recv() of at most read_budget bytes.

        Returns:
            The bytes received. Empty if the client closed without sending.

        Raises:
            OSError: On socket errors, including socket.timeout.
        """
        self.state = ConnectionState.READING
        return self.socket.recv(self.read_budget)

    def send_response(self, data: bytes) -> bool:
        """
        Send the full response.

        Uses sendall() so a large file body isn't cut short by a partial
        send().

        Returns:
            True if every byte was handed to the kernel, False if the
            client went away.
        """
        self.state = ConnectionState.WRITING

        try:
            self.socket.sendall(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send to {self.client_ip} failed: {e}")
            return False

    def close(self):
        """
        Close the connection.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. Drain: discard bytes past the read budget. Closing with unread
           data makes the kernel send RST, and the client can lose the
           response we just wrote.
        3. close(): release the file descriptor

        A connection that was never read from or written to has no response
        to protect, so it is aborted instead (no drain).

        Idempotent: closing twice is a no-op.
        """
        if self.state is ConnectionState.CLOSED:
            return
        if self.state is ConnectionState.OPEN:
            self.abort()
            return

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Peer already gone, nothing to signal

        try:
            self.socket.settimeout(DRAIN_TIMEOUT)
            drained = 0
            while drained < DRAIN_LIMIT:
                chunk = self.socket.recv(4096)
                if not chunk:
                    break
                drained += len(chunk)
        except OSError:
            pass  # Timeout or reset, we're closing anyway

        try:
            self.socket.close()
        finally:
            self.state = ConnectionState.CLOSED
            logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    def abort(self):
        """
        Drop the connection without draining.

        Used for connections that are refused or discarded before any
        request was read. Returns at once whatever the peer is doing.
        """
        if self.state is ConnectionState.CLOSED:
            return

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass  # Peer already gone

        try:
            self.socket.close()
        finally:
            self.state = ConnectionState.CLOSED
            logger.debug(f"[{self.id}] Connection aborted after {self.age:.3f}s")

    def __enter__(self):
        """
        Context manager entry.

            with conn:
                data = conn.read_request()
                conn.send_response(response)
            # closed here, whatever happened above
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
