"""
=============================================================================
CONNECTION HANDLER
=============================================================================

The work a worker thread does for one accepted connection.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                 ONE CONNECTION, ONE RESPONSE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   read once (≤ read_budget)                                         │
    │      │                                                               │
    │      ├── OSError / timeout ──────────────► log, close (no response)  │
    │      │                                                               │
    │   parse request line                                                 │
    │      │                                                               │
    │      ├── MalformedRequest ───────────────► 400 Bad Request           │
    │      ├── method != GET ──────────────────► 400 Bad Request           │
    │      │                                                               │
    │   resolve + read file                                                │
    │      │                                                               │
    │      ├── NotFound / OSError ─────────────► 404 Not Found             │
    │      └── content ────────────────────────► 200 OK                    │
    │                                                                      │
    │   write response, access record, close                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import logging
from typing import Optional

from ..access_log import AccessLog
from ..core.connection import Connection
from ..http.request import RequestParser, MalformedRequest, HTTPRequest
from ..http.response import (
    HTTPResponse,
    DEFAULT_SERVER_NAME,
    ok,
    bad_request,
    not_found,
)
from .static import StaticFileHandler, NotFound


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """
    Serves one request per connection from a StaticFileHandler.

    Instances are shared by all workers and hold no per-request state,
    so handle() is safe to call from many threads at once.

    Usage:
        handler = ConnectionHandler(StaticFileHandler("./public"), AccessLog())
        pool = ThreadPool(handler.handle, num_workers=4)
    """

    def __init__(
        self,
        static_files: StaticFileHandler,
        access_log: Optional[AccessLog] = None,
        server_name: str = DEFAULT_SERVER_NAME,
    ):
        self.static_files = static_files
        self.access_log = access_log
        self.server_name = server_name
        self._parser = RequestParser()

    def __call__(self, connection: Connection) -> None:
        self.handle(connection)

    def handle(self, connection: Connection) -> None:
        """
        Read, answer and close one connection.

        Never raises for client or filesystem errors. Anything else
        propagates to the worker, which logs it and closes the connection.
        """
        with connection:
            # ─────────────────────────────────────────────────────────────
            # READ REQUEST
            # ─────────────────────────────────────────────────────────────
            try:
                raw_request = connection.read_request()
            except OSError as e:
                logger.warning(f"[{connection.id}] Read from {connection.client_ip} failed: {e}")
                return

            if not raw_request:
                logger.debug(f"[{connection.id}] {connection.client_ip} closed without sending a request")
                return

            # ─────────────────────────────────────────────────────────────
            # PARSE AND ANSWER
            # ─────────────────────────────────────────────────────────────
            request: Optional[HTTPRequest] = None
            try:
                request = self._parser.parse(raw_request, connection.address)
            except MalformedRequest as e:
                logger.debug(f"[{connection.id}] Malformed request: {e}")
                response = bad_request()
            else:
                response = self._respond(request, connection)

            # ─────────────────────────────────────────────────────────────
            # SEND RESPONSE
            # ─────────────────────────────────────────────────────────────
            if connection.send_response(response.to_bytes(self.server_name)):
                self._record(connection, request, response)

    def _respond(self, request: HTTPRequest, connection: Connection) -> HTTPResponse:
        """Build the response for a parsed request."""
        if request.method != "GET":
            logger.debug(f"[{connection.id}] Rejecting method {request.method}")
            return bad_request()

        try:
            path, content = self.static_files.load(request.path)
        except NotFound:
            return not_found()
        except OSError as e:
            # Exists but unreadable: answered like a missing file
            logger.warning(f"[{connection.id}] Could not read {request.path!r}: {e}")
            return not_found()

        return ok(content, path.name)

    def _record(
        self,
        connection: Connection,
        request: Optional[HTTPRequest],
        response: HTTPResponse,
    ) -> None:
        """Emit the access record. Failures are logged and go no further."""
        if self.access_log is None:
            return

        try:
            self.access_log.record(
                connection.address,
                request.method if request else "-",
                request.path if request else "-",
                response.status,
                content_length=len(response.body),
                duration_ms=connection.age * 1000,
                request_id=connection.id,
            )
        except Exception:
            logger.exception(f"[{connection.id}] Access log record failed")
