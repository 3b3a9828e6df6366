"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds HTTP/1.1 responses per RFC 7230.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     HTTP RESPONSE STRUCTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │  ┌─ STATUS LINE ──────────────────────────────────────────────────┐ │
    │  │    HTTP/1.1 200 OK\r\n                                         │ │
    │  │    ────┬─── ─┬─ ─┬─                                            │ │
    │  │    Version  Code Phrase                                        │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ HEADERS ──────────────────────────────────────────────────────┐ │
    │  │    Content-Type: text/html; charset=utf-8\r\n                  │ │
    │  │    Content-Length: 27\r\n                  ← always added      │ │
    │  │    Date: Wed, 01 Jan 2026 12:00:00 GMT\r\n ← always added      │ │
    │  │    Server: minihttpd/1.0\r\n               ← always added      │ │
    │  │    Connection: close\r\n                   ← always added      │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ EMPTY LINE ───────────────────────────────────────────────────┐ │
    │  │    \r\n                                                         │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    │  ┌─ BODY ─────────────────────────────────────────────────────────┐ │
    │  │    <h1>Hello</h1>                                               │ │
    │  └─────────────────────────────────────────────────────────────────┘ │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Every connection carries exactly one response and is then closed, so the
Connection header is always "close" and Content-Length is always exact.

=============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Union

from .status_codes import HTTPStatus
from .mime_types import DEFAULT_MIME_TYPE, get_content_type


DEFAULT_SERVER_NAME = "minihttpd/1.0"

# Fixed error bodies. Clients only ever see these two.
BAD_REQUEST_BODY = "400 Bad Request\n"
NOT_FOUND_BODY = "404 Not Found\n"


@dataclass
class HTTPResponse:
    """
    Represents an HTTP response to be sent to the client.

    Use ResponseBuilder or the ok/bad_request/not_found helpers rather than
    filling the fields by hand.

        Handler builds           to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: HTTPStatus = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        """
        Get the HTTP status line.

        Format: HTTP-VERSION SP STATUS-CODE SP REASON-PHRASE
        Example: "HTTP/1.1 404 Not Found"
        """
        return f"{self.version} {int(self.status)} {self.status.phrase}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        """Set a response header. Returns self for chaining."""
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: str = DEFAULT_SERVER_NAME) -> bytes:
        """
        Serialize the response to bytes for socket.sendall().

        Content-Length, Date, Server and Connection are added when the
        caller didn't set them. Content-Type falls back to
        application/octet-stream so it is never missing.

        Args:
            server_name: Value for the Server header.

        Returns:
            Complete HTTP response as bytes.
        """
        response_headers = dict(self.headers)

        # =====================================================================
        # AUTO-ADD REQUIRED HEADERS
        # =====================================================================

        response_headers.setdefault("Content-Type", DEFAULT_MIME_TYPE)
        response_headers.setdefault("Content-Length", str(len(self.body)))
        response_headers.setdefault("Date", format_http_date(datetime.now(timezone.utc)))
        response_headers.setdefault("Server", server_name)
        response_headers.setdefault("Connection", "close")

        # =====================================================================
        # BUILD RESPONSE
        # =====================================================================

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        # Header values here are ASCII (MIME types, dates, digits)
        header_bytes = "\r\n".join(lines).encode("latin-1") + b"\r\n"

        return header_bytes + self.body


class ResponseBuilder:
    """
    Fluent builder for constructing HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .file(content, "index.html")
            .build())

    Each method returns `self` except build() and to_bytes().
    """

    def __init__(self, server_name: str = DEFAULT_SERVER_NAME):
        self._status = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""
        self._server_name = server_name

    def status(self, status: HTTPStatus) -> "ResponseBuilder":
        """Set the HTTP status code."""
        self._status = status
        return self

    def header(self, name: str, value: str) -> "ResponseBuilder":
        """Add a single response header."""
        self._headers[name] = value
        return self

    def content_type(self, content_type: str) -> "ResponseBuilder":
        """Set the Content-Type header."""
        return self.header("Content-Type", content_type)

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """
        Set the response body.

        Args:
            body: Response body (string auto-encoded to UTF-8)
        """
        if isinstance(body, str):
            self._body = body.encode("utf-8")
        else:
            self._body = body
        return self

    def text(self, text: str, content_type: str = "text/plain; charset=utf-8") -> "ResponseBuilder":
        """Set a plain text body and its Content-Type."""
        self._body = text.encode("utf-8")
        self._headers["Content-Type"] = content_type
        return self

    def file(self, content: bytes, filename: str) -> "ResponseBuilder":
        """
        Set a file body.

        Content-Type is inferred from the filename extension.
        """
        self._body = content
        self._headers["Content-Type"] = get_content_type(filename)
        return self

    def build(self) -> HTTPResponse:
        """Build and return the HTTPResponse object."""
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )

    def to_bytes(self) -> bytes:
        """Build and serialize the response in one step."""
        return self.build().to_bytes(self._server_name)


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================

def format_http_date(dt: datetime) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Format: Day, DD Mon YYYY HH:MM:SS GMT
    Example: Wed, 01 Jan 2026 12:00:00 GMT

    HTTP dates are always GMT. Locale-dependent strftime names are avoided.
    """
    days = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
    months = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

    return (
        f"{days[dt.weekday()]}, "
        f"{dt.day:02d} {months[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================
#
# One response per status code the server produces:
#
#     ok(content, "index.html")   → 200, Content-Type from the filename
#     bad_request()               → 400, fixed text body
#     not_found()                 → 404, fixed text body
#
# =============================================================================

def ok(content: bytes, filename: Optional[str] = None) -> HTTPResponse:
    """
    Create a 200 OK response carrying file content.

    Args:
        content: Response body.
        filename: Used to infer Content-Type. None means octet-stream.
    """
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if filename is None:
        return builder.body(content).content_type(DEFAULT_MIME_TYPE).build()
    return builder.file(content, filename).build()


def bad_request() -> HTTPResponse:
    """Create a 400 Bad Request response."""
    return ResponseBuilder().status(HTTPStatus.BAD_REQUEST).text(BAD_REQUEST_BODY).build()


def not_found() -> HTTPResponse:
    """Create a 404 Not Found response."""
    return ResponseBuilder().status(HTTPStatus.NOT_FOUND).text(NOT_FOUND_BODY).build()
