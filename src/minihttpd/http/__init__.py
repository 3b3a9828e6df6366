"""
=============================================================================
HTTP PROTOCOL IMPLEMENTATION
=============================================================================

The small slice of HTTP/1.1 this server speaks:

    bytes ──► RequestParser ──► HTTPRequest
                                     │
                              (handler decides)
                                     │
    bytes ◄── HTTPResponse.to_bytes() ◄── ok() / bad_request() / not_found()

One request per connection, one response, then close.

=============================================================================
"""

from .request import HTTPRequest, RequestParser, MalformedRequest, parse_request
from .response import (
    HTTPResponse,
    ResponseBuilder,
    format_http_date,
    ok,             # 200 OK
    bad_request,    # 400 Bad Request
    not_found,      # 404 Not Found
)
from .status_codes import HTTPStatus
from .mime_types import get_mime_type, get_content_type

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestParser",
    "MalformedRequest",
    "parse_request",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "format_http_date",
    "ok",
    "bad_request",
    "not_found",

    # Status codes
    "HTTPStatus",

    # MIME types
    "get_mime_type",
    "get_content_type",
]
