"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The server answers with exactly three status codes:

    ┌────────┬───────────────────────────────────────────────────────────┐
    │  200   │ OK            - File found and read, body is its content  │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  400   │ Bad Request   - Truncated or unparseable request, or any  │
    │        │                 method other than GET                     │
    ├────────┼───────────────────────────────────────────────────────────┤
    │  404   │ Not Found     - No readable file at that path inside the  │
    │        │                 document root (traversal attempts too)    │
    └────────┴───────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes and reason phrases.

    Extends IntEnum, so members compare equal to plain integers:

        >>> HTTPStatus.OK == 200
        True
        >>> HTTPStatus.NOT_FOUND.phrase
        'Not Found'
    """

    OK = 200
    BAD_REQUEST = 400
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Get the reason phrase for this status code.

            HTTP/1.1 404 Not Found
                     ─── ─────────
                      │      │
                      │      └── Reason phrase
                      └───────── Status code
        """
        return _STATUS_PHRASES[self]

    @property
    def is_error(self) -> bool:
        """Check if this is an error status code (4xx or 5xx)."""
        return self >= 400


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
}
