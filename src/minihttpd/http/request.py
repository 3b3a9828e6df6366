"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the bytes read from a connection into an HTTPRequest.

Only the REQUEST LINE matters to this server. Headers are required to be
present and terminated (so we know the client finished), but their
content is ignored.

    ┌─────────────────────────────────────────────────────────────────┐
    │  GET /docs/index.html?v=2 HTTP/1.1\r\n     ← parsed              │
    │  Host: localhost:8080\r\n                  ← ignored             │
    │  User-Agent: curl/8.5.0\r\n                ← ignored             │
    │  \r\n                                      ← REQUIRED            │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
WHAT COUNTS AS MALFORMED?
=============================================================================

    Input                                       Why
    ─────                                       ───
    b""                                         client sent nothing
    b"GET / HTTP/1.1\r\nHost: x\r\n"            no blank line: truncated, or
                                                larger than the read budget
    b"GET /\r\n\r\n"                            request line has 2 parts
    b"get / HTTP/1.1\r\n\r\n"                   method must be uppercase
    b"GET index.html HTTP/1.1\r\n\r\n"          target must start with "/"
    b"GET / HTTP/2.0\r\n\r\n"                   only HTTP/1.0 and HTTP/1.1
    b"GET /%00 HTTP/1.1\r\n\r\n"                NUL byte in decoded path

Methods other than GET parse fine here. Rejecting them is the handler's
decision, not the parser's.

=============================================================================
"""

import re
from dataclasses import dataclass
from urllib.parse import unquote


HEADER_TERMINATOR = b"\r\n\r\n"

SUPPORTED_VERSIONS = ("HTTP/1.0", "HTTP/1.1")


class MalformedRequest(Exception):
    """
    The request bytes could not be parsed.

    Always answered with 400 Bad Request and the connection is closed.
    """


@dataclass(frozen=True)
class HTTPRequest:
    """
    A parsed request line.

    Attributes:
        method: HTTP method, e.g. "GET".
        path: Percent-decoded path with query and fragment removed.
        version: "HTTP/1.0" or "HTTP/1.1".
        target: The request target exactly as sent (for logging).
        client_address: (ip, port) of the client.
    """
    method: str
    path: str
    version: str
    target: str = ""
    client_address: tuple[str, int] = ("", 0)


class RequestParser:
    """
    Parses raw request bytes into HTTPRequest objects.

    REQUEST_LINE_PATTERN: ^([A-Z]+) ([^ ]+) (HTTP/\\d\\.\\d)$

        ([A-Z]+)       METHOD, uppercase letters only
        ` `            exactly one space
        ([^ ]+)        request target, no spaces
        ` `            exactly one space
        (HTTP/\\d\\.\\d)  version
    """

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) (HTTP/\d\.\d)$")

    def parse(
        self,
        data: bytes,
        client_address: tuple[str, int] = ("", 0),
    ) -> HTTPRequest:
        """
        Parse raw request bytes.

        Args:
            data: Everything read from the connection (one read).
            client_address: Client (ip, port), copied onto the request.

        Returns:
            The parsed request.

        Raises:
            MalformedRequest: For any of the cases in the module docstring.
        """
        if not data:
            raise MalformedRequest("Empty request")

        header_end = data.find(HEADER_TERMINATOR)
        if header_end == -1:
            raise MalformedRequest("Request headers not terminated within read budget")

        # ISO-8859-1 maps every byte to a character, so this never fails.
        # Non-ASCII bytes then fail the regex or the percent-decoding below.
        request_line = data[:header_end].split(b"\r\n", 1)[0].decode("iso-8859-1")

        method, path, version, target = self._parse_request_line(request_line)

        return HTTPRequest(
            method=method,
            path=path,
            version=version,
            target=target,
            client_address=client_address,
        )

    def _parse_request_line(self, line: str) -> tuple[str, str, str, str]:
        """
        Split and validate "METHOD SP TARGET SP VERSION".

        Returns:
            Tuple of (method, path, version, target).
        """
        if not line:
            raise MalformedRequest("Missing request line")

        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise MalformedRequest(f"Invalid request line: {line[:100]!r}")

        method, target, version = match.groups()

        if version not in SUPPORTED_VERSIONS:
            raise MalformedRequest(f"Unsupported HTTP version: {version}")

        # Origin-form only: "/path?query". No "*" and no absolute URLs.
        if not target.startswith("/"):
            raise MalformedRequest(f"Invalid request target: {target[:100]!r}")

        # "//docs/a.txt" is a path here, never a network location
        raw_path = target.split("?", 1)[0].split("#", 1)[0]

        try:
            path = unquote(raw_path, errors="strict")
        except (UnicodeDecodeError, ValueError) as e:
            raise MalformedRequest(f"Invalid path encoding: {target[:100]!r}") from e

        if "\x00" in path:
            raise MalformedRequest("NUL byte in path")

        return method, path or "/", version, target


def parse_request(
    data: bytes,
    client_address: tuple[str, int] = ("", 0),
) -> HTTPRequest:
    """
    Convenience function to parse request bytes.

    Example:
        request = parse_request(b"GET / HTTP/1.1\\r\\n\\r\\n")
    """
    return RequestParser().parse(data, client_address)
