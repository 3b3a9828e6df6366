"""
Unit tests for HTTP request parsing.
"""

import pytest

from minihttpd.http.request import (
    HTTPRequest,
    RequestParser,
    MalformedRequest,
    parse_request,
)


class TestRequestParser:
    """Tests for RequestParser class."""

    def test_parse_simple_get(self, sample_get_request: bytes):
        """Test parsing a simple GET request."""
        parser = RequestParser()
        request = parser.parse(sample_get_request, ("127.0.0.1", 12345))

        assert isinstance(request, HTTPRequest)
        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.version == "HTTP/1.1"
        assert request.target == "/index.html?v=2"
        assert request.client_address == ("127.0.0.1", 12345)

    def test_headers_are_ignored(self):
        """Garbage header lines don't matter, only the terminator does."""
        raw = b"GET / HTTP/1.0\r\nthis is not a header\r\n\r\n"
        request = parse_request(raw)

        assert request.path == "/"
        assert request.version == "HTTP/1.0"

    def test_non_get_methods_parse(self):
        """Rejecting POST is the handler's job, not the parser's."""
        request = parse_request(b"POST /x HTTP/1.1\r\nContent-Length: 0\r\n\r\n")
        assert request.method == "POST"
        assert request.path == "/x"

    def test_query_and_fragment_stripped(self):
        request = parse_request(b"GET /search/page.html?q=a#top HTTP/1.1\r\n\r\n")
        assert request.path == "/search/page.html"

    def test_double_slash_is_a_path_not_a_host(self):
        request = parse_request(b"GET //docs/guide.txt?x=1 HTTP/1.1\r\n\r\n")
        assert request.path == "//docs/guide.txt"

    def test_percent_decoding(self):
        """Test URL-encoded path parsing."""
        request = parse_request(b"GET /my%20file.txt HTTP/1.1\r\n\r\n")
        assert request.path == "/my file.txt"

    def test_utf8_percent_decoding(self):
        request = parse_request(b"GET /caf%C3%A9.html HTTP/1.1\r\n\r\n")
        assert request.path == "/café.html"

    def test_encoded_traversal_is_decoded_not_resolved(self):
        """The parser decodes; containment is enforced later."""
        request = parse_request(b"GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1\r\n\r\n")
        assert request.path == "/../../etc/passwd"


class TestMalformedRequests:
    """Inputs that must be rejected with MalformedRequest."""

    @pytest.mark.parametrize(
        "raw",
        [
            b"",
            b"GET / HTTP/1.1\r\nHost: x\r\n",            # no blank line
            b"GET / HTTP/1.1",                            # no line ending at all
            b"\r\n\r\n",                                  # empty request line
            b"GET\r\n\r\n",                               # one part
            b"GET /\r\n\r\n",                             # two parts
            b"GET / HTTP/1.1 extra\r\n\r\n",              # four parts
            b"get / HTTP/1.1\r\n\r\n",                    # lowercase method
            b"GET  / HTTP/1.1\r\n\r\n",                   # double space
            b"GET index.html HTTP/1.1\r\n\r\n",           # not origin-form
            b"GET http://example.com/ HTTP/1.1\r\n\r\n",  # absolute-form
            b"GET / HTTP/2.0\r\n\r\n",                    # unsupported version
            b"GET / FTP/1.0\r\n\r\n",                     # not HTTP
            b"GET /%00.html HTTP/1.1\r\n\r\n",            # NUL after decoding
            b"GET /%ff.html HTTP/1.1\r\n\r\n",            # invalid UTF-8
        ],
    )
    def test_rejected(self, raw: bytes):
        with pytest.raises(MalformedRequest):
            parse_request(raw)

    def test_truncated_at_read_budget(self):
        """A request cut off by the read budget has no terminator."""
        full = b"GET / HTTP/1.1\r\nX-Padding: " + b"a" * 9000 + b"\r\n\r\n"
        with pytest.raises(MalformedRequest):
            parse_request(full[:8192])
