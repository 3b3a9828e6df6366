"""
Unit tests for HTTP response building.
"""

from datetime import datetime, timezone

from minihttpd.http import HTTPStatus
from minihttpd.http.response import (
    HTTPResponse,
    ResponseBuilder,
    ok,
    not_found,
    bad_request,
    format_http_date,
    BAD_REQUEST_BODY,
    NOT_FOUND_BODY,
)


def split(raw: bytes) -> tuple[list[str], bytes]:
    head, _, body = raw.partition(b"\r\n\r\n")
    return head.decode("latin-1").split("\r\n"), body


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=HTTPStatus.OK).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=HTTPStatus.BAD_REQUEST).status_line == "HTTP/1.1 400 Bad Request"
        assert HTTPResponse(status=HTTPStatus.NOT_FOUND).status_line == "HTTP/1.1 404 Not Found"

    def test_to_bytes_adds_required_headers(self):
        """Content-Type, Content-Length, Date, Server and Connection are always present."""
        response = HTTPResponse(body=b"hello world")
        lines, body = split(response.to_bytes("test-server/0.1"))

        assert lines[0] == "HTTP/1.1 200 OK"
        names = {line.split(":", 1)[0] for line in lines[1:]}
        assert names == {"Content-Type", "Content-Length", "Date", "Server", "Connection"}
        assert "Content-Length: 11" in lines
        assert "Server: test-server/0.1" in lines
        assert "Connection: close" in lines
        assert "Content-Type: application/octet-stream" in lines
        assert body == b"hello world"

    def test_explicit_headers_win(self):
        response = HTTPResponse(headers={"Content-Type": "text/plain"}, body=b"x")
        lines, _ = split(response.to_bytes())

        assert "Content-Type: text/plain" in lines
        assert "Content-Type: application/octet-stream" not in lines

    def test_binary_body_untouched(self):
        body = bytes(range(256))
        _, sent = split(HTTPResponse(body=body).to_bytes())
        assert sent == body

    def test_set_header_chaining(self):
        """Test method chaining for headers."""
        response = (HTTPResponse()
            .set_header("X-One", "1")
            .set_header("X-Two", "2"))

        assert response.headers == {"X-One": "1", "X-Two": "2"}


class TestResponseBuilder:
    """Tests for ResponseBuilder."""

    def test_file_sets_content_type_from_name(self):
        response = ResponseBuilder().file(b"<h1>hi</h1>", "index.html").build()

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "text/html; charset=utf-8"
        assert response.body == b"<h1>hi</h1>"

    def test_text_encodes_utf8(self):
        response = ResponseBuilder().status(HTTPStatus.NOT_FOUND).text("café").build()

        assert response.body == "café".encode("utf-8")
        assert response.headers["Content-Type"] == "text/plain; charset=utf-8"

    def test_build_copies_headers(self):
        """Built responses don't share header dicts with the builder."""
        builder = ResponseBuilder().header("X-A", "1")
        first = builder.build()
        builder.header("X-B", "2")

        assert "X-B" not in first.headers

    def test_to_bytes_uses_server_name(self):
        raw = ResponseBuilder(server_name="custom/2.0").body(b"").to_bytes()
        assert b"Server: custom/2.0\r\n" in raw


class TestConvenienceFunctions:
    """Tests for ok / bad_request / not_found."""

    def test_ok_with_filename(self):
        response = ok(b"\x89PNG", "logo.png")

        assert response.status == HTTPStatus.OK
        assert response.headers["Content-Type"] == "image/png"
        assert response.body == b"\x89PNG"

    def test_ok_without_filename(self):
        assert ok(b"data").headers["Content-Type"] == "application/octet-stream"

    def test_bad_request_fixed_body(self):
        response = bad_request()

        assert response.status == HTTPStatus.BAD_REQUEST
        assert response.body == BAD_REQUEST_BODY.encode()

    def test_not_found_fixed_body(self):
        response = not_found()

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == NOT_FOUND_BODY.encode()


class TestFormatHTTPDate:

    def test_rfc7231_format(self):
        dt = datetime(2026, 1, 1, 12, 0, 5, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Thu, 01 Jan 2026 12:00:05 GMT"
