"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Generator

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from minihttpd import HTTPServer, ServerConfig
from minihttpd.core.connection import Connection


INDEX_HTML = b"<!DOCTYPE html><h1>Hello from minihttpd</h1>\n"
STYLE_CSS = b"body { color: #333; }\n"
GUIDE_TXT = b"Nested plain text file.\n"
BLOB = bytes(range(256)) * 64


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /index.html?v=2 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: */*\r\n"
        b"\r\n"
    )


@pytest.fixture
def doc_root(tmp_path: Path) -> Path:
    """
    Document root with a few files, plus a secret file just outside it.

        tmp_path/
        ├── secret.txt          ← must never be served
        └── www/                ← document root
            ├── index.html
            ├── style.css
            ├── blob.bin
            └── docs/
                ├── index.html
                └── guide.txt
    """
    (tmp_path / "secret.txt").write_bytes(b"TOP SECRET\n")

    root = tmp_path / "www"
    root.mkdir()
    (root / "index.html").write_bytes(INDEX_HTML)
    (root / "style.css").write_bytes(STYLE_CSS)
    (root / "blob.bin").write_bytes(BLOB)

    docs = root / "docs"
    docs.mkdir()
    (docs / "index.html").write_bytes(b"<h1>Docs</h1>\n")
    (docs / "guide.txt").write_bytes(GUIDE_TXT)

    return root


@pytest.fixture
def config(doc_root: Path) -> ServerConfig:
    """Default test server configuration."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        workers=2,
        document_root=str(doc_root),
        timeout=5.0,
        accept_timeout=0.1,
        shutdown_timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class RunningServer:
    """Test server helper that serves from a background thread."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None
        self.error: BaseException = None

    @property
    def address(self) -> tuple[str, int]:
        return self.server.address

    def start(self):
        """Bind, then serve in a background thread."""
        self.server.start()  # Listener is bound when this returns
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        try:
            self.server.serve_forever()
        except BaseException as e:
            self.error = e

    def stop(self):
        """Stop the server and wait for it to drain."""
        self.server.stop()
        self.server.wait_stopped(timeout=10.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[RunningServer, None, None]:
    """A server on an ephemeral port, stopped after the test."""
    srv = RunningServer(HTTPServer(config))
    srv.start()

    yield srv

    srv.stop()


def send_raw(address: tuple[str, int], data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes and read the whole response until the server closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def parse_response(raw: bytes) -> tuple[str, dict[str, str], bytes]:
    """Split a raw response into (status line, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return lines[0], headers, body


@pytest.fixture
def http_get(running_server: RunningServer) -> Callable[[str], tuple[str, dict[str, str], bytes]]:
    """GET a path from the running server, returning the parsed response."""
    def get(path: str) -> tuple[str, dict[str, str], bytes]:
        request = f"GET {path} HTTP/1.1\r\nHost: localhost\r\n\r\n".encode("latin-1")
        return parse_response(send_raw(running_server.address, request))
    return get


@pytest.fixture
def http_raw(running_server: RunningServer) -> Callable[[bytes], tuple[str, dict[str, str], bytes]]:
    """Send raw request bytes to the running server, returning the parsed response."""
    def send(data: bytes) -> tuple[str, dict[str, str], bytes]:
        return parse_response(send_raw(running_server.address, data))
    return send


@pytest.fixture
def response_parser() -> Callable[[bytes], tuple[str, dict[str, str], bytes]]:
    return parse_response


@pytest.fixture
def socket_pair() -> Generator[tuple[Connection, socket.socket], None, None]:
    """
    A Connection wired to a plain client socket, no listener needed.

    Yields (server-side Connection, client socket).
    """
    server_sock, client_sock = socket.socketpair()
    client_sock.settimeout(5.0)
    conn = Connection(socket=server_sock, address=("127.0.0.1", 54321), timeout=5.0)

    yield conn, client_sock

    conn.close()
    client_sock.close()
