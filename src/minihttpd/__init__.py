"""
=============================================================================
MINIHTTPD - A MINIMAL MULTI-THREADED HTTP SERVER
=============================================================================

Serves static files from a document root over HTTP/1.1, one request per
connection, using a fixed pool of worker threads.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌──────────┐   accept()   ┌──────────┐  enqueue()  ┌────────────────┐
    │ Clients  │ ───────────► │ Acceptor │ ──────────► │   Task Queue   │
    └──────────┘              └──────────┘             └───────┬────────┘
         ▲                                                     │ take()
         │                                     ┌───────────────┼───────────────┐
         │                                     ▼               ▼               ▼
         │                                ┌─────────┐     ┌─────────┐     ┌─────────┐
         └─────── 200 / 400 / 404 ─────── │Worker 1 │     │Worker 2 │ ... │Worker N │
                                          └─────────┘     └─────────┘     └─────────┘
                                               │ ConnectionHandler: read, parse,
                                               │ serve file, write, close
                                               ▼
                                          Document root

=============================================================================
QUICK START
=============================================================================

    from minihttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(port=8080, document_root="./public"))
    server.run()

Or from the shell:

    python -m minihttpd --root ./public --port 8080

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_server
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_server", "__version__"]
