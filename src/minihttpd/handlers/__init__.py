"""
Request handlers.

    StaticFileHandler  - maps URL paths to files under the document root
    ConnectionHandler  - the per-connection task a worker runs
"""

from .static import StaticFileHandler, NotFound, serve_static
from .connection_handler import ConnectionHandler

__all__ = [
    "StaticFileHandler",
    "NotFound",
    "serve_static",
    "ConnectionHandler",
]
