"""
=============================================================================
STATIC FILE SERVING
=============================================================================

Maps URL paths to files under a document root and reads them.

=============================================================================
PATH TRAVERSAL PROTECTION
=============================================================================

The classic attack on a file server is escaping the document root:

    GET /../../etc/passwd HTTP/1.1
    GET /%2e%2e/%2e%2e/etc/passwd HTTP/1.1     (decoded by the parser)
    GET /link-to-outside/secret HTTP/1.1       (symlink inside the root)

All three are stopped the same way: resolve the FULL path first (which
collapses ".." and follows symlinks), then check the result is still
inside the resolved root.

    root_dir  = /srv/www
    user_path = ../../etc/passwd

    (root_dir / user_path).resolve()   →  /etc/passwd
    /etc/passwd.relative_to(/srv/www)  →  ValueError  →  NotFound

Escapes answer 404 rather than 403, so a client can't tell "exists
outside the root" apart from "doesn't exist".

=============================================================================
"""

import logging
from pathlib import Path


logger = logging.getLogger(__name__)


class NotFound(Exception):
    """
    No servable file at the requested path.

    Raised for missing files, directories without an index file, and any
    path that resolves outside the document root.
    """


class StaticFileHandler:
    """
    Resolves and reads files from a document root.

    =========================================================================
    FLOW
    =========================================================================

        url_path: /docs/guide.html

        1. Strip leading "/" and join onto root_dir
        2. resolve() and confirm the result is inside root_dir
        3. Directory?  → use its index file (index.html)
        4. Not a regular file?  → NotFound
        5. Read the whole file (OSError propagates)

    =========================================================================
    USAGE
    =========================================================================

        static = StaticFileHandler("/var/www")
        path, content = static.load("/")         # /var/www/index.html
        content = static.read_file("/logo.png")

    =========================================================================
    """

    def __init__(self, root_dir: str | Path, index_file: str = "index.html"):
        """
        Initialize static file handler.

        Args:
            root_dir: Root directory to serve files from.
                     All files MUST be inside this directory.
            index_file: Default file for directory requests.

        Raises:
            ValueError: If root_dir is not an existing directory.
        """
        # Resolve once so the containment check compares like with like
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file

        if not self.root_dir.is_dir():
            raise ValueError(f"Static root directory does not exist: {root_dir}")

    def resolve(self, url_path: str) -> Path:
        """
        Map a decoded URL path to a file inside the document root.

        Args:
            url_path: Decoded request path, e.g. "/css/site.css".

        Returns:
            Absolute path of an existing regular file.

        Raises:
            NotFound: Missing, outside the root, or a directory with no index.
        """
        relative = url_path.lstrip("/")

        # ─────────────────────────────────────────────────────────────────
        # RESOLVE AND CONTAIN
        # ─────────────────────────────────────────────────────────────────
        try:
            full_path = (self.root_dir / relative).resolve()
        except (OSError, ValueError, RuntimeError) as e:
            # ValueError: embedded NUL, RuntimeError: symlink loop
            raise NotFound(url_path) from e

        try:
            full_path.relative_to(self.root_dir)
        except ValueError:
            logger.warning(f"Path traversal attempt: {url_path!r}")
            raise NotFound(url_path) from None

        # ─────────────────────────────────────────────────────────────────
        # DIRECTORY INDEX
        # ─────────────────────────────────────────────────────────────────
        if full_path.is_dir():
            full_path = full_path / self.index_file

        if not full_path.is_file():
            raise NotFound(url_path)

        return full_path

    def load(self, url_path: str) -> tuple[Path, bytes]:
        """
        Resolve and read a file.

        Returns:
            Tuple of (resolved path, file content). The path tells the
            caller which file was actually served, e.g. index.html for "/".

        Raises:
            NotFound: See resolve().
            OSError: The file exists but couldn't be read.
        """
        path = self.resolve(url_path)
        return path, path.read_bytes()

    def read_file(self, url_path: str) -> bytes:
        """
        Read the file at url_path.

        Raises:
            NotFound: See resolve().
            OSError: The file exists but couldn't be read.
        """
        return self.load(url_path)[1]


def serve_static(root_dir: str | Path, **kwargs) -> StaticFileHandler:
    """
    Create a static file handler.

    Example:
        static = serve_static("/var/www", index_file="default.html")
    """
    return StaticFileHandler(root_dir, **kwargs)
