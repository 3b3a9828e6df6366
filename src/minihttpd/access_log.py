"""
=============================================================================
ACCESS LOG
=============================================================================

One record per response written, on the "minihttpd.access" logger.

=============================================================================
LOG FORMATS
=============================================================================

    TEXT (Apache-style, default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [10/Jun/2026:10:55:36 +0000] "GET /index.html" 200 1234 0.52ms [a1b2c3d4]
    │ ───────       ──────────────────────────── ─────────────────  ─── ──── ─────  ────────
    │ IP            Timestamp                     Method/Path     Status Size Time  Conn ID
    └─────────────────────────────────────────────────────────────────────┘

    JSON (for log aggregators):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "GET", "path": "/index.html",  │
    │  "client_ip": "127.0.0.1", "client_port": 53122,                    │
    │  "status_code": 200, "content_length": 1234, "duration_ms": 0.52,   │
    │  "timestamp": "10/Jun/2026:10:55:36 +0000"}                         │
    └─────────────────────────────────────────────────────────────────────┘

The logger is namespaced so it can be routed on its own:

    logging.getLogger("minihttpd.access").addHandler(file_handler)

=============================================================================
"""

import json
import time
import logging
from dataclasses import dataclass

from .config import LOG_FORMATS


logger = logging.getLogger("minihttpd.access")


@dataclass
class RequestLog:
    """
    Structured log entry for one response.

    request_id:     Connection ID, for correlating with other log lines
    method:         HTTP method, "-" when the request didn't parse
    path:           Request path, "-" when the request didn't parse
    client_ip:      Client's IP address
    client_port:    Client's source port
    status_code:    HTTP response code
    content_length: Response body size in bytes
    duration_ms:    Time from accept to response written
    timestamp:      When the response was written
    """

    request_id: str
    method: str
    path: str
    client_ip: str
    client_port: int
    status_code: int
    content_length: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "request_id": self.request_id,
            "method": self.method,
            "path": self.path,
            "client_ip": self.client_ip,
            "client_port": self.client_port,
            "status_code": self.status_code,
            "content_length": self.content_length,
            "duration_ms": round(self.duration_ms, 2),
            "timestamp": self.timestamp,
        }

    def to_text(self) -> str:
        """Format as an Apache-style access log line."""
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms [{self.request_id}]'
        )


class AccessLog:
    """
    Writes access records.

    Fire-and-forget: record() returns nothing and callers don't wait on
    it. Handler failures inside the logging package are reported by
    logging itself and never reach the caller.

    Usage:
        access_log = AccessLog(log_format="json")
        access_log.record(("127.0.0.1", 53122), "GET", "/", 200)
    """

    def __init__(self, log_format: str = "text", log_level: int = logging.INFO):
        """
        Args:
            log_format: "text" (Apache-style) or "json".
            log_level: Level access records are emitted at.

        Raises:
            ValueError: Unknown log_format.
        """
        if log_format not in LOG_FORMATS:
            raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format}")

        self.log_format = log_format
        self.log_level = log_level

    def record(
        self,
        client_address: tuple[str, int],
        method: str,
        path: str,
        status: int,
        content_length: int = 0,
        duration_ms: float = 0.0,
        request_id: str = "-",
    ) -> None:
        """
        Emit one access record.

        Args:
            client_address: (ip, port) of the client.
            method: Request method, or "-" if unknown.
            path: Request path, or "-" if unknown.
            status: Status code sent.
            content_length: Body bytes sent.
            duration_ms: Time spent on the connection.
            request_id: Connection ID.
        """
        if not logger.isEnabledFor(self.log_level):
            return

        entry = RequestLog(
            request_id=request_id,
            method=method,
            path=path,
            client_ip=client_address[0],
            client_port=client_address[1],
            status_code=int(status),
            content_length=content_length,
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(entry.to_dict()))
        else:
            logger.log(self.log_level, entry.to_text())
