"""
Unit tests for access logging.
"""

import json
import logging

import pytest

from minihttpd.access_log import AccessLog, RequestLog


class TestRequestLog:

    def test_to_text_is_apache_style(self):
        entry = RequestLog(
            request_id="abcd1234",
            method="GET",
            path="/index.html",
            client_ip="10.0.0.7",
            client_port=40000,
            status_code=200,
            content_length=512,
            duration_ms=1.234,
            timestamp="01/Jan/2026:12:00:00 +0000",
        )

        assert entry.to_text() == (
            '10.0.0.7 - - [01/Jan/2026:12:00:00 +0000] "GET /index.html" 200 512 1.23ms [abcd1234]'
        )
        assert entry.to_dict()["duration_ms"] == 1.23


class TestAccessLog:
    """Tests for AccessLog.record()."""

    def test_text_record(self, caplog):
        with caplog.at_level(logging.INFO, logger="minihttpd.access"):
            AccessLog().record(("127.0.0.1", 5000), "GET", "/a.css", 404)

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.name == "minihttpd.access"
        assert '127.0.0.1 - - [' in record.getMessage()
        assert '"GET /a.css" 404' in record.getMessage()

    def test_json_record(self, caplog):
        with caplog.at_level(logging.INFO, logger="minihttpd.access"):
            AccessLog(log_format="json").record(
                ("127.0.0.1", 5000), "POST", "/x", 400, content_length=16, request_id="r1"
            )

        data = json.loads(caplog.records[0].getMessage())
        assert data["client_ip"] == "127.0.0.1"
        assert data["client_port"] == 5000
        assert data["method"] == "POST"
        assert data["path"] == "/x"
        assert data["status_code"] == 400
        assert data["content_length"] == 16
        assert data["request_id"] == "r1"

    def test_disabled_level_emits_nothing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="minihttpd.access"):
            AccessLog().record(("127.0.0.1", 5000), "GET", "/", 200)

        assert caplog.records == []

    def test_unknown_format_rejected(self):
        with pytest.raises(ValueError):
            AccessLog(log_format="xml")
