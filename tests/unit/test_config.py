"""
Unit tests for configuration loading and validation.
"""

from pathlib import Path

import pytest

from minihttpd.config import ServerConfig
from minihttpd.__main__ import build_parser, load_config


class TestValidate:
    """Tests for ServerConfig.validate()."""

    def test_defaults_are_valid(self, doc_root: Path):
        ServerConfig(document_root=str(doc_root)).validate()

    @pytest.mark.parametrize(
        "overrides",
        [
            {"port": -1},
            {"port": 65536},
            {"workers": 0},
            {"max_queue_size": -1},
            {"backlog": 0},
            {"read_budget": 10},
            {"timeout": 0},
            {"accept_timeout": 0},
            {"shutdown_timeout": -1},
            {"log_level": "LOUD"},
            {"log_format": "xml"},
        ],
    )
    def test_invalid_values_rejected(self, doc_root: Path, overrides: dict):
        config = ServerConfig(document_root=str(doc_root), **overrides)
        with pytest.raises(ValueError):
            config.validate()

    def test_missing_document_root_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError, match="document_root"):
            ServerConfig(document_root=str(tmp_path / "nope")).validate()

    def test_port_zero_allowed(self, doc_root: Path):
        ServerConfig(port=0, document_root=str(doc_root)).validate()

    def test_timeout_none_allowed(self, doc_root: Path):
        ServerConfig(timeout=None, document_root=str(doc_root)).validate()


class TestFromEnv:
    """Tests for environment variable loading."""

    def test_reads_variables(self, monkeypatch, doc_root: Path):
        monkeypatch.setenv("HTTP_HOST", "0.0.0.0")
        monkeypatch.setenv("HTTP_PORT", "3000")
        monkeypatch.setenv("HTTP_WORKERS", "8")
        monkeypatch.setenv("HTTP_QUEUE_SIZE", "100")
        monkeypatch.setenv("HTTP_DOC_ROOT", str(doc_root))
        monkeypatch.setenv("HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("HTTP_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("HTTP_LOG_FORMAT", "json")

        config = ServerConfig.from_env()

        assert config.host == "0.0.0.0"
        assert config.port == 3000
        assert config.workers == 8
        assert config.max_queue_size == 100
        assert config.document_root == str(doc_root)
        assert config.timeout == 2.5
        assert config.log_level == "DEBUG"
        assert config.log_format == "json"

    def test_defaults_without_variables(self, monkeypatch):
        for name in ("HTTP_HOST", "HTTP_PORT", "HTTP_WORKERS", "HTTP_DOC_ROOT"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.host == "127.0.0.1"
        assert config.port == 8080
        assert config.workers == 4
        assert config.document_root == "."

    def test_bad_number_raises(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "eighty")
        with pytest.raises(ValueError):
            ServerConfig.from_env()


class TestCLIPriority:
    """CLI flags override environment, environment overrides defaults."""

    def test_cli_beats_env(self, monkeypatch, doc_root: Path):
        monkeypatch.setenv("HTTP_PORT", "3000")
        monkeypatch.setenv("HTTP_WORKERS", "8")

        args = build_parser().parse_args(["--port", "9000", "--root", str(doc_root)])
        config = load_config(args)

        assert config.port == 9000          # from CLI
        assert config.workers == 8          # from env
        assert config.document_root == str(doc_root)

    def test_short_flags(self, monkeypatch):
        monkeypatch.delenv("HTTP_LOG_LEVEL", raising=False)
        args = build_parser().parse_args(["-H", "0.0.0.0", "-p", "81", "-w", "2", "-l", "DEBUG"])
        config = load_config(args)

        assert (config.host, config.port, config.workers, config.log_level) == (
            "0.0.0.0", 81, 2, "DEBUG"
        )

    def test_queue_size_and_log_format(self):
        args = build_parser().parse_args(["--queue-size", "16", "--log-format", "json"])
        config = load_config(args)

        assert config.max_queue_size == 16
        assert config.log_format == "json"
