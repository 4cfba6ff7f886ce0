"""Tests for pathmask.config."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import orjson
import structlog

from pathmask.config import (
    Settings,
    _stream_isatty,
    _to_logging_level,
    configure_structlog,
    setup_structlog,
)
from pathmask.redactor import DEFAULT_PLACEHOLDER


def _lines(buf: io.StringIO) -> list[dict]:
    return [orjson.loads(line) for line in buf.getvalue().splitlines() if line]


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings == Settings()
        assert settings.placeholder == DEFAULT_PLACEHOLDER
        assert settings.json_logs is True
        assert settings.mutate is False
        assert settings.rules_path is None

    def test_reads_environment(self) -> None:
        settings = Settings.from_env(
            {
                "LOG_LEVEL": "DEBUG",
                "JSON_LOGS": "0",
                "REDACTION_PLACEHOLDER": "***",
                "REDACTION_MUTATE": "1",
                "REDACTION_RULES_PATH": "/etc/pathmask/rules.json",
            }
        )
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is False
        assert settings.placeholder == "***"
        assert settings.mutate is True
        assert settings.rules_path == Path("/etc/pathmask/rules.json")

    def test_reads_os_environ_by_default(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.setenv("REDACTION_PLACEHOLDER", "[gone]")
        assert Settings.from_env().placeholder == "[gone]"


class TestHelpers:
    def test_to_logging_level(self) -> None:
        assert _to_logging_level("debug") == logging.DEBUG
        assert _to_logging_level("WARN") == logging.WARNING
        assert _to_logging_level("nonsense") == logging.INFO

    def test_stream_isatty(self) -> None:
        assert _stream_isatty(io.StringIO()) is False
        assert _stream_isatty(object()) is False


class TestConfigureStructlog:
    def test_json_output(self) -> None:
        buf = io.StringIO()
        configure_structlog(service="svc", level="DEBUG", stream=buf)
        structlog.get_logger("test").info("hello", user="alice")
        (line,) = _lines(buf)
        assert line["message"] == "hello"
        assert line["service"] == "svc"
        assert line["level"] == "INFO"
        assert line["user"] == "alice"
        assert "timestamp" in line

    def test_redacts_configured_paths(self) -> None:
        buf = io.StringIO()
        configure_structlog(stream=buf, redact_paths=["user.email", "cards[].number"])
        structlog.get_logger("test").info(
            "checkout",
            user={"email": "a@b.com", "id": 1},
            cards=[{"number": "4111", "brand": "visa"}],
        )
        (line,) = _lines(buf)
        assert line["user"] == {"email": DEFAULT_PLACEHOLDER, "id": 1}
        assert line["cards"] == [{"number": DEFAULT_PLACEHOLDER, "brand": "visa"}]
        assert "a@b.com" not in buf.getvalue()

    def test_redacts_stdlib_records(self) -> None:
        buf = io.StringIO()
        configure_structlog(stream=buf, redact_paths=["event"], placeholder="***")
        logging.getLogger("plain").warning("secret text")
        (line,) = _lines(buf)
        assert line["level"] == "WARN"
        assert line["message"] == "***"
        assert "secret text" not in buf.getvalue()

    def test_level_filtering(self) -> None:
        buf = io.StringIO()
        configure_structlog(level="WARNING", stream=buf)
        log = structlog.get_logger("test")
        log.info("dropped")
        log.warning("kept")
        assert [line["message"] for line in _lines(buf)] == ["kept"]

    def test_console_output(self) -> None:
        buf = io.StringIO()
        configure_structlog(json_logs=False, stream=buf)
        structlog.get_logger("test").info("console line")
        assert "console line" in buf.getvalue()

    def test_replaces_root_handlers(self) -> None:
        configure_structlog(stream=io.StringIO())
        configure_structlog(stream=io.StringIO())
        assert len(logging.getLogger().handlers) == 1


class TestSetupStructlog:
    def test_uses_settings(self) -> None:
        settings = Settings(log_level="ERROR", placeholder="[X]")
        result = setup_structlog(settings=settings, redact_paths=["token"])
        assert result is settings
        assert logging.getLogger().level == logging.ERROR

    def test_reads_environment(self, monkeypatch) -> None:  # type: ignore[no-untyped-def]
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        settings = setup_structlog()
        assert settings.log_level == "DEBUG"
        assert logging.getLogger().level == logging.DEBUG
