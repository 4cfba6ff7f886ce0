"""Settings and structlog configuration.

Logs are JSON lines rendered with orjson (or colored console output for
local use) with the fields ``timestamp``, ``service``, ``level`` and
``message``.  When redaction paths are given, every event dict is passed
through :class:`~pathmask.processors.PathRedactingProcessor` before it is
rendered.
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson
import structlog
from structlog.contextvars import merge_contextvars

from pathmask.processors import (
    PathRedactingProcessor,
    add_service,
    ensure_event_is_str,
    normalize_level,
)
from pathmask.redactor import DEFAULT_PLACEHOLDER


@dataclass(frozen=True)
class Settings:
    """Runtime settings, normally read with :meth:`from_env`.

    Environment variables:

    - ``LOG_LEVEL`` (default: ``"INFO"``)
    - ``JSON_LOGS`` (``"0"`` = console, default: ``"1"`` = JSON)
    - ``REDACTION_PLACEHOLDER`` (default: ``"<redacted>"``)
    - ``REDACTION_MUTATE`` (``"1"`` = redact records in place)
    - ``REDACTION_RULES_PATH`` (optional JSON rule document)
    """

    log_level: str = "INFO"
    json_logs: bool = True
    placeholder: str = DEFAULT_PLACEHOLDER
    mutate: bool = False
    rules_path: Path | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        rules_path = env.get("REDACTION_RULES_PATH")
        return cls(
            log_level=env.get("LOG_LEVEL", "INFO"),
            json_logs=env.get("JSON_LOGS", "1") != "0",
            placeholder=env.get("REDACTION_PLACEHOLDER", DEFAULT_PLACEHOLDER),
            mutate=env.get("REDACTION_MUTATE", "0") == "1",
            rules_path=Path(rules_path) if rules_path else None,
        )


def _orjson_serializer(obj: object, **_kw: object) -> str:
    """Serialize *obj* with orjson, falling back to ``repr`` for unknown types."""
    return orjson.dumps(obj, default=repr).decode()


def _to_logging_level(level_name: str) -> int:
    """Convert a human-readable level name to its :mod:`logging` constant."""
    upper_level = level_name.upper()
    if upper_level == "WARN":
        return logging.WARNING
    result: int = getattr(logging, upper_level, logging.INFO)
    return result


def _stream_isatty(stream: Any) -> bool:
    """Check if *stream* is connected to a terminal."""
    try:
        result: bool = stream.isatty()
        return result
    except (AttributeError, ValueError):
        return False


def _build_shared_processors(
    service: str,
    redact_paths: Sequence[str],
    placeholder: Any,
) -> list[structlog.types.Processor]:
    """Processor chain shared by structlog events and foreign stdlib records.

    Redaction runs after the logger name, level and timestamp are added and
    before ``event`` is renamed to ``message``.
    """
    processors: list[structlog.types.Processor] = [
        merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        normalize_level,  # type: ignore[list-item]
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        add_service(service),  # type: ignore[list-item]
    ]
    if redact_paths:
        processors.append(PathRedactingProcessor(redact_paths, placeholder=placeholder))
    processors += [
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        ensure_event_is_str,  # type: ignore[list-item]
        structlog.processors.EventRenamer("message"),
    ]
    return processors


def configure_structlog(
    *,
    service: str = "pathmask",
    level: str = "INFO",
    json_logs: bool = True,
    stream: Any = None,
    redact_paths: Sequence[str] = (),
    placeholder: Any = DEFAULT_PLACEHOLDER,
) -> None:
    """Configure structlog and the root logger.

    Parameters
    ----------
    service:
        Application/service name added to every log record.
    level:
        Minimum log level (e.g. ``"DEBUG"``, ``"INFO"``).
    json_logs:
        ``True`` for JSON output, ``False`` for colored console output.
    stream:
        Output stream.  Defaults to ``sys.stdout``.
    redact_paths:
        Path patterns redacted from every event dict before rendering.
    placeholder:
        Replacement for values matched by *redact_paths*.
    """
    if stream is None:
        stream = sys.stdout

    shared_processors = _build_shared_processors(service, redact_paths, placeholder)

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(_to_logging_level(level)),
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(serializer=_orjson_serializer)
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=_stream_isatty(stream), event_key="message")
    )
    formatter_processors: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if json_logs:
        formatter_processors.append(structlog.processors.format_exc_info)
    formatter_processors.append(renderer)

    formatter = structlog.stdlib.ProcessorFormatter(
        processors=formatter_processors,
        foreign_pre_chain=shared_processors,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_to_logging_level(level))

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_structlog(
    *,
    service: str = "pathmask",
    settings: Settings | None = None,
    redact_paths: Sequence[str] = (),
) -> Settings:
    """Configure logging from :class:`Settings` (the environment by default)."""
    if settings is None:
        settings = Settings.from_env()
    configure_structlog(
        service=service,
        level=settings.log_level,
        json_logs=settings.json_logs,
        redact_paths=redact_paths,
        placeholder=settings.placeholder,
    )
    return settings
