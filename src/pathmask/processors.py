"""Structlog processors.

:class:`PathRedactingProcessor` runs the path-pattern redactor over every
event dict so that log lines obey the same rules as served records.  The
remaining processors normalise the fields the JSON log renderer emits:

- ``level``: one of ``CRITICAL``, ``ERROR``, ``WARN``, ``INFO``, ``DEBUG``.
- ``service``: application name.
- ``event``: guaranteed to be a string.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from pathmask.redactor import DEFAULT_PLACEHOLDER, PathPatternRedactor

_LEVEL_MAP: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warning": "WARN",
    "warn": "WARN",
    "error": "ERROR",
    "exception": "ERROR",
    "critical": "CRITICAL",
    "fatal": "CRITICAL",
}


class PathRedactingProcessor:
    """Structlog processor that redacts event-dict fields by path pattern.

    Parameters
    ----------
    patterns:
        Path patterns relative to the event dict, e.g. ``"user.email"`` or
        ``"request.headers.authorization"``.
    placeholder:
        The replacement written over redacted values.
    mutate:
        Redact the event dict in place.  Dicts and lists passed as log
        arguments belong to the caller and would be rewritten too, so by
        default a redacted copy of the event dict is returned instead.
    """

    def __init__(
        self,
        patterns: Iterable[str],
        *,
        placeholder: Any = DEFAULT_PLACEHOLDER,
        mutate: bool = False,
    ) -> None:
        self._redactor = PathPatternRedactor(patterns, placeholder)
        self._mutate = mutate

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._redactor.patterns

    def __call__(
        self,
        _logger: Any,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        return self._redactor.redact(event_dict, mutate=self._mutate)


def add_service(
    service_name: str,
) -> Callable[[Any, str, dict[str, Any]], dict[str, Any]]:
    """Return a processor that adds a ``service`` field to every log record."""

    def _processor(
        _logger: Any,
        _method_name: str,
        event_dict: dict[str, Any],
    ) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return _processor


def normalize_level(
    _logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Map the method name (or an explicit ``level``) onto the canonical set.

    Unknown levels are upper-cased and passed through.
    """
    raw_level = str(event_dict.get("level", method_name)).lower()
    event_dict["level"] = _LEVEL_MAP.get(raw_level, raw_level.upper())
    return event_dict


def ensure_event_is_str(
    _logger: Any,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Stringify a non-string ``event`` so the renamed ``message`` is text."""
    event = event_dict.get("event")
    if event is not None and not isinstance(event, str):
        event_dict["event"] = str(event)
    return event_dict
