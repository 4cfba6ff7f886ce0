"""Tests for pathmask.processors."""

from __future__ import annotations

import array

from pathmask.processors import (
    _LEVEL_MAP,
    PathRedactingProcessor,
    add_service,
    ensure_event_is_str,
    normalize_level,
)
from pathmask.redactor import DEFAULT_PLACEHOLDER


class TestPathRedactingProcessor:
    def test_redacts_paths_in_event_dict(self) -> None:
        proc = PathRedactingProcessor(["user.email", "cards[].number"])
        ed: dict = {
            "event": "checkout",
            "user": {"email": "a@b.com", "id": 7},
            "cards": [{"number": "4111", "brand": "visa"}],
        }
        result = proc(None, "info", ed)
        assert result["user"] == {"email": DEFAULT_PLACEHOLDER, "id": 7}
        assert result["cards"] == [{"number": DEFAULT_PLACEHOLDER, "brand": "visa"}]
        assert result["event"] == "checkout"

    def test_top_level_key(self) -> None:
        proc = PathRedactingProcessor(["password"], placeholder="***")
        result = proc(None, "info", {"password": "s3cret", "user": "alice"})
        assert result == {"password": "***", "user": "alice"}

    def test_unmatched_event_unchanged(self) -> None:
        proc = PathRedactingProcessor(["a.b"])
        ed: dict = {"event": "x", "a": "scalar"}
        assert proc(None, "info", ed) == {"event": "x", "a": "scalar"}

    def test_cyclic_event_dict(self) -> None:
        proc = PathRedactingProcessor(["self.token"])
        ed: dict = {"token": "t"}
        ed["self"] = ed
        result = proc(None, "info", ed)
        assert result["token"] == DEFAULT_PLACEHOLDER
        assert result["self"] is result

    def test_caller_objects_are_not_rewritten(self) -> None:
        user = {"email": "a@b.com", "id": 7}
        proc = PathRedactingProcessor(["user.email"])
        result = proc(None, "info", {"event": "x", "user": user})
        assert result["user"]["email"] == DEFAULT_PLACEHOLDER
        assert user == {"email": "a@b.com", "id": 7}

    def test_mutate_redacts_in_place(self) -> None:
        user = {"email": "a@b.com"}
        ed: dict = {"user": user}
        result = PathRedactingProcessor(["user.email"], mutate=True)(None, "info", ed)
        assert result is ed
        assert user["email"] == DEFAULT_PLACEHOLDER

    def test_container_refusing_placeholder_does_not_raise(self) -> None:
        proc = PathRedactingProcessor(["codes[0]", "token"])
        result = proc(None, "info", {"codes": array.array("i", [1, 2]), "token": "t"})
        assert result["codes"].tolist() == [1, 2]
        assert result["token"] == DEFAULT_PLACEHOLDER

    def test_patterns_property(self) -> None:
        assert PathRedactingProcessor(["a", ""]).patterns == ("a",)


class TestAddService:
    def test_adds_service_field(self) -> None:
        result = add_service("myapp")(None, "info", {})
        assert result["service"] == "myapp"

    def test_does_not_overwrite_existing(self) -> None:
        result = add_service("myapp")(None, "info", {"service": "other"})
        assert result["service"] == "other"


class TestNormalizeLevel:
    def test_uses_method_name(self) -> None:
        assert normalize_level(None, "warning", {})["level"] == "WARN"
        assert normalize_level(None, "exception", {})["level"] == "ERROR"

    def test_prefers_existing_level(self) -> None:
        assert normalize_level(None, "info", {"level": "critical"})["level"] == "CRITICAL"

    def test_unknown_level_upper_cased(self) -> None:
        assert normalize_level(None, "custom", {})["level"] == "CUSTOM"

    def test_map_values_are_canonical(self) -> None:
        assert set(_LEVEL_MAP.values()) == {"DEBUG", "INFO", "WARN", "ERROR", "CRITICAL"}


class TestEnsureEventIsStr:
    def test_converts_non_string(self) -> None:
        assert ensure_event_is_str(None, "info", {"event": 42})["event"] == "42"

    def test_leaves_string_and_missing(self) -> None:
        assert ensure_event_is_str(None, "info", {"event": "x"})["event"] == "x"
        assert "event" not in ensure_event_is_str(None, "info", {})
