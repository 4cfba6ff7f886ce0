"""Redaction rule sets.

A rule set lists the paths that must be redacted for one resource
(a table, a record type, ...).  Rule sets are versioned; a lookup always
answers with the newest registered version.

Rule documents are JSON, either a plain list of rules per resource::

    {"customers": [{"path": "contacts[].email"}, {"path": "ssn"}]}

or an object carrying an explicit version::

    {"customers": {"version": 3, "rules": [{"path": "contacts[].email"}]}}
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import orjson
import structlog

log = structlog.get_logger(__name__)


class RuleSetError(ValueError):
    """Raised for malformed rule documents and out-of-order versions."""


@dataclass(frozen=True)
class RedactionRule:
    path: str


@dataclass(frozen=True)
class RuleSet:
    """All rules for *resource* at a given *version*."""

    resource: str
    rules: tuple[RedactionRule, ...] = ()
    version: int = 1

    @property
    def paths(self) -> list[str]:
        return [rule.path for rule in self.rules]


class RuleLookup(Protocol):
    """Source of the rules that apply to a record of a resource."""

    def lookup(self, resource: str, record: Any = None) -> list[RedactionRule]: ...


@dataclass
class InMemoryRuleLookup:
    """Thread-safe, in-process :class:`RuleLookup`."""

    _sets: dict[str, RuleSet] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register(self, rule_set: RuleSet) -> RuleSet:
        """Store *rule_set*, replacing an older version of the same resource."""
        with self._lock:
            current = self._sets.get(rule_set.resource)
            if current is not None and rule_set.version <= current.version:
                msg = (
                    f"rule set {rule_set.resource!r} version {rule_set.version} "
                    f"is not newer than {current.version}"
                )
                raise RuleSetError(msg)
            self._sets[rule_set.resource] = rule_set
        log.debug(
            "rule set registered",
            resource=rule_set.resource,
            version=rule_set.version,
            rules=len(rule_set.rules),
        )
        return rule_set

    def register_all(self, rule_sets: Iterable[RuleSet]) -> InMemoryRuleLookup:
        for rule_set in rule_sets:
            self.register(rule_set)
        return self

    def get(self, resource: str) -> RuleSet | None:
        with self._lock:
            return self._sets.get(resource)

    def lookup(self, resource: str, record: Any = None) -> list[RedactionRule]:
        rule_set = self.get(resource)
        return list(rule_set.rules) if rule_set is not None else []

    def resources(self) -> list[str]:
        with self._lock:
            return sorted(self._sets)


def _parse_rules(resource: str, raw: Any) -> tuple[RedactionRule, ...]:
    if not isinstance(raw, list):
        msg = f"rules for {resource!r} must be a list, got {type(raw).__name__}"
        raise RuleSetError(msg)
    rules = []
    for entry in raw:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("path"), str):
            msg = f"rule for {resource!r} must be an object with a string 'path': {entry!r}"
            raise RuleSetError(msg)
        rules.append(RedactionRule(path=entry["path"]))
    return tuple(rules)


def _parse_rule_set(resource: str, raw: Any) -> RuleSet:
    if isinstance(raw, Mapping):
        version = raw.get("version", 1)
        if not isinstance(version, int) or isinstance(version, bool):
            msg = f"version for {resource!r} must be an integer, got {version!r}"
            raise RuleSetError(msg)
        return RuleSet(resource, _parse_rules(resource, raw.get("rules", [])), version)
    return RuleSet(resource, _parse_rules(resource, raw))


def load_rule_sets(source: str | bytes | Path | Mapping[str, Any]) -> list[RuleSet]:
    """Parse a rule document.

    *source* may be a :class:`~pathlib.Path` to a JSON file, raw JSON text
    or bytes, or an already decoded mapping.
    """
    if isinstance(source, Path):
        source = source.read_bytes()
    if isinstance(source, (str, bytes)):
        try:
            document = orjson.loads(source)
        except orjson.JSONDecodeError as exc:
            msg = f"invalid rule document: {exc}"
            raise RuleSetError(msg) from exc
    else:
        document = source

    if not isinstance(document, Mapping):
        msg = f"rule document must be an object, got {type(document).__name__}"
        raise RuleSetError(msg)

    return [_parse_rule_set(str(resource), raw) for resource, raw in document.items()]
