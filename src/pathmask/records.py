"""Record retrieval with redaction applied.

:class:`RecordRedactionService` joins the two collaborators around the
engine: a :class:`RecordSource` that returns a decoded record by key and a
:class:`~pathmask.rules.RuleLookup` that returns the rules for the record's
resource.  The result is wrapped in an :class:`ApiResponse` envelope.
"""

from __future__ import annotations

import functools
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import orjson
import structlog

from pathmask.config import Settings
from pathmask.redactor import DEFAULT_PLACEHOLDER, PathPatternRedactor
from pathmask.rules import InMemoryRuleLookup, RuleLookup, load_rule_sets

log = structlog.get_logger(__name__)

CORS_HEADERS: dict[str, str] = {"Access-Control-Allow-Origin": "*"}


@dataclass(frozen=True)
class RecordKey:
    """Primary key of a record: a partition key and an optional sort key."""

    partition: str
    sort: str | None = None


class RecordSource(Protocol):
    def get(self, resource: str, key: RecordKey) -> Any | None: ...


@dataclass
class InMemoryRecordSource:
    """:class:`RecordSource` backed by a dict, for tests and local runs."""

    _items: dict[tuple[str, RecordKey], Any] = field(default_factory=dict)

    def put(self, resource: str, key: RecordKey, record: Any) -> None:
        self._items[(resource, key)] = record

    def get(self, resource: str, key: RecordKey) -> Any | None:
        return self._items.get((resource, key))


@dataclass(frozen=True)
class ApiResponse:
    status_code: int
    body: str
    headers: Mapping[str, str] = field(default_factory=lambda: dict(CORS_HEADERS))

    @classmethod
    def success(cls, data: Any) -> ApiResponse:
        """200 response; a bare string is wrapped as ``{"message": ...}``."""
        payload = {"message": data} if isinstance(data, str) else data
        return cls(200, orjson.dumps(payload).decode())

    @classmethod
    def error(cls, status_code: int, message: str) -> ApiResponse:
        return cls(status_code, orjson.dumps({"message": message}).decode())

    def json(self) -> Any:
        return orjson.loads(self.body)


class RecordRedactionService:
    """Fetch a record and redact it according to its resource's rules.

    Parameters
    ----------
    records:
        Where records are read from.
    rules:
        Where rules are read from.
    placeholder:
        Value written over redacted fields.
    mutate:
        Redact the fetched record in place instead of a copy.  Only safe
        when the source hands out fresh objects on every ``get``.
    cache_size:
        How many compiled rule-path tuples to keep; least recently used
        ones are dropped first.
    """

    def __init__(
        self,
        records: RecordSource,
        rules: RuleLookup,
        *,
        placeholder: Any = DEFAULT_PLACEHOLDER,
        mutate: bool = False,
        cache_size: int = 128,
    ) -> None:
        self._records = records
        self._rules = rules
        self._placeholder = placeholder
        self._mutate = mutate
        self._redactor_for = functools.lru_cache(maxsize=cache_size)(self._compile)

    @classmethod
    def from_settings(
        cls,
        records: RecordSource,
        settings: Settings,
        rules: RuleLookup | None = None,
    ) -> RecordRedactionService:
        """Build a service from *settings*, reading rules from ``rules_path`` unless given."""
        if rules is None:
            lookup = InMemoryRuleLookup()
            if settings.rules_path is not None:
                lookup.register_all(load_rule_sets(settings.rules_path))
            rules = lookup
        return cls(records, rules, placeholder=settings.placeholder, mutate=settings.mutate)

    def _compile(self, paths: tuple[str, ...]) -> PathPatternRedactor:
        return PathPatternRedactor(paths, self._placeholder)

    def redact_record(self, resource: str, record: Any) -> Any:
        """Redact an already fetched *record* of *resource*."""
        paths = tuple(rule.path for rule in self._rules.lookup(resource, record))
        if not paths:
            log.warning("no redaction rules for resource", resource=resource)
        log.debug("redacting record", resource=resource, rules=len(paths))
        return self._redactor_for(paths).redact(record, mutate=self._mutate)

    def fetch(self, resource: str, key: RecordKey) -> ApiResponse:
        record = self._records.get(resource, key)
        if record is None:
            log.warning("record not found", resource=resource, partition=key.partition)
            return ApiResponse.error(404, "Not found")

        redacted = self.redact_record(resource, record)
        log.info(
            "record served",
            resource=resource,
            partition=key.partition,
            sort=key.sort,
        )
        return ApiResponse.success(redacted)
