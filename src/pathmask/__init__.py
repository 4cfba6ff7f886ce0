"""pathmask: redact fields of JSON-like records by dotted path pattern."""

from pathmask.config import Settings, configure_structlog, setup_structlog
from pathmask.processors import PathRedactingProcessor
from pathmask.records import (
    ApiResponse,
    InMemoryRecordSource,
    RecordKey,
    RecordRedactionService,
    RecordSource,
)
from pathmask.redactor import DEFAULT_PLACEHOLDER, PathPatternRedactor, redact
from pathmask.rules import (
    InMemoryRuleLookup,
    RedactionRule,
    RuleLookup,
    RuleSet,
    RuleSetError,
    load_rule_sets,
)
from pathmask.tokenizer import tokenize_path
from pathmask.trie import TrieNode, build_trie

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_PLACEHOLDER",
    "ApiResponse",
    "InMemoryRecordSource",
    "InMemoryRuleLookup",
    "PathPatternRedactor",
    "PathRedactingProcessor",
    "RecordKey",
    "RecordRedactionService",
    "RecordSource",
    "RedactionRule",
    "RuleLookup",
    "RuleSet",
    "RuleSetError",
    "Settings",
    "TrieNode",
    "build_trie",
    "configure_structlog",
    "load_rule_sets",
    "redact",
    "setup_structlog",
    "tokenize_path",
]
