"""Prefix trie over tokenized path patterns.

Every pattern is walked from the root, creating one child per token and
reusing children that already exist, so patterns sharing their first *k*
tokens share the same node after *k* steps.  The last node of each
pattern is flagged ``terminal``.

A trie is never modified after :func:`build_trie` returns and may be
shared between threads.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from pathmask.tokenizer import is_valid_token, tokenize_path

log = structlog.get_logger(__name__)


class TrieNode:
    """One trie node.

    Nodes compare and hash by identity, which is what the traversal
    frontier relies on to merge converging patterns.
    """

    __slots__ = ("children", "terminal")

    def __init__(self) -> None:
        self.children: dict[str, TrieNode] = {}
        self.terminal = False

    def __repr__(self) -> str:
        return f"TrieNode(children={sorted(self.children)!r}, terminal={self.terminal})"


def _insert(root: TrieNode, tokens: list[str]) -> int:
    """Add one tokenized pattern; returns the number of nodes created."""
    created = 0
    node = root
    for token in tokens:
        child = node.children.get(token)
        if child is None:
            child = TrieNode()
            node.children[token] = child
            created += 1
        node = child
    node.terminal = True
    return created


@dataclass(frozen=True)
class CompiledPatterns:
    """A built trie plus bookkeeping about the patterns it came from.

    Parameters
    ----------
    root:
        Root node (the empty path).
    patterns:
        Patterns that contributed a terminal node, in input order.
    skipped:
        Patterns that tokenized to nothing and were ignored.
    node_count:
        Number of nodes below the root.
    """

    root: TrieNode
    patterns: tuple[str, ...]
    skipped: tuple[object, ...] = ()
    node_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.root.children


def compile_patterns(patterns: Iterable[str]) -> CompiledPatterns:
    """Tokenize *patterns* and merge them into a single trie."""
    root = TrieNode()
    used: list[str] = []
    nodes = 0
    skipped: list[object] = []

    for pattern in patterns:
        tokens = tokenize_path(pattern)
        if not tokens:
            skipped.append(pattern)
            continue
        if not all(is_valid_token(t) for t in tokens):
            log.debug("pattern can never match", pattern=pattern, tokens=tokens)
        nodes += _insert(root, tokens)
        used.append(pattern)

    log.debug("patterns compiled", patterns=len(used), skipped=len(skipped), nodes=nodes)
    return CompiledPatterns(
        root=root,
        patterns=tuple(used),
        skipped=tuple(skipped),
        node_count=nodes,
    )


def build_trie(patterns: Iterable[str]) -> TrieNode:
    """Return the root of the trie built from *patterns*.

    Blank patterns are ignored rather than marking the root terminal.
    """
    return compile_patterns(patterns).root
