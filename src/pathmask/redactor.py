"""Path-pattern redaction engine.

Walks a decoded record in lock-step with a *frontier*: the set of trie
nodes that are active at the current position.  At every child the next
frontier is computed from the active nodes; an empty frontier means no
pattern reaches that child and it is left alone, a terminal node in the
frontier means the child is replaced with the placeholder, anything else
means the walk continues below it.

Example::

    >>> redactor = PathPatternRedactor(["contacts[].email", "payments.*.cardNumber"])
    >>> redactor.redact({"contacts": [{"email": "a@a.com", "phone": "1"}]})
    {'contacts': [{'email': '<redacted>', 'phone': '1'}]}

The engine never raises for blank or malformed patterns, unmatched
patterns, scalar or ``None`` roots, empty containers or cyclic input.
At worst a value is not redacted: a container that refuses the
placeholder (``array.array`` of ints, for one) keeps its value and the
refusal is logged at DEBUG.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any, TypeVar

import structlog

from pathmask.tokenizer import ANY_INDEX_TOKENS, ANY_KEY, index_token
from pathmask.tree import NodeKind, classify, clone_tree, rebuild_tuple
from pathmask.trie import CompiledPatterns, TrieNode, compile_patterns

T = TypeVar("T")

DEFAULT_PLACEHOLDER = "<redacted>"

Frontier = tuple[TrieNode, ...]

log = structlog.get_logger(__name__)


def _dedupe(nodes: list[TrieNode]) -> Frontier:
    if len(nodes) <= 1:
        return tuple(nodes)
    return tuple(dict.fromkeys(nodes))


def _next_for_key(frontier: Frontier, key: Any) -> Frontier:
    nodes: list[TrieNode] = []
    for node in frontier:
        if isinstance(key, str):
            exact = node.children.get(key)
            if exact is not None:
                nodes.append(exact)
        star = node.children.get(ANY_KEY)
        if star is not None:
            nodes.append(star)
    return _dedupe(nodes)


def _next_for_index(frontier: Frontier, index: int) -> Frontier:
    token = index_token(index)
    nodes: list[TrieNode] = []
    for node in frontier:
        exact = node.children.get(token)
        if exact is not None:
            nodes.append(exact)
        for any_index in ANY_INDEX_TOKENS:
            child = node.children.get(any_index)
            if child is not None:
                nodes.append(child)
        # "*" also matches any index when the container is a sequence.
        star = node.children.get(ANY_KEY)
        if star is not None:
            nodes.append(star)
    return _dedupe(nodes)


class _Walk:
    """State of one redaction call: the visited set and the work stack."""

    def __init__(self, placeholder: Any) -> None:
        self._placeholder = placeholder
        self._seen: set[int] = set()
        self._stack: list[tuple[Any, Frontier]] = []

    def run(self, tree: Any, root: TrieNode) -> Any:
        tree = self._visit(tree, (root,))
        while self._stack:
            node, frontier = self._stack.pop()
            self._visit(node, frontier)
        return tree

    def _visit(self, node: Any, frontier: Frontier) -> Any:
        """Expand *node* and return the value its parent should hold.

        That is *node* itself, except for a tuple with a redacted element,
        which comes back rebuilt.
        """
        kind = classify(node)
        if kind is NodeKind.SCALAR or id(node) in self._seen:
            return node
        self._seen.add(id(node))

        if kind is NodeKind.MAPPING:
            slots = [(key, child, _next_for_key(frontier, key)) for key, child in node.items()]
        else:
            slots = [(i, child, _next_for_index(frontier, i)) for i, child in enumerate(node)]

        target = list(node) if kind is NodeKind.TUPLE else node
        changed = False
        descend: list[tuple[Any, Frontier]] = []
        for slot, child, nxt in slots:
            if not nxt:
                continue
            if any(n.terminal for n in nxt):
                value = self._placeholder
            elif classify(child) is NodeKind.TUPLE:
                value = self._visit(child, nxt)
                if value is child:
                    continue
            else:
                descend.append((child, nxt))
                continue
            changed = self._write(target, slot, value) or changed
        # Reversed so children are expanded in document order.
        self._stack.extend(reversed(descend))

        if kind is NodeKind.TUPLE and changed:
            return rebuild_tuple(node, target)
        return node

    @staticmethod
    def _write(container: Any, slot: Any, value: Any) -> bool:
        try:
            container[slot] = value
        except (TypeError, ValueError) as exc:
            # e.g. array.array only holds numbers
            log.debug(
                "value could not be redacted",
                container=type(container).__name__,
                slot=slot,
                error=str(exc),
            )
            return False
        return True


class PathPatternRedactor:
    """Redact every value reached by any of *patterns*.

    The trie is compiled once in the constructor; :meth:`redact` only
    reads it, so one instance can serve many calls and threads.

    Parameters
    ----------
    patterns:
        Path patterns such as ``"orders[0].customer.email"``.  A single
        string is treated as a one-element list.
    placeholder:
        Value written in place of every redacted field.
    """

    def __init__(
        self,
        patterns: Iterable[str] | str,
        placeholder: Any = DEFAULT_PLACEHOLDER,
    ) -> None:
        if isinstance(patterns, str):
            patterns = [patterns]
        self._compiled: CompiledPatterns = compile_patterns(patterns)
        self._placeholder = placeholder

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._compiled.patterns

    @property
    def placeholder(self) -> Any:
        return self._placeholder

    @property
    def trie(self) -> TrieNode:
        return self._compiled.root

    def redact(self, tree: T, *, mutate: bool = False) -> T:
        """Return *tree* with matching values replaced by the placeholder.

        With ``mutate=False`` (the default) the input is deep-copied first
        and left untouched; cycles and shared references in the input are
        reproduced in the copy.  With ``mutate=True`` the input itself is
        modified and returned; a tuple root with a redacted element is the
        one case where a new object comes back.
        """
        out = tree if mutate else clone_tree(tree)
        if self._compiled.is_empty:
            return out
        return _Walk(self._placeholder).run(out, self._compiled.root)  # type: ignore[no-any-return]

    def __repr__(self) -> str:
        return f"PathPatternRedactor(patterns={list(self.patterns)!r}, placeholder={self._placeholder!r})"


def redact(
    tree: T,
    patterns: Iterable[str] | str,
    placeholder: Any = DEFAULT_PLACEHOLDER,
    *,
    mutate: bool = False,
) -> T:
    """One-shot form of :meth:`PathPatternRedactor.redact`."""
    return PathPatternRedactor(patterns, placeholder).redact(tree, mutate=mutate)
