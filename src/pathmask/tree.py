"""Shape of the trees the redactor walks.

Decoded JSON-like records are made of mappings, sequences and scalars.
:func:`classify` folds every Python value into exactly one
:class:`NodeKind` so the traversal can dispatch on a closed set instead of
probing types at each step.

Mutable mappings and sequences are redacted in place.  Tuples are walked
too, but since they cannot be written to, a tuple with a redacted element
is rebuilt and stored back into its parent.  Strings, bytes and any other
value are scalars and are never descended into.
"""

from __future__ import annotations

import copy
import enum
from collections.abc import MutableMapping, MutableSequence
from typing import Any, TypeVar

T = TypeVar("T")

_TEXT_TYPES = (str, bytes, bytearray)


class NodeKind(enum.Enum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    TUPLE = "tuple"


def classify(value: Any) -> NodeKind:
    """Return the :class:`NodeKind` of *value*."""
    if isinstance(value, MutableMapping):
        return NodeKind.MAPPING
    if isinstance(value, tuple):
        return NodeKind.TUPLE
    if isinstance(value, MutableSequence) and not isinstance(value, _TEXT_TYPES):
        return NodeKind.SEQUENCE
    return NodeKind.SCALAR


def is_composite(value: Any) -> bool:
    return classify(value) is not NodeKind.SCALAR


def rebuild_tuple(original: tuple[Any, ...], items: list[Any]) -> tuple[Any, ...]:
    """Return a tuple of the same type as *original* holding *items*."""
    if hasattr(original, "_fields"):
        # namedtuple constructors take positional fields
        return type(original)(*items)
    if type(original) is tuple:
        return tuple(items)
    return type(original)(items)


def clone_tree(value: T) -> T:
    """Deep-copy the composites of *value*, preserving sharing and cycles.

    Every distinct mapping, sequence or tuple is copied exactly once; a
    second reference to the same object (including a reference back to an
    ancestor) points at that single copy.  Scalars are shared with the
    input.
    """
    if not is_composite(value):
        return value

    memo: dict[int, Any] = {}
    pending: list[tuple[Any, Any]] = []

    def copy_of(node: Any) -> Any:
        found = memo.get(id(node))
        if found is not None:
            return found
        if classify(node) is NodeKind.TUPLE:
            # Mutable children come back as registered shells, so a cycle
            # through this tuple cannot reach it again before it exists.
            found = rebuild_tuple(node, [copy_of(c) if is_composite(c) else c for c in node])
        else:
            # Shallow copy keeps the concrete container type (dict
            # subclasses, OrderedDict, ...); children are overwritten below.
            found = copy.copy(node)
            pending.append((node, found))
        memo[id(node)] = found
        return found

    root = copy_of(value)

    while pending:
        src, dst = pending.pop()
        slots = src.items() if classify(src) is NodeKind.MAPPING else enumerate(src)
        for slot, child in list(slots):
            if is_composite(child):
                dst[slot] = copy_of(child)

    return root  # type: ignore[no-any-return]
