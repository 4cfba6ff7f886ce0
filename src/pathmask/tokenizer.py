"""Path pattern tokenizer.

Turns a dotted path pattern into the ordered list of segment tokens used
as trie keys::

    >>> tokenize_path("orders[0].customer.email")
    ['orders', '[0]', 'customer', 'email']
    >>> tokenize_path("contacts[*].email")
    ['contacts', '[*]', 'email']
    >>> tokenize_path("payments.*.cardNumber")
    ['payments', '*', 'cardNumber']

Supported segments:

- a literal property name;
- ``*`` -- any property name (and any index when walking a sequence);
- ``[]`` / ``[*]`` -- any sequence index;
- ``[N]`` -- the sequence index *N* (non-negative decimal).

There is no escaping: ``.`` can never appear inside a property name.
"""

from __future__ import annotations

import re

ANY_KEY = "*"
ANY_INDEX_TOKENS: tuple[str, ...] = ("[]", "[*]")

_NAME_RE = re.compile(r"^[^\[]+")
_BRACKET_RE = re.compile(r"\[[^\]]*\]")
_INDEX_RE = re.compile(r"^\[(0|[1-9]\d*)\]$")


def tokenize_path(pattern: str) -> list[str]:
    """Split *pattern* into segment tokens.

    Returns an empty list for blank patterns and for anything that is not
    a string.
    """
    if not isinstance(pattern, str):
        return []

    tokens: list[str] = []
    for part in pattern.split("."):
        part = part.strip()
        if not part:
            continue
        name = _NAME_RE.match(part)
        if name:
            tokens.append(name.group(0))
        tokens.extend(_BRACKET_RE.findall(part))
    return tokens


def index_token(index: int) -> str:
    """Return the exact-index token for *index* (``3`` -> ``"[3]"``)."""
    return f"[{index}]"


def is_index_token(token: str) -> bool:
    """Return ``True`` if *token* addresses one specific sequence index."""
    return _INDEX_RE.match(token) is not None


def is_valid_token(token: str) -> bool:
    """Return ``True`` if *token* can ever match during traversal.

    Bracket tokens other than ``[]``, ``[*]`` and ``[N]`` (e.g. ``[-1]`` or
    ``[foo]``) are accepted by the tokenizer but never match anything.
    """
    if not token.startswith("["):
        return True
    return token in ANY_INDEX_TOKENS or is_index_token(token)
