"""Ordered key/value pairs for query parameters and headers.

A pair carries a key and a tuple of candidate values. Only the last candidate
is sent; earlier candidates are kept so that callers can pass defaults first
and overrides after them (``.query("page", default, override)``).

Values that convert to ``""``, ``"0"`` or ``"false"`` are omitted from the
outgoing request entirely. This lets callers write
``.query("limit", limit)`` without first checking whether ``limit`` is set.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Union

PairValue = Union[str, int, bool, bytes, bytearray]

# Converted values that cause a pair to be left out of the request.
OMITTED_VALUES = frozenset({"", "0", "false"})

# RFC 7230 token characters, the only ones allowed in a header field name.
_TOKEN_CHARS = frozenset(
    "!#$%&'*+-.^_`|~0123456789abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ"
)


def canonical_header_key(key: str) -> str:
    """Canonicalize a header name: ``content-type`` -> ``Content-Type``.

    The first letter and any letter following a hyphen are upper-cased, the
    rest lower-cased. Keys containing a space or other non-token character
    are returned unchanged.
    """
    if not key or any(c not in _TOKEN_CHARS for c in key):
        return key
    chars = []
    upper = True
    for c in key:
        chars.append(c.upper() if upper else c.lower())
        upper = c == "-"
    return "".join(chars)


def format_value(value: PairValue) -> str:
    """Convert one candidate value to its wire string.

    Raises:
        TypeError: If *value* is not str, int, bool or bytes.
    """
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    raise TypeError(
        f"unsupported pair value type {type(value).__name__}; "
        f"expected str, int, bool or bytes"
    )


@dataclass(frozen=True)
class Pair:
    """One query parameter or header entry."""

    key: str
    values: tuple[PairValue, ...] = ()

    def effective_value(self) -> str:
        """Return the last candidate as a string, or "" when there is none."""
        if not self.values:
            return ""
        return format_value(self.values[-1])

    @property
    def omitted(self) -> bool:
        return self.effective_value() in OMITTED_VALUES


class PairList:
    """Immutable, ordered list of pairs. Keys may repeat.

    ``add`` returns a new list; the original is left untouched so that
    builders sharing a prefix of pairs never see each other's additions.
    """

    __slots__ = ("_pairs",)

    def __init__(self, pairs: tuple[Pair, ...] = ()) -> None:
        self._pairs = tuple(pairs)

    def add(self, key: str, *values: PairValue) -> PairList:
        """Return a new list with ``(key, values)`` appended.

        Raises:
            TypeError: If any value is outside the accepted kinds.
        """
        for value in values:
            format_value(value)
        # Freeze mutable buffers so later caller writes cannot leak in.
        frozen = tuple(bytes(v) if isinstance(v, bytearray) else v for v in values)
        return PairList(self._pairs + (Pair(key, frozen),))

    def inject(self, into: dict[str, list[str]]) -> dict[str, list[str]]:
        """Append each non-omitted pair's value to *into* under its key.

        Existing values under a key are kept; new values are appended in
        pair order. Returns *into* for chaining.
        """
        for pair in self._pairs:
            if pair.omitted:
                continue
            into.setdefault(pair.key, []).append(pair.effective_value())
        return into

    def __iter__(self) -> Iterator[Pair]:
        return iter(self._pairs)

    def __len__(self) -> int:
        return len(self._pairs)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PairList):
            return NotImplemented
        return self._pairs == other._pairs

    def __hash__(self) -> int:
        return hash(self._pairs)

    def __repr__(self) -> str:
        return f"PairList({list(self._pairs)!r})"
