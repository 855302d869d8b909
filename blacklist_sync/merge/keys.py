"""Case-folding keys used to compare list entries."""
from __future__ import annotations

from typing import Iterable, Set


def _fold_char(char: str) -> str:
    upper = char.upper()
    # Multi-character expansions (e.g. "ß" -> "SS") are not ordinal mappings.
    return upper if len(upper) == 1 else char


def entry_key(value: str) -> str:
    """Return the ordinal, locale-independent case-insensitive key for an entry."""
    if value.isascii():
        return value.upper()
    return "".join(_fold_char(char) for char in value)


def key_set(entries: Iterable[str]) -> Set[str]:
    """Build the membership set for a sequence of entries."""
    return {entry_key(entry.strip()) for entry in entries}
