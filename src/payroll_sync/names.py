"""Employee name normalization and matching."""

from __future__ import annotations

import re
from collections.abc import Iterable

_APOSTROPHES = re.compile(r"['’`]")
_NON_WORD = re.compile(r"[^a-z0-9]+")


def normalize_name(value: str | None) -> str:
    """Canonical form used to compare names across systems.

    "Worde, John" and "John  O'Worde" style variants collapse to
    "john worde" / "john oworde": comma order is flipped, case folded,
    apostrophes dropped and other punctuation turned into single spaces.
    """
    if not value:
        return ""
    text = value.strip()
    if "," in text:
        last, _, first = text.partition(",")
        text = f"{first.strip()} {last.strip()}"
    text = _APOSTROPHES.sub("", text.lower())
    return _NON_WORD.sub(" ", text).strip()


def split_name(value: str | None) -> tuple[str, str]:
    """Return (first, last) tokens of a normalized name."""
    parts = normalize_name(value).split()
    if not parts:
        return "", ""
    return parts[0], parts[-1]


def names_match(a: str | None, b: str | None) -> bool:
    """Loose match: same last name and compatible first names.

    First names are compatible when one is a prefix of the other, which
    covers initials ("j worde") and short forms ("jon" / "jonathan").
    """
    first_a, last_a = split_name(a)
    first_b, last_b = split_name(b)
    if not last_a or last_a != last_b:
        return False
    return first_a.startswith(first_b) or first_b.startswith(first_a)


def find_unique_match(name: str, candidates: Iterable[str]) -> str | None:
    """Return the single candidate loosely matching ``name``, else None."""
    matches = [candidate for candidate in candidates if names_match(name, candidate)]
    if len(matches) == 1:
        return matches[0]
    return None
