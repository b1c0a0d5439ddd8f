"""Numeric-aware file name ordering helpers.

Responsibilities:
- Order import batches so `2.txt` sorts before `10.txt`.
- Compare case- and accent-insensitively, keeping submission order for ties.
"""

from __future__ import annotations

import re
import unicodedata

_DIGIT_RUN_RE = re.compile(r"(\d+)")


def _fold(value: str) -> str:
    """Remove case and diacritic differences from a comparison string."""

    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(
        character for character in decomposed if not unicodedata.combining(character)
    )
    return stripped.casefold()


def natural_sort_key(value: str) -> tuple[tuple[int, int, str], ...]:
    """Return a sort key that compares digit runs by numeric value.

    Digit runs sort before text at the same position, so `1 intro` comes before
    `a intro`.
    """

    parts = _DIGIT_RUN_RE.split(_fold(value))
    key: list[tuple[int, int, str]] = []
    for position, part in enumerate(parts):
        if not part:
            continue
        if position % 2:
            key.append((0, int(part), ""))
        else:
            key.append((1, 0, part))
    return tuple(key)
