"""Shared parsing helpers for configuration and manifest value normalization."""

from __future__ import annotations

import math


def normalize_optional_string(value: object) -> str | None:
    """Normalize an optional value to a stripped non-empty string.

    Args:
        value: Arbitrary input value.

    Returns:
        Stripped string value, or `None` when the value is empty after trimming.
    """

    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    return text


def parse_optional_positive_int(value: object) -> int | None:
    """Parse a strictly positive integer, returning `None` for anything else.

    Booleans are rejected even though they are `int` subclasses, and floats are
    only accepted when they carry no fractional part (JSON `3.0`).
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, float):
        if value.is_integer() and value > 0:
            return int(value)
        return None
    normalized = normalize_optional_string(value)
    if normalized is None or not normalized.isdecimal():
        return None
    parsed = int(normalized)
    return parsed if parsed > 0 else None


def parse_positive_float(value: object, field_name: str) -> float:
    """Parse a required strictly positive, finite number.

    Args:
        value: Raw value from YAML or the environment.
        field_name: Field name for an actionable validation error message.

    Raises:
        ValueError: If the value is not a positive number.
    """

    message = f"`{field_name}` must be a positive number of seconds."
    if isinstance(value, bool):
        raise ValueError(message)
    try:
        parsed = float(str(value).strip())
    except ValueError as exc:
        raise ValueError(message) from exc
    if not math.isfinite(parsed) or parsed <= 0:
        raise ValueError(message)
    return parsed
