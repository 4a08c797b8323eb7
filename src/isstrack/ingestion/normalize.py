"""Normalization helpers.

Centralizes defensive parsing of upstream payload values.
"""

from __future__ import annotations

import math
from typing import Any


def strict_float(value: Any) -> float | None:
    """Return *value* as a float only when it already is a finite real number.

    Strings, booleans and non-finite floats are rejected: a position
    payload that carries them is malformed rather than coercible.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    result = float(value)
    if not math.isfinite(result):
        return None
    return result


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or value == "--":
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def missing_numeric_fields(payload: dict[str, Any], fields: tuple[str, ...]) -> tuple[str, ...]:
    """Names from *fields* that are absent or not strictly numeric in *payload*."""
    return tuple(name for name in fields if strict_float(payload.get(name)) is None)
