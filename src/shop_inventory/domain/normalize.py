from __future__ import annotations

import re
from typing import Any, Optional

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_count(value: Any, default: int = 0) -> int:
    """Coerce form/import input to a non-negative integer count.

    Mirrors lenient number inputs: "12" -> 12, "7 boxes" -> 7, "3.9" -> 3.
    Anything without a leading integer falls back to ``default``; negative
    values clamp to 0.
    """
    if isinstance(value, bool):
        parsed = int(value)
    elif isinstance(value, int):
        parsed = value
    elif isinstance(value, float):
        parsed = int(value) if value == value and abs(value) != float("inf") else default
    elif isinstance(value, str):
        m = _LEADING_INT.match(value)
        parsed = int(m.group(1)) if m else default
    else:
        parsed = default
    return max(0, parsed)


def clean_optional(value: Any) -> Optional[str]:
    """Return a stripped string or None for blank/missing optional fields."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


_TRUTHY = {"1", "true", "yes", "on"}


def coerce_flag(value: Any, default: bool = False) -> bool:
    """Strict boolean parse: real bools pass through, strings must spell true.

    "false", "0" and "" are False; None falls back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return default
