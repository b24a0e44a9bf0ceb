"""Numeric coercion helpers for the financial model engine.

Every raw value that enters the engine passes through these helpers once,
at sanitization time. Downstream code can then assume finite floats.
"""

from __future__ import annotations

import math
from typing import Any


def safe_number(value: Any, fallback: float = 0.0) -> float:
    """Coerce a value to a finite float.

    Accepts ints, floats, Decimals and numeric strings (the persisted
    record stores decimals as strings). Booleans, None, blanks and anything
    non-numeric or non-finite fall back.

    Args:
        value: Raw value from an assumptions record.
        fallback: Value returned when coercion fails.

    Returns:
        A finite float.
    """
    if value is None or isinstance(value, bool):
        return float(fallback)

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return float(fallback)

    try:
        num = float(value)
    except (TypeError, ValueError, OverflowError):
        return float(fallback)

    if not math.isfinite(num):
        return float(fallback)
    return num


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def round_half_up(value: float) -> float:
    """Round to the nearest integer unit, ties toward +infinity.

    This is the rounding rule of the projection schedule: 2.5 -> 3 and
    -2.5 -> -2. Python's round() uses banker's rounding and would drift
    from the reference figures on exact halves.
    """
    if not math.isfinite(value):
        return 0.0
    return float(math.floor(value + 0.5))


def finite_or_zero(value: float) -> float:
    """Collapse NaN and +/-inf to 0."""
    return value if math.isfinite(value) else 0.0


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0 for a zero denominator or a non-finite result."""
    if denominator == 0:
        return 0.0
    return finite_or_zero(numerator / denominator)
