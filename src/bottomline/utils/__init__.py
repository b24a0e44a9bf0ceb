"""Utility modules for the financial model engine."""

from bottomline.utils.numbers import (
    clamp,
    finite_or_zero,
    round_half_up,
    safe_divide,
    safe_number,
)

__all__ = [
    "clamp",
    "finite_or_zero",
    "round_half_up",
    "safe_divide",
    "safe_number",
]
