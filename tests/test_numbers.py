"""Tests for numeric coercion helpers."""

from __future__ import annotations

from decimal import Decimal

import pytest

from bottomline.utils.numbers import (
    clamp,
    finite_or_zero,
    round_half_up,
    safe_divide,
    safe_number,
)


class TestSafeNumber:
    """Tests for safe_number."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5.0),
            (2.5, 2.5),
            ("12.50", 12.5),
            (" 7 ", 7.0),
            (Decimal("3.25"), 3.25),
            ("-4", -4.0),
        ],
    )
    def test_numeric_values(self, value: object, expected: float) -> None:
        """Test values that coerce."""
        assert safe_number(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "abc", True, False, float("nan"), float("inf"), "-inf", [1], {}],
    )
    def test_unusable_values(self, value: object) -> None:
        """Test values that fall back."""
        assert safe_number(value, 9.0) == 9.0


class TestRounding:
    """Tests for round_half_up."""

    @pytest.mark.parametrize(
        "value,expected",
        [(2.5, 3.0), (-2.5, -2.0), (0.5, 1.0), (1.4999, 1.0), (-0.6, -1.0), (123287.67, 123288.0)],
    )
    def test_half_up(self, value: float, expected: float) -> None:
        """Test that ties round toward positive infinity."""
        assert round_half_up(value) == expected

    def test_differs_from_bankers_rounding(self) -> None:
        """Test the case where round() would go to even."""
        assert round(2.5) == 2
        assert round_half_up(2.5) == 3

    def test_non_finite(self) -> None:
        """Test that non-finite input rounds to 0."""
        assert round_half_up(float("nan")) == 0
        assert round_half_up(float("inf")) == 0


class TestHelpers:
    """Tests for clamp, finite_or_zero and safe_divide."""

    def test_clamp(self) -> None:
        """Test clamping into a range."""
        assert clamp(150, 0, 100) == 100
        assert clamp(-5, 0, 100) == 0
        assert clamp(42, 0, 100) == 42

    def test_finite_or_zero(self) -> None:
        """Test collapsing non-finite values."""
        assert finite_or_zero(float("nan")) == 0
        assert finite_or_zero(float("-inf")) == 0
        assert finite_or_zero(-3.5) == -3.5

    def test_safe_divide(self) -> None:
        """Test division with a zero guard."""
        assert safe_divide(10, 4) == 2.5
        assert safe_divide(10, 0) == 0
        assert safe_divide(float("inf"), 1) == 0
