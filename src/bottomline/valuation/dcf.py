"""
Deterministic DCF (Discounted Cash Flow) Engine.

Discounts the projected unlevered free cash flows and a Gordon growth
terminal value back to an enterprise value, then bridges to equity.
The exit-multiple terminal value is reported alongside for comparison.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection
from bottomline.utils.numbers import finite_or_zero, safe_divide

logger = get_logger(__name__)

WACC_FLOOR = 0.01
# Minimum spread between WACC and terminal growth for a Gordon value
MIN_GORDON_SPREAD = 0.001


def discount_factor_at(rate: float, period: float) -> float:
    """1 / (1 + rate)^period, or 0 once the power overflows a float."""
    try:
        return finite_or_zero(1 / (1 + rate) ** period)
    except OverflowError:
        return 0.0


class DCFEngine:
    """Deterministic DCF valuation engine.

    Uses the mid-year convention unless the assumptions turn it off.
    Input projections are never mutated; the result carries discounted
    copies.
    """

    def __init__(self) -> None:
        """Initialize the DCF engine."""
        pass

    def discount_periods(
        self,
        count: int,
        mid_year: bool,
    ) -> tuple[list[float], float]:
        """Discount periods for each projected year and for the terminal value.

        Args:
            count: Number of projected years.
            mid_year: Whether to use the mid-year convention.

        Returns:
            Tuple of (per-year periods, terminal period).
        """
        if mid_year:
            return [i + 0.5 for i in range(count)], count - 0.5
        return [float(i + 1) for i in range(count)], float(count)

    def calculate_valuation(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
    ) -> ValuationOutput:
        """Calculate the DCF valuation.

        Args:
            assumptions: Sanitized assumptions or a raw assumptions record.
            projections: Projected years from the Projection Builder.

        Returns:
            ValuationOutput with discounted projection copies.
        """
        a = ModelAssumptions.from_record(assumptions)
        if not projections:
            logger.debug("No projections to value")
            return ValuationOutput()

        discount_rate = max(WACC_FLOOR * 100, a.wacc)
        wacc = discount_rate / 100
        terminal_growth = a.terminal_growth_rate / 100
        periods, terminal_period = self.discount_periods(
            len(projections), a.use_mid_year_convention
        )
        logger.debug(
            "Calculating valuation",
            wacc=wacc,
            terminal_growth=terminal_growth,
            mid_year=a.use_mid_year_convention,
        )

        discounted: list[YearProjection] = []
        sum_pv_fcf = 0.0
        for projection, period in zip(projections, periods):
            discount_factor = discount_factor_at(wacc, period)
            pv_of_fcf = finite_or_zero(projection.ufcf * discount_factor)
            discounted.append(
                replace(
                    projection,
                    fcf=projection.ufcf,
                    discount_factor=discount_factor,
                    pv_of_fcf=pv_of_fcf,
                )
            )
            sum_pv_fcf += pv_of_fcf

        final = projections[-1]

        # Terminal value using Gordon Growth Model
        terminal_value_gordon = 0.0
        if wacc - terminal_growth > MIN_GORDON_SPREAD:
            terminal_value_gordon = finite_or_zero(
                final.ufcf * (1 + terminal_growth) / (wacc - terminal_growth)
            )
        else:
            logger.warning(
                "Terminal growth too close to WACC, Gordon value set to 0",
                wacc=wacc,
                terminal_growth=terminal_growth,
            )

        terminal_value_exit = finite_or_zero(final.ebitda * a.exit_multiple)

        pv_of_terminal_value = finite_or_zero(
            terminal_value_gordon * discount_factor_at(wacc, terminal_period)
        )
        enterprise_value = finite_or_zero(sum_pv_fcf + pv_of_terminal_value)

        net_debt = finite_or_zero(a.debt_balance - a.cash_balance)
        equity_value = finite_or_zero(enterprise_value - net_debt)
        equity_value_per_share = (
            safe_divide(equity_value, a.shares_outstanding)
            if a.shares_outstanding > 0
            else 0.0
        )

        return ValuationOutput(
            enterprise_value=enterprise_value,
            equity_value=equity_value,
            terminal_value=terminal_value_gordon,
            implied_multiple=safe_divide(enterprise_value, final.ebitda),
            terminal_value_gordon=terminal_value_gordon,
            terminal_value_exit_multiple=terminal_value_exit,
            sum_pv_fcf=finite_or_zero(sum_pv_fcf),
            pv_of_terminal_value=pv_of_terminal_value,
            net_debt=net_debt,
            equity_value_per_share=equity_value_per_share,
            shares_outstanding=a.shares_outstanding,
            discount_rate=discount_rate,
            projections=tuple(discounted),
            discount_periods=tuple(periods),
            terminal_discount_period=terminal_period,
        )


def calculate_valuation(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
) -> ValuationOutput:
    """Convenience wrapper around DCFEngine.calculate_valuation."""
    return DCFEngine().calculate_valuation(assumptions, projections)
