"""
Breakdown Formatter.

Re-expresses computed projection and valuation figures as ordered audit
steps (Revenue, minus COGS, equals Gross Profit). Every value is copied
from the inputs; nothing is recalculated.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection

logger = get_logger(__name__)

Operator = Literal["=", "+", "-", "*", "/"]


@dataclass(frozen=True)
class BreakdownStep:
    """One line of a breakdown."""

    label: str
    value: float
    operator: Operator | None = None
    formula: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict, omitting empty operator/formula."""
        result: dict[str, Any] = {"label": self.label, "value": self.value}
        if self.operator is not None:
            result["operator"] = self.operator
        if self.formula is not None:
            result["formula"] = self.formula
        return result


@dataclass(frozen=True)
class MetricBreakdown:
    """Ordered steps that arrive at one metric."""

    metric_key: str
    metric_label: str
    final_value: float
    steps: tuple[BreakdownStep, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "metricKey": self.metric_key,
            "metricLabel": self.metric_label,
            "finalValue": self.final_value,
            "steps": [s.to_dict() for s in self.steps],
        }


@dataclass(frozen=True)
class YearBreakdowns:
    """Per-year breakdowns of the income statement and UFCF."""

    year: int
    gross_profit: MetricBreakdown
    ebitda: MetricBreakdown
    ebit: MetricBreakdown
    net_income: MetricBreakdown
    ufcf: MetricBreakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "year": self.year,
            "grossProfit": self.gross_profit.to_dict(),
            "ebitda": self.ebitda.to_dict(),
            "ebit": self.ebit.to_dict(),
            "netIncome": self.net_income.to_dict(),
            "ufcf": self.ufcf.to_dict(),
        }


@dataclass(frozen=True)
class ValuationBreakdown:
    """Breakdowns of the DCF bridge."""

    pv_of_fcf: MetricBreakdown
    terminal_value: MetricBreakdown
    enterprise_value: MetricBreakdown
    equity_value: MetricBreakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "pvOfFcf": self.pv_of_fcf.to_dict(),
            "terminalValue": self.terminal_value.to_dict(),
            "enterpriseValue": self.enterprise_value.to_dict(),
            "equityValue": self.equity_value.to_dict(),
        }


@dataclass(frozen=True)
class ModelBreakdowns:
    """All breakdowns for one model run."""

    yearly_breakdowns: tuple[YearBreakdowns, ...]
    valuation_breakdown: ValuationBreakdown

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "yearlyBreakdowns": [y.to_dict() for y in self.yearly_breakdowns],
            "valuationBreakdown": self.valuation_breakdown.to_dict(),
        }


def _pct(value: float) -> str:
    return f"{value:.1f}%"


def _period(value: float) -> str:
    return f"{value:g}"


class BreakdownFormatter:
    """Formats projections and valuation into audit breakdowns."""

    def format(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
        valuation: ValuationOutput,
    ) -> ModelBreakdowns:
        """Build yearly and valuation breakdowns.

        Args:
            assumptions: Sanitized assumptions or a raw record.
            projections: Projected years. The valuation's discounted
                copies are preferred when present.
            valuation: Output of the DCF engine for the same projections.

        Returns:
            ModelBreakdowns.
        """
        a = ModelAssumptions.from_record(assumptions)
        years = list(valuation.projections) or list(projections)
        logger.debug("Formatting breakdowns", years=len(years))

        return ModelBreakdowns(
            yearly_breakdowns=tuple(self._year(p) for p in years),
            valuation_breakdown=self._valuation(a, years, valuation),
        )

    def _year(self, p: YearProjection) -> YearBreakdowns:
        return YearBreakdowns(
            year=p.year,
            gross_profit=MetricBreakdown(
                metric_key="grossProfit",
                metric_label="Gross Profit",
                final_value=p.gross_profit,
                steps=(
                    BreakdownStep("Revenue", p.revenue, "="),
                    BreakdownStep("Cost of Goods Sold (COGS)", p.cogs, "-"),
                    BreakdownStep("Gross Profit", p.gross_profit, "="),
                ),
            ),
            ebitda=MetricBreakdown(
                metric_key="ebitda",
                metric_label="EBITDA",
                final_value=p.ebitda,
                steps=(
                    BreakdownStep("Gross Profit", p.gross_profit, "="),
                    BreakdownStep("Operating Expenses (OpEx)", p.opex, "-"),
                    BreakdownStep("EBITDA", p.ebitda, "="),
                ),
            ),
            ebit=MetricBreakdown(
                metric_key="ebit",
                metric_label="EBIT",
                final_value=p.ebit,
                steps=(
                    BreakdownStep("EBITDA", p.ebitda, "="),
                    BreakdownStep("Depreciation & Amortization", p.da, "-"),
                    BreakdownStep("EBIT", p.ebit, "="),
                ),
            ),
            net_income=MetricBreakdown(
                metric_key="netIncome",
                metric_label="Net Income",
                final_value=p.net_income,
                steps=(
                    BreakdownStep("EBIT", p.ebit, "="),
                    BreakdownStep("Interest Expense", p.interest, "-"),
                    BreakdownStep("EBT (Earnings Before Tax)", p.ebt, "="),
                    BreakdownStep("Taxes", p.tax, "-"),
                    BreakdownStep("Net Income", p.net_income, "="),
                ),
            ),
            ufcf=MetricBreakdown(
                metric_key="ufcf",
                metric_label="Unlevered Free Cash Flow (UFCF)",
                final_value=p.ufcf,
                steps=(
                    BreakdownStep("EBIT", p.ebit, "="),
                    BreakdownStep("Taxes on EBIT", p.ebit - p.nopat, "-"),
                    BreakdownStep("NOPAT (EBIAT)", p.nopat, "=", "EBIT × (1 - Tax Rate)"),
                    BreakdownStep("Depreciation & Amortization", p.da, "+"),
                    BreakdownStep(
                        "Change in Net Working Capital", p.change_in_nwc, "-", "A/R + Inv - A/P"
                    ),
                    BreakdownStep("Capital Expenditures", p.capex, "-"),
                    BreakdownStep(
                        "Unlevered Free Cash Flow", p.ufcf, "=", "NOPAT + D&A - ΔNWC - CapEx"
                    ),
                ),
            ),
        )

    def _valuation(
        self,
        a: ModelAssumptions,
        years: Sequence[YearProjection],
        valuation: ValuationOutput,
    ) -> ValuationBreakdown:
        wacc_pct = valuation.discount_rate
        growth_pct = a.terminal_growth_rate
        periods = valuation.discount_periods
        last_ufcf = years[-1].ufcf if years else 0.0
        last_label = f"Year {years[-1].year} UFCF" if years else "Final Year UFCF"

        pv_steps = tuple(
            BreakdownStep(
                f"Year {p.year} FCF PV",
                p.pv_of_fcf,
                "+",
                f"{p.ufcf:,.0f} / (1 + {_pct(wacc_pct)})^{_period(period)}",
            )
            for p, period in zip(years, periods)
        )

        return ValuationBreakdown(
            pv_of_fcf=MetricBreakdown(
                metric_key="pvOfFcf",
                metric_label="Present Value of FCF",
                final_value=valuation.sum_pv_fcf,
                steps=pv_steps,
            ),
            terminal_value=MetricBreakdown(
                metric_key="terminalValue",
                metric_label="Terminal Value",
                final_value=valuation.terminal_value,
                steps=(
                    BreakdownStep(last_label, last_ufcf, "="),
                    BreakdownStep("Terminal Growth Rate", growth_pct, None, _pct(growth_pct)),
                    BreakdownStep("WACC", wacc_pct, None, _pct(wacc_pct)),
                    BreakdownStep(
                        "Terminal Value",
                        valuation.terminal_value,
                        "=",
                        "FCF × (1 + g) / (WACC - g)",
                    ),
                ),
            ),
            enterprise_value=MetricBreakdown(
                metric_key="enterpriseValue",
                metric_label="Enterprise Value",
                final_value=valuation.enterprise_value,
                steps=(
                    BreakdownStep("Sum of PV of FCF", valuation.sum_pv_fcf, "="),
                    BreakdownStep(
                        "PV of Terminal Value",
                        valuation.pv_of_terminal_value,
                        "+",
                        f"TV / (1 + WACC)^{_period(valuation.terminal_discount_period)}",
                    ),
                    BreakdownStep("Enterprise Value", valuation.enterprise_value, "="),
                ),
            ),
            equity_value=MetricBreakdown(
                metric_key="equityValue",
                metric_label="Equity Value",
                final_value=valuation.equity_value,
                steps=(
                    BreakdownStep("Enterprise Value", valuation.enterprise_value, "="),
                    BreakdownStep("Less: Net Debt", valuation.net_debt, "-"),
                    BreakdownStep("Equity Value", valuation.equity_value, "="),
                ),
            ),
        )


def calculate_breakdowns(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
    valuation: ValuationOutput,
) -> ModelBreakdowns:
    """Convenience wrapper around BreakdownFormatter.format."""
    return BreakdownFormatter().format(assumptions, projections, valuation)
