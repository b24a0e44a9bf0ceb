"""
Spreadsheet view of a model run.

Renders projections and the valuation as grid-of-cells sheets for
tabular display. Cell values are copied from the computed results;
the formula text is descriptive only.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection

NumberFormat = Literal["currency", "percent", "number", "text"]
Align = Literal["left", "center", "right"]


@dataclass(frozen=True)
class CellFormat:
    """Display hints for a cell."""

    number_format: NumberFormat = "number"
    decimals: int | None = None
    align: Align = "right"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        result: dict[str, Any] = {"numberFormat": self.number_format, "align": self.align}
        if self.decimals is not None:
            result["decimals"] = self.decimals
        return result


CURRENCY = CellFormat("currency", 0, "right")
PERCENT = CellFormat("percent", 1, "right")
FACTOR = CellFormat("number", 4, "right")
MULTIPLE = CellFormat("number", 1, "right")
TEXT_LEFT = CellFormat("text", None, "left")
TEXT_RIGHT = CellFormat("text", None, "right")


@dataclass(frozen=True)
class SpreadsheetCell:
    """A single cell."""

    value: float | str
    format: CellFormat = field(default_factory=CellFormat)
    formula: str | None = None
    editable: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        result: dict[str, Any] = {"value": self.value, "format": self.format.to_dict()}
        if self.formula is not None:
            result["formula"] = self.formula
        if self.editable:
            result["editable"] = True
        return result


@dataclass(frozen=True)
class SpreadsheetRow:
    """A labelled row of cells."""

    label: str
    cells: tuple[SpreadsheetCell, ...]
    is_header: bool = False
    is_summary: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "label": self.label,
            "cells": [c.to_dict() for c in self.cells],
            "isHeader": self.is_header,
            "isSummary": self.is_summary,
        }


@dataclass(frozen=True)
class SpreadsheetSheet:
    """A titled sheet of rows."""

    id: str
    title: str
    column_headers: tuple[str, ...]
    rows: tuple[SpreadsheetRow, ...]

    def row(self, label: str) -> SpreadsheetRow:
        """Find a row by label.

        Raises:
            KeyError: If no row has that label.
        """
        for row in self.rows:
            if row.label == label:
                return row
        raise KeyError(label)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "id": self.id,
            "title": self.title,
            "columnHeaders": list(self.column_headers),
            "rows": [r.to_dict() for r in self.rows],
        }


def _num(value: float) -> str:
    return f"{value:g}"


class SpreadsheetBuilder:
    """Builds the five model sheets."""

    def build(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
        valuation: ValuationOutput,
    ) -> list[SpreadsheetSheet]:
        """Build income statement, NWC, capex, UFCF and DCF sheets.

        Args:
            assumptions: Sanitized assumptions or a raw record.
            projections: Projected years. The valuation's discounted
                copies are preferred when present.
            valuation: DCF output for the same projections.

        Returns:
            Sheets in display order.
        """
        a = ModelAssumptions.from_record(assumptions)
        years = list(valuation.projections) or list(projections)
        headers = ("Metric", *(f"Year {p.year}" for p in years))

        return [
            SpreadsheetSheet("income-statement", "Income Statement", headers, self._income(a, years)),
            SpreadsheetSheet("nwc-schedule", "Working Capital", headers, self._nwc(a, years)),
            SpreadsheetSheet("capex-schedule", "CapEx Schedule", headers, self._capex(a, years)),
            SpreadsheetSheet("ufcf-schedule", "Unlevered FCF", headers, self._ufcf(a, years, valuation)),
            SpreadsheetSheet(
                "dcf-valuation",
                "DCF Valuation",
                ("Component", "Value", "Formula"),
                self._dcf(a, years, valuation),
            ),
        ]

    def _year_row(
        self,
        label: str,
        years: Sequence[YearProjection],
        value: Callable[[YearProjection], float],
        fmt: CellFormat = CURRENCY,
        formula: str | Callable[[YearProjection], str] | None = None,
        summary: bool = False,
        editable: bool = False,
    ) -> SpreadsheetRow:
        cells = tuple(
            SpreadsheetCell(
                value=value(p),
                format=fmt,
                formula=formula(p) if callable(formula) else formula,
                editable=editable,
            )
            for p in years
        )
        return SpreadsheetRow(label, cells, is_summary=summary)

    def _income(self, a: ModelAssumptions, years: Sequence[YearProjection]) -> tuple[SpreadsheetRow, ...]:
        return (
            self._year_row("Revenue", years, lambda p: p.revenue, formula="Input", editable=True),
            self._year_row("Revenue Growth", years, lambda p: p.revenue_growth, PERCENT),
            self._year_row("COGS", years, lambda p: p.cogs, formula=f"Revenue × {_num(a.cogs_margin)}%"),
            self._year_row("Gross Profit", years, lambda p: p.gross_profit, formula="Revenue - COGS", summary=True),
            self._year_row("Operating Expenses", years, lambda p: p.opex, formula=f"Revenue × {_num(a.opex_margin)}%"),
            self._year_row("EBITDA", years, lambda p: p.ebitda, formula="Gross Profit - OpEx", summary=True),
            self._year_row("EBITDA Margin", years, lambda p: p.ebitda_margin, PERCENT),
            self._year_row("D&A", years, lambda p: p.da, formula=f"Revenue × {_num(a.da_margin)}%"),
            self._year_row("EBIT", years, lambda p: p.ebit, formula="EBITDA - D&A", summary=True),
            self._year_row("Interest Expense", years, lambda p: p.interest),
            self._year_row("EBT", years, lambda p: p.ebt),
            self._year_row("Taxes", years, lambda p: p.tax, formula=f"EBT × {_num(a.tax_rate)}%"),
            self._year_row("Net Income", years, lambda p: p.net_income, formula="EBT - Taxes", summary=True),
            self._year_row("Net Margin", years, lambda p: p.net_margin, PERCENT),
        )

    def _nwc(self, a: ModelAssumptions, years: Sequence[YearProjection]) -> tuple[SpreadsheetRow, ...]:
        return (
            self._year_row(
                "Accounts Receivable",
                years,
                lambda p: p.accounts_receivable,
                formula=f"(Revenue / 365) × {_num(a.ar_days)} days",
            ),
            self._year_row(
                "Inventory",
                years,
                lambda p: p.inventory,
                formula=f"(COGS / 365) × {_num(a.inventory_days)} days",
            ),
            self._year_row(
                "Accounts Payable",
                years,
                lambda p: p.accounts_payable,
                formula=f"(COGS / 365) × {_num(a.ap_days)} days",
            ),
            self._year_row(
                "Net Working Capital",
                years,
                lambda p: p.net_working_capital,
                formula="A/R + Inventory - A/P",
                summary=True,
            ),
            self._year_row(
                "Change in NWC",
                years,
                lambda p: p.change_in_nwc,
                formula="NWCₙ - NWCₙ₋₁",
                summary=True,
            ),
        )

    def _capex(self, a: ModelAssumptions, years: Sequence[YearProjection]) -> tuple[SpreadsheetRow, ...]:
        return (
            self._year_row(
                "Maintenance CapEx",
                years,
                lambda p: p.maintenance_capex,
                formula=f"Revenue × {_num(a.maintenance_capex_percent)}%",
            ),
            self._year_row("Growth CapEx", years, lambda p: p.growth_capex, formula="Total CapEx - Maintenance"),
            self._year_row(
                "Total CapEx",
                years,
                lambda p: p.capex,
                formula=f"Revenue × {_num(a.capex_percent)}%",
                summary=True,
            ),
        )

    def _ufcf(
        self,
        a: ModelAssumptions,
        years: Sequence[YearProjection],
        valuation: ValuationOutput,
    ) -> tuple[SpreadsheetRow, ...]:
        periods = dict(zip((p.year for p in years), valuation.discount_periods))
        convention = "Mid-Year" if a.use_mid_year_convention else "End-of-Year"

        return (
            self._year_row("EBIT", years, lambda p: p.ebit),
            self._year_row(
                "Less: Taxes on EBIT",
                years,
                lambda p: p.ebit - p.nopat,
                formula=f"EBIT × {_num(a.tax_rate)}%",
            ),
            self._year_row("NOPAT (EBIAT)", years, lambda p: p.nopat, formula="EBIT × (1 - Tax Rate)", summary=True),
            self._year_row("Add: D&A", years, lambda p: p.da),
            self._year_row("Less: ΔNet Working Capital", years, lambda p: p.change_in_nwc),
            self._year_row("Less: CapEx", years, lambda p: p.capex),
            self._year_row(
                "Unlevered Free Cash Flow",
                years,
                lambda p: p.ufcf,
                formula="NOPAT + D&A - ΔNWC - CapEx",
                summary=True,
            ),
            self._year_row(
                f"Discount Factor ({convention})",
                years,
                lambda p: p.discount_factor,
                FACTOR,
                formula=lambda p: f"1 / (1 + {_num(valuation.discount_rate)}%)^{_num(periods.get(p.year, 0.0))}",
            ),
            self._year_row(
                "PV of UFCF",
                years,
                lambda p: p.pv_of_fcf,
                formula="UFCF × Discount Factor",
                summary=True,
            ),
        )

    def _dcf(
        self,
        a: ModelAssumptions,
        years: Sequence[YearProjection],
        v: ValuationOutput,
    ) -> tuple[SpreadsheetRow, ...]:
        n = years[-1].year if years else 0

        def row(label: str, value: SpreadsheetCell, note: str, summary: bool = False) -> SpreadsheetRow:
            return SpreadsheetRow(label, (value, SpreadsheetCell(note, TEXT_LEFT)), is_summary=summary)

        def money(value: float) -> SpreadsheetCell:
            return SpreadsheetCell(value, CURRENCY)

        return (
            row("Sum of PV of UFCF", money(v.sum_pv_fcf), "Σ(PV of UFCF)"),
            row("Terminal Value (Gordon Growth)", money(v.terminal_value_gordon), f"UFCF{n} × (1+g) / (WACC-g)"),
            row(
                "Terminal Value (Exit Multiple)",
                money(v.terminal_value_exit_multiple),
                f"EBITDA{n} × {_num(a.exit_multiple)}x",
            ),
            row(
                "PV of Terminal Value",
                money(v.pv_of_terminal_value),
                f"TV / (1+WACC)^{_num(v.terminal_discount_period)}",
            ),
            row("Enterprise Value", money(v.enterprise_value), "Sum PV UFCF + PV of TV", summary=True),
            row("Less: Total Debt", money(a.debt_balance), "From Capital Structure"),
            row("Add: Cash", money(a.cash_balance), "From Capital Structure"),
            row("Net Debt", money(v.net_debt), "Debt - Cash"),
            row("Equity Value", money(v.equity_value), "EV - Net Debt", summary=True),
            row(
                "Shares Outstanding",
                SpreadsheetCell(f"{v.shares_outstanding:,.0f}", TEXT_RIGHT),
                "Diluted shares",
            ),
            row(
                "Equity Value per Share",
                money(v.equity_value_per_share),
                "Equity Value / Shares",
                summary=True,
            ),
            row(
                "Implied EV/EBITDA",
                SpreadsheetCell(v.implied_multiple, MULTIPLE),
                f"EV / Year {n} EBITDA",
            ),
        )


def generate_spreadsheet_data(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
    valuation: ValuationOutput,
) -> list[SpreadsheetSheet]:
    """Convenience wrapper around SpreadsheetBuilder.build."""
    return SpreadsheetBuilder().build(assumptions, projections, valuation)
