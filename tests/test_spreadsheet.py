"""Tests for the spreadsheet view."""

from __future__ import annotations

import pytest

from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection
from bottomline.valuation.dcf import calculate_valuation
from bottomline.valuation.projections import build_projections
from bottomline.valuation.spreadsheet import SpreadsheetSheet, generate_spreadsheet_data


@pytest.fixture
def sheets(
    assumptions: ModelAssumptions,
    projections: list[YearProjection],
    valuation: ValuationOutput,
) -> dict[str, SpreadsheetSheet]:
    """Provide the base model sheets keyed by id."""
    return {s.id: s for s in generate_spreadsheet_data(assumptions, projections, valuation)}


class TestSheets:
    """Tests for sheet layout."""

    def test_sheet_order(
        self,
        assumptions: ModelAssumptions,
        projections: list[YearProjection],
        valuation: ValuationOutput,
    ) -> None:
        """Test that the five sheets come in display order."""
        ids = [s.id for s in generate_spreadsheet_data(assumptions, projections, valuation)]

        assert ids == [
            "income-statement",
            "nwc-schedule",
            "capex-schedule",
            "ufcf-schedule",
            "dcf-valuation",
        ]

    def test_year_headers(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test metric and year column headers."""
        assert sheets["income-statement"].column_headers == (
            "Metric",
            "Year 1",
            "Year 2",
            "Year 3",
            "Year 4",
            "Year 5",
        )
        assert sheets["dcf-valuation"].column_headers == ("Component", "Value", "Formula")

    def test_row_lookup(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test finding rows by label."""
        income = sheets["income-statement"]

        assert income.row("EBITDA").is_summary
        with pytest.raises(KeyError):
            income.row("Free Lunch")


class TestIncomeStatement:
    """Tests for the income statement sheet."""

    def test_values_copied(self, sheets: dict[str, SpreadsheetSheet], projections: list[YearProjection]) -> None:
        """Test that cell values come straight from projections."""
        income = sheets["income-statement"]

        assert [c.value for c in income.row("Revenue").cells] == [p.revenue for p in projections]
        assert [c.value for c in income.row("Net Income").cells] == [p.net_income for p in projections]

    def test_revenue_editable(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test that revenue is the only input row."""
        revenue = sheets["income-statement"].row("Revenue")

        assert all(c.editable for c in revenue.cells)
        assert revenue.cells[0].formula == "Input"
        assert not any(c.editable for c in sheets["income-statement"].row("COGS").cells)

    def test_formulas_show_assumptions(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test descriptive formula text."""
        income = sheets["income-statement"]

        assert income.row("COGS").cells[0].formula == "Revenue × 40%"
        assert income.row("Taxes").cells[0].formula == "EBT × 21%"
        assert income.row("Revenue Growth").cells[0].format.number_format == "percent"


class TestSchedules:
    """Tests for the NWC, capex and UFCF sheets."""

    def test_nwc_schedule(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test working capital rows."""
        nwc = sheets["nwc-schedule"]

        assert nwc.row("Net Working Capital").cells[0].value == 156_164
        assert nwc.row("Accounts Receivable").cells[0].formula == "(Revenue / 365) × 45 days"

    def test_capex_schedule(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test capex split rows."""
        capex = sheets["capex-schedule"]

        assert capex.row("Maintenance CapEx").cells[0].value == 20_000
        assert capex.row("Growth CapEx").cells[0].value == 30_000
        assert capex.row("Total CapEx").cells[0].value == 50_000

    def test_discount_factor_row(self, sheets: dict[str, SpreadsheetSheet], valuation: ValuationOutput) -> None:
        """Test discount factors and their mid-year exponent."""
        row = sheets["ufcf-schedule"].row("Discount Factor (Mid-Year)")

        assert [c.value for c in row.cells] == [p.discount_factor for p in valuation.projections]
        assert row.cells[0].formula == "1 / (1 + 10%)^0.5"
        assert row.cells[0].format.decimals == 4

    def test_end_of_year_label(self, assumptions: ModelAssumptions) -> None:
        """Test the discount factor label under end-of-year discounting."""
        a = assumptions.with_overrides(use_mid_year_convention=False)
        projections = build_projections(a)
        sheets = generate_spreadsheet_data(a, projections, calculate_valuation(a, projections))
        ufcf = next(s for s in sheets if s.id == "ufcf-schedule")

        assert ufcf.row("Discount Factor (End-of-Year)").cells[0].formula == "1 / (1 + 10%)^1"

    def test_discount_factor_uses_floored_wacc(self, assumptions: ModelAssumptions) -> None:
        """Test that the discount factor formula shows the floored WACC."""
        a = assumptions.with_overrides(wacc=0.5, terminal_growth_rate=0.0)
        projections = build_projections(a)
        sheets = generate_spreadsheet_data(a, projections, calculate_valuation(a, projections))
        ufcf = next(s for s in sheets if s.id == "ufcf-schedule")

        assert ufcf.row("Discount Factor (Mid-Year)").cells[0].formula == "1 / (1 + 1%)^0.5"


class TestDCFSheet:
    """Tests for the DCF valuation sheet."""

    def test_bridge_rows(self, sheets: dict[str, SpreadsheetSheet], valuation: ValuationOutput) -> None:
        """Test the valuation bridge values and notes."""
        dcf = sheets["dcf-valuation"]

        assert dcf.row("Enterprise Value").cells[0].value == valuation.enterprise_value
        assert dcf.row("Equity Value").cells[0].value == valuation.equity_value
        assert dcf.row("Terminal Value (Exit Multiple)").cells[1].value == "EBITDA5 × 12x"
        assert dcf.row("PV of Terminal Value").cells[1].value == "TV / (1+WACC)^4.5"
        assert all(len(row.cells) == 2 for row in dcf.rows)

    def test_shares_as_text(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test that share count is shown as formatted text."""
        shares = sheets["dcf-valuation"].row("Shares Outstanding").cells[0]

        assert shares.value == "1,000,000"
        assert shares.format.number_format == "text"

    def test_to_dict(self, sheets: dict[str, SpreadsheetSheet]) -> None:
        """Test dict conversion."""
        d = sheets["income-statement"].to_dict()

        assert d["id"] == "income-statement"
        assert d["rows"][0]["label"] == "Revenue"
        assert d["rows"][0]["cells"][0]["editable"] is True
        assert d["rows"][0]["cells"][0]["format"] == {
            "numberFormat": "currency",
            "align": "right",
            "decimals": 0,
        }
