"""
Projection Builder.

Expands single-year assumptions into a 5-year operating and cash-flow
schedule: income statement, working capital, capex and unlevered FCF.
All calculations are deterministic and round to whole currency units.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, YearProjection
from bottomline.utils.numbers import round_half_up

logger = get_logger(__name__)

PROJECTION_YEARS = 5
DAYS_PER_YEAR = 365


class ProjectionBuilder:
    """Builds the projected operating schedule.

    Revenue compounds at a flat growth rate from the starting revenue.
    Interest is charged on the static debt balance; amortization only
    happens inside the LBO model.
    """

    def __init__(self, years: int = PROJECTION_YEARS) -> None:
        """Initialize the builder.

        Args:
            years: Number of years to project.
        """
        self.years = years

    def build(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
    ) -> list[YearProjection]:
        """Build the projection schedule.

        Args:
            assumptions: Sanitized assumptions or a raw assumptions record.

        Returns:
            One YearProjection per year, year 1 first.
        """
        a = ModelAssumptions.from_record(assumptions)
        logger.debug(
            "Building projections",
            starting_revenue=a.starting_revenue,
            growth_rate=a.growth_rate,
            years=self.years,
        )

        projections: list[YearProjection] = []
        revenue = a.starting_revenue
        prev_nwc = 0.0

        for year in range(1, self.years + 1):
            if year > 1:
                revenue = round_half_up(revenue * (1 + a.growth_rate / 100))
                if revenue <= 0:
                    revenue = 1.0

            projection = self._build_year(a, year, revenue, prev_nwc)
            projections.append(projection)
            prev_nwc = projection.net_working_capital

        return projections

    def _build_year(
        self,
        a: ModelAssumptions,
        year: int,
        revenue: float,
        prev_nwc: float,
    ) -> YearProjection:
        # Income statement
        cogs = round_half_up(revenue * a.cogs_margin / 100)
        gross_profit = revenue - cogs
        opex = round_half_up(revenue * a.opex_margin / 100)
        ebitda = gross_profit - opex
        da = round_half_up(revenue * a.da_margin / 100)
        ebit = ebitda - da
        interest = round_half_up(a.debt_balance * a.interest_rate / 100)
        ebt = ebit - interest
        tax = round_half_up(ebt * a.tax_rate / 100) if ebt > 0 else 0.0
        net_income = ebt - tax

        margin_base = revenue if revenue > 0 else 1.0

        # Working capital on a 365-day convention
        accounts_receivable = round_half_up(revenue / DAYS_PER_YEAR * a.ar_days)
        inventory = round_half_up(cogs / DAYS_PER_YEAR * a.inventory_days)
        accounts_payable = round_half_up(cogs / DAYS_PER_YEAR * a.ap_days)
        net_working_capital = accounts_receivable + inventory - accounts_payable
        # Year 1 builds the full working capital balance
        change_in_nwc = net_working_capital if year == 1 else net_working_capital - prev_nwc

        capex = round_half_up(revenue * a.capex_percent / 100)
        maintenance_capex = round_half_up(revenue * a.maintenance_capex_percent / 100)
        growth_capex = capex - maintenance_capex

        nopat = round_half_up(ebit * (1 - a.tax_rate / 100))
        ufcf = nopat + da - change_in_nwc - capex

        return YearProjection(
            year=year,
            revenue=revenue,
            cogs=cogs,
            gross_profit=gross_profit,
            opex=opex,
            ebitda=ebitda,
            da=da,
            ebit=ebit,
            interest=interest,
            ebt=ebt,
            tax=tax,
            net_income=net_income,
            revenue_growth=0.0 if year == 1 else a.growth_rate,
            ebitda_margin=ebitda / margin_base * 100,
            net_margin=net_income / margin_base * 100,
            accounts_receivable=accounts_receivable,
            inventory=inventory,
            accounts_payable=accounts_payable,
            net_working_capital=net_working_capital,
            change_in_nwc=change_in_nwc,
            capex=capex,
            maintenance_capex=maintenance_capex,
            growth_capex=growth_capex,
            nopat=nopat,
            ufcf=ufcf,
            fcf=ufcf,
        )


def build_projections(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
) -> list[YearProjection]:
    """Build the standard 5-year projection schedule.

    Args:
        assumptions: Sanitized assumptions or a raw assumptions record.

    Returns:
        Five YearProjection records.
    """
    return ProjectionBuilder().build(assumptions)
