"""
Sensitivity Engine.

Builds three 5x5 two-way grids by rerunning the full calculation for
every cell. Nothing is approximated, so each grid's centre cell equals
the base case.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, replace
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, YearProjection
from bottomline.utils.numbers import round_half_up
from bottomline.valuation.dcf import DCFEngine
from bottomline.valuation.lbo import LBOEngine, LboParameters
from bottomline.valuation.projections import ProjectionBuilder

logger = get_logger(__name__)

WACC_STEPS = (-2.0, -1.0, 0.0, 1.0, 2.0)
TERMINAL_GROWTH_STEPS = (-1.0, -0.5, 0.0, 0.5, 1.0)
MULTIPLE_STEPS = (-2.0, -1.0, 0.0, 1.0, 2.0)
REVENUE_GROWTH_STEPS = (-5.0, -2.5, 0.0, 2.5, 5.0)
MARGIN_STEPS = (-5.0, -2.5, 0.0, 2.5, 5.0)
CENTER_INDEX = 2


@dataclass(frozen=True)
class SensitivityGrid:
    """A 5x5 two-way sensitivity table."""

    title: str
    row_variable: str
    col_variable: str
    row_label: str
    col_label: str
    row_values: tuple[float, ...]
    col_values: tuple[float, ...]
    data: tuple[tuple[float, ...], ...]
    highlighted_row: int = CENTER_INDEX
    highlighted_col: int = CENTER_INDEX

    @property
    def base_value(self) -> float:
        """Value at the highlighted (base case) cell."""
        return self.data[self.highlighted_row][self.highlighted_col]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "title": self.title,
            "rowVariable": self.row_variable,
            "colVariable": self.col_variable,
            "rowLabel": self.row_label,
            "colLabel": self.col_label,
            "rowValues": list(self.row_values),
            "colValues": list(self.col_values),
            "data": [list(row) for row in self.data],
            "highlightedRow": self.highlighted_row,
            "highlightedCol": self.highlighted_col,
        }


@dataclass(frozen=True)
class SensitivityAnalysis:
    """The three sensitivity grids."""

    wacc_vs_growth: SensitivityGrid
    entry_vs_exit: SensitivityGrid
    revenue_growth_vs_margin: SensitivityGrid

    def grids(self) -> dict[str, SensitivityGrid]:
        """Grids keyed by their persisted name."""
        return {
            "waccVsGrowth": self.wacc_vs_growth,
            "entryVsExit": self.entry_vs_exit,
            "revenueGrowthVsMargin": self.revenue_growth_vs_margin,
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {name: grid.to_dict() for name, grid in self.grids().items()}


class SensitivityEngine:
    """Brute-force sensitivity tables over the projection and valuation engines."""

    def __init__(self) -> None:
        """Initialize the sensitivity engine."""
        self._builder = ProjectionBuilder()
        self._dcf = DCFEngine()
        self._lbo = LBOEngine()

    def calculate(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
        lbo_params: LboParameters | Mapping[str, Any] | None = None,
    ) -> SensitivityAnalysis:
        """Calculate all three sensitivity grids.

        Args:
            assumptions: Sanitized assumptions or a raw record.
            projections: Base projections, used by the entry/exit grid.
            lbo_params: Deal parameters for the entry/exit grid.

        Returns:
            SensitivityAnalysis with three grids.
        """
        a = ModelAssumptions.from_record(assumptions)
        params = LboParameters.from_record(lbo_params)
        logger.debug("Calculating sensitivity grids", wacc=a.wacc, growth=a.growth_rate)

        return SensitivityAnalysis(
            wacc_vs_growth=self.wacc_vs_growth(a),
            entry_vs_exit=self.entry_vs_exit(a, projections, params),
            revenue_growth_vs_margin=self.revenue_growth_vs_margin(a),
        )

    def wacc_vs_growth(self, a: ModelAssumptions) -> SensitivityGrid:
        """Enterprise value over WACC (rows) and terminal growth (columns)."""
        waccs = tuple(a.wacc + step for step in WACC_STEPS)
        growths = tuple(a.terminal_growth_rate + step for step in TERMINAL_GROWTH_STEPS)

        data = self._grid(
            waccs,
            growths,
            lambda wacc, growth: self._enterprise_value(
                a.with_overrides(wacc=wacc, terminal_growth_rate=growth)
            ),
        )
        return SensitivityGrid(
            title="Enterprise Value Sensitivity: WACC vs Terminal Growth",
            row_variable="wacc",
            col_variable="terminalGrowthRate",
            row_label="WACC (%)",
            col_label="Terminal Growth (%)",
            row_values=waccs,
            col_values=growths,
            data=data,
        )

    def entry_vs_exit(
        self,
        a: ModelAssumptions,
        projections: Sequence[YearProjection],
        params: LboParameters,
    ) -> SensitivityGrid:
        """MOIC over LBO entry multiple (rows) and exit multiple (columns)."""
        entries = tuple(params.entry_multiple + step for step in MULTIPLE_STEPS)
        exits = tuple(params.exit_multiple + step for step in MULTIPLE_STEPS)

        def moic(entry: float, exit_: float) -> float:
            scenario = self._lbo.build_scenario(
                a,
                projections,
                replace(params, entry_multiple=entry, exit_multiple=exit_),
                include_sensitivity=False,
            )
            return round_half_up(scenario.moic * 100) / 100

        return SensitivityGrid(
            title="MOIC Sensitivity: Entry Multiple vs Exit Multiple",
            row_variable="entryMultiple",
            col_variable="exitMultiple",
            row_label="Entry Multiple (x)",
            col_label="Exit Multiple (x)",
            row_values=entries,
            col_values=exits,
            data=self._grid(entries, exits, moic),
        )

    def revenue_growth_vs_margin(self, a: ModelAssumptions) -> SensitivityGrid:
        """Enterprise value over revenue growth (rows) and EBITDA margin (columns).

        The margin axis is reached by moving opex only; cogs stays fixed.
        Column values are the margins after opex is clamped to [0, 100],
        so a header always shows the margin the cell was run at.
        """
        growths = tuple(a.growth_rate + step for step in REVENUE_GROWTH_STEPS)
        opex_values = tuple(a.opex_margin - step for step in MARGIN_STEPS)
        margins = tuple(a.with_overrides(opex_margin=opex).ebitda_margin for opex in opex_values)

        def enterprise_value(growth: float, opex: float) -> float:
            return self._enterprise_value(a.with_overrides(growth_rate=growth, opex_margin=opex))

        return SensitivityGrid(
            title="Enterprise Value: Revenue Growth vs EBITDA Margin",
            row_variable="growthRate",
            col_variable="ebitdaMargin",
            row_label="Revenue Growth (%)",
            col_label="EBITDA Margin (%)",
            row_values=growths,
            col_values=margins,
            data=self._grid(growths, opex_values, enterprise_value),
        )

    def _enterprise_value(self, a: ModelAssumptions) -> float:
        projections = self._builder.build(a)
        return round_half_up(self._dcf.calculate_valuation(a, projections).enterprise_value)

    def _grid(
        self,
        rows: Sequence[float],
        cols: Sequence[float],
        cell: Callable[[float, float], float],
    ) -> tuple[tuple[float, ...], ...]:
        return tuple(tuple(cell(row, col) for col in cols) for row in rows)


def calculate_sensitivity(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
    lbo_params: LboParameters | Mapping[str, Any] | None = None,
) -> SensitivityAnalysis:
    """Convenience wrapper around SensitivityEngine.calculate."""
    return SensitivityEngine().calculate(assumptions, projections, lbo_params)
