"""
Scenario overrides.

A scenario replaces a handful of assumptions (growth, margins, WACC,
exit multiple) and reruns the model. Scenarios are compared against the
base case.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from bottomline.logging import get_logger, log_context
from bottomline.types import ModelAssumptions, coerce_record, lookup_field
from bottomline.utils.numbers import safe_number
from bottomline.valuation.dcf import DCFEngine
from bottomline.valuation.projections import ProjectionBuilder

logger = get_logger(__name__)

BASE_CASE_NAME = "Base Case"

# Scenario override field -> assumption field
OVERRIDE_FIELDS = {
    "growth_rate_override": "growth_rate",
    "cogs_margin_override": "cogs_margin",
    "opex_margin_override": "opex_margin",
    "wacc_override": "wacc",
    "exit_multiple_override": "exit_multiple",
}


@dataclass(frozen=True)
class Scenario:
    """Named set of assumption overrides. None leaves a field unchanged."""

    name: str
    growth_rate_override: float | None = None
    cogs_margin_override: float | None = None
    opex_margin_override: float | None = None
    wacc_override: float | None = None
    exit_multiple_override: float | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | Scenario) -> Scenario:
        """Build a scenario from a raw record.

        Blank or non-numeric overrides are treated as absent.
        """
        if isinstance(record, Scenario):
            return record
        data = coerce_record(record, "scenario")

        def override(name: str) -> float | None:
            raw = lookup_field(data, name)
            if raw is None:
                return None
            value = safe_number(raw, math.nan)
            return None if math.isnan(value) else value

        return cls(
            name=str(data.get("name") or "Scenario"),
            **{name: override(name) for name in OVERRIDE_FIELDS},
        )

    def overrides(self) -> dict[str, float]:
        """Assumption fields this scenario changes."""
        return {
            target: getattr(self, source)
            for source, target in OVERRIDE_FIELDS.items()
            if getattr(self, source) is not None
        }

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "growthRateOverride": self.growth_rate_override,
            "cogsMarginOverride": self.cogs_margin_override,
            "opexMarginOverride": self.opex_margin_override,
            "waccOverride": self.wacc_override,
            "exitMultipleOverride": self.exit_multiple_override,
        }


@dataclass(frozen=True)
class ScenarioResult:
    """Headline figures for one scenario."""

    name: str
    enterprise_value: float
    equity_value: float
    equity_value_per_share: float
    implied_multiple: float
    final_year_ebitda: float
    final_year_ufcf: float

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "name": self.name,
            "enterpriseValue": self.enterprise_value,
            "equityValue": self.equity_value,
            "equityValuePerShare": self.equity_value_per_share,
            "impliedMultiple": self.implied_multiple,
            "finalYearEbitda": self.final_year_ebitda,
            "finalYearUfcf": self.final_year_ufcf,
        }


def apply_scenario(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    scenario: Scenario | Mapping[str, Any],
) -> ModelAssumptions:
    """Apply a scenario's overrides and re-sanitize.

    Args:
        assumptions: Base assumptions or a raw record.
        scenario: Scenario or raw scenario record.

    Returns:
        New ModelAssumptions; the base is unchanged.
    """
    a = ModelAssumptions.from_record(assumptions)
    return a.with_overrides(**Scenario.from_record(scenario).overrides())


class ScenarioRunner:
    """Runs scenarios through the projection and valuation engines."""

    def __init__(self) -> None:
        """Initialize the runner."""
        self._builder = ProjectionBuilder()
        self._dcf = DCFEngine()

    def run(self, name: str, assumptions: ModelAssumptions) -> ScenarioResult:
        """Value one set of assumptions."""
        with log_context(scenario=name):
            projections = self._builder.build(assumptions)
            valuation = self._dcf.calculate_valuation(assumptions, projections)

        final = projections[-1]
        return ScenarioResult(
            name=name,
            enterprise_value=valuation.enterprise_value,
            equity_value=valuation.equity_value,
            equity_value_per_share=valuation.equity_value_per_share,
            implied_multiple=valuation.implied_multiple,
            final_year_ebitda=final.ebitda,
            final_year_ufcf=final.ufcf,
        )

    def compare(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        scenarios: Iterable[Scenario | Mapping[str, Any]],
    ) -> list[ScenarioResult]:
        """Value the base case and every scenario.

        Args:
            assumptions: Base assumptions or a raw record.
            scenarios: Scenarios or raw scenario records.

        Returns:
            Results with the base case first, then scenarios in order.
        """
        base = ModelAssumptions.from_record(assumptions)
        results = [self.run(BASE_CASE_NAME, base)]
        for raw in scenarios:
            scenario = Scenario.from_record(raw)
            logger.debug("Running scenario", scenario=scenario.name, overrides=scenario.overrides())
            results.append(self.run(scenario.name, apply_scenario(base, scenario)))
        return results
