"""
Full model run.

Wires the engines together for one assumptions snapshot: projections,
DCF, comps, breakdowns, spreadsheet view, sensitivity, LBO, scenarios
and precedents. Every run recomputes everything from the assumptions.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from bottomline.logging import get_logger, log_context
from bottomline.peers.comps import CompsAnalyzer, TradingCompsOutput
from bottomline.peers.precedents import PrecedentsOutput, PrecedentTransaction, calculate_precedents
from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection
from bottomline.valuation.breakdown import BreakdownFormatter, ModelBreakdowns
from bottomline.valuation.dcf import DCFEngine
from bottomline.valuation.lbo import LBOEngine, LboParameters, LboScenario
from bottomline.valuation.projections import ProjectionBuilder
from bottomline.valuation.scenarios import Scenario, ScenarioResult, ScenarioRunner
from bottomline.valuation.sensitivity import SensitivityAnalysis, SensitivityEngine
from bottomline.valuation.spreadsheet import SpreadsheetBuilder, SpreadsheetSheet

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelResult:
    """Everything computed for one model run."""

    model_id: str
    assumptions: ModelAssumptions
    projections: tuple[YearProjection, ...]
    valuation: ValuationOutput
    trading_comps: TradingCompsOutput
    breakdowns: ModelBreakdowns
    spreadsheet: tuple[SpreadsheetSheet, ...]
    sensitivity: SensitivityAnalysis
    lbo: LboScenario
    scenarios: tuple[ScenarioResult, ...] = ()
    precedents: PrecedentsOutput = field(default_factory=PrecedentsOutput)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase JSON shape."""
        return {
            "modelId": self.model_id,
            "assumptions": self.assumptions.to_dict(),
            "projections": [p.to_dict() for p in self.projections],
            "valuation": self.valuation.to_dict(),
            "tradingComps": self.trading_comps.to_dict(),
            "breakdowns": self.breakdowns.to_dict(),
            "spreadsheet": [s.to_dict() for s in self.spreadsheet],
            "sensitivity": self.sensitivity.to_dict(),
            "lbo": self.lbo.to_dict(),
            "scenarios": [s.to_dict() for s in self.scenarios],
            "precedents": self.precedents.to_dict(),
        }


class FinancialModelEngine:
    """Runs every engine for one set of assumptions."""

    def __init__(self) -> None:
        """Initialize the engines."""
        self.projections = ProjectionBuilder()
        self.dcf = DCFEngine()
        self.comps = CompsAnalyzer()
        self.breakdowns = BreakdownFormatter()
        self.spreadsheet = SpreadsheetBuilder()
        self.sensitivity = SensitivityEngine()
        self.lbo = LBOEngine()
        self.scenarios = ScenarioRunner()

    def run(
        self,
        record: ModelAssumptions | Mapping[str, Any] | None,
        lbo_record: LboParameters | Mapping[str, Any] | None = None,
        scenarios: Iterable[Scenario | Mapping[str, Any]] = (),
        precedents: Iterable[PrecedentTransaction | Mapping[str, Any]] = (),
        model_id: str | None = None,
    ) -> ModelResult:
        """Run the full model.

        Args:
            record: Assumptions or a raw assumptions record.
            lbo_record: LBO parameters or a raw LBO record.
            scenarios: Scenarios to compare against the base case.
            precedents: Precedent transactions.
            model_id: Identifier for logging and export. Generated if omitted.

        Returns:
            ModelResult bundling every output.

        Raises:
            InputError: If a record is not a mapping.
        """
        model_id = model_id or uuid.uuid4().hex
        with log_context(model_id=model_id):
            assumptions = ModelAssumptions.from_record(record)
            params = LboParameters.from_record(lbo_record)
            logger.info("Running model", currency=assumptions.currency)

            projections = self.projections.build(assumptions)
            valuation = self.dcf.calculate_valuation(assumptions, projections)

            result = ModelResult(
                model_id=model_id,
                assumptions=assumptions,
                projections=valuation.projections,
                valuation=valuation,
                trading_comps=self.comps.analyze(assumptions, projections),
                breakdowns=self.breakdowns.format(assumptions, projections, valuation),
                spreadsheet=tuple(self.spreadsheet.build(assumptions, projections, valuation)),
                sensitivity=self.sensitivity.calculate(assumptions, projections, params),
                lbo=self.lbo.build_scenario(assumptions, projections, params),
                scenarios=tuple(self.scenarios.compare(assumptions, scenarios)),
                precedents=calculate_precedents(projections, precedents),
            )
            logger.info(
                "Model complete",
                enterprise_value=round(valuation.enterprise_value),
                irr=round(result.lbo.irr, 2),
            )
            return result


def run_model(
    record: ModelAssumptions | Mapping[str, Any] | None,
    lbo_record: LboParameters | Mapping[str, Any] | None = None,
    scenarios: Iterable[Scenario | Mapping[str, Any]] = (),
    precedents: Iterable[PrecedentTransaction | Mapping[str, Any]] = (),
) -> ModelResult:
    """Convenience wrapper around FinancialModelEngine.run."""
    return FinancialModelEngine().run(record, lbo_record, scenarios, precedents)
