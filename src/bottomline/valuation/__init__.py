"""Deterministic projection, valuation and LBO engines."""

from bottomline.valuation.breakdown import BreakdownFormatter, calculate_breakdowns
from bottomline.valuation.dcf import DCFEngine, calculate_valuation
from bottomline.valuation.irr import npv, solve_irr
from bottomline.valuation.lbo import LBOEngine, LboParameters, build_lbo_scenario
from bottomline.valuation.projections import ProjectionBuilder, build_projections
from bottomline.valuation.scenarios import Scenario, ScenarioRunner, apply_scenario
from bottomline.valuation.sensitivity import SensitivityEngine, calculate_sensitivity
from bottomline.valuation.spreadsheet import generate_spreadsheet_data
from bottomline.valuation.model import FinancialModelEngine, ModelResult, run_model
from bottomline.valuation.export import ModelExporter

__all__ = [
    "BreakdownFormatter",
    "DCFEngine",
    "FinancialModelEngine",
    "LBOEngine",
    "LboParameters",
    "ModelExporter",
    "ModelResult",
    "ProjectionBuilder",
    "Scenario",
    "ScenarioRunner",
    "SensitivityEngine",
    "apply_scenario",
    "build_lbo_scenario",
    "build_projections",
    "calculate_breakdowns",
    "calculate_sensitivity",
    "calculate_valuation",
    "generate_spreadsheet_data",
    "npv",
    "run_model",
    "solve_irr",
]
