"""Tests for the full model run."""

from __future__ import annotations

from typing import Any

import pytest

from bottomline.exceptions import InputError
from bottomline.types import ValuationOutput
from bottomline.valuation.model import FinancialModelEngine, run_model
from bottomline.valuation.scenarios import BASE_CASE_NAME


class TestFinancialModelEngine:
    """Tests for FinancialModelEngine.run."""

    def test_matches_individual_engines(self, base_record: dict[str, Any], valuation: ValuationOutput) -> None:
        """Test that the run reproduces the standalone valuation."""
        result = run_model(base_record)

        assert result.valuation == valuation
        assert result.projections == valuation.projections
        assert all(p.discount_factor > 0 for p in result.projections)

    def test_all_outputs_present(self, base_record: dict[str, Any]) -> None:
        """Test that every engine contributes."""
        result = run_model(
            base_record,
            lbo_record={"holdingPeriod": 4},
            scenarios=[{"name": "Bull", "growthRateOverride": 25}],
            precedents=[{"targetName": "Deal", "evEbitda": 9}],
        )

        assert len(result.breakdowns.yearly_breakdowns) == 5
        assert len(result.spreadsheet) == 5
        assert len(result.lbo.debt_schedule) == 4
        assert result.lbo.parameters.holding_period == 4
        assert [s.name for s in result.scenarios] == [BASE_CASE_NAME, "Bull"]
        assert result.precedents.median_ev_ebitda == 9
        assert result.trading_comps.implied_ev == 0

    def test_model_id(self, base_record: dict[str, Any]) -> None:
        """Test generated and explicit model ids."""
        generated = run_model(base_record).model_id

        assert len(generated) == 32
        assert FinancialModelEngine().run(base_record, model_id="fixed").model_id == "fixed"

    def test_deterministic(self, base_record: dict[str, Any]) -> None:
        """Test that identical input yields identical figures."""
        first = FinancialModelEngine().run(base_record, model_id="a")
        second = FinancialModelEngine().run(dict(base_record), model_id="a")

        assert first == second

    def test_defaults_when_record_missing(self) -> None:
        """Test a run with no assumptions at all."""
        result = run_model(None)

        assert result.projections[0].revenue == 1_000_000
        assert result.valuation.enterprise_value > 0

    def test_non_mapping_record_raises(self) -> None:
        """Test that a structurally wrong record is rejected."""
        with pytest.raises(InputError):
            run_model("not a record")  # type: ignore[arg-type]

    def test_to_dict(self, base_record: dict[str, Any]) -> None:
        """Test the top-level JSON keys."""
        d = run_model(base_record).to_dict()

        assert set(d) == {
            "modelId",
            "assumptions",
            "projections",
            "valuation",
            "tradingComps",
            "breakdowns",
            "spreadsheet",
            "sensitivity",
            "lbo",
            "scenarios",
            "precedents",
        }
        assert d["assumptions"]["growthRate"] == 15
        assert d["projections"][0]["discountFactor"] > 0
