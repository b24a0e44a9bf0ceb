"""
Pytest configuration and fixtures for financial model tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Generator
from unittest.mock import patch

import pytest

from bottomline.config import Settings, clear_settings_cache
from bottomline.types import ModelAssumptions, ValuationOutput, YearProjection
from bottomline.valuation.dcf import calculate_valuation
from bottomline.valuation.projections import build_projections


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def base_record() -> dict[str, Any]:
    """Provide a persisted-style assumptions record.

    Decimal columns come back from the store as strings.
    """
    return {
        "currency": "USD",
        "startingRevenue": "1000000.00",
        "growthRate": "15.00",
        "cogsMargin": "40.00",
        "opexMargin": "30.00",
        "daMargin": "5.00",
        "taxRate": "21.00",
        "wacc": "10.00",
        "terminalGrowthRate": "2.00",
        "debtBalance": "0",
        "cashBalance": "0",
    }


@pytest.fixture
def assumptions(base_record: dict[str, Any]) -> ModelAssumptions:
    """Provide sanitized base assumptions."""
    return ModelAssumptions.from_record(base_record)


@pytest.fixture
def projections(assumptions: ModelAssumptions) -> list[YearProjection]:
    """Provide the base 5-year projections."""
    return build_projections(assumptions)


@pytest.fixture
def valuation(
    assumptions: ModelAssumptions,
    projections: list[YearProjection],
) -> ValuationOutput:
    """Provide the base DCF valuation."""
    return calculate_valuation(assumptions, projections)


@pytest.fixture
def mock_env_vars() -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "LOG_LEVEL": "debug",
        "OUTPUT_DIR": "test_output",
        "DEFAULT_CURRENCY": "eur",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        # Clear any cached settings
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str], temp_dir: Path) -> Generator[Settings, None, None]:
    """Provide a Settings instance writing into temp_dir."""
    with patch.dict(os.environ, {"OUTPUT_DIR": str(temp_dir / "output")}):
        clear_settings_cache()
        from bottomline.config import get_settings

        settings = get_settings()
        settings.ensure_directories()
        yield settings
        clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
