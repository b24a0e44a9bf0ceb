"""
Portfolio metrics across saved models.

Summarizes a set of assumptions records into the dashboard figures:
total revenue, simple and revenue-weighted growth, average margin and
exit multiple, and a coarse risk rating.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions
from bottomline.utils.numbers import finite_or_zero

logger = get_logger(__name__)

HIGH_GROWTH_THRESHOLD = 30.0
LOW_MARGIN_THRESHOLD = 10.0
ELEVATED_RISK_RATIO = 0.5
MODERATE_RISK_RATIO = 0.25
# Exit multiple assumed for a model that carries none
DEFAULT_EXIT_MULTIPLE = 12.0


@dataclass(frozen=True)
class PortfolioMetrics:
    """Aggregate metrics for a set of models."""

    total_revenue: float = 0.0
    average_growth: float = 0.0
    average_margin: float = 0.0
    weighted_growth: float = 0.0
    average_exit_multiple: float = 0.0
    model_count: int = 0
    risk_score: str = "N/A"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "totalRevenue": self.total_revenue,
            "averageGrowth": self.average_growth,
            "averageMargin": self.average_margin,
            "weightedGrowth": self.weighted_growth,
            "averageExitMultiple": self.average_exit_multiple,
            "modelCount": self.model_count,
            "riskScore": self.risk_score,
        }


def is_high_risk(assumptions: ModelAssumptions) -> bool:
    """A model is high risk on aggressive growth or thin EBITDA margin."""
    return (
        assumptions.growth_rate > HIGH_GROWTH_THRESHOLD
        or assumptions.ebitda_margin < LOW_MARGIN_THRESHOLD
    )


def risk_rating(high_risk_count: int, model_count: int) -> str:
    """Map the share of high-risk models to Low, Moderate or Elevated."""
    if model_count == 0:
        return "N/A"
    ratio = high_risk_count / model_count
    if ratio > ELEVATED_RISK_RATIO:
        return "Elevated"
    if ratio > MODERATE_RISK_RATIO:
        return "Moderate"
    return "Low"


def generate_portfolio_metrics(
    records: Iterable[ModelAssumptions | Mapping[str, Any]],
) -> PortfolioMetrics:
    """Summarize a set of models.

    Args:
        records: Sanitized assumptions or raw assumptions records.

    Returns:
        PortfolioMetrics. Zeros and "N/A" for an empty set.
    """
    models = [ModelAssumptions.from_record(r) for r in records]
    if not models:
        return PortfolioMetrics()

    count = len(models)
    total_revenue = sum(m.starting_revenue for m in models)
    weighted_growth = (
        finite_or_zero(sum(m.starting_revenue * m.growth_rate for m in models) / total_revenue)
        if total_revenue > 0
        else 0.0
    )
    high_risk = sum(1 for m in models if is_high_risk(m))
    logger.debug("Portfolio metrics", models=count, high_risk=high_risk)

    return PortfolioMetrics(
        total_revenue=total_revenue,
        average_growth=sum(m.growth_rate for m in models) / count,
        average_margin=sum(m.ebitda_margin for m in models) / count,
        weighted_growth=weighted_growth,
        average_exit_multiple=sum(m.exit_multiple or DEFAULT_EXIT_MULTIPLE for m in models) / count,
        model_count=count,
        risk_score=risk_rating(high_risk, count),
    )
