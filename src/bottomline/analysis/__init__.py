"""Cross-model analysis."""

from bottomline.analysis.portfolio import PortfolioMetrics, generate_portfolio_metrics

__all__ = ["PortfolioMetrics", "generate_portfolio_metrics"]
