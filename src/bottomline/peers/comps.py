"""
Trading Comparables Analysis (Comps).

Derives EV/EBITDA and P/E multiples from user-entered peers and applies
the peer averages to the model's final projected year.
"""

from __future__ import annotations

import math
import statistics
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import ModelAssumptions, TradingCompEntry, YearProjection
from bottomline.utils.numbers import finite_or_zero

logger = get_logger(__name__)


@dataclass(frozen=True)
class PeerMultiples:
    """Multiples for one peer. None when the multiple is unusable."""

    company_name: str
    ev_ebitda: float | None = None
    pe_ratio: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "companyName": self.company_name,
            "evEbitda": self.ev_ebitda,
            "peRatio": self.pe_ratio,
        }


@dataclass(frozen=True)
class CompsStatistics:
    """Statistics for a multiple across peers."""

    metric_name: str
    values: tuple[float, ...]
    mean: float
    median: float
    min_val: float
    max_val: float
    std_dev: float

    @property
    def count(self) -> int:
        """Number of peers contributing."""
        return len(self.values)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "metricName": self.metric_name,
            "values": list(self.values),
            "count": self.count,
            "mean": round(self.mean, 2),
            "median": round(self.median, 2),
            "min": round(self.min_val, 2),
            "max": round(self.max_val, 2),
            "stdDev": round(self.std_dev, 2),
        }


@dataclass(frozen=True)
class TradingCompsOutput:
    """Result of the trading comps calculation."""

    avg_ev_ebitda: float = 0.0
    avg_pe: float = 0.0
    implied_ev: float = 0.0
    implied_equity_value: float = 0.0
    peers: tuple[PeerMultiples, ...] = ()
    statistics: dict[str, CompsStatistics] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "avgEvEbitda": self.avg_ev_ebitda,
            "avgPe": self.avg_pe,
            "impliedEv": self.implied_ev,
            "impliedEquityValue": self.implied_equity_value,
            "peers": [p.to_dict() for p in self.peers],
            "statistics": {k: v.to_dict() for k, v in self.statistics.items()},
        }


class CompsAnalyzer:
    """Performs trading comparables analysis.

    Calculates:
    1. EV/EBITDA and P/E for each peer, dropping non-positive multiples
    2. Peer statistics for each multiple
    3. Implied EV and equity value on the model's final projected year
    """

    VALUATION_METRICS = ["ev_ebitda", "pe_ratio"]

    def __init__(self) -> None:
        """Initialize the analyzer."""
        pass

    def analyze(
        self,
        assumptions: ModelAssumptions | Mapping[str, Any] | None,
        projections: Sequence[YearProjection],
    ) -> TradingCompsOutput:
        """Perform trading comps analysis.

        Args:
            assumptions: Sanitized assumptions or a raw record; peers come
                from its trading comps.
            projections: Projected years; the final year is the basis.

        Returns:
            TradingCompsOutput. All zero with no peers or no projections.
        """
        a = ModelAssumptions.from_record(assumptions)
        if not a.trading_comps or not projections:
            logger.debug("No peers or projections for comps")
            return TradingCompsOutput()

        peers = tuple(self.peer_multiples(c) for c in a.trading_comps)
        stats: dict[str, CompsStatistics] = {}
        for metric in self.VALUATION_METRICS:
            values = self._get_metric_values(peers, metric)
            if values:
                stats[metric] = self._calculate_statistics(metric, values)

        avg_ev_ebitda = stats["ev_ebitda"].mean if "ev_ebitda" in stats else 0.0
        avg_pe = stats["pe_ratio"].mean if "pe_ratio" in stats else 0.0
        excluded = sum(1 for p in peers if p.ev_ebitda is None and p.pe_ratio is None)
        if excluded:
            logger.warning("Peers without usable multiples", excluded=excluded, total=len(peers))

        final = projections[-1]
        implied_ev = finite_or_zero(final.ebitda * avg_ev_ebitda)
        implied_equity_value = finite_or_zero(final.net_income * avg_pe)
        if implied_equity_value == 0:
            implied_equity_value = finite_or_zero(implied_ev - a.debt_balance)

        return TradingCompsOutput(
            avg_ev_ebitda=finite_or_zero(avg_ev_ebitda),
            avg_pe=finite_or_zero(avg_pe),
            implied_ev=implied_ev,
            implied_equity_value=implied_equity_value,
            peers=peers,
            statistics=stats,
        )

    def peer_multiples(self, comp: TradingCompEntry) -> PeerMultiples:
        """Calculate a peer's multiples.

        A multiple is kept only when its denominator is non-zero and the
        ratio is finite and positive.
        """
        return PeerMultiples(
            company_name=comp.company_name,
            ev_ebitda=self._multiple(comp.ev, comp.ebitda),
            pe_ratio=self._multiple(comp.market_cap, comp.net_income),
        )

    def _multiple(self, numerator: float, denominator: float) -> float | None:
        if denominator == 0:
            return None
        value = numerator / denominator
        if not math.isfinite(value) or value <= 0:
            return None
        return value

    def _get_metric_values(
        self,
        peers: Sequence[PeerMultiples],
        metric_name: str,
    ) -> list[float]:
        """Get non-null values for a metric."""
        values = []
        for p in peers:
            val = getattr(p, metric_name, None)
            if val is not None:
                values.append(val)
        return values

    def _calculate_statistics(
        self,
        metric_name: str,
        values: list[float],
    ) -> CompsStatistics:
        """Calculate statistics for a multiple."""
        return CompsStatistics(
            metric_name=metric_name,
            values=tuple(values),
            mean=statistics.mean(values),
            median=statistics.median(values),
            min_val=min(values),
            max_val=max(values),
            std_dev=statistics.stdev(values) if len(values) > 1 else 0.0,
        )


def calculate_trading_comps(
    assumptions: ModelAssumptions | Mapping[str, Any] | None,
    projections: Sequence[YearProjection],
) -> TradingCompsOutput:
    """Convenience wrapper around CompsAnalyzer.analyze."""
    return CompsAnalyzer().analyze(assumptions, projections)
