"""
Precedent Transactions Analysis.

Applies median deal multiples from past acquisitions to the model's
first projected year.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from bottomline.logging import get_logger
from bottomline.types import YearProjection, coerce_record, read_number
from bottomline.utils.numbers import finite_or_zero

logger = get_logger(__name__)


@dataclass(frozen=True)
class PrecedentTransaction:
    """A past acquisition used as a valuation reference."""

    target_name: str
    acquirer_name: str = ""
    transaction_date: str = ""
    transaction_value: float = 0.0
    target_revenue: float = 0.0
    target_ebitda: float = 0.0
    ev_revenue: float = 0.0
    ev_ebitda: float = 0.0

    @classmethod
    def from_record(cls, record: Mapping[str, Any] | PrecedentTransaction) -> PrecedentTransaction:
        """Build a transaction from a raw record (camelCase or snake_case keys)."""
        if isinstance(record, PrecedentTransaction):
            return record
        data = coerce_record(record, "precedent")

        def text(*keys: str) -> str:
            for key in keys:
                value = data.get(key)
                if value:
                    return str(value)
            return ""

        return cls(
            target_name=text("targetName", "target_name"),
            acquirer_name=text("acquirerName", "acquirer_name"),
            transaction_date=text("transactionDate", "transaction_date"),
            transaction_value=read_number(data, "transaction_value", 0.0, "precedent"),
            target_revenue=read_number(data, "target_revenue", 0.0, "precedent"),
            target_ebitda=read_number(data, "target_ebitda", 0.0, "precedent"),
            ev_revenue=read_number(data, "ev_revenue", 0.0, "precedent"),
            ev_ebitda=read_number(data, "ev_ebitda", 0.0, "precedent"),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "targetName": self.target_name,
            "acquirerName": self.acquirer_name,
            "transactionDate": self.transaction_date,
            "transactionValue": self.transaction_value,
            "targetRevenue": self.target_revenue,
            "targetEbitda": self.target_ebitda,
            "evRevenue": self.ev_revenue,
            "evEbitda": self.ev_ebitda,
        }


@dataclass(frozen=True)
class PrecedentsOutput:
    """Result of the precedent transactions analysis.

    Medians drive the per-metric implied values; the means of the same
    positive multiples drive the blended implied EV.
    """

    median_ev_revenue: float = 0.0
    median_ev_ebitda: float = 0.0
    implied_ev_from_revenue: float = 0.0
    implied_ev_from_ebitda: float = 0.0
    avg_ev_revenue: float = 0.0
    avg_ev_ebitda: float = 0.0
    blended_implied_ev: float = 0.0
    transactions: tuple[PrecedentTransaction, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict."""
        return {
            "medianEvRevenue": self.median_ev_revenue,
            "medianEvEbitda": self.median_ev_ebitda,
            "impliedEvFromRevenue": self.implied_ev_from_revenue,
            "impliedEvFromEbitda": self.implied_ev_from_ebitda,
            "avgEvRevenue": self.avg_ev_revenue,
            "avgEvEbitda": self.avg_ev_ebitda,
            "blendedImpliedEv": self.blended_implied_ev,
            "transactions": [t.to_dict() for t in self.transactions],
        }


def median_multiple(values: Iterable[float]) -> float:
    """Median of the strictly positive values.

    For an even count this picks the upper middle value rather than
    averaging the two middle values. 0.0 when nothing is positive.
    """
    positive = sorted(v for v in values if v > 0)
    if not positive:
        return 0.0
    return positive[len(positive) // 2]


def average_multiple(values: Iterable[float]) -> float:
    """Mean of the strictly positive values, 0.0 when nothing is positive."""
    positive = [v for v in values if v > 0]
    if not positive:
        return 0.0
    return finite_or_zero(sum(positive) / len(positive))


def calculate_precedents(
    projections: Sequence[YearProjection],
    transactions: Iterable[Mapping[str, Any] | PrecedentTransaction],
) -> PrecedentsOutput:
    """Value the model off precedent transaction multiples.

    Args:
        projections: Projected years; year 1 is the basis.
        transactions: Transactions or raw transaction records.

    Returns:
        PrecedentsOutput. All zero with no transactions.
    """
    deals = tuple(PrecedentTransaction.from_record(t) for t in transactions)
    logger.debug("Calculating precedents", transactions=len(deals))
    if not deals:
        return PrecedentsOutput()

    median_ev_revenue = median_multiple(d.ev_revenue for d in deals)
    median_ev_ebitda = median_multiple(d.ev_ebitda for d in deals)
    avg_ev_revenue = average_multiple(d.ev_revenue for d in deals)
    avg_ev_ebitda = average_multiple(d.ev_ebitda for d in deals)

    if not projections:
        return PrecedentsOutput(
            median_ev_revenue=median_ev_revenue,
            median_ev_ebitda=median_ev_ebitda,
            avg_ev_revenue=avg_ev_revenue,
            avg_ev_ebitda=avg_ev_ebitda,
            transactions=deals,
        )

    current = projections[0]
    return PrecedentsOutput(
        median_ev_revenue=median_ev_revenue,
        median_ev_ebitda=median_ev_ebitda,
        implied_ev_from_revenue=finite_or_zero(current.revenue * median_ev_revenue),
        implied_ev_from_ebitda=finite_or_zero(current.ebitda * median_ev_ebitda),
        avg_ev_revenue=avg_ev_revenue,
        avg_ev_ebitda=avg_ev_ebitda,
        # Equal-weight blend of the revenue and EBITDA approaches
        blended_implied_ev=finite_or_zero(
            (current.revenue * avg_ev_revenue + current.ebitda * avg_ev_ebitda) / 2
        ),
        transactions=deals,
    )
