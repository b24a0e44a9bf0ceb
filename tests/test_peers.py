"""Tests for trading comparables and precedent transactions."""

import pytest

from bottomline.peers.comps import CompsAnalyzer, TradingCompsOutput, calculate_trading_comps
from bottomline.peers.precedents import (
    PrecedentTransaction,
    average_multiple,
    calculate_precedents,
    median_multiple,
)
from bottomline.types import ModelAssumptions, TradingCompEntry
from bottomline.valuation.projections import build_projections


PEERS = [
    {"companyName": "Alpha", "ev": "1000", "ebitda": "100", "marketCap": "800", "netIncome": "50"},
    {"companyName": "Beta", "ev": "1200", "ebitda": "100", "marketCap": "750", "netIncome": "50"},
    {"companyName": "Gamma", "ev": "900", "ebitda": "-30", "marketCap": "400", "netIncome": "-10"},
]


# ============================================================================
# CompsAnalyzer Tests
# ============================================================================


class TestCompsAnalyzer:
    """Tests for CompsAnalyzer."""

    def test_peer_multiples(self):
        """Test EV/EBITDA and P/E per peer."""
        analyzer = CompsAnalyzer()
        alpha = analyzer.peer_multiples(TradingCompEntry.from_record(PEERS[0]))

        assert alpha.ev_ebitda == 10
        assert alpha.pe_ratio == 16

    def test_negative_multiples_dropped(self):
        """Test that a negative-earnings peer contributes nothing."""
        gamma = CompsAnalyzer().peer_multiples(TradingCompEntry.from_record(PEERS[2]))

        assert gamma.ev_ebitda is None
        assert gamma.pe_ratio is None

    def test_zero_denominator_dropped(self):
        """Test that a zero denominator drops the multiple."""
        peer = TradingCompEntry(company_name="Zero", ebitda=0, ev=500, net_income=0, market_cap=100)
        multiples = CompsAnalyzer().peer_multiples(peer)

        assert multiples.ev_ebitda is None
        assert multiples.pe_ratio is None

    def test_averages_and_implied_values(self, base_record):
        """Test peer averages applied to the final projected year."""
        a = ModelAssumptions.from_record({**base_record, "tradingComps": PEERS})
        projections = build_projections(a)
        result = calculate_trading_comps(a, projections)

        assert result.avg_ev_ebitda == pytest.approx(11.0)
        assert result.avg_pe == pytest.approx(15.5)
        assert result.implied_ev == pytest.approx(projections[-1].ebitda * 11)
        assert result.implied_equity_value == pytest.approx(projections[-1].net_income * 15.5)
        assert len(result.peers) == 3

    def test_statistics(self, base_record):
        """Test per-metric statistics."""
        a = ModelAssumptions.from_record({**base_record, "tradingComps": PEERS})
        stats = calculate_trading_comps(a, build_projections(a)).statistics

        assert stats["ev_ebitda"].count == 2
        assert stats["ev_ebitda"].median == pytest.approx(11.0)
        assert stats["ev_ebitda"].min_val == 10
        assert stats["ev_ebitda"].max_val == 12
        assert stats["pe_ratio"].std_dev > 0

    def test_equity_fallback_without_pe(self, base_record):
        """Test that equity falls back to implied EV less debt."""
        peers = [{"companyName": "Alpha", "ev": 1000, "ebitda": 100}]
        a = ModelAssumptions.from_record({**base_record, "debtBalance": 250_000, "tradingComps": peers})
        result = calculate_trading_comps(a, build_projections(a))

        assert result.avg_pe == 0
        assert result.implied_equity_value == pytest.approx(result.implied_ev - 250_000)

    def test_no_peers(self, assumptions, projections):
        """Test that no peers give an all-zero output."""
        assert calculate_trading_comps(assumptions, projections) == TradingCompsOutput()

    def test_no_projections(self, base_record):
        """Test that no projections give an all-zero output."""
        a = ModelAssumptions.from_record({**base_record, "tradingComps": PEERS})

        assert calculate_trading_comps(a, []) == TradingCompsOutput()

    def test_to_dict(self, base_record):
        """Test dict conversion."""
        a = ModelAssumptions.from_record({**base_record, "tradingComps": PEERS})
        d = calculate_trading_comps(a, build_projections(a)).to_dict()

        assert d["avgEvEbitda"] == pytest.approx(11.0)
        assert d["peers"][2] == {"companyName": "Gamma", "evEbitda": None, "peRatio": None}
        assert d["statistics"]["pe_ratio"]["count"] == 2


# ============================================================================
# Precedent Transactions Tests
# ============================================================================


class TestMedianMultiple:
    """Tests for median_multiple."""

    def test_odd_count(self):
        """Test the middle value of an odd count."""
        assert median_multiple([4.0, 2.0, 3.0]) == 3.0

    def test_even_count_takes_upper_middle(self):
        """Test that an even count picks the upper middle value."""
        assert median_multiple([2.0, 3.0, 4.0, 5.0]) == 4.0

    def test_non_positive_ignored(self):
        """Test that zero and negative multiples are skipped."""
        assert median_multiple([0.0, -2.0, 6.0]) == 6.0
        assert median_multiple([0.0, -1.0]) == 0.0
        assert median_multiple([]) == 0.0


class TestAverageMultiple:
    """Tests for average_multiple."""

    def test_mean_of_positive_values(self):
        """Test that only positive multiples enter the mean."""
        assert average_multiple([2.0, 4.0, 0.0, -3.0]) == 3.0

    def test_nothing_positive(self):
        """Test that an empty or non-positive set gives zero."""
        assert average_multiple([]) == 0.0
        assert average_multiple([0.0, -1.0]) == 0.0


class TestPrecedents:
    """Tests for calculate_precedents."""

    def test_record_parsing(self):
        """Test camelCase and snake_case transaction records."""
        deal = PrecedentTransaction.from_record(
            {"targetName": "Target", "acquirer_name": "Buyer", "evEbitda": "9.5", "ev_revenue": 2}
        )

        assert deal.target_name == "Target"
        assert deal.acquirer_name == "Buyer"
        assert deal.ev_ebitda == 9.5
        assert deal.ev_revenue == 2

    def test_implied_values_on_year_one(self, projections):
        """Test medians applied to year 1 revenue and EBITDA."""
        deals = [
            {"targetName": "A", "evRevenue": 2, "evEbitda": 8},
            {"targetName": "B", "evRevenue": 3, "evEbitda": 10},
            {"targetName": "C", "evRevenue": 4, "evEbitda": 12},
        ]
        result = calculate_precedents(projections, deals)

        assert result.median_ev_revenue == 3
        assert result.median_ev_ebitda == 10
        assert result.implied_ev_from_revenue == 3_000_000
        assert result.implied_ev_from_ebitda == 3_000_000
        assert len(result.transactions) == 3

    def test_blended_implied_ev(self, projections):
        """Test the equal-weight blend of mean revenue and EBITDA multiples."""
        deals = [
            {"targetName": "A", "evRevenue": 2, "evEbitda": 8},
            {"targetName": "B", "evRevenue": 4, "evEbitda": 10},
            {"targetName": "C", "evRevenue": 0, "evEbitda": 15},
        ]
        result = calculate_precedents(projections, deals)

        assert result.avg_ev_revenue == pytest.approx(3.0)
        assert result.avg_ev_ebitda == pytest.approx(11.0)
        assert result.blended_implied_ev == pytest.approx((1_000_000 * 3 + 300_000 * 11) / 2)
        assert result.median_ev_revenue == 4

    def test_no_transactions(self, projections):
        """Test that no transactions give zeros."""
        result = calculate_precedents(projections, [])

        assert result.median_ev_ebitda == 0
        assert result.implied_ev_from_revenue == 0
        assert result.transactions == ()

    def test_no_projections(self):
        """Test medians without a year to apply them to."""
        result = calculate_precedents([], [{"targetName": "A", "evEbitda": 8}])

        assert result.median_ev_ebitda == 8
        assert result.implied_ev_from_ebitda == 0
        assert result.avg_ev_ebitda == 8
        assert result.blended_implied_ev == 0

    def test_to_dict(self, projections):
        """Test dict conversion."""
        d = calculate_precedents(projections, [{"targetName": "A", "evEbitda": 8}]).to_dict()

        assert d["medianEvEbitda"] == 8
        assert d["avgEvEbitda"] == 8
        assert d["blendedImpliedEv"] == pytest.approx(300_000 * 8 / 2)
        assert d["transactions"][0]["targetName"] == "A"
