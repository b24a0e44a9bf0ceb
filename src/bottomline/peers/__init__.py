"""Trading comparables and precedent transactions."""

from bottomline.peers.comps import CompsAnalyzer, TradingCompsOutput, calculate_trading_comps
from bottomline.peers.precedents import PrecedentTransaction, calculate_precedents

__all__ = [
    "CompsAnalyzer",
    "PrecedentTransaction",
    "TradingCompsOutput",
    "calculate_precedents",
    "calculate_trading_comps",
]
