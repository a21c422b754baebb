"""Live paper trading system."""

from .data_feed import ExchangeDataFeed, Quote
from .signals import LiveSignalGenerator, LiveSignal, SignalType
from .paper_trader import TradeExecutor, PositionLedger, Position, PaperTrade
from .engine import TradingEngine
from .server import StatusServer

__all__ = [
    "ExchangeDataFeed",
    "Quote",
    "LiveSignalGenerator",
    "LiveSignal",
    "SignalType",
    "TradeExecutor",
    "PositionLedger",
    "Position",
    "PaperTrade",
    "TradingEngine",
    "StatusServer",
]
