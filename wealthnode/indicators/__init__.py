"""Technical indicators for trading strategy."""

from .rsi import calculate_rsi, NEUTRAL_RSI

__all__ = [
    "calculate_rsi",
    "NEUTRAL_RSI",
]
