"""Live signal generation from exchange bars and the RSI oscillator."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ..indicators import calculate_rsi

logger = logging.getLogger(__name__)


class SignalType(str, Enum):
    """Discrete trading signal classification."""

    BUY = "BUY"
    SELL = "SELL"
    HOLD = "HOLD"


@dataclass
class LiveSignal:
    """Represents a live trading signal."""

    symbol: str
    price: float
    indicator_value: float
    classification: SignalType
    volume: float = 0.0
    percent_change: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_actionable(self) -> bool:
        """True for BUY and SELL signals."""
        return self.classification != SignalType.HOLD

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "symbol": self.symbol,
            "price": self.price,
            "indicator_value": self.indicator_value,
            "classification": self.classification.value,
            "volume": self.volume,
            "percent_change": self.percent_change,
            "timestamp": self.timestamp.isoformat(),
        }


def classify_rsi(value: float, oversold: float = 30.0, overbought: float = 70.0) -> SignalType:
    """
    Classify an RSI value.

    Thresholds are exclusive: a value exactly at either threshold is HOLD.
    """
    if value < oversold:
        return SignalType.BUY
    if value > overbought:
        return SignalType.SELL
    return SignalType.HOLD


class LiveSignalGenerator:
    """
    Generates trading signals from live exchange data.

    Fetches recent bars and the current quote for a symbol, computes the
    RSI over bar closes and classifies it against the configured thresholds.
    """

    def __init__(self, config, data_feed):
        """
        Initialize signal generator.

        Args:
            config: Strategy configuration
            data_feed: ExchangeDataFeed (or compatible) for bars and quotes
        """
        self.config = config
        self.data_feed = data_feed

    def build_signal(self, symbol: str, closes, quote) -> LiveSignal:
        """Compute the oscillator over closes and wrap it with quote data."""
        rsi = calculate_rsi(closes, period=self.config.rsi_period)

        return LiveSignal(
            symbol=symbol,
            price=quote.last_price,
            indicator_value=rsi,
            classification=classify_rsi(
                rsi, self.config.rsi_oversold, self.config.rsi_overbought
            ),
            volume=quote.base_volume,
            percent_change=quote.percent_change,
            timestamp=quote.timestamp,
        )

    async def evaluate(self, symbol: str) -> Optional[LiveSignal]:
        """
        Evaluate a symbol.

        Returns:
            LiveSignal, or None when market data could not be fetched or
            processed. None means no signal this cycle.
        """
        try:
            bars = await self.data_feed.get_bars(symbol)
            quote = await self.data_feed.get_quote(symbol)
            signal = self.build_signal(symbol, bars["close"], quote)
        except Exception as e:
            logger.warning(f"Market analysis failed for {symbol}: {e}")
            return None

        logger.info(
            f"{symbol}: ${signal.price:,.2f} | RSI {signal.indicator_value:.1f} | "
            f"{signal.classification.value} | 24h {signal.percent_change:+.2f}%"
        )
        return signal
