"""Exchange data feed for bars and live quotes via ccxt."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

import ccxt.async_support as ccxt
import pandas as pd

logger = logging.getLogger(__name__)

OHLCV_COLUMNS = ["timestamp", "open", "high", "low", "close", "volume"]


@dataclass
class Quote:
    """Represents a market quote."""

    symbol: str
    last_price: float
    base_volume: float
    percent_change: float
    timestamp: datetime

    @classmethod
    def from_ccxt_ticker(cls, symbol: str, ticker: dict) -> "Quote":
        """Create Quote from a ccxt unified ticker."""
        last = ticker.get("last")
        if last is None:
            raise ValueError(f"Ticker for {symbol} has no last price")

        return cls(
            symbol=symbol,
            last_price=float(last),
            base_volume=float(ticker.get("baseVolume") or 0.0),
            percent_change=float(ticker.get("percentage") or 0.0),
            timestamp=datetime.now(timezone.utc),
        )


def ohlcv_to_dataframe(ohlcv: list) -> pd.DataFrame:
    """Convert ccxt OHLCV rows to a DataFrame indexed by bar open time."""
    df = pd.DataFrame(ohlcv, columns=OHLCV_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], unit="ms", utc=True)
    return df.set_index("timestamp").astype("float64")


def create_exchange(config):
    """
    Build the async ccxt exchange client described by config.

    Args:
        config: Config with exchange_id, credentials and testnet flag

    Returns:
        ccxt async exchange instance
    """
    exchange_class = getattr(ccxt, config.exchange_id, None)
    if exchange_class is None:
        raise ValueError(f"Unknown exchange: {config.exchange_id}")

    params = {
        "enableRateLimit": True,
        "options": {"defaultType": "spot"},
    }
    if config.api_key and config.api_secret:
        params["apiKey"] = config.api_key
        params["secret"] = config.api_secret

    exchange = exchange_class(params)

    if config.testnet:
        exchange.set_sandbox_mode(True)
        logger.info(f"{config.exchange_id}: sandbox mode enabled")

    return exchange


class ExchangeDataFeed:
    """Fetches price bars and quotes from a ccxt exchange."""

    def __init__(self, config, exchange=None):
        """
        Initialize exchange data feed.

        Args:
            config: Config object with exchange settings
            exchange: Pre-built exchange client (built from config if None)
        """
        self.config = config
        self._exchange = exchange

    @property
    def exchange(self):
        """Exchange client, created on first use."""
        if self._exchange is None:
            self._exchange = create_exchange(self.config)
        return self._exchange

    async def get_bars(
        self, symbol: str, timeframe: Optional[str] = None, limit: Optional[int] = None
    ) -> pd.DataFrame:
        """
        Fetch recent OHLCV bars for a symbol.

        Args:
            symbol: Market symbol (e.g. BTC/USDT)
            timeframe: Bar interval (default from config)
            limit: Number of bars (default from config)

        Returns:
            DataFrame with open, high, low, close, volume columns
        """
        timeframe = timeframe or self.config.timeframe
        limit = limit or self.config.bar_limit

        ohlcv = await self.exchange.fetch_ohlcv(symbol, timeframe, None, limit)
        return ohlcv_to_dataframe(ohlcv)

    async def get_quote(self, symbol: str) -> Quote:
        """Fetch current quote for a symbol."""
        ticker = await self.exchange.fetch_ticker(symbol)
        return Quote.from_ccxt_ticker(symbol, ticker)

    async def submit_market_order(self, symbol: str, side: str, amount: float) -> dict:
        """
        Submit a market order to the exchange.

        Only used by live execution mode.
        """
        return await self.exchange.create_order(symbol, "market", side.lower(), amount)

    async def close(self):
        """Release the exchange client's HTTP session."""
        if self._exchange is not None:
            await self._exchange.close()
            self._exchange = None
