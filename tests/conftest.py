"""Shared fixtures: an in-memory exchange standing in for ccxt."""

import asyncio
from dataclasses import replace

import ccxt
import pytest

from wealthnode.config import Config

BAR_MS = 15 * 60 * 1000


class FakeExchange:
    """Implements the slice of the ccxt async API the data feed uses."""

    def __init__(self, closes=None, prices=None, fail_symbols=(), gate=None):
        self.closes = closes or {}
        self.prices = prices or {}
        self.fail_symbols = set(fail_symbols)
        self.gate = gate
        self.ohlcv_calls = []
        self.orders = []
        self.closed = False

    async def fetch_ohlcv(self, symbol, timeframe="1m", since=None, limit=None):
        self.ohlcv_calls.append((symbol, timeframe, limit))
        if self.gate is not None:
            await self.gate.wait()
        if symbol in self.fail_symbols:
            raise ccxt.NetworkError(f"{symbol} request timed out")
        closes = self.closes.get(symbol, [])
        if limit:
            closes = closes[-limit:]
        return [
            [i * BAR_MS, close, close, close, close, 10.0]
            for i, close in enumerate(closes)
        ]

    async def fetch_ticker(self, symbol):
        if symbol in self.fail_symbols:
            raise ccxt.NetworkError(f"{symbol} request timed out")
        closes = self.closes.get(symbol) or [100.0]
        return {
            "symbol": symbol,
            "last": self.prices.get(symbol, closes[-1]),
            "baseVolume": 1234.5,
            "percentage": 2.5,
        }

    async def create_order(self, symbol, type, side, amount, price=None, params=None):
        order = {
            "id": f"order-{len(self.orders) + 1}",
            "symbol": symbol,
            "type": type,
            "side": side,
            "amount": amount,
            "filled": amount,
            "average": self.prices.get(symbol, 100.0),
        }
        self.orders.append(order)
        return order

    async def close(self):
        self.closed = True


def make_config(**overrides) -> Config:
    """Default config with overrides."""
    return replace(Config(), **overrides)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def rising_closes():
    """15 bars rising by exactly 1 each bar."""
    return [float(100 + i) for i in range(15)]


def run(coro):
    return asyncio.run(coro)
