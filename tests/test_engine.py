"""Tests for the scheduled trading engine."""

import asyncio

from conftest import FakeExchange, make_config, run
from wealthnode.live.data_feed import ExchangeDataFeed
from wealthnode.live.engine import TradingEngine
from wealthnode.live.paper_trader import TradeExecutor
from wealthnode.live.signals import LiveSignalGenerator, SignalType

RISING = [float(100 + i) for i in range(30)]
FALLING = [float(200 - i) for i in range(30)]
SHORT = [300.0, 301.0]


def make_engine(exchange, **overrides):
    config = make_config(**overrides)
    feed = ExchangeDataFeed(config, exchange=exchange)
    executor = TradeExecutor(config, data_feed=feed)
    return TradingEngine(config, LiveSignalGenerator(config, feed), executor)


def test_cycle_executes_actionable_signals_only():
    exchange = FakeExchange(closes={
        "BTC/USDT": RISING,
        "ETH/USDT": FALLING,
        "BNB/USDT": SHORT,
    })
    engine = make_engine(exchange)

    async def scenario():
        await engine.run_cycle()
        engine.executor.shutdown()

    run(scenario())

    positions = engine.executor.ledger.positions()
    sides = {p.symbol: p.side for p in positions}
    assert sides == {"BTC/USDT": SignalType.SELL, "ETH/USDT": SignalType.BUY}
    assert [call[0] for call in exchange.ohlcv_calls] == ["BTC/USDT", "ETH/USDT", "BNB/USDT"]
    assert engine.health.last_cycle_ok is True
    assert engine.health.cycles_run == 1


def test_failing_symbol_does_not_abort_cycle():
    exchange = FakeExchange(
        closes={"ETH/USDT": FALLING},
        fail_symbols={"BTC/USDT"},
    )
    engine = make_engine(exchange)

    async def scenario():
        await engine.run_cycle()
        engine.executor.shutdown()

    run(scenario())

    assert [p.symbol for p in engine.executor.ledger.positions()] == ["ETH/USDT"]
    assert engine.health.last_cycle_ok is True


def test_all_symbols_failing_degrades_health():
    exchange = FakeExchange(fail_symbols={"BTC/USDT", "ETH/USDT", "BNB/USDT"})
    engine = make_engine(exchange)

    run(engine.run_cycle())
    run(engine.run_cycle())

    assert engine.health.degraded
    assert engine.health.consecutive_failures == 2
    assert "BTC/USDT" in engine.health.last_error


def test_cycle_error_is_caught_and_next_cycle_recovers():
    exchange = FakeExchange(closes={"BTC/USDT": RISING})
    engine = make_engine(exchange, watchlist=("BTC/USDT",))
    real_execute = engine.executor.execute

    async def broken(signal):
        raise RuntimeError("ledger exploded")

    engine.executor.execute = broken
    run(engine.run_cycle())

    assert engine.health.degraded
    assert engine.health.last_error == "ledger exploded"

    engine.executor.execute = real_execute

    async def recover():
        await engine.run_cycle()
        engine.executor.shutdown()

    run(recover())

    assert not engine.health.degraded
    assert engine.health.consecutive_failures == 0
    assert len(engine.executor.ledger) == 1


def test_overlapping_tick_is_skipped():
    async def scenario():
        gate = asyncio.Event()
        exchange = FakeExchange(closes={"BTC/USDT": SHORT}, gate=gate)
        engine = make_engine(exchange, watchlist=("BTC/USDT",))

        first = engine.tick()
        await asyncio.sleep(0)
        second = engine.tick()

        gate.set()
        await engine._cycle_task
        third = engine.tick()
        await engine._cycle_task
        return engine, first, second, third

    engine, first, second, third = run(scenario())

    assert first is True
    assert second is False
    assert third is True
    assert engine.health.cycles_skipped == 1
    assert engine.health.cycles_run == 2


def test_start_and_stop():
    exchange = FakeExchange(closes={"BTC/USDT": RISING})
    engine = make_engine(exchange, watchlist=("BTC/USDT",), scan_interval=0.02)

    async def scenario():
        engine.start()
        engine.start()
        await asyncio.sleep(0.1)
        running = engine.is_running
        await engine.stop()
        return running

    assert run(scenario()) is True
    assert not engine.is_running
    assert engine.health.cycles_run >= 2
    assert engine.executor.pending_closes() == 0


def test_get_status_payload():
    engine = make_engine(FakeExchange())
    status = engine.get_status()

    assert status["mode"] == "simulate"
    assert status["watchlist"] == ["BTC/USDT", "ETH/USDT", "BNB/USDT"]
    assert status["performance"]["starting_capital"] == 1000.0
    assert status["open_positions"] == []
    assert status["trading"]["running"] is False
