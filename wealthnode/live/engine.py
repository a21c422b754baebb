"""Main trading engine: scheduled watchlist scans and paper execution."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from .paper_trader import TradeExecutor
from .signals import LiveSignalGenerator

logger = logging.getLogger(__name__)


@dataclass
class CycleHealth:
    """Health of the scheduled trading loop."""

    running: bool = False
    cycles_run: int = 0
    cycles_skipped: int = 0
    last_cycle_at: Optional[datetime] = None
    last_cycle_ok: Optional[bool] = None
    last_error: Optional[str] = None
    consecutive_failures: int = 0

    @property
    def degraded(self) -> bool:
        return self.last_cycle_ok is False

    def record_success(self):
        self.cycles_run += 1
        self.last_cycle_at = datetime.now(timezone.utc)
        self.last_cycle_ok = True
        self.last_error = None
        self.consecutive_failures = 0

    def record_failure(self, error: str):
        self.cycles_run += 1
        self.last_cycle_at = datetime.now(timezone.utc)
        self.last_cycle_ok = False
        self.last_error = error
        self.consecutive_failures += 1

    def to_dict(self) -> dict:
        return {
            "running": self.running,
            "degraded": self.degraded,
            "cycles_run": self.cycles_run,
            "cycles_skipped": self.cycles_skipped,
            "last_cycle_at": self.last_cycle_at.isoformat() if self.last_cycle_at else None,
            "last_cycle_ok": self.last_cycle_ok,
            "last_error": self.last_error,
            "consecutive_failures": self.consecutive_failures,
        }


class TradingEngine:
    """
    Scheduled orchestration of signal evaluation and execution.

    Every scan_interval seconds the watchlist is evaluated sequentially and
    each actionable signal is handed to the executor. A firing that comes
    while the previous scan is still in progress is skipped.
    """

    def __init__(self, config, signal_generator: LiveSignalGenerator, executor: TradeExecutor):
        """
        Initialize the trading engine.

        Args:
            config: Trading configuration
            signal_generator: Evaluates symbols into signals
            executor: Opens and closes positions
        """
        self.config = config
        self.signal_generator = signal_generator
        self.executor = executor
        self.watchlist = tuple(config.watchlist)
        self.health = CycleHealth()

        self._loop_task: Optional[asyncio.Task] = None
        self._cycle_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.health.running

    def start(self):
        """Start the scheduled loop on the running event loop."""
        if self.health.running:
            return

        logger.info("=" * 60)
        logger.info("Starting 24/7 trading engine")
        logger.info(f"Mode: {self.executor.mode.value}")
        logger.info(f"Watchlist: {', '.join(self.watchlist)}")
        logger.info(f"Scan Interval: {self.config.scan_interval:.0f}s")
        logger.info(f"Initial Capital: ${self.executor.capital:,.2f}")
        logger.info("=" * 60)

        self.health.running = True
        self._loop_task = asyncio.get_running_loop().create_task(self._run_loop())

    async def stop(self):
        """Stop the loop, wait out any in-flight scan and cancel close timers."""
        if not self.health.running:
            return

        logger.info("Stopping trading engine...")
        self.health.running = False

        for task in (self._loop_task, self._cycle_task):
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        self._loop_task = None
        self._cycle_task = None
        self.executor.shutdown()
        self._log_status()
        logger.info("Trading engine stopped")

    def tick(self) -> bool:
        """
        Fire one scheduled scan.

        Returns:
            True if a scan was started, False if skipped because the
            previous scan is still in progress
        """
        if self._cycle_task is not None and not self._cycle_task.done():
            self.health.cycles_skipped += 1
            logger.warning("Previous scan still in progress, skipping this cycle")
            return False

        self._cycle_task = asyncio.get_running_loop().create_task(self.run_cycle())
        return True

    async def _run_loop(self):
        """Main scheduling loop."""
        while self.health.running:
            self.tick()
            await asyncio.sleep(self.config.scan_interval)

    async def run_cycle(self):
        """Evaluate the watchlist once and execute actionable signals."""
        try:
            logger.info(f"Scanning {len(self.watchlist)} markets...")

            failed = []
            for symbol in self.watchlist:
                signal = await self.signal_generator.evaluate(symbol)
                if signal is None:
                    failed.append(symbol)
                    continue
                if signal.is_actionable:
                    await self.executor.execute(signal)

            logger.info(f"Positions open: {len(self.executor.ledger)}")

            if self.watchlist and len(failed) == len(self.watchlist):
                self.health.record_failure(f"No market data for {', '.join(failed)}")
            else:
                self.health.record_success()

        except Exception as e:
            logger.error(f"Scheduled scan error: {e}", exc_info=True)
            self.health.record_failure(str(e))

    def _log_status(self):
        """Log current status."""
        perf = self.executor.performance
        logger.info("-" * 60)
        logger.info("Status:")
        logger.info(f"  Capital: ${perf.current_capital:,.2f} (start ${perf.starting_capital:,.2f})")
        logger.info(f"  Open Positions: {len(self.executor.ledger)}")
        logger.info(
            f"  Total: {perf.trade_count} trades, {perf.win_rate:.0%} win rate, "
            f"${perf.realized_pnl:+.2f} P&L"
        )
        logger.info(f"  Cycles: {self.health.cycles_run} run, {self.health.cycles_skipped} skipped")
        logger.info("-" * 60)

    def get_status(self) -> dict:
        """Status payload for the server."""
        return {
            "mode": self.executor.mode.value,
            "watchlist": list(self.watchlist),
            "performance": self.executor.performance.to_dict(),
            "open_positions": [p.to_dict() for p in self.executor.ledger.positions()],
            "trading": self.health.to_dict(),
        }
