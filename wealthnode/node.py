"""Component wiring and lifecycle for a running node."""

import asyncio
import logging
import os
from typing import Optional

from .config import Config
from .live import (
    ExchangeDataFeed,
    LiveSignalGenerator,
    StatusServer,
    TradeExecutor,
    TradingEngine,
)

logger = logging.getLogger(__name__)


class TradingNode:
    """
    Owns the data feed, executor, engine and status server.

    The server listens first so status is available while the engine
    waits out engine_start_delay. Shutdown tears everything down in
    reverse order.
    """

    def __init__(self, config: Config, data_feed: Optional[ExchangeDataFeed] = None):
        """
        Build the node's components.

        Args:
            config: Node configuration
            data_feed: Exchange data feed (built from config if None)
        """
        self.config = config
        self.data_feed = data_feed or ExchangeDataFeed(config)
        self.signal_generator = LiveSignalGenerator(config, self.data_feed)
        self.executor = TradeExecutor(config, data_feed=self.data_feed)
        self.engine = TradingEngine(config, self.signal_generator, self.executor)
        self.server = StatusServer(config, self.engine)

    async def run(self, shutdown: asyncio.Event):
        """Start the server, then the engine, and run until shutdown is set."""
        await self.server.start()
        logger.info(
            f"Mode: {self.config.run_env} | Execution: {self.executor.mode.value} | PID: {os.getpid()}"
        )
        logger.info("Status: Initializing trading engine...")

        try:
            # Give the server a head start before the first scan
            try:
                await asyncio.wait_for(shutdown.wait(), timeout=self.config.engine_start_delay)
            except asyncio.TimeoutError:
                self.engine.start()

            await shutdown.wait()
            logger.info("Shutdown requested")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop the engine, close the server and release the exchange client."""
        await self.engine.stop()
        await self.server.stop()
        await self.data_feed.close()
        logger.info("Shutdown complete")
