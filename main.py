#!/usr/bin/env python3
"""
WealthNode - 24/7 Crypto Paper Trading Node

Scans a watchlist on a ccxt exchange every minute, trades RSI extremes on
paper and serves status over HTTP and WebSocket on one port.

Optional Environment Variables:
    API_KEY / API_SECRET - Exchange credentials (required for LIVE_TRADING)
    TESTNET             - Use the exchange sandbox (default: false)
    INITIAL_CAPITAL     - Starting capital (default: 1000)
    RUN_ENV             - Runtime environment (default: development)
    LIVE_TRADING        - Submit real orders when RUN_ENV=production (default: false)
    PORT                - Status server port (default: 3000)
    WATCHLIST           - Comma-separated symbols (default: BTC/USDT,ETH/USDT,BNB/USDT)
    LOG_LEVEL           - Logging level (default: INFO)
    TIMEZONE            - Log timestamp timezone (default: UTC)
"""

import asyncio
import logging
import signal
import sys
from datetime import datetime

import pytz
from dotenv import load_dotenv

from wealthnode.config import Config
from wealthnode.node import TradingNode


class TZFormatter(logging.Formatter):
    """Formatter that outputs timestamps in a configured timezone."""

    def __init__(self, fmt=None, datefmt=None, timezone: str = "UTC"):
        super().__init__(fmt, datefmt)
        self.tz = pytz.timezone(timezone)

    def formatTime(self, record, datefmt=None):
        ct = datetime.fromtimestamp(record.created, tz=self.tz)
        if datefmt:
            return ct.strftime(datefmt)
        return ct.strftime("%Y-%m-%d %H:%M:%S")


def setup_logging(log_level: str = "INFO", timezone: str = "UTC"):
    """Configure stdout logging with timezone-aware timestamps."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(TZFormatter(
        fmt=f"%(asctime)s {timezone} | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        timezone=timezone,
    ))

    logging.basicConfig(
        level=getattr(logging, log_level),
        handlers=[handler],
    )

    # Suppress per-request handshake logs and exchange client chatter
    logging.getLogger("websockets").setLevel(logging.WARNING)
    logging.getLogger("ccxt").setLevel(logging.WARNING)

    return logging.getLogger(__name__)


async def run(config: Config):
    """Build the node, route SIGINT/SIGTERM to shutdown and run until then."""
    node = TradingNode(config)

    shutdown = asyncio.Event()
    loop = asyncio.get_running_loop()
    for signum in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(signum, shutdown.set)

    await node.run(shutdown)


def main():
    """Main entry point."""
    load_dotenv()

    # Load configuration from environment
    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}")
        print("\nFor live trading set:")
        print("  API_KEY")
        print("  API_SECRET")
        print("  RUN_ENV=production")
        print("  LIVE_TRADING=true")
        sys.exit(1)

    # Setup logging
    logger = setup_logging(config.log_level, config.timezone)

    logger.info("=" * 60)
    logger.info("WealthNode - 24/7 Crypto Paper Trading")
    logger.info("=" * 60)

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
