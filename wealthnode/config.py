"""Configuration settings using environment variables."""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class ExecutionMode(str, Enum):
    """How the executor handles a tradable signal."""

    SIMULATE = "simulate"
    LIVE_SUBMIT = "live_submit"


def get_env(key: str, default: str = None, required: bool = False) -> str:
    """Get environment variable with optional default."""
    value = os.environ.get(key, default)
    if required and value is None:
        raise ValueError(f"Required environment variable {key} is not set")
    return value


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.environ.get(key, str(default)).lower()
    return value in ("true", "1", "yes")


def get_env_float(key: str, default: float) -> float:
    """Get float environment variable."""
    return float(os.environ.get(key, default))


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    return int(os.environ.get(key, default))


def get_env_optional_int(key: str) -> Optional[int]:
    """Get integer environment variable, or None when unset."""
    value = os.environ.get(key)
    if value is None or not value.strip():
        return None
    return int(value)


def get_env_list(key: str, default: tuple = ()) -> tuple:
    """Get tuple of strings from comma-separated environment variable."""
    value = os.environ.get(key)
    if not value:
        return tuple(default)
    return tuple(x.strip() for x in value.split(",") if x.strip())


@dataclass
class Config:
    """Trading node configuration from environment variables."""

    # Exchange credentials
    api_key: str = None
    api_secret: str = None
    exchange_id: str = "binance"
    testnet: bool = False

    # Environment
    run_env: str = "development"
    live_trading: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    heartbeat_interval: float = 5.0
    engine_start_delay: float = 3.0

    # Market data
    watchlist: Tuple[str, ...] = ("BTC/USDT", "ETH/USDT", "BNB/USDT")
    timeframe: str = "15m"
    bar_limit: int = 100

    # RSI Settings
    rsi_period: int = 14
    rsi_oversold: float = 30.0
    rsi_overbought: float = 70.0

    # Risk Management
    initial_capital: float = 1000.0
    risk_per_trade: float = 0.02
    min_quantity: float = 0.001

    # Paper trading
    close_delay: float = 300.0
    random_seed: Optional[int] = None

    # Scheduler
    scan_interval: float = 60.0

    # Logging
    log_level: str = "INFO"
    timezone: str = "UTC"

    @property
    def execution_mode(self) -> ExecutionMode:
        """
        Resolve the execution mode.

        Live order submission requires an explicit opt-in, a production
        environment, the main network and credentials. Anything else is
        paper trading.
        """
        if (
            self.live_trading
            and self.run_env == "production"
            and not self.testnet
            and self.api_key
            and self.api_secret
        ):
            return ExecutionMode.LIVE_SUBMIT
        return ExecutionMode.SIMULATE

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Credentials are optional for paper trading since market data is
        public. Requesting live trading without them is an error.
        """
        api_key = get_env("API_KEY") or get_env("BINANCE_API_KEY")
        api_secret = get_env("API_SECRET") or get_env("BINANCE_SECRET")

        testnet = get_env_bool("TESTNET", get_env_bool("BINANCE_TESTNET", False))
        run_env = get_env("RUN_ENV") or get_env("NODE_ENV", "development")
        live_trading = get_env_bool("LIVE_TRADING", False)

        if live_trading and (not api_key or not api_secret):
            raise ValueError(
                "LIVE_TRADING requires exchange credentials. Set API_KEY and "
                "API_SECRET environment variables"
            )

        config = cls(
            # Exchange
            api_key=api_key,
            api_secret=api_secret,
            exchange_id=get_env("EXCHANGE_ID", "binance"),
            testnet=testnet,

            # Environment
            run_env=run_env,
            live_trading=live_trading,

            # Server
            host=get_env("HOST", "0.0.0.0"),
            port=get_env_int("PORT", 3000),
            heartbeat_interval=get_env_float("HEARTBEAT_INTERVAL", 5.0),
            engine_start_delay=get_env_float("ENGINE_START_DELAY", 3.0),

            # Market data
            watchlist=get_env_list("WATCHLIST", ("BTC/USDT", "ETH/USDT", "BNB/USDT")),
            timeframe=get_env("TIMEFRAME", "15m"),
            bar_limit=get_env_int("BAR_LIMIT", 100),

            # Strategy settings (with defaults)
            rsi_period=get_env_int("RSI_PERIOD", 14),
            rsi_oversold=get_env_float("RSI_OVERSOLD", 30.0),
            rsi_overbought=get_env_float("RSI_OVERBOUGHT", 70.0),

            # Trading settings
            initial_capital=get_env_float("INITIAL_CAPITAL", 1000.0),
            risk_per_trade=get_env_float("RISK_PER_TRADE", 0.02),
            min_quantity=get_env_float("MIN_QUANTITY", 0.001),
            close_delay=get_env_float("CLOSE_DELAY", 300.0),
            random_seed=get_env_optional_int("RANDOM_SEED"),

            # Scheduler
            scan_interval=get_env_float("SCAN_INTERVAL", 60.0),

            # Logging
            log_level=get_env("LOG_LEVEL", "INFO").upper(),
            timezone=get_env("TIMEZONE", "UTC"),
        )

        if config.rsi_oversold >= config.rsi_overbought:
            raise ValueError(
                f"RSI_OVERSOLD ({config.rsi_oversold}) must be below "
                f"RSI_OVERBOUGHT ({config.rsi_overbought})"
            )

        return config

    def to_dict(self) -> dict:
        """Convert config to dictionary (excluding secrets)."""
        return {
            "exchange_id": self.exchange_id,
            "testnet": self.testnet,
            "run_env": self.run_env,
            "execution_mode": self.execution_mode.value,
            "watchlist": list(self.watchlist),
            "timeframe": self.timeframe,
            "bar_limit": self.bar_limit,
            "rsi_period": self.rsi_period,
            "rsi_oversold": self.rsi_oversold,
            "rsi_overbought": self.rsi_overbought,
            "initial_capital": self.initial_capital,
            "risk_per_trade": self.risk_per_trade,
            "min_quantity": self.min_quantity,
            "close_delay": self.close_delay,
            "scan_interval": self.scan_interval,
        }
