"""Paper trade execution, position ledger and performance tracking."""

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any

from ..config import ExecutionMode
from ..strategy.position import PositionSizer
from .signals import LiveSignal, SignalType

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Position:
    """Represents an open position."""

    id: str
    symbol: str
    side: SignalType
    entry_price: float
    quantity: float
    opened_at: datetime
    synthetic: bool = True

    @property
    def notional(self) -> float:
        return self.entry_price * self.quantity

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side.value,
            "entry_price": self.entry_price,
            "quantity": self.quantity,
            "opened_at": self.opened_at.isoformat(),
            "synthetic": self.synthetic,
        }


@dataclass
class PaperTrade:
    """Represents a closed paper position and its synthetic outcome."""

    position: Position
    pnl: float
    closed_at: datetime

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            **self.position.to_dict(),
            "pnl": self.pnl,
            "closed_at": self.closed_at.isoformat(),
        }


@dataclass
class PerformanceCounters:
    """Process-lifetime trading statistics."""

    starting_capital: float
    current_capital: float
    trade_count: int = 0
    win_count: int = 0
    loss_count: int = 0
    realized_pnl: float = 0.0
    start_time: datetime = field(default_factory=_utcnow)

    def record_open(self):
        self.trade_count += 1

    def record_close(self, pnl: float):
        """Apply a realized P&L to capital and win/loss counts."""
        self.realized_pnl += pnl
        self.current_capital += pnl
        if pnl >= 0:
            self.win_count += 1
        else:
            self.loss_count += 1

    @property
    def win_rate(self) -> float:
        closed = self.win_count + self.loss_count
        return self.win_count / closed if closed else 0.0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "starting_capital": self.starting_capital,
            "current_capital": self.current_capital,
            "trade_count": self.trade_count,
            "win_count": self.win_count,
            "loss_count": self.loss_count,
            "win_rate": self.win_rate,
            "realized_pnl": self.realized_pnl,
            "start_time": self.start_time.isoformat(),
        }


class PositionLedger:
    """
    In-memory collection of open positions keyed by id.

    Only open positions are held. Ids are generated fresh per position
    (uuid4 or the exchange order id), so a closed id is never reissued.
    """

    def __init__(self):
        self._positions: Dict[str, Position] = {}

    def open(self, position: Position):
        """Insert a new position."""
        if position.id in self._positions:
            raise ValueError(f"Position id {position.id} is already open")
        self._positions[position.id] = position

    def close(self, position_id: str) -> Optional[Position]:
        """Remove and return a position, or None if it is not open."""
        return self._positions.pop(position_id, None)

    def get(self, position_id: str) -> Optional[Position]:
        return self._positions.get(position_id)

    def positions(self) -> List[Position]:
        return list(self._positions.values())

    def __contains__(self, position_id: str) -> bool:
        return position_id in self._positions

    def __len__(self) -> int:
        return len(self._positions)


class TradeExecutor:
    """
    Turns actionable signals into positions.

    In SIMULATE mode positions are paper trades that close automatically
    after close_delay seconds with a random P&L. In LIVE_SUBMIT mode a
    market order is sent through the data feed's exchange and the resulting
    position is released from the ledger after close_delay without a P&L.
    """

    def __init__(
        self,
        config,
        data_feed=None,
        rng: Optional[random.Random] = None,
        ledger: Optional[PositionLedger] = None,
        mode: Optional[ExecutionMode] = None,
    ):
        """
        Initialize trade executor.

        Args:
            config: Trading configuration
            data_feed: ExchangeDataFeed, required for LIVE_SUBMIT mode
            rng: Random source for synthetic P&L (seeded from config if None)
            ledger: Position ledger (a new one if None)
            mode: Execution mode (resolved from config if None)
        """
        self.config = config
        self.data_feed = data_feed
        self.mode = mode or config.execution_mode
        self.rng = rng or random.Random(config.random_seed)
        self.ledger = ledger if ledger is not None else PositionLedger()
        self.close_delay = config.close_delay

        if self.mode == ExecutionMode.LIVE_SUBMIT and data_feed is None:
            raise ValueError("Live execution mode requires a data feed")

        self.position_sizer = PositionSizer(
            risk_per_trade=config.risk_per_trade,
            min_quantity=config.min_quantity,
        )
        self.performance = PerformanceCounters(
            starting_capital=config.initial_capital,
            current_capital=config.initial_capital,
        )

        self._close_timers: Dict[str, asyncio.TimerHandle] = {}

    @property
    def capital(self) -> float:
        return self.performance.current_capital

    async def execute(self, signal: LiveSignal) -> Optional[Position]:
        """
        Execute a signal.

        Returns:
            The opened Position, or None for HOLD, undersized trades and
            failed live submissions
        """
        if not signal.is_actionable:
            return None

        quantity = self.position_sizer.calculate_size(self.capital, signal.price)
        if quantity <= 0:
            logger.info(
                f"Position too small for {signal.symbol}: "
                f"${self.position_sizer.calculate_notional(self.capital):.2f} "
                f"at ${signal.price:,.2f}"
            )
            return None

        logger.info(
            f"Executing {signal.classification.value}: {signal.symbol} at ${signal.price:,.2f}"
        )

        if self.mode == ExecutionMode.LIVE_SUBMIT:
            return await self._submit_live(signal, quantity)
        return self._open_paper(signal, quantity)

    def _open_paper(self, signal: LiveSignal, quantity: float) -> Position:
        """Record a paper position and schedule its synthetic close."""
        position = Position(
            id=uuid.uuid4().hex,
            symbol=signal.symbol,
            side=signal.classification,
            entry_price=signal.price,
            quantity=quantity,
            opened_at=_utcnow(),
            synthetic=True,
        )
        self.ledger.open(position)
        self.performance.record_open()

        loop = asyncio.get_running_loop()
        self._close_timers[position.id] = loop.call_later(
            self.close_delay, self.close_position, position.id
        )

        logger.info(
            f"Paper trade #{self.performance.trade_count}: {position.side.value} "
            f"{position.quantity:.6f} {position.symbol} (closes in {self.close_delay:.0f}s)"
        )
        return position

    async def _submit_live(self, signal: LiveSignal, quantity: float) -> Optional[Position]:
        """Submit a market order and record the resulting position."""
        try:
            order = await self.data_feed.submit_market_order(
                signal.symbol, signal.classification.value, quantity
            )
        except Exception as e:
            logger.error(f"Live order failed for {signal.symbol}: {e}")
            return None

        # ccxt reports filled=None when the exchange has not said yet
        filled = order.get("filled")
        if filled is not None and float(filled) <= 0:
            logger.error(
                f"Live order {order.get('id')} for {signal.symbol} was not filled "
                f"(status: {order.get('status')})"
            )
            return None

        position = Position(
            id=str(order.get("id") or uuid.uuid4().hex),
            symbol=signal.symbol,
            side=signal.classification,
            entry_price=float(order.get("average") or signal.price),
            quantity=float(filled) if filled is not None else quantity,
            opened_at=_utcnow(),
            synthetic=False,
        )
        self.ledger.open(position)
        self.performance.record_open()

        # Live positions leave the ledger after the same holding period
        loop = asyncio.get_running_loop()
        self._close_timers[position.id] = loop.call_later(
            self.close_delay, self.close_position, position.id
        )

        logger.warning(
            f"LIVE order {position.id}: {position.side.value} "
            f"{position.quantity:.6f} {position.symbol} @ ${position.entry_price:,.2f}"
        )
        return position

    def close_position(self, position_id: str) -> Optional[PaperTrade]:
        """
        Close a position by id.

        Unknown or already-closed ids are a no-op. Synthetic positions get
        a random P&L applied to the performance counters. Live positions
        are only removed from the ledger.
        """
        timer = self._close_timers.pop(position_id, None)
        if timer is not None:
            timer.cancel()

        position = self.ledger.close(position_id)
        if position is None:
            return None

        if not position.synthetic:
            logger.info(f"Removed live position {position_id} ({position.symbol}) from ledger")
            return None

        pnl = self.position_sizer.calculate_synthetic_pnl(
            position.entry_price, position.quantity, self.rng.random()
        )
        self.performance.record_close(pnl)

        logger.info(
            f"Simulated P&L for {position.symbol}: ${pnl:+.2f} | "
            f"Capital: ${self.capital:,.2f}"
        )
        return PaperTrade(position=position, pnl=pnl, closed_at=_utcnow())

    def pending_closes(self) -> int:
        return len(self._close_timers)

    def shutdown(self):
        """Cancel pending close timers. Open positions stay in the ledger."""
        for timer in self._close_timers.values():
            timer.cancel()
        self._close_timers.clear()

        if len(self.ledger):
            logger.info(f"Executor stopped with {len(self.ledger)} open position(s)")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize executor state for status reporting."""
        return {
            "mode": self.mode.value,
            "capital": self.capital,
            "performance": self.performance.to_dict(),
            "open_positions": [p.to_dict() for p in self.ledger.positions()],
        }
