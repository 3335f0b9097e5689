"""Audit trail of a backtest run: what was copied, what was skipped and why."""

from collections import Counter
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

import pandas as pd

from engine.types import BacktestResults, ClosedPosition, ExecutedTrade
from strategy.types import HistoricalTrade, OrderSide


class EventType(str, Enum):
    RUN_STARTED = "RUN_STARTED"
    TRADE_EXECUTED = "TRADE_EXECUTED"
    TRADE_SKIPPED = "TRADE_SKIPPED"
    POSITION_CLOSED = "POSITION_CLOSED"
    RUN_COMPLETED = "RUN_COMPLETED"


class SkipReason(str, Enum):
    BELOW_MINIMUM_SIZE = "BELOW_MINIMUM_SIZE"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    SIZING_ERROR = "SIZING_ERROR"


EVENT_COLUMNS = [
    "type", "timestamp", "market_id", "side", "size", "price",
    "fee", "pnl", "balance", "trade_count", "reason", "message",
]


@dataclass(frozen=True)
class Event:
    """One audit record. Fields that do not apply to ``type`` stay None.

    ``price`` is the fill price for executions, the copied trader's quote
    for skips and the exit price for closes. ``balance`` and ``trade_count``
    are only set on run start/completion.
    """

    type: EventType
    timestamp: pd.Timestamp
    market_id: str = ""
    side: Optional[OrderSide] = None
    size: Optional[Decimal] = None
    price: Optional[Decimal] = None
    fee: Optional[Decimal] = None
    pnl: Optional[Decimal] = None
    balance: Optional[Decimal] = None
    trade_count: Optional[int] = None
    reason: Optional[SkipReason] = None
    message: str = ""

    def to_row(self) -> dict:
        """Flat row for DataFrame export; decimals become floats."""
        def _num(value: Optional[Decimal]) -> Optional[float]:
            return None if value is None else float(value)

        return {
            "type": self.type.value,
            "timestamp": self.timestamp,
            "market_id": self.market_id,
            "side": None if self.side is None else self.side.value,
            "size": _num(self.size),
            "price": _num(self.price),
            "fee": _num(self.fee),
            "pnl": _num(self.pnl),
            "balance": _num(self.balance),
            "trade_count": self.trade_count,
            "reason": None if self.reason is None else self.reason.value,
            "message": self.message,
        }


class EventLog:
    """Append-only record of one run, built through the typed recorders below."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    # -- recorders ---------------------------------------------------------

    def run_started(self, timestamp: pd.Timestamp, n_trades: int,
                    initial_balance: Decimal) -> Event:
        return self._append(Event(
            EventType.RUN_STARTED, timestamp,
            balance=initial_balance, trade_count=n_trades,
        ))

    def trade_executed(self, trade: ExecutedTrade) -> Event:
        pos = trade.position
        return self._append(Event(
            EventType.TRADE_EXECUTED, pos.timestamp, pos.market_id,
            side=pos.side, size=pos.size, price=trade.actual_price, fee=trade.fee,
        ))

    def trade_skipped(self, trade: HistoricalTrade, reason: SkipReason,
                      message: str = "") -> Event:
        return self._append(Event(
            EventType.TRADE_SKIPPED, trade.timestamp, trade.market,
            side=trade.side, size=trade.size, price=trade.price,
            reason=reason, message=message,
        ))

    def position_closed(self, closed: ClosedPosition) -> Event:
        pos = closed.position
        return self._append(Event(
            EventType.POSITION_CLOSED, closed.exit_timestamp, pos.market_id,
            side=pos.side, size=pos.size, price=closed.exit_price, pnl=closed.pnl,
        ))

    def run_completed(self, timestamp: pd.Timestamp, report: BacktestResults) -> Event:
        return self._append(Event(
            EventType.RUN_COMPLETED, timestamp,
            pnl=report.total_pnl, balance=report.final_balance,
            trade_count=report.total_trades,
        ))

    def _append(self, event: Event) -> Event:
        self._events.append(event)
        return event

    # -- queries -----------------------------------------------------------

    def get_events(self, event_type: Optional[EventType] = None) -> list[Event]:
        if event_type is None:
            return list(self._events)
        return [e for e in self._events if e.type == event_type]

    def count(self, event_type: EventType) -> int:
        return sum(1 for e in self._events if e.type == event_type)

    def skip_counts(self) -> dict[SkipReason, int]:
        """Skipped trades per reason; reasons that never occurred are omitted."""
        return dict(Counter(
            e.reason for e in self._events
            if e.type == EventType.TRADE_SKIPPED and e.reason is not None
        ))

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([e.to_row() for e in self._events], columns=EVENT_COLUMNS)

    def __iter__(self) -> Iterator[Event]:
        return iter(self._events)

    def __len__(self) -> int:
        return len(self._events)
