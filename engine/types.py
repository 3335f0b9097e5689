"""Position, fill and report types for the simulation engine.

Every monetary and price field is a ``Decimal``.
"""

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any

import pandas as pd

from strategy.types import OrderSide


@dataclass
class Position:
    """An open position, owned by the simulator until it is closed."""

    market_id: str
    entry_price: Decimal
    size: Decimal
    side: OrderSide
    timestamp: pd.Timestamp
    pnl: Decimal = Decimal("0")


@dataclass(frozen=True)
class ClosedPosition:
    position: Position
    exit_price: Decimal
    pnl: Decimal  # net of the exit fee only
    exit_timestamp: pd.Timestamp


@dataclass(frozen=True)
class ExecutedTrade:
    position: Position
    actual_price: Decimal
    slippage: Decimal  # per-unit price distance from the quote
    fee: Decimal


@dataclass(frozen=True)
class BacktestResults:
    """Performance report. Values are stored at full precision."""

    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    win_rate: Decimal = Decimal("0")
    total_pnl: Decimal = Decimal("0")
    roi: Decimal = Decimal("0")
    avg_win: Decimal = Decimal("0")
    avg_loss: Decimal = Decimal("0")
    profit_factor: Decimal = Decimal("0")
    max_drawdown: Decimal = Decimal("0")
    sharpe_ratio: Decimal = Decimal("0")
    initial_balance: Decimal = Decimal("0")
    final_balance: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; decimals are encoded as strings."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = str(value) if isinstance(value, Decimal) else value
        return out
