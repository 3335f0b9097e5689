"""Tabular views of executed trades and closed positions."""

from pathlib import Path
from typing import Iterable

import pandas as pd

from engine.types import ClosedPosition, ExecutedTrade

TRADE_COLUMNS = [
    "timestamp", "market_id", "side", "size", "actual_price",
    "slippage", "fee", "notional",
]

CLOSED_COLUMNS = [
    "entry_time", "exit_time", "market_id", "side", "size",
    "entry_price", "exit_price", "pnl", "outcome",
]


def classify_outcome(pnl) -> str:
    """WIN, LOSS or BREAKEVEN (exactly zero pnl)."""
    if pnl > 0:
        return "WIN"
    if pnl < 0:
        return "LOSS"
    return "BREAKEVEN"


def executed_trades_to_dataframe(trades: Iterable[ExecutedTrade]) -> pd.DataFrame:
    """One row per execution. Decimal values become floats in this view."""
    rows = []
    for t in trades:
        pos = t.position
        rows.append({
            "timestamp": pos.timestamp,
            "market_id": pos.market_id,
            "side": pos.side.value,
            "size": float(pos.size),
            "actual_price": float(t.actual_price),
            "slippage": float(t.slippage),
            "fee": float(t.fee),
            "notional": float(pos.size * t.actual_price),
        })
    if not rows:
        return pd.DataFrame(columns=TRADE_COLUMNS)
    return pd.DataFrame(rows, columns=TRADE_COLUMNS)


def closed_positions_to_dataframe(closed: Iterable[ClosedPosition]) -> pd.DataFrame:
    """One row per closed position, in close order."""
    rows = []
    for c in closed:
        pos = c.position
        rows.append({
            "entry_time": pos.timestamp,
            "exit_time": c.exit_timestamp,
            "market_id": pos.market_id,
            "side": pos.side.value,
            "size": float(pos.size),
            "entry_price": float(pos.entry_price),
            "exit_price": float(c.exit_price),
            "pnl": float(c.pnl),
            "outcome": classify_outcome(c.pnl),
        })
    if not rows:
        return pd.DataFrame(columns=CLOSED_COLUMNS)
    return pd.DataFrame(rows, columns=CLOSED_COLUMNS)


def export_trade_log(path: str | Path, trades: Iterable[ExecutedTrade]) -> None:
    """Export executed trades to CSV."""
    executed_trades_to_dataframe(trades).to_csv(path, index=False)


def export_closed_positions(path: str | Path, closed: Iterable[ClosedPosition]) -> None:
    """Export closed positions to CSV."""
    closed_positions_to_dataframe(closed).to_csv(path, index=False)
