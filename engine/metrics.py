"""Performance analytics for backtest results."""

from decimal import Decimal
from typing import Sequence

import numpy as np

from engine.types import BacktestResults, ClosedPosition, ExecutedTrade

ZERO = Decimal("0")
HUNDRED = Decimal("100")
# Reported instead of infinity when there are wins but no losses.
PROFIT_FACTOR_CAP = Decimal("1000")


def compute_max_drawdown(initial_balance: Decimal, pnls: Sequence[Decimal]) -> Decimal:
    """Max peak-to-trough decline of the running balance, in percent.

    The balance path is initial_balance + cumulative pnl, taken in the order
    given. Reordering the same pnls can change the result.
    """
    peak = initial_balance
    balance = initial_balance
    max_dd = ZERO
    for pnl in pnls:
        balance += pnl
        if balance > peak:
            peak = balance
        if peak <= 0:
            continue
        dd = (peak - balance) / peak
        if dd > max_dd:
            max_dd = dd
    return max_dd * HUNDRED


def drawdown_series(equity_curve: np.ndarray) -> np.ndarray:
    """Fractional drawdown at each point of a float equity curve (<= 0).

    Plotting view of compute_max_drawdown; points under a non-positive peak
    read as 0.
    """
    if len(equity_curve) == 0:
        return np.zeros(0, dtype=np.float64)
    peak = np.maximum.accumulate(equity_curve)
    safe_peak = np.where(peak > 0, peak, 1.0)
    return np.where(peak > 0, (equity_curve - peak) / safe_peak, 0.0)


def compute_sharpe_ratio(pnls: Sequence[Decimal]) -> Decimal:
    """Mean pnl over population std of pnl, risk-free rate 0."""
    n = len(pnls)
    if n == 0:
        return ZERO
    count = Decimal(n)
    mean = sum(pnls, ZERO) / count
    variance = sum(((p - mean) * (p - mean) for p in pnls), ZERO) / count
    std = variance.sqrt()
    if std == 0:
        return ZERO
    return mean / std


def compute_trade_stats(pnls: Sequence[Decimal]) -> dict:
    """Counts, win rate, average win/loss and profit factor."""
    total = len(pnls)
    wins = [p for p in pnls if p > 0]
    losses = [-p for p in pnls if p < 0]

    win_rate = Decimal(len(wins)) / Decimal(total) * HUNDRED if total else ZERO
    avg_win = sum(wins, ZERO) / Decimal(len(wins)) if wins else ZERO
    avg_loss = sum(losses, ZERO) / Decimal(len(losses)) if losses else ZERO

    if total == 0:
        profit_factor = ZERO
    elif avg_loss == 0:
        profit_factor = PROFIT_FACTOR_CAP
    else:
        profit_factor = avg_win / avg_loss

    return {
        "total_trades": total,
        "winning_trades": len(wins),
        "losing_trades": len(losses),
        "win_rate": win_rate,
        "avg_win": avg_win,
        "avg_loss": avg_loss,
        "profit_factor": profit_factor,
    }


class PerformanceMetrics:
    """Accumulates executions and closes during a run; reports once at the end."""

    def __init__(self, initial_balance: Decimal) -> None:
        self._initial_balance = Decimal(initial_balance)
        self._trades: list[ExecutedTrade] = []
        self._closed: list[ClosedPosition] = []

    @property
    def initial_balance(self) -> Decimal:
        return self._initial_balance

    @property
    def trades(self) -> tuple[ExecutedTrade, ...]:
        return tuple(self._trades)

    @property
    def closed_positions(self) -> tuple[ClosedPosition, ...]:
        return tuple(self._closed)

    def record_trade(self, trade: ExecutedTrade) -> None:
        self._trades.append(trade)

    def record_closed_position(self, position: ClosedPosition) -> None:
        self._closed.append(position)

    def generate_report(self) -> BacktestResults:
        """Build the report from the full closed-position history."""
        pnls = [c.pnl for c in self._closed]
        total_pnl = sum(pnls, ZERO)
        stats = compute_trade_stats(pnls)

        if self._initial_balance > 0:
            roi = total_pnl / self._initial_balance * HUNDRED
        else:
            roi = ZERO

        return BacktestResults(
            total_trades=stats["total_trades"],
            winning_trades=stats["winning_trades"],
            losing_trades=stats["losing_trades"],
            win_rate=stats["win_rate"],
            total_pnl=total_pnl,
            roi=roi,
            avg_win=stats["avg_win"],
            avg_loss=stats["avg_loss"],
            profit_factor=stats["profit_factor"],
            max_drawdown=compute_max_drawdown(self._initial_balance, pnls),
            sharpe_ratio=compute_sharpe_ratio(pnls),
            initial_balance=self._initial_balance,
            final_balance=self._initial_balance + total_pnl,
        )

    def total_fees(self) -> Decimal:
        """Entry fees paid across all executions."""
        return sum((t.fee for t in self._trades), ZERO)

    def total_slippage(self) -> Decimal:
        """Slippage cost in quote currency: per-unit slippage times size."""
        return sum((t.slippage * t.position.size for t in self._trades), ZERO)

    def equity_curve(self) -> np.ndarray:
        """Balance after each close, starting with the initial balance.

        Float view for plotting; the report itself never reads it.
        """
        balances = [self._initial_balance]
        for closed in self._closed:
            balances.append(balances[-1] + closed.pnl)
        return np.array([float(b) for b in balances], dtype=np.float64)
