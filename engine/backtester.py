"""Main backtest orchestrator: trade feed in, performance report out."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional

import numpy as np
import pandas as pd

from config import Config
from data.loader import filter_date_range, load_trades
from engine.events import EventLog, SkipReason
from engine.metrics import PerformanceMetrics
from engine.simulator import TradeSimulator
from engine.slippage import SlippageModel, slippage_model_from_config
from engine.trade_log import closed_positions_to_dataframe, executed_trades_to_dataframe
from engine.types import BacktestResults
from errors import BelowMinimumSize, BacktestError, InsufficientBalance
from strategy.risk import PositionSizer
from strategy.types import HistoricalTrade

logger = logging.getLogger(__name__)

PROGRESS_EVERY = 100


@dataclass
class BacktestResult:
    """Complete output of a backtest run."""
    report: BacktestResults
    trade_log: pd.DataFrame
    closed_positions: pd.DataFrame
    events: pd.DataFrame
    equity_curve: np.ndarray
    config: Config
    simulator_balance: Decimal
    total_fees: Decimal
    total_slippage: Decimal
    n_input_trades: int
    skipped: dict[SkipReason, int] = field(default_factory=dict)

    @property
    def reconciliation_gap(self) -> Decimal:
        """Simulator balance minus the report's derived final balance.

        Zero for fee-free runs that only open BUY positions. SELL opens
        credit proceeds that closing never offsets, and entry fees are not
        part of reported pnl, so either makes the gap non-zero.
        """
        return self.simulator_balance - self.report.final_balance


def first_seen_prices(trades: Iterable[HistoricalTrade]) -> dict[str, Decimal]:
    """Mark price per market: the price of the first trade seen in it.

    The first, not the latest, trade price is used for end-of-run closes.
    """
    prices: dict[str, Decimal] = {}
    for trade in trades:
        prices.setdefault(trade.market, trade.price)
    return prices


class Backtester:
    """Replays a tracked trader's history through sizing, execution and metrics."""

    def __init__(
        self,
        config: Config,
        slippage_model: Optional[SlippageModel] = None,
    ) -> None:
        self._config = config
        bt = config.backtest
        if slippage_model is None:
            slippage_model = slippage_model_from_config(
                bt.slippage_model, bt.depth_coefficient, bt.slippage_percentage
            )
        self._slippage_model = slippage_model
        self._sizer = PositionSizer(config.position_sizing)
        self._simulator: Optional[TradeSimulator] = None
        self._metrics: Optional[PerformanceMetrics] = None
        self._event_log: Optional[EventLog] = None

    @property
    def slippage_model(self) -> SlippageModel:
        return self._slippage_model

    def run(self, trades: Optional[Iterable[HistoricalTrade]] = None) -> BacktestResult:
        """Execute the full backtest.

        ``trades`` overrides the configured data source. Either way the feed
        is filtered to the configured date range before simulation starts.
        """
        # 1. Validate before touching any state
        self._config.validate()
        bt = self._config.backtest

        # 2. Load and filter
        if trades is None:
            trades = load_trades(bt)
        market_data = filter_date_range(trades, bt.start_date, bt.end_date)
        n_trades = len(market_data)
        logger.info("Starting backtest simulation over %d historical trades", n_trades)

        # 3. Fresh per-run state
        self._simulator = TradeSimulator(bt.initial_balance_usdc, bt.effective_fee_rate_bps)
        self._metrics = PerformanceMetrics(bt.initial_balance_usdc)
        self._event_log = EventLog()
        start_ts = market_data[0].timestamp if market_data else pd.Timestamp.now(tz="UTC")
        self._event_log.run_started(start_ts, n_trades, bt.initial_balance_usdc)

        # 4. Main loop
        for idx, trade in enumerate(market_data):
            if (idx + 1) % PROGRESS_EVERY == 0:
                logger.info("Processed %d/%d trades", idx + 1, n_trades)
            self._process_trade(trade)

        # 5. Close remaining open positions at first-seen prices
        logger.info("Closing %d open positions", self._simulator.open_position_count)
        end_ts = market_data[-1].timestamp if market_data else start_ts
        marks = first_seen_prices(market_data)
        for closed in self._simulator.close_all_positions(marks, end_ts):
            self._metrics.record_closed_position(closed)
            self._event_log.position_closed(closed)

        # 6. Report
        report = self._metrics.generate_report()
        self._check_reconciliation(report)
        self._event_log.run_completed(end_ts, report)
        skipped = self._event_log.skip_counts()
        if skipped:
            logger.info(
                "Skipped %d trades: %s", sum(skipped.values()),
                ", ".join(f"{r.value}={n}" for r, n in skipped.items()),
            )
        logger.info(
            "Backtest complete: %d closed positions, total pnl %s",
            report.total_trades, report.total_pnl,
        )

        return BacktestResult(
            report=report,
            trade_log=executed_trades_to_dataframe(self._metrics.trades),
            closed_positions=closed_positions_to_dataframe(self._metrics.closed_positions),
            events=self._event_log.to_dataframe(),
            equity_curve=self._metrics.equity_curve(),
            config=self._config,
            simulator_balance=self._simulator.balance,
            total_fees=self._metrics.total_fees(),
            total_slippage=self._metrics.total_slippage(),
            n_input_trades=n_trades,
            skipped=skipped,
        )

    def _process_trade(self, trade: HistoricalTrade) -> None:
        """Size, execute and record one copied trade."""
        try:
            size = self._sizer.calculate_position_size(trade.size, self._simulator.balance)
        except BacktestError as exc:
            reason = (
                SkipReason.BELOW_MINIMUM_SIZE
                if isinstance(exc, BelowMinimumSize) else SkipReason.SIZING_ERROR
            )
            logger.debug("Skipping trade in %s: %s", trade.market, exc)
            self._event_log.trade_skipped(trade, reason, str(exc))
            return

        try:
            executed = self._simulator.simulate_execution(
                trade.market,
                trade.side,
                size,
                trade.price,
                self._slippage_model,
                timestamp=trade.timestamp,
            )
        except InsufficientBalance as exc:
            logger.debug("Skipping trade in %s: %s", trade.market, exc)
            self._event_log.trade_skipped(trade, SkipReason.INSUFFICIENT_BALANCE, str(exc))
            return

        self._metrics.record_trade(executed)
        self._event_log.trade_executed(executed)

    def _check_reconciliation(self, report: BacktestResults) -> None:
        """initial + sum(closed pnl) should equal the simulator's own balance."""
        if report.final_balance != self._simulator.balance:
            logger.warning(
                "Balance reconciliation mismatch: report %s, simulator %s",
                report.final_balance, self._simulator.balance,
            )


def run_backtest(
    config: Config,
    trades: Optional[Iterable[HistoricalTrade]] = None,
) -> BacktestResult:
    """Convenience entry point.

    Usage:
        from config import load_config
        from engine.backtester import run_backtest

        config = load_config()
        result = run_backtest(config)
    """
    return Backtester(config).run(trades)
