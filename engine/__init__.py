"""Backtest engine: slippage, execution ledger, metrics and orchestration."""

from engine.backtester import run_backtest, Backtester, BacktestResult
from engine.simulator import TradeSimulator
from engine.slippage import (
    LinearSlippage,
    MarketImpactSlippage,
    PercentageSlippage,
    SlippageModel,
    calculate_execution_price,
    calculate_slippage,
)
from engine.metrics import PerformanceMetrics
from engine.events import EventLog, EventType
from engine.types import BacktestResults, ClosedPosition, ExecutedTrade, Position
from strategy.types import HistoricalTrade, OrderSide

__all__ = [
    "run_backtest",
    "Backtester",
    "BacktestResult",
    "TradeSimulator",
    "LinearSlippage",
    "MarketImpactSlippage",
    "PercentageSlippage",
    "SlippageModel",
    "calculate_execution_price",
    "calculate_slippage",
    "PerformanceMetrics",
    "EventLog",
    "EventType",
    "BacktestResults",
    "ClosedPosition",
    "ExecutedTrade",
    "HistoricalTrade",
    "OrderSide",
    "Position",
]
