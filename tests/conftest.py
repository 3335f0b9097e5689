"""Shared test fixtures for the copy-trade backtester."""

import sys
from decimal import Decimal
from pathlib import Path

import pandas as pd
import pytest

# Ensure project root is on sys.path
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config import Config  # noqa: E402
from strategy.types import HistoricalTrade, OrderSide  # noqa: E402

START = pd.Timestamp("2024-01-02 09:00", tz="UTC")


def make_trade(
    market: str = "market_0",
    side: OrderSide = OrderSide.BUY,
    price: str = "0.5",
    size: str = "100",
    minute: int = 0,
) -> HistoricalTrade:
    """Build one HistoricalTrade ``minute`` minutes after START."""
    return HistoricalTrade(
        market=market,
        side=side,
        price=Decimal(price),
        size=Decimal(size),
        timestamp=START + pd.Timedelta(minutes=minute),
    )


@pytest.fixture
def default_config() -> Config:
    """Default configuration: mock feed, linear slippage, no fees."""
    return Config()


@pytest.fixture
def buy_only_trades() -> list[HistoricalTrade]:
    """Three BUYs across two markets, one minute apart."""
    return [
        make_trade("market_a", OrderSide.BUY, "0.40", "100", minute=0),
        make_trade("market_b", OrderSide.BUY, "0.60", "200", minute=1),
        make_trade("market_a", OrderSide.BUY, "0.45", "150", minute=2),
    ]


@pytest.fixture
def mixed_trades() -> list[HistoricalTrade]:
    """BUYs and SELLs across two markets."""
    return [
        make_trade("market_a", OrderSide.BUY, "0.40", "100", minute=0),
        make_trade("market_b", OrderSide.SELL, "0.70", "50", minute=1),
        make_trade("market_a", OrderSide.SELL, "0.55", "80", minute=2),
        make_trade("market_b", OrderSide.BUY, "0.65", "120", minute=3),
    ]


@pytest.fixture
def trade_csv(tmp_path) -> Path:
    """A small trade CSV written out of timestamp order."""
    path = tmp_path / "trades.csv"
    path.write_text(
        "market,side,price,size,timestamp,trader\n"
        "market_b,sell,0.70,50,2024-01-02T09:01:00Z,0xabc\n"
        "market_a,BUY,0.40,100,2024-01-02T09:00:00Z,0xabc\n"
        "market_a,Buy,0.1,25,2024-01-03T12:00:00Z,\n",
        encoding="utf-8",
    )
    return path
