"""Historical trade feed for the copy-trade backtester.

Loads tracked-trader trades from CSV or parquet, or generates a deterministic
mock feed. Returns HistoricalTrade lists sorted by UTC timestamp.
"""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Iterable

import pandas as pd
import pyarrow.parquet as pq

from config import BacktestConfig, parse_date, to_decimal
from errors import ConfigError, DataError
from strategy.types import HistoricalTrade, OrderSide

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"market", "side", "price", "size", "timestamp"}
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def load_trades_csv(path: str | Path) -> list[HistoricalTrade]:
    """Load a trade CSV. Prices and sizes are read as strings, not floats."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Trade CSV not found: {path}")
    df = pd.read_csv(path, dtype=str)
    return trades_from_dataframe(df, source=str(path))


def load_trades_parquet(path: str | Path) -> list[HistoricalTrade]:
    """Load a trade parquet file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Parquet file not found: {path}")
    table = pq.read_table(path)
    return trades_from_dataframe(table.to_pandas(), source=str(path))


def generate_mock_trades(n: int = 50) -> list[HistoricalTrade]:
    """Deterministic sample feed across five markets.

    Trade i: BUY on even i, SELL on odd i, price 0.5 + i/100,
    size 100 + 10*i, market ``market_{i % 5}``, one minute apart.
    """
    start = pd.Timestamp("2024-01-01 00:00", tz="UTC")
    trades = []
    for i in range(n):
        trades.append(HistoricalTrade(
            market=f"market_{i % 5}",
            side=OrderSide.BUY if i % 2 == 0 else OrderSide.SELL,
            price=Decimal("0.5") + Decimal(i) / Decimal(100),
            size=Decimal(100) + Decimal(i * 10),
            timestamp=start + pd.Timedelta(minutes=i),
            trader=ZERO_ADDRESS,
        ))
    return trades


def trades_from_dataframe(df: pd.DataFrame, source: str = "") -> list[HistoricalTrade]:
    """Convert a raw feed DataFrame into HistoricalTrade records."""
    df = df.copy()
    df.columns = [str(c).strip().lower() for c in df.columns]

    missing = REQUIRED_COLUMNS - set(df.columns)
    if missing:
        raise DataError(f"Missing columns in {source or 'trade feed'}: {sorted(missing)}")
    if "trader" not in df.columns:
        df["trader"] = ""

    try:
        df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    except (ValueError, TypeError) as exc:
        raise DataError(f"Unparseable timestamps in {source or 'trade feed'}") from exc

    # Stable sort keeps feed order for equal timestamps
    df = df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)

    trades = []
    for row in df.itertuples(index=False):
        try:
            price = to_decimal(row.price)
            size = to_decimal(row.size)
            if not (price.is_finite() and size.is_finite()):
                raise DataError(f"Non-finite price or size in {source or 'trade feed'}: {row}")
            trades.append(HistoricalTrade(
                market=str(row.market),
                side=OrderSide.parse(row.side),
                price=price,
                size=size,
                timestamp=row.timestamp,
                trader="" if pd.isna(row.trader) else str(row.trader),
            ))
        except (ValueError, ConfigError) as exc:
            raise DataError(f"Bad trade row in {source or 'trade feed'}: {row}") from exc

    logger.info("Loaded %d trades from %s", len(trades), source or "dataframe")
    return trades


def trades_to_dataframe(trades: Iterable[HistoricalTrade]) -> pd.DataFrame:
    """Inverse of trades_from_dataframe; decimals are written as strings."""
    rows = [
        {
            "market": t.market,
            "side": t.side.value,
            "price": str(t.price),
            "size": str(t.size),
            "timestamp": t.timestamp,
            "trader": t.trader,
        }
        for t in trades
    ]
    return pd.DataFrame(rows, columns=["market", "side", "price", "size", "timestamp", "trader"])


def filter_date_range(
    trades: Iterable[HistoricalTrade],
    start_date: str,
    end_date: str,
) -> list[HistoricalTrade]:
    """Keep trades from start_date 00:00:00 through end_date 23:59:59 UTC.

    Timezone-naive trade timestamps are read as UTC.
    """
    start_day = parse_date(start_date, "start_date")
    end_day = parse_date(end_date, "end_date")
    if start_day > end_day:
        raise ConfigError(f"start_date {start_date} is after end_date {end_date}")

    start = pd.Timestamp(start_day, tz="UTC")
    end = pd.Timestamp(end_day, tz="UTC") + pd.Timedelta(hours=23, minutes=59, seconds=59)
    return [t for t in trades if start <= _as_utc(t.timestamp) <= end]


def _as_utc(ts: pd.Timestamp) -> pd.Timestamp:
    ts = pd.Timestamp(ts)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts


def load_trades(config: BacktestConfig) -> list[HistoricalTrade]:
    """Load the configured feed (unfiltered)."""
    source = config.data_source
    if source == "mock":
        logger.info("Generating mock trade feed")
        return generate_mock_trades()
    if source == "csv_file":
        logger.info("Loading trades from CSV file: %s", config.data_file)
        return load_trades_csv(config.data_file)
    if source == "parquet_file":
        logger.info("Loading trades from parquet file: %s", config.data_file)
        return load_trades_parquet(config.data_file)
    raise ConfigError(f"Unknown data source: {source}")
