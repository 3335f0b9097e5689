"""Shared input types: the tracked trader's trades as the strategy sees them."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any

import pandas as pd


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @classmethod
    def parse(cls, value: Any) -> "OrderSide":
        """Accept 'buy', 'BUY', 'Buy' or an OrderSide."""
        if isinstance(value, OrderSide):
            return value
        return cls(str(value).strip().upper())


@dataclass(frozen=True)
class HistoricalTrade:
    """One trade made by a tracked trader, as read from the feed."""

    market: str
    side: OrderSide
    price: Decimal
    size: Decimal
    timestamp: pd.Timestamp
    trader: str = ""
