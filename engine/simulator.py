"""Balance ledger and position book for backtesting."""

import logging
from decimal import Decimal
from typing import Mapping, Optional

import pandas as pd

from engine.slippage import SlippageModel, calculate_execution_price
from engine.types import ClosedPosition, ExecutedTrade, Position
from errors import InsufficientBalance, SimulationError
from strategy.types import OrderSide

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = Decimal("10000")


def _now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


class TradeSimulator:
    """Executes trades against a single balance and tracks open positions.

    Positions are kept in insertion order and never netted: a SELL in a
    market with an open BUY opens a second, independent position. Closing a
    market always takes the oldest open position in it.
    """

    def __init__(self, initial_balance: Decimal, fee_rate_bps: int = 0) -> None:
        self._balance: Decimal = Decimal(initial_balance)
        self._fee_rate: Decimal = Decimal(fee_rate_bps) / BPS_DENOMINATOR
        self._positions: list[Position] = []

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def positions(self) -> tuple[Position, ...]:
        """Open positions, oldest first."""
        return tuple(self._positions)

    @property
    def open_position_count(self) -> int:
        return len(self._positions)

    def _fee(self, notional: Decimal) -> Decimal:
        return notional * self._fee_rate

    def simulate_execution(
        self,
        market_id: str,
        side: OrderSide,
        size: Decimal,
        quote_price: Decimal,
        slippage_model: SlippageModel,
        timestamp: Optional[pd.Timestamp] = None,
    ) -> ExecutedTrade:
        """Fill a trade at the slippage-adjusted price and open a position.

        BUY debits cost + fee and raises InsufficientBalance, leaving the
        ledger untouched, when that exceeds the balance. SELL credits
        cost + fee.
        """
        actual_price = calculate_execution_price(slippage_model, quote_price, size, side)
        slippage = abs(actual_price - quote_price)

        cost = size * actual_price
        fee = self._fee(cost)
        total_cost = cost + fee

        if side == OrderSide.BUY:
            if total_cost > self._balance:
                raise InsufficientBalance(required=total_cost, available=self._balance)
            self._balance -= total_cost
        else:
            self._balance += total_cost

        position = Position(
            market_id=market_id,
            entry_price=actual_price,
            size=size,
            side=side,
            timestamp=timestamp if timestamp is not None else _now(),
        )
        self._positions.append(position)

        return ExecutedTrade(
            position=position,
            actual_price=actual_price,
            slippage=slippage,
            fee=fee,
        )

    def close_position(
        self,
        market_id: str,
        exit_price: Decimal,
        timestamp: Optional[pd.Timestamp] = None,
    ) -> ClosedPosition:
        """Close the oldest open position in ``market_id`` at ``exit_price``.

        The balance is credited with size * exit_price less the exit fee.
        The reported P&L is directional P&L less the exit fee; the entry fee
        was already debited at open time and is not subtracted again.
        """
        for idx, pos in enumerate(self._positions):
            if pos.market_id == market_id:
                break
        else:
            raise SimulationError(f"Position not found: {market_id}")

        position = self._positions.pop(idx)

        if position.side == OrderSide.BUY:
            pnl = (exit_price - position.entry_price) * position.size
        else:
            pnl = (position.entry_price - exit_price) * position.size

        exit_cost = position.size * exit_price
        exit_fee = self._fee(exit_cost)
        self._balance += exit_cost - exit_fee

        return ClosedPosition(
            position=position,
            exit_price=exit_price,
            pnl=pnl - exit_fee,
            exit_timestamp=timestamp if timestamp is not None else _now(),
        )

    def close_all_positions(
        self,
        market_prices: Mapping[str, Decimal],
        timestamp: Optional[pd.Timestamp] = None,
    ) -> list[ClosedPosition]:
        """Close every open position, oldest first.

        Each position exits at its market's price in ``market_prices``, or at
        its own entry price when the market has no price.
        """
        closed: list[ClosedPosition] = []
        while self._positions:
            position = self._positions[0]
            exit_price = market_prices.get(position.market_id, position.entry_price)
            closed.append(self.close_position(position.market_id, exit_price, timestamp))
        logger.debug("Closed %d positions", len(closed))
        return closed

    def total_value(self, market_prices: Mapping[str, Decimal]) -> Decimal:
        """Balance plus every open position marked at market (or entry) price."""
        total = self._balance
        for position in self._positions:
            price = market_prices.get(position.market_id, position.entry_price)
            total += position.size * price
        return total
