"""Slippage pricing: quote price + order size + side -> execution price.

A slippage model is one of a closed set of frozen dataclasses. Each variant
has exactly one pricing function, registered in ``_PRICERS``. Adding a
variant means adding it to ``SlippageModel`` and to ``_PRICERS``.

All arithmetic is Decimal except ``_log_impact``, which is the only place a
float is allowed.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, Union

from strategy.types import OrderSide

logger = logging.getLogger(__name__)

DEFAULT_DEPTH_COEFFICIENT = Decimal("100000")


@dataclass(frozen=True)
class LinearSlippage:
    """Impact grows linearly with size: size / depth_coefficient."""
    depth_coefficient: Decimal = DEFAULT_DEPTH_COEFFICIENT


@dataclass(frozen=True)
class PercentageSlippage:
    """Fixed fraction of the quote price, regardless of size."""
    rate: Decimal


@dataclass(frozen=True)
class MarketImpactSlippage:
    """Logarithmic impact: impact_param * ln(size)."""
    impact_param: Decimal


SlippageModel = Union[LinearSlippage, PercentageSlippage, MarketImpactSlippage]

DEFAULT_SLIPPAGE_MODEL = LinearSlippage()


def _apply_impact(quote_price: Decimal, impact: Decimal, side: OrderSide) -> Decimal:
    if side == OrderSide.BUY:
        return quote_price + impact
    return quote_price - impact


def _price_linear(
    model: LinearSlippage, quote_price: Decimal, size: Decimal, side: OrderSide
) -> Decimal:
    impact = size / model.depth_coefficient
    return _apply_impact(quote_price, impact, side)


def _price_percentage(
    model: PercentageSlippage, quote_price: Decimal, size: Decimal, side: OrderSide
) -> Decimal:
    if side == OrderSide.BUY:
        return quote_price * (Decimal("1") + model.rate)
    return quote_price * (Decimal("1") - model.rate)


def _log_impact(impact_param: Decimal, size: Decimal) -> Decimal:
    """impact_param * ln(size), computed in float and converted back.

    Any failure along the way (non-positive size, overflow, non-finite
    result) yields zero impact.
    """
    try:
        value = float(impact_param) * math.log(float(size))
        if not math.isfinite(value):
            return Decimal("0")
        return Decimal(repr(value))
    except (ValueError, OverflowError, InvalidOperation):
        return Decimal("0")


def _price_market_impact(
    model: MarketImpactSlippage, quote_price: Decimal, size: Decimal, side: OrderSide
) -> Decimal:
    impact = _log_impact(model.impact_param, size)
    return _apply_impact(quote_price, impact, side)


_PRICERS: dict[type, Callable[..., Decimal]] = {
    LinearSlippage: _price_linear,
    PercentageSlippage: _price_percentage,
    MarketImpactSlippage: _price_market_impact,
}


def calculate_execution_price(
    model: SlippageModel,
    quote_price: Decimal,
    size: Decimal,
    side: OrderSide,
) -> Decimal:
    """Execution price after slippage. Buys fill higher, sells lower."""
    try:
        pricer = _PRICERS[type(model)]
    except KeyError:
        raise TypeError(f"Not a slippage model: {model!r}") from None
    return pricer(model, quote_price, size, side)


def calculate_slippage(
    model: SlippageModel,
    quote_price: Decimal,
    size: Decimal,
    side: OrderSide,
) -> Decimal:
    """Absolute per-unit distance between execution and quote price."""
    return abs(calculate_execution_price(model, quote_price, size, side) - quote_price)


def slippage_model_from_config(
    name: str,
    depth_coefficient: Decimal,
    slippage_percentage: Decimal,
) -> SlippageModel:
    """Map a configured model name to a model.

    "linear" and "percentage" are recognised; any other name silently falls
    back to DEFAULT_SLIPPAGE_MODEL.
    """
    if name == "linear":
        return LinearSlippage(depth_coefficient=depth_coefficient)
    if name == "percentage":
        return PercentageSlippage(rate=slippage_percentage)
    logger.debug("Slippage model %r not recognised, using default linear", name)
    return DEFAULT_SLIPPAGE_MODEL
