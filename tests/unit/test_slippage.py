"""Unit tests for engine.slippage module."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

import typing
from decimal import Decimal

import pytest

from engine.slippage import (
    _PRICERS,
    DEFAULT_SLIPPAGE_MODEL,
    LinearSlippage,
    MarketImpactSlippage,
    PercentageSlippage,
    SlippageModel,
    _log_impact,
    calculate_execution_price,
    calculate_slippage,
    slippage_model_from_config,
)
from strategy.types import OrderSide


# ---------------------------------------------------------------------------
# Linear
# ---------------------------------------------------------------------------
class TestLinearSlippage:
    def test_buy_fills_above_quote(self):
        model = LinearSlippage(depth_coefficient=Decimal("100000"))
        price = calculate_execution_price(model, Decimal("0.5"), Decimal("1000"), OrderSide.BUY)
        assert price == Decimal("0.51")

    def test_sell_fills_below_quote(self):
        model = LinearSlippage(depth_coefficient=Decimal("100000"))
        price = calculate_execution_price(model, Decimal("0.5"), Decimal("1000"), OrderSide.SELL)
        assert price == Decimal("0.49")

    def test_impact_scales_with_size(self):
        model = LinearSlippage(depth_coefficient=Decimal("10000"))
        small = calculate_slippage(model, Decimal("0.5"), Decimal("100"), OrderSide.BUY)
        large = calculate_slippage(model, Decimal("0.5"), Decimal("200"), OrderSide.BUY)
        assert small == Decimal("0.01")
        assert large == Decimal("0.02")

    def test_default_depth(self):
        assert DEFAULT_SLIPPAGE_MODEL == LinearSlippage(Decimal("100000"))


# ---------------------------------------------------------------------------
# Percentage
# ---------------------------------------------------------------------------
class TestPercentageSlippage:
    def test_buy_and_sell(self):
        model = PercentageSlippage(rate=Decimal("0.01"))
        buy = calculate_execution_price(model, Decimal("0.5"), Decimal("1"), OrderSide.BUY)
        sell = calculate_execution_price(model, Decimal("0.5"), Decimal("1"), OrderSide.SELL)
        assert buy == Decimal("0.505")
        assert sell == Decimal("0.495")

    def test_independent_of_size(self):
        model = PercentageSlippage(rate=Decimal("0.005"))
        a = calculate_slippage(model, Decimal("0.6"), Decimal("1"), OrderSide.BUY)
        b = calculate_slippage(model, Decimal("0.6"), Decimal("100000"), OrderSide.BUY)
        assert a == b == Decimal("0.003")


# ---------------------------------------------------------------------------
# Market impact
# ---------------------------------------------------------------------------
class TestMarketImpactSlippage:
    def test_size_one_has_no_impact(self):
        model = MarketImpactSlippage(impact_param=Decimal("0.01"))
        price = calculate_execution_price(model, Decimal("0.5"), Decimal("1"), OrderSide.BUY)
        assert price == Decimal("0.5")

    def test_buy_moves_up_sell_moves_down(self):
        model = MarketImpactSlippage(impact_param=Decimal("0.001"))
        buy = calculate_execution_price(model, Decimal("0.5"), Decimal("1000"), OrderSide.BUY)
        sell = calculate_execution_price(model, Decimal("0.5"), Decimal("1000"), OrderSide.SELL)
        assert buy > Decimal("0.5") > sell
        assert float(buy - Decimal("0.5")) == pytest.approx(0.001 * 6.907755, rel=1e-6)

    def test_non_positive_size_yields_zero_impact(self):
        assert _log_impact(Decimal("0.01"), Decimal("0")) == Decimal("0")
        assert _log_impact(Decimal("0.01"), Decimal("-5")) == Decimal("0")

    def test_non_finite_result_yields_zero_impact(self):
        assert _log_impact(Decimal("1e400"), Decimal("10")) == Decimal("0")

    def test_result_is_decimal(self):
        assert isinstance(_log_impact(Decimal("0.01"), Decimal("50")), Decimal)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
class TestDispatch:
    def test_every_variant_has_a_pricer(self):
        assert set(typing.get_args(SlippageModel)) == set(_PRICERS)

    def test_unknown_model_rejected(self):
        with pytest.raises(TypeError):
            calculate_execution_price(object(), Decimal("0.5"), Decimal("1"), OrderSide.BUY)

    def test_slippage_is_absolute(self):
        model = LinearSlippage(Decimal("1000"))
        assert calculate_slippage(model, Decimal("0.5"), Decimal("10"), OrderSide.SELL) == Decimal("0.01")


class TestModelFromConfig:
    def test_linear(self):
        model = slippage_model_from_config("linear", Decimal("5000"), Decimal("0.01"))
        assert model == LinearSlippage(Decimal("5000"))

    def test_percentage(self):
        model = slippage_model_from_config("percentage", Decimal("5000"), Decimal("0.01"))
        assert model == PercentageSlippage(Decimal("0.01"))

    def test_unknown_name_falls_back_to_default(self):
        model = slippage_model_from_config("market_impact", Decimal("5000"), Decimal("0.01"))
        assert model == DEFAULT_SLIPPAGE_MODEL
