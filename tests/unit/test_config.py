"""Tests for configuration loading and validation."""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config import (
    BacktestConfig,
    Config,
    LoggingConfig,
    PositionSizingConfig,
    configure_logging,
    load_config,
    parse_date,
    to_bool,
    to_decimal,
)
from errors import ConfigError


class TestDefaults:
    def test_default_values(self):
        cfg = Config()
        assert cfg.backtest.initial_balance_usdc == Decimal("10000")
        assert cfg.backtest.data_source == "mock"
        assert cfg.backtest.slippage_model == "linear"
        assert cfg.backtest.depth_coefficient == Decimal("100000")
        assert cfg.position_sizing.strategy == "hybrid"
        assert cfg.position_sizing.max_position_size_relative == Decimal("0.1")
        assert cfg.logging.level == "INFO"

    def test_defaults_validate(self):
        Config().validate()

    def test_fees_off_by_default(self):
        bt = BacktestConfig(fee_rate_bps=50)
        assert bt.effective_fee_rate_bps == 0
        assert BacktestConfig(fee_rate_bps=50, apply_fees=True).effective_fee_rate_bps == 50


class TestToDecimal:
    def test_float_goes_through_str(self):
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_str(self):
        assert to_decimal(10000) == Decimal("10000")
        assert to_decimal(" 2.5 ") == Decimal("2.5")

    def test_rejects_garbage(self):
        with pytest.raises(ConfigError):
            to_decimal("ten")


class TestApplyFeesFlag:
    @pytest.mark.parametrize("raw", ["false", "False", "0", "no", "off", "", 0])
    def test_false_strings_disable_fees(self, raw):
        bt = BacktestConfig(apply_fees=raw, fee_rate_bps=50)
        assert bt.apply_fees is False
        assert bt.effective_fee_rate_bps == 0

    @pytest.mark.parametrize("raw", ["true", " TRUE ", "1", "yes", "on", 1])
    def test_true_strings_enable_fees(self, raw):
        assert BacktestConfig(apply_fees=raw, fee_rate_bps=50).effective_fee_rate_bps == 50

    @pytest.mark.parametrize("raw", ["maybe", 2, 0.5, None])
    def test_rejects_ambiguous_values(self, raw):
        with pytest.raises(ConfigError):
            to_bool(raw)

    def test_quoted_yaml_false(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "backtest:\n"
            "  apply_fees: \"false\"\n"
            "  fee_rate_bps: 25\n",
            encoding="utf-8",
        )
        assert load_config(path).backtest.effective_fee_rate_bps == 0


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        cfg = load_config(tmp_path / "nope.yaml")
        assert cfg == Config()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        assert load_config(path) == Config()

    def test_nested_sections(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "backtest:\n"
            "  initial_balance_usdc: 2500.50\n"
            "  slippage_model: percentage\n"
            "  slippage_percentage: 0.01\n"
            "  apply_fees: true\n"
            "  fee_rate_bps: 25\n"
            "position_sizing:\n"
            "  strategy: relative\n"
            "  max_position_size_relative: 0.2\n"
            "logging:\n"
            "  level: DEBUG\n"
            "unknown_section:\n"
            "  ignored: 1\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.backtest.initial_balance_usdc == Decimal("2500.5")
        assert cfg.backtest.slippage_percentage == Decimal("0.01")
        assert cfg.backtest.effective_fee_rate_bps == 25
        assert cfg.position_sizing.strategy == "relative"
        assert cfg.position_sizing.max_position_size_relative == Decimal("0.2")
        assert cfg.position_sizing.max_position_size_absolute == Decimal("1000")
        assert cfg.logging.level == "DEBUG"

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)


class TestValidate:
    @pytest.mark.parametrize("backtest", [
        BacktestConfig(initial_balance_usdc=0),
        BacktestConfig(initial_balance_usdc=-1),
        BacktestConfig(fee_rate_bps=-1),
        BacktestConfig(data_source="polymarket_api"),
        BacktestConfig(start_date="2024-02-01", end_date="2024-01-01"),
        BacktestConfig(start_date="01/02/2024"),
    ])
    def test_bad_backtest_section(self, backtest):
        with pytest.raises(ConfigError):
            Config(backtest=backtest).validate()

    @pytest.mark.parametrize("sizing", [
        PositionSizingConfig(strategy="kelly"),
        PositionSizingConfig(priority="both"),
        PositionSizingConfig(max_position_size_absolute=0),
        PositionSizingConfig(max_position_size_relative=0),
        PositionSizingConfig(max_position_size_relative="1.5"),
    ])
    def test_bad_sizing_section(self, sizing):
        with pytest.raises(ConfigError):
            Config(position_sizing=sizing).validate()

    def test_same_day_range_is_valid(self):
        Config(backtest=BacktestConfig(start_date="2024-03-01", end_date="2024-03-01")).validate()


class TestHelpers:
    def test_parse_date(self):
        assert parse_date("2024-03-05").day == 5

    def test_parse_date_error_names_field(self):
        with pytest.raises(ConfigError, match="end_date"):
            parse_date("2024-13-01", "end_date")

    def test_configure_logging_rejects_unknown_level(self):
        with pytest.raises(ConfigError):
            configure_logging(LoggingConfig(level="LOUD"))

    def test_configure_logging_accepts_lowercase(self):
        configure_logging(LoggingConfig(level="warning"))
