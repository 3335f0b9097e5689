"""Global configuration loader for the copy-trade backtester."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, get_type_hints

import yaml

from errors import ConfigError

SIZING_STRATEGIES = ("absolute", "relative", "hybrid")
SIZING_PRIORITIES = ("absolute", "relative")
DATA_SOURCES = ("mock", "csv_file", "parquet_file")
DATE_FORMAT = "%Y-%m-%d"
TRUE_STRINGS = ("true", "1", "yes", "on")
FALSE_STRINGS = ("false", "0", "no", "off", "")


def to_decimal(value: Any) -> Decimal:
    """Convert a config/feed scalar to Decimal via its string form."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ConfigError(f"Not a decimal value: {value!r}") from exc



def to_bool(value: Any) -> bool:
    """Convert a config flag to bool. Strings like "false" and "0" are False."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in TRUE_STRINGS:
            return True
        if text in FALSE_STRINGS:
            return False
    raise ConfigError(f"Not a boolean value: {value!r}")

@dataclass
class PositionSizingConfig:
    max_position_size_absolute: Decimal = Decimal("1000")
    max_position_size_relative: Decimal = Decimal("0.1")
    strategy: str = "hybrid"
    # Selects which cap is applied first under "hybrid". Both caps are
    # min-ed together, so this never changes the result.
    priority: str = "absolute"

    def __post_init__(self) -> None:
        self.max_position_size_absolute = to_decimal(self.max_position_size_absolute)
        self.max_position_size_relative = to_decimal(self.max_position_size_relative)

    def is_valid(self) -> bool:
        return (
            self.strategy in SIZING_STRATEGIES
            and self.priority in SIZING_PRIORITIES
            and self.max_position_size_absolute > 0
            and 0 < self.max_position_size_relative <= 1
        )


@dataclass
class BacktestConfig:
    start_date: str = "2024-01-01"
    end_date: str = "2024-12-31"
    initial_balance_usdc: Decimal = Decimal("10000")
    data_source: str = "mock"
    data_file: str = ""
    slippage_model: str = "linear"
    depth_coefficient: Decimal = Decimal("100000")
    slippage_percentage: Decimal = Decimal("0.005")
    apply_fees: bool = False
    fee_rate_bps: int = 0

    def __post_init__(self) -> None:
        self.initial_balance_usdc = to_decimal(self.initial_balance_usdc)
        self.depth_coefficient = to_decimal(self.depth_coefficient)
        self.slippage_percentage = to_decimal(self.slippage_percentage)
        self.fee_rate_bps = int(self.fee_rate_bps)
        self.apply_fees = to_bool(self.apply_fees)

    @property
    def effective_fee_rate_bps(self) -> int:
        """Fee rate actually charged: 0 unless fees are enabled."""
        return self.fee_rate_bps if self.apply_fees else 0


@dataclass
class LoggingConfig:
    level: str = "INFO"


@dataclass
class Config:
    backtest: BacktestConfig = field(default_factory=BacktestConfig)
    position_sizing: PositionSizingConfig = field(default_factory=PositionSizingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        """Raise ConfigError if the configuration cannot drive a backtest."""
        bt = self.backtest
        if bt.initial_balance_usdc <= 0:
            raise ConfigError("initial_balance_usdc must be positive")
        if bt.fee_rate_bps < 0:
            raise ConfigError("fee_rate_bps must not be negative")
        if bt.data_source not in DATA_SOURCES:
            raise ConfigError(f"Unknown data source: {bt.data_source}")
        start = parse_date(bt.start_date, "start_date")
        end = parse_date(bt.end_date, "end_date")
        if start > end:
            raise ConfigError(
                f"start_date {bt.start_date} is after end_date {bt.end_date}"
            )

        ps = self.position_sizing
        if ps.strategy not in SIZING_STRATEGIES:
            raise ConfigError(f"Unknown position sizing strategy: {ps.strategy}")
        if not ps.is_valid():
            raise ConfigError("Invalid position sizing configuration")


def parse_date(value: str, name: str = "date") -> datetime:
    """Parse a YYYY-MM-DD string, raising ConfigError on bad input."""
    try:
        return datetime.strptime(str(value), DATE_FORMAT)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}: {value!r}") from exc


def _build_nested(cls: type, raw: dict[str, Any]) -> Any:
    """Recursively build a dataclass from a dict."""
    if not isinstance(raw, dict):
        return raw
    dc_fields = getattr(cls, "__dataclass_fields__", {})
    resolved_hints = get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    for key, val in raw.items():
        if key not in dc_fields:
            continue
        field_type = resolved_hints.get(key, dc_fields[key].type)
        if hasattr(field_type, "__dataclass_fields__") and isinstance(val, dict):
            kwargs[key] = _build_nested(field_type, val)
        else:
            kwargs[key] = val
    return cls(**kwargs)


def load_config(path: str | Path = "config.yaml") -> Config:
    """Load configuration from a YAML file."""
    path = Path(path)
    if not path.exists():
        return Config()
    with open(path) as f:
        raw = yaml.safe_load(f)
    if not raw:
        return Config()
    if not isinstance(raw, dict):
        raise ConfigError(f"Config root must be a mapping: {path}")
    return _build_nested(Config, raw)


def configure_logging(config: LoggingConfig) -> None:
    """Apply the configured log level to the root logger."""
    level = getattr(logging, config.level.upper(), None)
    if not isinstance(level, int):
        raise ConfigError(f"Unknown log level: {config.level}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
