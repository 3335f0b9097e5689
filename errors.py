"""Error hierarchy for the copy-trade backtester.

Fatal errors (ConfigError, SimulationError, DataError) abort a run.
Per-trade errors (InsufficientBalance, BelowMinimumSize) are caught by the
engine, which skips the trade and continues.
"""


class BacktestError(Exception):
    """Base class for all backtester errors."""


class ConfigError(BacktestError):
    """Invalid configuration: unknown strategy/source name, bad date range."""


class DataError(BacktestError):
    """Historical trade feed is malformed."""


class SimulationError(BacktestError):
    """Simulator contract violation, e.g. closing a position that is not open."""


class InsufficientBalance(BacktestError):
    """A buy would drive the balance negative."""

    def __init__(self, required=None, available=None) -> None:
        self.required = required
        self.available = available
        if required is None:
            super().__init__("Insufficient balance")
        else:
            super().__init__(
                f"Insufficient balance: need {required}, have {available}"
            )


class BelowMinimumSize(BacktestError):
    """Capped position size is zero or negative."""

    def __init__(self, size=None) -> None:
        self.size = size
        super().__init__("Below minimum size" if size is None else f"Below minimum size: {size}")
