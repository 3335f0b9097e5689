"""Position sizing for copied trades."""

from decimal import Decimal

from config import PositionSizingConfig
from errors import BelowMinimumSize, ConfigError


class PositionSizer:
    """Caps the copied trader's size against account limits.

    Strategies:
    - "absolute": min(target, max_position_size_absolute)
    - "relative": min(target, balance * max_position_size_relative)
    - "hybrid":   min(target, absolute cap, relative cap)

    Under "hybrid" the ``priority`` field picks which cap is applied first.
    Since both are min-ed into the result, the order is never observable;
    the field is kept for config compatibility only.
    """

    def __init__(self, config: PositionSizingConfig) -> None:
        self._config = config

    @property
    def config(self) -> PositionSizingConfig:
        return self._config

    def calculate_position_size(
        self,
        target_trade_size: Decimal,
        current_balance: Decimal,
    ) -> Decimal:
        """Return the size to execute for a copied trade of ``target_trade_size``.

        Raises:
            ConfigError: unknown sizing strategy.
            BelowMinimumSize: the capped size is zero or negative.
        """
        cfg = self._config
        size = target_trade_size

        if cfg.strategy == "absolute":
            size = min(size, cfg.max_position_size_absolute)
        elif cfg.strategy == "relative":
            size = min(size, current_balance * cfg.max_position_size_relative)
        elif cfg.strategy == "hybrid":
            relative_size = current_balance * cfg.max_position_size_relative
            if cfg.priority == "absolute":
                size = min(size, relative_size)
                size = min(size, cfg.max_position_size_absolute)
            else:
                size = min(size, cfg.max_position_size_absolute)
                size = min(size, relative_size)
        else:
            raise ConfigError(f"Unknown position sizing strategy: {cfg.strategy}")

        if size <= 0:
            raise BelowMinimumSize(size)
        return size

    @staticmethod
    def is_size_acceptable(size: Decimal, min_size: Decimal, max_size: Decimal) -> bool:
        """True if min_size <= size <= max_size."""
        return min_size <= size <= max_size
