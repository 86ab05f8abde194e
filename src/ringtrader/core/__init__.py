"""Core types, errors and the trading engine."""

from ringtrader.core.errors import (
    JumpCommitError,
    JumpError,
    PartialJumpError,
    SizingError,
    StartupError,
    TradingError,
)
from ringtrader.core.types import (
    ExchangeRule,
    JumpResult,
    JumpStatus,
    LegResult,
    Opportunity,
    OrderSide,
    PairRatio,
    PriceSnapshot,
)


__all__ = [
    "ExchangeRule",
    "JumpCommitError",
    "JumpError",
    "JumpResult",
    "JumpStatus",
    "LegResult",
    "Opportunity",
    "OrderSide",
    "PairRatio",
    "PartialJumpError",
    "PriceSnapshot",
    "SizingError",
    "StartupError",
    "TradingError",
]
