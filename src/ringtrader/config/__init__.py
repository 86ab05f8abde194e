"""Configuration module for the trading bot."""

from ringtrader.config.constants import (
    BINANCE_REST_URL,
    DEFAULT_BRIDGE,
    DEFAULT_FEE_RATE,
    STRATEGY_DEFAULT,
    STRATEGY_MULTIPLE_COINS,
)
from ringtrader.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "BINANCE_REST_URL",
    "DEFAULT_BRIDGE",
    "DEFAULT_FEE_RATE",
    "STRATEGY_DEFAULT",
    "STRATEGY_MULTIPLE_COINS",
]
