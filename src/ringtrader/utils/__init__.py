"""Utility functions for the trading bot."""

from ringtrader.utils.math import (
    format_decimal,
    format_profit,
    round_step,
)
from ringtrader.utils.time import (
    LatencyTimer,
    format_timestamp_ms,
    get_timestamp_ms,
    get_timestamp_us,
)


__all__ = [
    "LatencyTimer",
    "format_decimal",
    "format_profit",
    "format_timestamp_ms",
    "get_timestamp_ms",
    "get_timestamp_us",
    "round_step",
]
