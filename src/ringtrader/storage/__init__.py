"""Persistence of assets, pairs, the current holding and trade history."""

from ringtrader.storage.database import Database
from ringtrader.storage.store import (
    PeriodStatistics,
    TradeRecord,
    TradeStatistics,
    TradingStore,
)


__all__ = [
    "Database",
    "PeriodStatistics",
    "TradeRecord",
    "TradeStatistics",
    "TradingStore",
]
