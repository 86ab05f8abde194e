#!/usr/bin/env python3
"""
Trade Report Script.

Prints the current holding, jump statistics and recent trades from
the bot's database without touching the exchange.

Usage:
    python scripts/report.py [limit]
"""

import sys
from ringtrader.config.settings import get_settings
from ringtrader.storage.database import Database
from ringtrader.storage.store import TradingStore
from ringtrader.utils.math import format_profit
from ringtrader.utils.time import format_timestamp_ms


def main() -> int:
    """Print the report."""
    limit = int(sys.argv[1]) if len(sys.argv) > 1 else 20

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Error loading settings: {e}")
        return 1

    database = Database(settings.database_url)
    store = TradingStore(database, bridge=settings.bridge)

    try:
        print("=" * 60)
        print("  RING TRADER REPORT")
        print("=" * 60)
        print()
        print(f"Database:        {settings.database_url}")
        print(f"Current holding: {store.get_current_holding() or '-'}")
        print()

        stats = store.trade_statistics()
        for label, period in (("All time", stats.all_time), ("Last 24h", stats.recent)):
            print(
                f"{label:<9} jumps={period.total_trades:<5} "
                f"profitable={period.profitable_trades:<5} "
                f"win_rate={period.win_rate * 100:5.1f}% "
                f"profit={format_profit(period.total_profit)}"
            )
        print()

        print("=" * 60)
        print(f"  LAST {limit} TRADES")
        print("=" * 60)
        for trade in store.list_trades(limit):
            profit = format_profit(trade.profit) if trade.profit is not None else "-"
            mode = "sim" if trade.simulated else "live"
            print(
                f"{format_timestamp_ms(trade.timestamp_ms)} {trade.side:<4} {trade.symbol:<10} "
                f"qty={trade.quantity:.8f} price={trade.price:.8f} "
                f"{trade.from_asset}->{trade.to_asset} profit={profit} [{mode}]"
            )
    finally:
        database.dispose()

    return 0


if __name__ == "__main__":
    sys.exit(main())
