"""
Unit tests for the trading state store.
"""

import pytest

from ringtrader.core.types import LegResult, OrderSide, PairRatio, PriceSnapshot
from ringtrader.storage.database import Database
from ringtrader.storage.store import TradingStore


def _leg(symbol: str, side: OrderSide, timestamp_ms: int, simulated: bool = True) -> LegResult:
    return LegResult(
        symbol=symbol,
        side=side,
        quantity=0.001,
        price=30000.0,
        quote_quantity=30.0,
        timestamp_ms=timestamp_ms,
        simulated=simulated,
    )


class TestAssetsAndPairs:
    """Asset sync and pair universe."""

    def test_all_to_all_pairs_without_self_pairs(self, store: TradingStore) -> None:
        pairs = store.all_pairs()

        assert len(pairs) == 6
        assert all(p.from_asset != p.to_asset for p in pairs)
        assert {p.key for p in store.pairs_from("BTC")} == {"BTC/ETH", "BTC/BNB"}

    def test_ensure_pairs_is_idempotent(self, store: TradingStore) -> None:
        assert store.ensure_pairs() == 0
        assert len(store.all_pairs()) == 6

    def test_pairs_are_immutable_snapshots(self, store: TradingStore) -> None:
        pair = store.pairs_from("BTC")[0]

        assert isinstance(pair, PairRatio)
        with pytest.raises(AttributeError):
            pair.ratio = 1.0  # type: ignore[misc]

    def test_disabled_asset_leaves_universe(self, store: TradingStore) -> None:
        store.sync_assets(["BTC", "ETH"])

        assert store.enabled_assets() == ["BTC", "ETH"]
        assert {p.key for p in store.all_pairs()} == {"BTC/ETH", "ETH/BTC"}

    def test_new_assets_seeded_with_starting_quantity(self, database: Database) -> None:
        store = TradingStore(database, bridge="USDT")
        store.sync_assets(["BTC", "ETH"], {"BTC": 0.5})

        assert store.get_asset_quantity("BTC") == 0.5
        assert store.get_asset_quantity("ETH") == 0.0

        store.set_asset_quantity("BTC", 0.25)
        store.sync_assets(["BTC", "ETH"], {"BTC": 0.5})
        assert store.get_asset_quantity("BTC") == 0.25

    def test_unknown_asset_quantity_is_zero(self, store: TradingStore) -> None:
        assert store.get_asset_quantity("XRP") == 0.0


class TestRatios:
    """Benchmark initialization and re-benchmarking."""

    def test_initialize_ratios_only_touches_zero_ratios(
        self, store: TradingStore, snapshot: PriceSnapshot
    ) -> None:
        assert store.initialize_ratios(snapshot) == 6

        ratios = {p.key: p.ratio for p in store.all_pairs()}
        assert ratios["BTC/ETH"] == pytest.approx(30000 / 1800)
        assert ratios["ETH/BNB"] == pytest.approx(6.0)

        moved = PriceSnapshot({"BTCUSDT": "1", "ETHUSDT": "1", "BNBUSDT": "1"})
        assert store.initialize_ratios(moved) == 0
        assert {p.key: p.ratio for p in store.all_pairs()} == ratios

    def test_pairs_without_prices_stay_zero(self, store: TradingStore) -> None:
        store.initialize_ratios(PriceSnapshot({"BTCUSDT": "30000", "ETHUSDT": "1800"}))

        ratios = {p.key: p.ratio for p in store.all_pairs()}
        assert ratios["BTC/ETH"] > 0
        assert ratios["BTC/BNB"] == 0.0

    def test_rebenchmark_from_updates_only_source_pairs(
        self, store: TradingStore, snapshot: PriceSnapshot
    ) -> None:
        store.initialize_ratios(PriceSnapshot({"BTCUSDT": "30000", "ETHUSDT": "2000", "BNBUSDT": "300"}))

        assert store.rebenchmark_from("ETH", snapshot) == 2

        ratios = {p.key: p.ratio for p in store.all_pairs()}
        assert ratios["ETH/BTC"] == pytest.approx(1800 / 30000)
        assert ratios["ETH/BNB"] == pytest.approx(6.0)
        assert ratios["BTC/ETH"] == pytest.approx(15.0)


class TestHolding:
    """Current holding singleton."""

    def test_empty_before_initialization(self, store: TradingStore) -> None:
        assert store.get_current_holding() is None

    def test_ensure_creates_once(self, store: TradingStore) -> None:
        assert store.ensure_current_holding("BTC") == "BTC"
        assert store.ensure_current_holding("ETH") == "BTC"
        assert store.get_current_holding() == "BTC"

    def test_set_current_holding(self, store: TradingStore) -> None:
        store.ensure_current_holding("BTC")
        store.set_current_holding("ETH")

        assert store.get_current_holding() == "ETH"

    def test_apply_jump_moves_holding_and_quantities(self, database: Database) -> None:
        store = TradingStore(database, bridge="USDT")
        store.sync_assets(["BTC", "ETH"], {"BTC": 0.002})
        store.ensure_current_holding("BTC")

        store.apply_jump("BTC", "ETH", sold_quantity=0.001, bought_quantity=0.0166)

        assert store.get_current_holding() == "ETH"
        assert store.get_asset_quantity("BTC") == pytest.approx(0.001)
        assert store.get_asset_quantity("ETH") == pytest.approx(0.0166)


class TestTrades:
    """Trade audit trail and reporting."""

    def test_record_and_list_newest_first(self, store: TradingStore) -> None:
        store.record_trade(_leg("BTCUSDT", OrderSide.SELL, 1000), "BTC", "ETH")
        store.record_trade(_leg("ETHUSDT", OrderSide.BUY, 2000), "BTC", "ETH", profit=0.1)

        trades = store.list_trades()

        assert [t.symbol for t in trades] == ["ETHUSDT", "BTCUSDT"]
        assert trades[0].profit == 0.1
        assert trades[1].profit is None
        assert trades[0].simulated is True
        assert store.count_trades() == 2

    def test_list_trades_limit(self, store: TradingStore) -> None:
        for i in range(5):
            store.record_trade(_leg("BTCUSDT", OrderSide.SELL, i), "BTC", "ETH")

        assert len(store.list_trades(limit=3)) == 3

    def test_statistics_count_closing_legs(self, store: TradingStore) -> None:
        day_ms = 24 * 60 * 60 * 1000
        now = 10 * day_ms

        store.record_trade(_leg("BTCUSDT", OrderSide.SELL, now - 2 * day_ms), "BTC", "ETH")
        store.record_trade(_leg("ETHUSDT", OrderSide.BUY, now - 2 * day_ms), "BTC", "ETH", profit=0.05)
        store.record_trade(_leg("ETHUSDT", OrderSide.SELL, now - 1000), "ETH", "BNB")
        store.record_trade(_leg("BNBUSDT", OrderSide.BUY, now - 1000), "ETH", "BNB", profit=0.02)
        store.record_trade(_leg("BNBUSDT", OrderSide.BUY, now - 500), "BNB", "BTC", profit=-0.01)

        stats = store.trade_statistics(now_ms=now)

        assert stats.all_time.total_trades == 3
        assert stats.all_time.profitable_trades == 2
        assert stats.all_time.win_rate == pytest.approx(2 / 3)
        assert stats.all_time.total_profit == pytest.approx(0.06)
        assert stats.recent.total_trades == 2
        assert stats.recent.total_profit == pytest.approx(0.01)
        assert stats.to_dict()["recent"]["profitable_trades"] == 1  # type: ignore[index]

    def test_statistics_empty(self, store: TradingStore) -> None:
        stats = store.trade_statistics(now_ms=0)

        assert stats.all_time.total_trades == 0
        assert stats.all_time.win_rate == 0.0
