"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

from collections.abc import Iterator
from typing import Any

import pytest

from ringtrader.config.settings import Settings
from ringtrader.core.types import PairRatio, PriceSnapshot
from ringtrader.exchange.models import ExchangeInfo
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.storage.database import Database
from ringtrader.storage.store import TradingStore
from ringtrader.strategy.calculator import ProfitCalculator
from tests.mocks.exchange import MockBinanceClient


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Dry-run settings for BTC/ETH/BNB through USDT."""
    return Settings(
        binance_api_key="test_api_key",
        binance_api_secret="test_api_secret",
        bridge="USDT",
        trade_coins=["BTC", "ETH", "BNB"],
        quantity=0.001,
        initial_coin="BTC",
        fee_rate=0.001,
        scout_margin=0.0,
        tick_interval=1,
        dry_run=True,
        database_url="sqlite://",
        _env_file=None,
    )


# =============================================================================
# Market Data Fixtures
# =============================================================================


@pytest.fixture
def profitable_prices() -> dict[str, str]:
    """BTC/ETH market ratio 16.667 against a benchmark of 15."""
    return {
        "BTCUSDT": "30000.00",
        "ETHUSDT": "1800.00",
        "BNBUSDT": "300.00",
    }


@pytest.fixture
def flat_prices() -> dict[str, str]:
    """BTC/ETH market ratio exactly at the benchmark of 15."""
    return {
        "BTCUSDT": "30000.00",
        "ETHUSDT": "2000.00",
        "BNBUSDT": "300.00",
    }


@pytest.fixture
def snapshot(profitable_prices: dict[str, str]) -> PriceSnapshot:
    return PriceSnapshot(profitable_prices)


@pytest.fixture
def btc_eth_pair() -> PairRatio:
    return PairRatio(from_asset="BTC", to_asset="ETH", ratio=15.0)


@pytest.fixture
def calculator() -> ProfitCalculator:
    """Profit calculator with default fee and no margin."""
    return ProfitCalculator(bridge="USDT", fee_rate=0.001, scout_margin_percent=0.0)


# =============================================================================
# Exchange Fixtures
# =============================================================================


def _symbol(symbol: str, base: str, min_qty: str, step_size: str) -> dict[str, Any]:
    return {
        "symbol": symbol,
        "status": "TRADING",
        "baseAsset": base,
        "baseAssetPrecision": 8,
        "quoteAsset": "USDT",
        "quoteAssetPrecision": 8,
        "filters": [
            {
                "filterType": "PRICE_FILTER",
                "minPrice": "0.01",
                "maxPrice": "1000000.00",
                "tickSize": "0.01",
            },
            {
                "filterType": "LOT_SIZE",
                "minQty": min_qty,
                "maxQty": "9000.00000000",
                "stepSize": step_size,
            },
            {
                "filterType": "NOTIONAL",
                "minNotional": "10.00000000",
            },
        ],
        "permissions": ["SPOT"],
    }


@pytest.fixture
def mock_exchange_info() -> dict[str, Any]:
    """Mock exchange info response."""
    return {
        "timezone": "UTC",
        "serverTime": 1704067200000,
        "rateLimits": [
            {
                "rateLimitType": "REQUEST_WEIGHT",
                "interval": "MINUTE",
                "intervalNum": 1,
                "limit": 1200,
            }
        ],
        "symbols": [
            _symbol("BTCUSDT", "BTC", "0.00001000", "0.00001000"),
            _symbol("ETHUSDT", "ETH", "0.00010000", "0.00010000"),
            _symbol("BNBUSDT", "BNB", "0.00100000", "0.00100000"),
        ],
    }


@pytest.fixture
def rules(mock_exchange_info: dict[str, Any]) -> ExchangeRuleCache:
    """Rule cache loaded from the mock exchange info."""
    cache = ExchangeRuleCache()
    cache.load_from_exchange_info(ExchangeInfo.model_validate(mock_exchange_info))
    return cache


@pytest.fixture
def mock_client(
    profitable_prices: dict[str, str],
    mock_exchange_info: dict[str, Any],
) -> MockBinanceClient:
    """Exchange double quoting profitable prices."""
    return MockBinanceClient(prices=profitable_prices, exchange_info=mock_exchange_info)


# =============================================================================
# Storage Fixtures
# =============================================================================


@pytest.fixture
def database() -> Iterator[Database]:
    """Fresh in-memory database with schema."""
    db = Database("sqlite://")
    db.create_schema()
    yield db
    db.dispose()


@pytest.fixture
def store(database: Database) -> TradingStore:
    """Store with BTC/ETH/BNB pairs, all ratios still zero."""
    store = TradingStore(database, bridge="USDT")
    store.sync_assets(["BTC", "ETH", "BNB"])
    store.ensure_pairs()
    return store
