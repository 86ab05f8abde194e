"""
Trading constants and configuration values.

This module contains all hardcoded values used throughout the trading bot.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Binance API Endpoints
# =============================================================================

BINANCE_REST_URL: Final[str] = "https://api.binance.com"
BINANCE_REST_TESTNET_URL: Final[str] = "https://testnet.binance.vision"

# API Endpoints
ENDPOINT_EXCHANGE_INFO: Final[str] = "/api/v3/exchangeInfo"
ENDPOINT_ORDER: Final[str] = "/api/v3/order"
ENDPOINT_TICKER_PRICE: Final[str] = "/api/v3/ticker/price"
ENDPOINT_SERVER_TIME: Final[str] = "/api/v3/time"

# Request weights (Binance spot API)
WEIGHT_SERVER_TIME: Final[int] = 1
WEIGHT_TICKER_PRICE_ALL: Final[int] = 4
WEIGHT_EXCHANGE_INFO: Final[int] = 10
WEIGHT_ORDER: Final[int] = 1

# Header carrying the API key
API_KEY_HEADER: Final[str] = "X-MBX-APIKEY"


# =============================================================================
# Trading Fees
# =============================================================================

# Default Binance spot trading fee (0.1%)
DEFAULT_FEE_RATE: Final[float] = 0.001

# Fee rate with BNB discount (25% off)
BNB_DISCOUNT_FEE_RATE: Final[float] = 0.00075


# =============================================================================
# Rate Limiting & Retries
# =============================================================================

# Sustained requests per second and burst capacity
DEFAULT_RATE_LIMIT: Final[float] = 20.0
DEFAULT_RATE_LIMIT_BURST: Final[int] = 5

# Binance request weight budget
REQUEST_WEIGHT_PER_MINUTE: Final[int] = 1200

# Retries after the first attempt
DEFAULT_MAX_RETRIES: Final[int] = 3

# First exponential backoff delay (seconds), doubled per retry
DEFAULT_BACKOFF_BASE: Final[float] = 1.0

# Statuses that signal rate limiting (418 = IP ban after ignoring 429s)
HTTP_TOO_MANY_REQUESTS: Final[int] = 429
HTTP_IP_BANNED: Final[int] = 418
RATE_LIMIT_STATUSES: Final[frozenset[int]] = frozenset(
    {HTTP_TOO_MANY_REQUESTS, HTTP_IP_BANNED}
)

# How long a signed request stays valid (milliseconds)
DEFAULT_RECV_WINDOW_MS: Final[int] = 5000

DEFAULT_REQUEST_TIMEOUT: Final[float] = 10.0  # seconds


# =============================================================================
# Order Configuration
# =============================================================================

ORDER_TYPE_MARKET: Final[str] = "MARKET"

# Order sides
SIDE_BUY: Final[str] = "BUY"
SIDE_SELL: Final[str] = "SELL"

# Exchange filter holding min quantity and step size
FILTER_LOT_SIZE: Final[str] = "LOT_SIZE"


# =============================================================================
# Precision & Formatting
# =============================================================================

QUANTITY_PRECISION: Final[int] = 8


# =============================================================================
# Trading Defaults
# =============================================================================

DEFAULT_BRIDGE: Final[str] = "USDT"
DEFAULT_TRADE_COINS: Final[tuple[str, ...]] = ("BTC", "ETH", "BNB")
DEFAULT_QUANTITY: Final[float] = 0.001
DEFAULT_TICK_INTERVAL: Final[int] = 5  # seconds

# Extra required profit on top of fees, in percent
DEFAULT_SCOUT_MARGIN: Final[float] = 0.0

STRATEGY_DEFAULT: Final[str] = "default"
STRATEGY_MULTIPLE_COINS: Final[str] = "multiple_coins"


# =============================================================================
# Persistence
# =============================================================================

DEFAULT_DATABASE_URL: Final[str] = "sqlite:///ringtrader.db"


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000

# Window used for the reporting statistics
STATS_RECENT_WINDOW_MS: Final[int] = 24 * 60 * 60 * 1000
