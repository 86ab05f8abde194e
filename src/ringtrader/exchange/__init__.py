"""Exchange integration module for Binance."""

from ringtrader.exchange.client import (
    BinanceAPIError,
    BinanceClient,
    BinanceClientError,
    ExhaustedRetriesError,
    NetworkError,
    RateLimitedError,
    RetryPolicy,
    ServerError,
)
from ringtrader.exchange.models import (
    ExchangeInfo,
    OrderResponse,
    ServerTime,
    SymbolFilter,
)
from ringtrader.exchange.rate_limiter import RateLimiter
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.exchange.signer import RequestSigner


__all__ = [
    "BinanceAPIError",
    "BinanceClient",
    "BinanceClientError",
    "ExchangeInfo",
    "ExchangeRuleCache",
    "ExhaustedRetriesError",
    "NetworkError",
    "OrderResponse",
    "RateLimitedError",
    "RateLimiter",
    "RequestSigner",
    "RetryPolicy",
    "ServerError",
    "ServerTime",
    "SymbolFilter",
]
