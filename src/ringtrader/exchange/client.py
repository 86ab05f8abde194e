"""
Async Binance REST API client.

Every outbound call goes through one pipeline:
- Token-bucket admission control (retries included)
- Automatic request signing for state-mutating endpoints
- Bounded retries for network errors, rate limiting and 5xx responses,
  honoring Retry-After when the exchange sends one
- Fast JSON parsing with orjson
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any

import aiohttp
import orjson
from pydantic import TypeAdapter, ValidationError

from ringtrader.config.constants import (
    API_KEY_HEADER,
    BINANCE_REST_TESTNET_URL,
    BINANCE_REST_URL,
    DEFAULT_BACKOFF_BASE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RECV_WINDOW_MS,
    DEFAULT_REQUEST_TIMEOUT,
    ENDPOINT_EXCHANGE_INFO,
    ENDPOINT_ORDER,
    ENDPOINT_SERVER_TIME,
    ENDPOINT_TICKER_PRICE,
    ORDER_TYPE_MARKET,
    RATE_LIMIT_STATUSES,
    WEIGHT_EXCHANGE_INFO,
    WEIGHT_ORDER,
    WEIGHT_SERVER_TIME,
    WEIGHT_TICKER_PRICE_ALL,
)
from ringtrader.core.types import OrderSide, PriceSnapshot
from ringtrader.exchange.models import ExchangeInfo, OrderResponse, ServerTime, TickerPrice
from ringtrader.exchange.rate_limiter import RateLimiter
from ringtrader.exchange.signer import RequestSigner
from ringtrader.utils.math import format_decimal
from ringtrader.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


# =============================================================================
# Errors
# =============================================================================


class BinanceClientError(Exception):
    """Base exception for Binance client errors."""

    def __init__(
        self,
        message: str,
        path: str = "",
        status: int | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.path = path
        self.status = status
        self.code = code


class NetworkError(BinanceClientError):
    """Transport-level failure (connection, timeout). Retried."""


class ServerError(BinanceClientError):
    """5xx response from the exchange. Retried."""


class RateLimitedError(BinanceClientError):
    """429/418 response. Retried after Retry-After or backoff."""

    def __init__(
        self,
        message: str,
        path: str = "",
        status: int | None = None,
        code: int | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, path, status, code)
        self.retry_after = retry_after


class BinanceAPIError(BinanceClientError):
    """Terminal 4xx response (bad request, auth, filter failure). Not retried."""


class ExhaustedRetriesError(BinanceClientError):
    """A retryable failure persisted after the last allowed retry."""

    def __init__(self, path: str, attempts: int, last_error: BinanceClientError) -> None:
        super().__init__(
            f"{path} failed after {attempts} attempts: {last_error}",
            path=path,
            status=last_error.status,
            code=last_error.code,
        )
        self.attempts = attempts
        self.last_error = last_error


RETRYABLE_ERRORS = (NetworkError, ServerError, RateLimitedError)

_TICKER_PRICES = TypeAdapter(list[TickerPrice])


# =============================================================================
# Retry Policy
# =============================================================================


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """
    Bounded retry schedule.

    The first attempt is followed by at most max_retries retries.
    Without a Retry-After hint the n-th retry waits backoff_base * 2**n
    seconds (1, 2, 4 with the defaults).
    """

    max_retries: int = DEFAULT_MAX_RETRIES
    backoff_base: float = DEFAULT_BACKOFF_BASE

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def backoff(self, retry_index: int) -> float:
        """Exponential delay before retry number retry_index (0-based)."""
        return self.backoff_base * (2**retry_index)

    def delay_for(self, error: BinanceClientError, retry_index: int) -> float:
        """Server-directed delay when present, exponential otherwise."""
        if isinstance(error, RateLimitedError) and error.retry_after is not None:
            return error.retry_after
        return self.backoff(retry_index)


def parse_retry_after(value: str | None) -> float | None:
    """Parse a Retry-After header given in whole seconds."""
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return float(seconds) if seconds >= 0 else None


# =============================================================================
# Client
# =============================================================================


class BinanceClient:
    """
    Async Binance REST API client.

    Features:
    - Single session with connection pooling and keep-alive
    - orjson for fast JSON parsing
    - Global rate limiting on every attempt
    - Bounded, cancellable retry with backoff
    - Automatic request signing
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        use_testnet: bool = False,
        rate_limiter: RateLimiter | None = None,
        retry_policy: RetryPolicy | None = None,
        recv_window_ms: int = DEFAULT_RECV_WINDOW_MS,
        timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT,
        base_url: str | None = None,
    ) -> None:
        """
        Initialize the Binance client.

        Args:
            api_key: Binance API key.
            api_secret: Binance API secret.
            use_testnet: Whether to use testnet endpoints.
            rate_limiter: Optional rate limiter instance.
            retry_policy: Optional retry schedule.
            recv_window_ms: Validity window for signed requests.
            timeout_seconds: Total timeout per attempt.
            base_url: Override for the REST base URL.
        """
        self._api_key = api_key
        self._signer = RequestSigner(api_secret, recv_window_ms=recv_window_ms)
        if base_url is not None:
            self._base_url = base_url.rstrip("/")
        else:
            self._base_url = BINANCE_REST_TESTNET_URL if use_testnet else BINANCE_REST_URL
        self._rate_limiter = rate_limiter or RateLimiter()
        self._retry_policy = retry_policy or RetryPolicy()
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

        if use_testnet:
            logger.warning("Using Binance testnet")

    def __repr__(self) -> str:
        return f"BinanceClient(base_url={self._base_url!r})"

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(
                limit=20,
                limit_per_host=10,
                keepalive_timeout=30,
                enable_cleanup_closed=True,
            )

            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={API_KEY_HEADER: self._api_key},
                timeout=self._timeout,
                json_serialize=lambda x: orjson.dumps(x).decode(),
            )

        return self._session

    async def close(self) -> None:
        """Close the client session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    @asynccontextmanager
    async def _request_context(self, endpoint: str) -> AsyncIterator[aiohttp.ClientSession]:
        """Translate transport failures into NetworkError."""
        session = await self._get_session()
        try:
            yield session
        except (aiohttp.ClientError, TimeoutError) as e:
            raise NetworkError(f"Network error on {endpoint}: {e!r}", path=endpoint) from e

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        signed: bool = False,
        weight: int = 1,
    ) -> Any:
        """
        Make an API request with admission control and retries.

        Args:
            method: HTTP method (GET, POST).
            endpoint: API endpoint path.
            params: Request parameters.
            signed: Whether request requires signature.
            weight: Request weight for rate limiting.

        Returns:
            Parsed JSON response.

        Raises:
            BinanceAPIError: On a terminal 4xx response.
            ExhaustedRetriesError: When retryable failures outlast the policy.
            BinanceClientError: On other unrecoverable errors.
        """
        policy = self._retry_policy

        for attempt in range(policy.max_attempts):
            await self._rate_limiter.acquire(weight)

            try:
                return await self._send(method, endpoint, params, signed)
            except RETRYABLE_ERRORS as e:
                last_error: BinanceClientError = e

            if attempt + 1 >= policy.max_attempts:
                break

            delay = policy.delay_for(last_error, attempt)
            logger.warning(
                "%s %s failed (attempt %d/%d, status=%s): %s; retrying in %.1fs",
                method,
                endpoint,
                attempt + 1,
                policy.max_attempts,
                last_error.status,
                last_error,
                delay,
            )
            await self._backoff_sleep(delay)

        raise ExhaustedRetriesError(endpoint, policy.max_attempts, last_error) from last_error

    async def _backoff_sleep(self, delay: float) -> None:
        """Wait before the next attempt. Cancellation interrupts the wait."""
        await asyncio.sleep(delay)

    async def _send(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None,
        signed: bool,
    ) -> Any:
        """Send a single attempt."""
        url = f"{self._base_url}{endpoint}"
        params = dict(params or {})

        # Signed per attempt so every retry carries a fresh timestamp
        if signed:
            params = self._signer.create_signed_params(params)

        logger.debug("Executing request %s %s", method, endpoint)

        async with self._request_context(endpoint) as session:
            if method == "GET":
                async with session.get(url, params=params) as response:
                    return await self._handle_response(response, endpoint)
            elif method == "POST":
                async with session.post(url, data=params) as response:
                    return await self._handle_response(response, endpoint)
            else:
                raise BinanceClientError(f"Unsupported method: {method}", path=endpoint)

    async def _handle_response(self, response: aiohttp.ClientResponse, endpoint: str) -> Any:
        """Classify the response and parse its JSON body."""
        text = await response.text()
        status = response.status

        if status in RATE_LIMIT_STATUSES:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            code, msg = self._error_details(text)
            raise RateLimitedError(
                f"Rate limited on {endpoint} (HTTP {status}): {msg}",
                path=endpoint,
                status=status,
                code=code,
                retry_after=retry_after,
            )

        if status >= 500:
            code, msg = self._error_details(text)
            raise ServerError(
                f"Server error on {endpoint} (HTTP {status}): {msg}",
                path=endpoint,
                status=status,
                code=code,
            )

        if status >= 400:
            code, msg = self._error_details(text)
            raise BinanceAPIError(
                f"API error {code} on {endpoint} (HTTP {status}): {msg}",
                path=endpoint,
                status=status,
                code=code,
            )

        try:
            return orjson.loads(text)
        except orjson.JSONDecodeError as e:
            raise BinanceClientError(
                f"Invalid JSON response from {endpoint}: {e}", path=endpoint, status=status
            ) from e

    @staticmethod
    def _error_details(text: str) -> tuple[int | None, str]:
        """Extract Binance's {code, msg} error body when present."""
        try:
            data = orjson.loads(text)
        except orjson.JSONDecodeError:
            return None, text[:200]
        if isinstance(data, dict):
            return data.get("code"), str(data.get("msg", text[:200]))
        return None, text[:200]

    # =========================================================================
    # Public Endpoints
    # =========================================================================

    async def get_server_time(self) -> ServerTime:
        """Get server time. Also serves as the connectivity probe."""
        data = await self.request("GET", ENDPOINT_SERVER_TIME, weight=WEIGHT_SERVER_TIME)
        return ServerTime.model_validate(data)

    async def get_exchange_info(self) -> ExchangeInfo:
        """
        Get exchange trading rules and symbol information.

        Note: This is a heavy request (weight=10), cache the result.
        """
        data = await self.request("GET", ENDPOINT_EXCHANGE_INFO, weight=WEIGHT_EXCHANGE_INFO)
        return ExchangeInfo.model_validate(data)

    async def get_all_ticker_prices(self) -> PriceSnapshot:
        """
        Get the latest price of every symbol in one call.

        Returns:
            Immutable snapshot mapping symbol to price string.
        """
        data = await self.request("GET", ENDPOINT_TICKER_PRICE, weight=WEIGHT_TICKER_PRICE_ALL)
        try:
            tickers = _TICKER_PRICES.validate_python(data)
        except ValidationError as e:
            raise BinanceClientError(
                f"Unexpected ticker payload: {e.error_count()} invalid entries",
                path=ENDPOINT_TICKER_PRICE,
            ) from e

        return PriceSnapshot({t.symbol: t.price for t in tickers})

    # =========================================================================
    # Order Endpoints (Signed)
    # =========================================================================

    async def place_market_order(
        self,
        symbol: str,
        side: OrderSide,
        quantity: float,
    ) -> OrderResponse:
        """
        Place a market order.

        Args:
            symbol: Trading symbol.
            side: Order side (BUY/SELL).
            quantity: Order quantity, already floored to the step size.

        Returns:
            Order response.
        """
        params = {
            "symbol": symbol,
            "side": side.value,
            "type": ORDER_TYPE_MARKET,
            "quantity": format_decimal(quantity),
        }

        data = await self.request("POST", ENDPOINT_ORDER, params, signed=True, weight=WEIGHT_ORDER)
        order = OrderResponse.model_validate(data)
        logger.info(
            "Order %s %s %s: status=%s executed=%s quote=%s",
            order.order_id,
            order.side,
            order.symbol,
            order.status,
            order.executed_qty,
            order.cummulative_quote_qty,
        )
        return order

    # =========================================================================
    # Utility Methods
    # =========================================================================

    async def sync_time(self) -> int:
        """
        Get time difference with server.

        Returns:
            Time difference in milliseconds (local - server).
        """
        local_before = get_timestamp_ms()
        server_time = await self.get_server_time()
        local_after = get_timestamp_ms()

        # Estimate one-way latency
        round_trip = local_after - local_before
        estimated_server_time = server_time.server_time + (round_trip // 2)

        return local_after - estimated_server_time

    async def __aenter__(self) -> "BinanceClient":
        """Async context manager entry."""
        await self._get_session()
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.close()
