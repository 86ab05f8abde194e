"""
Type definitions for the trading bot.

This module contains the dataclasses and enums shared between the
exchange client, the strategies and the jump executor. Objects handed
to concurrent evaluation tasks are frozen so they can be shared safely.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType

from ringtrader.utils.time import get_timestamp_ms


# =============================================================================
# Enums
# =============================================================================


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = "BUY"
    SELL = "SELL"


class JumpStatus(Enum):
    """Outcome of a jump attempt."""

    SUCCESS = auto()
    SIZING_ABORTED = auto()
    FAILED = auto()


# =============================================================================
# Market Data Types
# =============================================================================


class PriceSnapshot(Mapping[str, str]):
    """
    Immutable view of one bulk ticker fetch.

    Maps exchange symbols (e.g. "BTCUSDT") to their price strings.
    Every evaluation within a tick reads the same snapshot.
    """

    __slots__ = ("_prices", "timestamp_ms")

    def __init__(self, prices: Mapping[str, str], timestamp_ms: int | None = None) -> None:
        self._prices = MappingProxyType(dict(prices))
        self.timestamp_ms = timestamp_ms if timestamp_ms is not None else get_timestamp_ms()

    def __getitem__(self, symbol: str) -> str:
        return self._prices[symbol]

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def price(self, symbol: str) -> float | None:
        """Get a parsed positive price, or None if missing or unusable."""
        raw = self._prices.get(symbol)
        if raw is None:
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        return value if value > 0 else None

    def ratio(self, from_asset: str, to_asset: str, bridge: str) -> float | None:
        """
        Market ratio price(from/bridge) / price(to/bridge).

        Returns None if either leg price is unavailable.
        """
        from_price = self.price(f"{from_asset}{bridge}")
        to_price = self.price(f"{to_asset}{bridge}")
        if from_price is None or to_price is None:
            return None
        return from_price / to_price

    def __repr__(self) -> str:
        return f"PriceSnapshot(symbols={len(self._prices)}, timestamp_ms={self.timestamp_ms})"


# =============================================================================
# Pair Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class PairRatio:
    """
    Detached, read-only copy of a persisted pair.

    ratio is the benchmark FromAsset/ToAsset price ratio last accepted
    as the anchor for jumps leaving from_asset.
    """

    from_asset: str
    to_asset: str
    ratio: float

    @property
    def key(self) -> str:
        return f"{self.from_asset}/{self.to_asset}"

    def __repr__(self) -> str:
        return f"{self.from_asset}->{self.to_asset}(ratio={self.ratio:.8f})"


@dataclass(slots=True, frozen=True)
class ExchangeRule:
    """Lot-size constraint for one symbol."""

    symbol: str
    min_qty: float
    step_size: str
    max_qty: float = float("inf")


# =============================================================================
# Opportunity Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Opportunity:
    """
    A pair whose current market ratio beats its benchmark.

    profit is a fraction (0.01 = 1%) net of both legs' fees and the
    scout margin.
    """

    pair: PairRatio
    profit: float
    current_ratio: float

    @property
    def is_profitable(self) -> bool:
        """Check if the jump clears fees and margin."""
        return self.profit > 0


# =============================================================================
# Execution Types
# =============================================================================


@dataclass(slots=True)
class LegResult:
    """Result of executing a single leg."""

    symbol: str
    side: OrderSide
    quantity: float
    price: float
    quote_quantity: float
    timestamp_ms: int
    order_id: str | None = None
    simulated: bool = False


@dataclass(slots=True)
class JumpResult:
    """Result of a complete two-leg jump."""

    opportunity: Opportunity
    status: JumpStatus
    sell: LegResult | None = None
    buy: LegResult | None = None
    error_message: str = ""
    started_ms: int = field(default_factory=get_timestamp_ms)

    @property
    def is_success(self) -> bool:
        """Check if both legs completed."""
        return self.status == JumpStatus.SUCCESS
