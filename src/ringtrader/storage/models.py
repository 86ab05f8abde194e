"""
ORM models for persisted trading state.

Tables:
- assets: coins the bot may hold, with enabled flag and tracked quantity
- pairs: ordered (from, to) benchmarks with their anchor ratio
- current_holding: single row naming the held asset
- trades: append-only audit trail of executed legs
"""

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# Only row id of the current_holding table
HOLDING_ROW_ID = 1


class Base(DeclarativeBase):
    """Declarative base for all ringtrader tables."""


class Asset(Base):
    """A coin the bot is configured to trade."""

    __tablename__ = "assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Tracked balance, used by the multiple_coins strategy
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    def __repr__(self) -> str:
        return f"Asset({self.symbol}, enabled={self.enabled}, quantity={self.quantity})"


class Pair(Base):
    """
    Benchmark ratio for jumps from from_asset to to_asset.

    ratio is 0 until initialized from the first price snapshot.
    """

    __tablename__ = "pairs"
    __table_args__ = (
        UniqueConstraint("from_asset", "to_asset", name="uq_pairs_from_to"),
        CheckConstraint("from_asset != to_asset", name="ck_pairs_distinct"),
        Index("ix_pairs_from_asset", "from_asset"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    from_asset: Mapped[str] = mapped_column(
        String(20), ForeignKey("assets.symbol"), nullable=False
    )
    to_asset: Mapped[str] = mapped_column(
        String(20), ForeignKey("assets.symbol"), nullable=False
    )
    ratio: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    def __repr__(self) -> str:
        return f"Pair({self.from_asset}->{self.to_asset}, ratio={self.ratio})"


class CurrentHolding(Base):
    """Singleton row naming the asset presently held."""

    __tablename__ = "current_holding"
    __table_args__ = (CheckConstraint(f"id = {HOLDING_ROW_ID}", name="ck_holding_singleton"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=HOLDING_ROW_ID)
    symbol: Mapped[str] = mapped_column(String(20), nullable=False)
    updated_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return f"CurrentHolding({self.symbol})"


class Trade(Base):
    """
    One executed (or simulated) order leg.

    Write-once. profit is only set on the closing leg of a jump.
    """

    __tablename__ = "trades"
    __table_args__ = (Index("ix_trades_timestamp_ms", "timestamp_ms"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(30), nullable=False)
    side: Mapped[str] = mapped_column(String(4), nullable=False)
    from_asset: Mapped[str] = mapped_column(String(20), nullable=False)
    to_asset: Mapped[str] = mapped_column(String(20), nullable=False)
    price: Mapped[float] = mapped_column(Float, nullable=False)
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    quote_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    timestamp_ms: Mapped[int] = mapped_column(BigInteger, nullable=False)
    simulated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    profit: Mapped[float | None] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f"Trade({self.side} {self.quantity} {self.symbol} @ {self.price})"
