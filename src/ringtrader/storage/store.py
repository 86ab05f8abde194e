"""
Trading state store.

All reads hand out detached, immutable snapshots (PairRatio,
TradeRecord) so concurrent evaluation tasks never touch live ORM
objects. Writes happen only from the engine setup path and the jump
executor.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from ringtrader.config.constants import STATS_RECENT_WINDOW_MS
from ringtrader.core.types import LegResult, PairRatio, PriceSnapshot
from ringtrader.storage.database import Database
from ringtrader.storage.models import HOLDING_ROW_ID, Asset, CurrentHolding, Pair, Trade
from ringtrader.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


# =============================================================================
# Read Models
# =============================================================================


@dataclass(slots=True, frozen=True)
class TradeRecord:
    """Detached copy of a persisted trade."""

    id: int
    symbol: str
    side: str
    from_asset: str
    to_asset: str
    price: float
    quantity: float
    quote_quantity: float
    timestamp_ms: int
    simulated: bool
    order_id: str | None
    profit: float | None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "symbol": self.symbol,
            "side": self.side,
            "from_asset": self.from_asset,
            "to_asset": self.to_asset,
            "price": self.price,
            "quantity": self.quantity,
            "quote_quantity": self.quote_quantity,
            "timestamp_ms": self.timestamp_ms,
            "simulated": self.simulated,
            "order_id": self.order_id,
            "profit": self.profit,
        }


@dataclass(slots=True)
class PeriodStatistics:
    """Aggregates over the closing legs of completed jumps."""

    total_trades: int = 0
    profitable_trades: int = 0
    total_profit: float = 0.0

    @property
    def win_rate(self) -> float:
        if self.total_trades == 0:
            return 0.0
        return self.profitable_trades / self.total_trades

    def add(self, profit: float) -> None:
        self.total_trades += 1
        if profit > 0:
            self.profitable_trades += 1
        self.total_profit += profit

    def to_dict(self) -> dict[str, float | int]:
        return {
            "total_trades": self.total_trades,
            "profitable_trades": self.profitable_trades,
            "win_rate": self.win_rate,
            "total_profit": self.total_profit,
        }


@dataclass(slots=True)
class TradeStatistics:
    """All-time and recent-window statistics."""

    all_time: PeriodStatistics
    recent: PeriodStatistics
    window_ms: int = STATS_RECENT_WINDOW_MS

    def to_dict(self) -> dict[str, object]:
        return {
            "all_time": self.all_time.to_dict(),
            "recent": self.recent.to_dict(),
            "window_ms": self.window_ms,
        }


def _to_pair_ratio(pair: Pair) -> PairRatio:
    return PairRatio(from_asset=pair.from_asset, to_asset=pair.to_asset, ratio=pair.ratio)


def _to_trade_record(trade: Trade) -> TradeRecord:
    return TradeRecord(
        id=trade.id,
        symbol=trade.symbol,
        side=trade.side,
        from_asset=trade.from_asset,
        to_asset=trade.to_asset,
        price=trade.price,
        quantity=trade.quantity,
        quote_quantity=trade.quote_quantity,
        timestamp_ms=trade.timestamp_ms,
        simulated=trade.simulated,
        order_id=trade.order_id,
        profit=trade.profit,
    )


# =============================================================================
# Store
# =============================================================================


class TradingStore:
    """
    Persistence operations for assets, pairs, holding and trades.

    Each method runs in its own short transaction.
    """

    def __init__(self, database: Database, bridge: str) -> None:
        """
        Initialize the store.

        Args:
            database: Database providing sessions.
            bridge: Bridge currency used to derive market ratios.
        """
        self._db = database
        self._bridge = bridge

    @property
    def bridge(self) -> str:
        return self._bridge

    # =========================================================================
    # Assets
    # =========================================================================

    def sync_assets(
        self,
        symbols: Iterable[str],
        starting_quantities: Mapping[str, float] | None = None,
    ) -> list[str]:
        """
        Enable the configured assets and disable all others.

        New assets are seeded from starting_quantities. Existing
        quantities are preserved across restarts.

        Returns:
            Enabled symbols in configured order.
        """
        wanted = list(dict.fromkeys(symbols))
        seeds = starting_quantities or {}

        with self._db.session_scope() as session:
            existing = {a.symbol: a for a in session.scalars(select(Asset))}

            for symbol in wanted:
                asset = existing.get(symbol)
                if asset is None:
                    session.add(Asset(symbol=symbol, enabled=True, quantity=seeds.get(symbol, 0.0)))
                    logger.info("Added asset %s", symbol)
                elif not asset.enabled:
                    asset.enabled = True
                    logger.info("Re-enabled asset %s", symbol)

            for symbol, asset in existing.items():
                if symbol not in wanted and asset.enabled:
                    asset.enabled = False
                    logger.info("Disabled asset %s (no longer configured)", symbol)

        return wanted

    def enabled_assets(self) -> list[str]:
        """Symbols of all enabled assets."""
        with self._db.session_scope() as session:
            return list(
                session.scalars(select(Asset.symbol).where(Asset.enabled.is_(True)).order_by(Asset.id))
            )

    def get_asset_quantity(self, symbol: str) -> float:
        """Tracked quantity of an asset (0 if unknown)."""
        with self._db.session_scope() as session:
            qty = session.scalar(select(Asset.quantity).where(Asset.symbol == symbol))
            return float(qty) if qty is not None else 0.0

    def set_asset_quantity(self, symbol: str, quantity: float) -> None:
        """Overwrite the tracked quantity of an asset."""
        with self._db.session_scope() as session:
            asset = session.scalar(select(Asset).where(Asset.symbol == symbol))
            if asset is None:
                raise KeyError(f"Unknown asset {symbol}")
            asset.quantity = quantity

    # =========================================================================
    # Pairs
    # =========================================================================

    def ensure_pairs(self) -> int:
        """
        Create the all-to-all pair universe over enabled assets.

        Existing pairs keep their ratio. Self-pairs are never created.

        Returns:
            Number of pairs created.
        """
        created = 0
        with self._db.session_scope() as session:
            symbols = list(
                session.scalars(select(Asset.symbol).where(Asset.enabled.is_(True)).order_by(Asset.id))
            )
            existing = {
                (f, t) for f, t in session.execute(select(Pair.from_asset, Pair.to_asset))
            }

            for from_asset in symbols:
                for to_asset in symbols:
                    if from_asset == to_asset or (from_asset, to_asset) in existing:
                        continue
                    session.add(Pair(from_asset=from_asset, to_asset=to_asset, ratio=0.0))
                    created += 1

        if created:
            logger.info("Created %d pairs", created)
        return created

    def _enabled_pairs_query(self) -> Select[tuple[Pair]]:
        enabled = select(Asset.symbol).where(Asset.enabled.is_(True))
        return (
            select(Pair)
            .where(Pair.from_asset.in_(enabled), Pair.to_asset.in_(enabled))
            .order_by(Pair.id)
        )

    def all_pairs(self) -> list[PairRatio]:
        """Immutable snapshots of every pair between enabled assets."""
        with self._db.session_scope() as session:
            return [_to_pair_ratio(p) for p in session.scalars(self._enabled_pairs_query())]

    def pairs_from(self, symbol: str) -> list[PairRatio]:
        """Immutable snapshots of pairs leaving symbol."""
        with self._db.session_scope() as session:
            query = self._enabled_pairs_query().where(Pair.from_asset == symbol)
            return [_to_pair_ratio(p) for p in session.scalars(query)]

    def initialize_ratios(self, snapshot: PriceSnapshot) -> int:
        """
        Set the benchmark of every pair whose ratio is still zero.

        Pairs without both leg prices stay at zero.

        Returns:
            Number of pairs initialized.
        """
        initialized = 0
        with self._db.session_scope() as session:
            for pair in session.scalars(select(Pair).where(Pair.ratio <= 0)):
                ratio = snapshot.ratio(pair.from_asset, pair.to_asset, self._bridge)
                if ratio is None:
                    logger.debug("No prices to initialize %s->%s", pair.from_asset, pair.to_asset)
                    continue
                pair.ratio = ratio
                initialized += 1

        if initialized:
            logger.info("Initialized %d pair ratios", initialized)
        return initialized

    def rebenchmark_from(self, symbol: str, snapshot: PriceSnapshot) -> int:
        """
        Reset the benchmark of every pair leaving symbol to the market ratio.

        Returns:
            Number of pairs updated.
        """
        updated = 0
        with self._db.session_scope() as session:
            for pair in session.scalars(select(Pair).where(Pair.from_asset == symbol)):
                ratio = snapshot.ratio(pair.from_asset, pair.to_asset, self._bridge)
                if ratio is None:
                    continue
                pair.ratio = ratio
                updated += 1

        logger.info("Re-benchmarked %d pairs from %s", updated, symbol)
        return updated

    # =========================================================================
    # Current Holding
    # =========================================================================

    def get_current_holding(self) -> str | None:
        """Symbol currently held, or None before initialization."""
        with self._db.session_scope() as session:
            holding = session.get(CurrentHolding, HOLDING_ROW_ID)
            return holding.symbol if holding else None

    def ensure_current_holding(self, candidate: str) -> str:
        """
        Create the holding row with candidate if none exists.

        Returns:
            The symbol held after the call.
        """
        with self._db.session_scope() as session:
            holding = session.get(CurrentHolding, HOLDING_ROW_ID)
            if holding is not None:
                return holding.symbol

            session.add(
                CurrentHolding(id=HOLDING_ROW_ID, symbol=candidate, updated_ms=get_timestamp_ms())
            )
            logger.info("Starting with %s as current holding", candidate)
            return candidate

    def set_current_holding(self, symbol: str) -> None:
        """Overwrite the held asset."""
        with self._db.session_scope() as session:
            self._set_holding(session, symbol)

    @staticmethod
    def _set_holding(session: Session, symbol: str) -> None:
        holding = session.get(CurrentHolding, HOLDING_ROW_ID)
        now = get_timestamp_ms()
        if holding is None:
            session.add(CurrentHolding(id=HOLDING_ROW_ID, symbol=symbol, updated_ms=now))
        else:
            holding.symbol = symbol
            holding.updated_ms = now

    def apply_jump(
        self,
        from_asset: str,
        to_asset: str,
        sold_quantity: float,
        bought_quantity: float,
    ) -> None:
        """
        Commit a completed jump: move the holding and the tracked quantities.

        Runs in a single transaction.
        """
        with self._db.session_scope() as session:
            self._set_holding(session, to_asset)

            assets = {
                a.symbol: a
                for a in session.scalars(select(Asset).where(Asset.symbol.in_((from_asset, to_asset))))
            }
            if from_asset in assets:
                source = assets[from_asset]
                source.quantity = max(0.0, source.quantity - sold_quantity)
            if to_asset in assets:
                assets[to_asset].quantity += bought_quantity

    # =========================================================================
    # Trades
    # =========================================================================

    def record_trade(
        self,
        leg: LegResult,
        from_asset: str,
        to_asset: str,
        profit: float | None = None,
    ) -> int:
        """
        Append one executed leg to the audit trail.

        Returns:
            Id of the new trade row.
        """
        with self._db.session_scope() as session:
            trade = Trade(
                symbol=leg.symbol,
                side=leg.side.value,
                from_asset=from_asset,
                to_asset=to_asset,
                price=leg.price,
                quantity=leg.quantity,
                quote_quantity=leg.quote_quantity,
                timestamp_ms=leg.timestamp_ms,
                simulated=leg.simulated,
                order_id=leg.order_id,
                profit=profit,
            )
            session.add(trade)
            session.flush()
            return trade.id

    def count_trades(self) -> int:
        with self._db.session_scope() as session:
            return session.scalar(select(func.count()).select_from(Trade)) or 0

    # =========================================================================
    # Reporting (read-only)
    # =========================================================================

    def list_trades(self, limit: int = 100) -> list[TradeRecord]:
        """Most recent trades first."""
        with self._db.session_scope() as session:
            query = select(Trade).order_by(Trade.timestamp_ms.desc(), Trade.id.desc()).limit(limit)
            return [_to_trade_record(t) for t in session.scalars(query)]

    def trade_statistics(
        self,
        now_ms: int | None = None,
        window_ms: int = STATS_RECENT_WINDOW_MS,
    ) -> TradeStatistics:
        """
        Aggregate profit statistics over closing legs.

        Only legs carrying a profit count as a trade here, so each
        completed jump is counted once.
        """
        now = now_ms if now_ms is not None else get_timestamp_ms()
        since = now - window_ms

        stats = TradeStatistics(all_time=PeriodStatistics(), recent=PeriodStatistics(), window_ms=window_ms)
        with self._db.session_scope() as session:
            rows = session.execute(
                select(Trade.profit, Trade.timestamp_ms).where(Trade.profit.is_not(None))
            ).tuples()
            for profit, timestamp_ms in rows:
                stats.all_time.add(profit)
                if timestamp_ms > since:
                    stats.recent.add(profit)

        return stats
