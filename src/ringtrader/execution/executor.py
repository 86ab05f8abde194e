"""
Two-leg jump execution.

A jump sells the held asset for the bridge currency, then buys the
target asset with the proceeds. The exchange offers no atomicity
across the two orders, so a failure after the sell leg is surfaced as
a PartialJumpError and never retried automatically.
"""

import asyncio
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ringtrader.core.errors import JumpCommitError, PartialJumpError, SizingError
from ringtrader.core.types import (
    JumpResult,
    JumpStatus,
    LegResult,
    Opportunity,
    OrderSide,
    PriceSnapshot,
)
from ringtrader.exchange.client import BinanceClient, BinanceClientError
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.storage.store import TradingStore
from ringtrader.telemetry.metrics import (
    JUMPS_FAILED,
    JUMPS_PARTIAL,
    SIZING_ABORTS,
    MetricsCollector,
)
from ringtrader.utils.math import format_profit
from ringtrader.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)


@dataclass
class ExecutorConfig:
    """Executor configuration."""

    bridge: str
    fee_rate: float
    dry_run: bool = True  # Simulate orders


class JumpExecutor:
    """
    Executes jumps and commits their outcome.

    Features:
    - Floor-to-step sizing checked before every order
    - Dry-run simulation from the tick's price snapshot
    - Trade audit trail for every filled leg
    - Holding update and re-benchmark only after both legs filled
    """

    def __init__(
        self,
        client: BinanceClient,
        rules: ExchangeRuleCache,
        store: TradingStore,
        config: ExecutorConfig,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            client: Exchange client.
            rules: Lot-size rules.
            store: Trading state store.
            config: Executor configuration.
            metrics: Optional metrics collector.
        """
        self._client = client
        self._rules = rules
        self._store = store
        self._config = config
        self._metrics = metrics or MetricsCollector()

    @property
    def dry_run(self) -> bool:
        return self._config.dry_run

    async def execute(
        self,
        opportunity: Opportunity,
        quantity: float,
        snapshot: PriceSnapshot,
    ) -> JumpResult:
        """
        Execute a jump from opportunity.pair.from_asset to to_asset.

        Args:
            opportunity: Selected opportunity.
            quantity: Quantity of the source asset to sell.
            snapshot: Price snapshot the opportunity was evaluated on.

        Returns:
            JumpResult with status SUCCESS, SIZING_ABORTED or FAILED.
            Nothing is persisted unless the sell leg filled.

        Raises:
            PartialJumpError: If the sell leg filled but the buy leg
                could not be completed.
            JumpCommitError: If both legs filled but the new holding
                could not be stored.
        """
        started_ms = get_timestamp_ms()
        pair = opportunity.pair
        bridge = self._config.bridge
        sell_symbol = f"{pair.from_asset}{bridge}"
        buy_symbol = f"{pair.to_asset}{bridge}"

        logger.info(
            "Executing jump %s -> %s (quantity=%s, profit=%s, dry_run=%s)",
            pair.from_asset,
            pair.to_asset,
            quantity,
            format_profit(opportunity.profit),
            self._config.dry_run,
        )

        sell_price = snapshot.price(sell_symbol)
        buy_price = snapshot.price(buy_symbol)
        if sell_price is None or buy_price is None:
            return self._failed(
                opportunity, f"Missing price for {sell_symbol} or {buy_symbol}", started_ms
            )

        # Step 1: size the sell leg. Nothing has been sent yet.
        try:
            if quantity <= 0:
                raise SizingError(sell_symbol, quantity, 0.0)
            sell_qty = self._rules.format_quantity(sell_symbol, quantity)
        except SizingError as e:
            self._metrics.increment_counter(SIZING_ABORTS)
            logger.warning("Jump aborted before sell: %s", e)
            return JumpResult(
                opportunity=opportunity,
                status=JumpStatus.SIZING_ABORTED,
                error_message=str(e),
                started_ms=started_ms,
            )

        # Step 2: sell leg
        try:
            sell = await self._place_leg(sell_symbol, OrderSide.SELL, sell_qty, sell_price)
        except BinanceClientError as e:
            return self._failed(opportunity, f"Sell order for {sell_symbol} failed: {e}", started_ms)

        if sell.quantity <= 0:
            return self._failed(opportunity, f"Sell order for {sell_symbol} did not fill", started_ms)

        proceeds = sell.quote_quantity * (1.0 - self._config.fee_rate)
        self._record(sell, opportunity, profit=None)

        # Steps 3-4: size and place the buy leg. The account now holds bridge currency.
        try:
            buy_qty = self._rules.format_quantity(buy_symbol, proceeds / buy_price)
            buy = await self._place_leg(buy_symbol, OrderSide.BUY, buy_qty, buy_price)
        except SizingError as e:
            raise self._partial(opportunity, proceeds, f"buy leg undersized: {e}") from e
        except BinanceClientError as e:
            raise self._partial(opportunity, proceeds, f"buy order failed: {e}") from e
        except asyncio.CancelledError:
            self._partial(opportunity, proceeds, "cancelled before buy leg completed")
            raise
        except Exception as e:
            raise self._partial(opportunity, proceeds, f"buy leg failed unexpectedly: {e!r}") from e

        if buy.quantity <= 0:
            raise self._partial(opportunity, proceeds, f"buy order for {buy_symbol} did not fill")

        # Step 5: commit
        self._record(buy, opportunity, profit=opportunity.profit)
        bought_net = buy.quantity * (1.0 - self._config.fee_rate)
        try:
            self._store.apply_jump(pair.from_asset, pair.to_asset, sell.quantity, bought_net)
            self._store.rebenchmark_from(pair.to_asset, snapshot)
        except SQLAlchemyError as e:
            message = (
                f"Jump {pair.from_asset} -> {pair.to_asset} filled on the exchange but could not be "
                f"committed: {e}. Account now holds {bought_net:.8f} {pair.to_asset}"
            )
            logger.critical(message)
            raise JumpCommitError(message, pair.from_asset, pair.to_asset) from e

        self._metrics.record_jump(opportunity.profit, buy.timestamp_ms)
        logger.info(
            "Jump complete: now holding %s (%.8f %s sold, %.8f %s bought)",
            pair.to_asset,
            sell.quantity,
            pair.from_asset,
            buy.quantity,
            pair.to_asset,
        )

        return JumpResult(
            opportunity=opportunity,
            status=JumpStatus.SUCCESS,
            sell=sell,
            buy=buy,
            started_ms=started_ms,
        )

    async def _place_leg(
        self,
        symbol: str,
        side: OrderSide,
        quantity: float,
        snapshot_price: float,
    ) -> LegResult:
        """Place one market order, or simulate it from the snapshot price."""
        if self._config.dry_run:
            return LegResult(
                symbol=symbol,
                side=side,
                quantity=quantity,
                price=snapshot_price,
                quote_quantity=quantity * snapshot_price,
                timestamp_ms=get_timestamp_ms(),
                simulated=True,
            )

        order = await self._client.place_market_order(symbol, side, quantity)

        executed = order.executed_qty_float
        if not order.is_filled:
            logger.warning(
                "%s %s not fully filled (status=%s): %.8f of %.8f",
                side.value,
                symbol,
                order.status,
                executed,
                quantity,
            )

        quote = order.quote_qty_float
        if quote <= 0 and executed > 0:
            quote = executed * snapshot_price

        return LegResult(
            symbol=symbol,
            side=side,
            quantity=executed,
            price=order.avg_fill_price or snapshot_price,
            quote_quantity=quote,
            timestamp_ms=order.transact_time,
            order_id=str(order.order_id),
        )

    def _record(self, leg: LegResult, opportunity: Opportunity, profit: float | None) -> None:
        """Append a filled leg to the audit trail."""
        pair = opportunity.pair
        try:
            self._store.record_trade(leg, pair.from_asset, pair.to_asset, profit=profit)
        except SQLAlchemyError:
            # The order already executed on the exchange
            logger.exception("Failed to record %s %s trade", leg.side.value, leg.symbol)

    def _failed(self, opportunity: Opportunity, message: str, started_ms: int) -> JumpResult:
        self._metrics.increment_counter(JUMPS_FAILED)
        logger.error("Jump %s failed: %s", opportunity.pair.key, message)
        return JumpResult(
            opportunity=opportunity,
            status=JumpStatus.FAILED,
            error_message=message,
            started_ms=started_ms,
        )

    def _partial(self, opportunity: Opportunity, proceeds: float, reason: str) -> PartialJumpError:
        """Log a partial jump at CRITICAL and build its error."""
        pair = opportunity.pair
        bridge = self._config.bridge
        self._metrics.increment_counter(JUMPS_PARTIAL)
        message = (
            f"Partial jump {pair.from_asset} -> {pair.to_asset}: {reason}. "
            f"Holding ~{proceeds:.8f} {bridge}; current holding left at {pair.from_asset}"
        )
        logger.critical(message)
        return PartialJumpError(message, pair.from_asset, pair.to_asset, bridge, proceeds)
