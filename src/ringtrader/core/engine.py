"""
Main trading engine orchestrator.

Coordinates all system components and manages the scouting
lifecycle: startup checks, the periodic tick loop, the halted state
after a partial jump and graceful shutdown.
"""

import asyncio
import logging
import signal
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ringtrader.config.settings import Settings
from ringtrader.core.errors import JumpCommitError, PartialJumpError, StartupError
from ringtrader.core.types import JumpResult
from ringtrader.exchange.client import BinanceClient, BinanceClientError, RetryPolicy
from ringtrader.exchange.rate_limiter import RateLimiter
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.execution.executor import ExecutorConfig, JumpExecutor
from ringtrader.storage.database import Database
from ringtrader.storage.store import TradeRecord, TradeStatistics, TradingStore
from ringtrader.strategy import Strategy, StrategyContext, create_strategy
from ringtrader.strategy.calculator import ProfitCalculator
from ringtrader.telemetry.metrics import TICK_LATENCY, TICKS, TICKS_FAILED, MetricsCollector
from ringtrader.utils.time import LatencyTimer, format_duration_us


logger = logging.getLogger(__name__)


def build_client(settings: Settings) -> BinanceClient:
    """Create the exchange client described by settings."""
    return BinanceClient(
        api_key=settings.binance_api_key.get_secret_value(),
        api_secret=settings.binance_api_secret.get_secret_value(),
        use_testnet=settings.use_testnet,
        rate_limiter=RateLimiter(rate=settings.rate_limit, burst=settings.rate_limit_burst),
        retry_policy=RetryPolicy(
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base_seconds,
        ),
        recv_window_ms=settings.recv_window_ms,
        timeout_seconds=settings.request_timeout_seconds,
    )


class TradingEngine:
    """
    Main trading engine orchestrator.

    Manages the complete lifecycle of:
    - Exchange connectivity and lot-size rules
    - Persisted assets, pairs and current holding
    - Periodic scouting through the configured strategy
    - Halting after a partial jump
    """

    def __init__(
        self,
        settings: Settings,
        client: BinanceClient | None = None,
        database: Database | None = None,
        strategy: Strategy | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize the engine.

        Args:
            settings: Application settings.
            client: Exchange client (built from settings if omitted).
            database: Database (opened from settings if omitted).
            strategy: Strategy (selected from settings if omitted).
            metrics: Metrics collector.
        """
        self._settings = settings
        self._running = False
        self._shutdown_event = asyncio.Event()
        self._tick_task: asyncio.Task[JumpResult | None] | None = None
        self._halted_reason: str | None = None
        self._started_at = time.monotonic()

        self._client = client or build_client(settings)
        self._database = database or Database(settings.database_url)
        self._strategy = strategy or create_strategy(settings.strategy)
        self._metrics = metrics or MetricsCollector()

        self._rules = ExchangeRuleCache()
        self._store = TradingStore(self._database, bridge=settings.bridge)
        self._calculator = ProfitCalculator(
            bridge=settings.bridge,
            fee_rate=settings.fee_rate,
            scout_margin_percent=settings.scout_margin,
        )
        self._executor = JumpExecutor(
            client=self._client,
            rules=self._rules,
            store=self._store,
            config=ExecutorConfig(
                bridge=settings.bridge,
                fee_rate=settings.fee_rate,
                dry_run=settings.dry_run,
            ),
            metrics=self._metrics,
        )
        self._ctx = StrategyContext(
            client=self._client,
            store=self._store,
            rules=self._rules,
            executor=self._executor,
            calculator=self._calculator,
            settings=settings,
            metrics=self._metrics,
            shutdown_event=self._shutdown_event,
        )

    async def setup(self) -> None:
        """
        Prepare everything the tick loop needs.

        Raises:
            StartupError: If the exchange is unreachable, rules are
                unavailable or the store cannot be initialized.
        """
        settings = self._settings
        logger.info("Initializing trading engine (strategy=%s)...", self._strategy.name)

        try:
            skew_ms = await self._client.sync_time()
            logger.info("Exchange reachable, clock skew %d ms", skew_ms)

            logger.info("Loading exchange information...")
            exchange_info = await self._client.get_exchange_info()
        except BinanceClientError as e:
            raise StartupError(f"Cannot reach exchange: {e}") from e

        rule_count = self._rules.load_from_exchange_info(exchange_info)
        if rule_count == 0:
            raise StartupError("Exchange info contained no LOT_SIZE rules")
        logger.info("Loaded %d lot-size rules", rule_count)

        for coin in settings.trade_coins:
            symbol = f"{coin}{settings.bridge}"
            if coin != settings.bridge and symbol not in self._rules:
                logger.warning("No lot-size rule for %s, quantities will not be rounded", symbol)

        try:
            self._database.create_schema()
            self._store.sync_assets(settings.trade_coins, settings.starting_quantities)
            self._store.ensure_pairs()
            self._store.ensure_current_holding(self._strategy.initial_holding(settings))
        except SQLAlchemyError as e:
            raise StartupError(f"Cannot initialize database: {e}") from e

        try:
            snapshot = await self._client.get_all_ticker_prices()
        except BinanceClientError as e:
            raise StartupError(f"Cannot fetch initial prices: {e}") from e

        try:
            self._store.initialize_ratios(snapshot)
            await self._strategy.initialize(self._ctx)
        except SQLAlchemyError as e:
            raise StartupError(f"Cannot initialize pair ratios: {e}") from e

        logger.info("Engine initialization complete (holding=%s)", self._store.get_current_holding())

    async def tick(self) -> JumpResult | None:
        """
        Run one scouting round.

        Errors are contained here: a failed tick is logged and the loop
        carries on. A partial jump halts the engine.

        Returns:
            The jump result if a jump was attempted.
        """
        if self._halted_reason is not None:
            logger.critical("Engine halted, no jumps until restarted: %s", self._halted_reason)
            return None

        self._metrics.increment_counter(TICKS)
        result: JumpResult | None = None

        with LatencyTimer() as timer:
            try:
                result = await self._strategy.scout(self._ctx)
            except (PartialJumpError, JumpCommitError) as e:
                self._halt(str(e))
            except BinanceClientError as e:
                self._metrics.increment_counter(TICKS_FAILED)
                logger.error("Tick aborted: %s", e)
            except SQLAlchemyError:
                self._metrics.increment_counter(TICKS_FAILED)
                logger.exception("Tick aborted by a database error")

        self._metrics.record_latency(TICK_LATENCY, timer.latency_us)
        logger.debug("Tick finished in %s", format_duration_us(timer.latency_us))
        return result

    def _halt(self, reason: str) -> None:
        self._halted_reason = reason
        logger.critical(
            "Engine halted, holding no longer matches the account. Operator action required: %s",
            reason,
        )

    async def run(self) -> None:
        """
        Run ticks until shutdown is requested.

        Ticks start every tick_interval seconds. A tick that overruns
        the interval delays the next one; ticks never overlap.
        """
        self._running = True
        interval = float(self._settings.tick_interval)
        logger.info("Starting scouting loop (interval=%ss, dry_run=%s)", interval, self._settings.dry_run)

        try:
            while not self._shutdown_event.is_set():
                started = time.monotonic()

                self._tick_task = asyncio.create_task(self.tick())
                try:
                    await self._tick_task
                except asyncio.CancelledError:
                    if not (self._shutdown_event.is_set() and self._tick_task.cancelled()):
                        raise
                    logger.info("In-flight tick cancelled by shutdown")
                    break
                finally:
                    self._tick_task = None

                remaining = interval - (time.monotonic() - started)
                if remaining > 0:
                    try:
                        await asyncio.wait_for(self._shutdown_event.wait(), timeout=remaining)
                    except TimeoutError:
                        pass
        finally:
            self._running = False
            logger.info("Scouting loop stopped")

    def request_shutdown(self) -> None:
        """Stop scheduling ticks and cancel the in-flight one."""
        if self._shutdown_event.is_set():
            return
        logger.info("Shutdown requested")
        self._shutdown_event.set()
        if self._tick_task is not None and not self._tick_task.done():
            self._tick_task.cancel()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to request_shutdown."""
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self.request_shutdown)

    async def shutdown(self) -> None:
        """Release the HTTP session and database connections."""
        logger.info("Shutting down engine...")
        self.request_shutdown()
        await self._client.close()
        self._database.dispose()
        logger.info("Engine shutdown complete")

    # =========================================================================
    # Read-only reporting
    # =========================================================================

    def status(self) -> dict[str, Any]:
        """Snapshot of the engine state for monitoring."""
        return {
            "strategy": self._strategy.name,
            "dry_run": self._settings.dry_run,
            "running": self._running,
            "uptime_seconds": time.monotonic() - self._started_at,
            "current_holding": self._store.get_current_holding(),
            "halted": self._halted_reason is not None,
            "halted_reason": self._halted_reason,
            "metrics": self._metrics.to_dict(),
        }

    def list_trades(self, limit: int = 100) -> list[TradeRecord]:
        """Most recent trades first."""
        return self._store.list_trades(limit)

    def trade_statistics(self) -> TradeStatistics:
        """All-time and last-24h jump statistics."""
        return self._store.trade_statistics()

    @property
    def is_running(self) -> bool:
        """Check if the tick loop is running."""
        return self._running

    @property
    def is_halted(self) -> bool:
        return self._halted_reason is not None

    @property
    def halted_reason(self) -> str | None:
        return self._halted_reason

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics

    @property
    def store(self) -> TradingStore:
        return self._store

    @property
    def rules(self) -> ExchangeRuleCache:
        return self._rules

    @property
    def strategy(self) -> Strategy:
        return self._strategy


@asynccontextmanager
async def create_engine(settings: Settings) -> AsyncIterator[TradingEngine]:
    """
    Create and manage engine lifecycle.

    Usage:
        async with create_engine(settings) as engine:
            await engine.run()
    """
    engine = TradingEngine(settings)

    try:
        await engine.setup()
        yield engine
    finally:
        await engine.shutdown()
