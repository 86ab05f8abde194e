"""
Strategy interface.

A strategy decides which pairs are candidates on each tick and how
much to sell. Selection, execution and persistence are shared.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field

from ringtrader.config.settings import Settings
from ringtrader.core.types import JumpResult, PairRatio, PriceSnapshot
from ringtrader.exchange.client import BinanceClient
from ringtrader.exchange.rules import ExchangeRuleCache
from ringtrader.execution.executor import JumpExecutor
from ringtrader.storage.store import TradingStore
from ringtrader.strategy.calculator import ProfitCalculator
from ringtrader.strategy.scout import find_best_jump
from ringtrader.telemetry.metrics import OPPORTUNITIES_FOUND, MetricsCollector
from ringtrader.utils.math import format_profit


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StrategyContext:
    """Components a strategy works with, owned by the engine."""

    client: BinanceClient
    store: TradingStore
    rules: ExchangeRuleCache
    executor: JumpExecutor
    calculator: ProfitCalculator
    settings: Settings
    metrics: MetricsCollector
    shutdown_event: asyncio.Event = field(default_factory=asyncio.Event)


class Strategy(ABC):
    """Base class for scouting strategies."""

    name: str = ""

    @abstractmethod
    def initial_holding(self, settings: Settings) -> str:
        """Asset to hold when the store has no current holding yet."""

    @abstractmethod
    async def initialize(self, ctx: StrategyContext) -> None:
        """Prepare the strategy once the store is populated."""

    @abstractmethod
    def candidate_pairs(self, ctx: StrategyContext) -> Sequence[PairRatio]:
        """Pairs evaluated this tick."""

    @abstractmethod
    def jump_quantity(self, ctx: StrategyContext, from_asset: str) -> float:
        """Quantity of from_asset sold by a jump."""

    async def scout(self, ctx: StrategyContext) -> JumpResult | None:
        """
        Run one scouting round.

        Fetches one price snapshot, evaluates the candidate pairs
        against it and executes the best opportunity.

        Returns:
            The jump result, or None if nothing was executed.

        Raises:
            BinanceClientError: If the price snapshot cannot be fetched.
            PartialJumpError: If a jump stopped after its sell leg.
        """
        snapshot = await ctx.client.get_all_ticker_prices()

        pairs = self.candidate_pairs(ctx)
        result = await find_best_jump(pairs, snapshot, ctx.calculator)
        ctx.metrics.increment_counter(OPPORTUNITIES_FOUND, result.candidates)

        if result.best is None:
            logger.info(
                "[%s] No profitable jump among %d pairs (%d unavailable)",
                self.name,
                result.evaluated,
                result.failed,
            )
            return None

        best = result.best
        logger.info(
            "[%s] Best jump %s -> %s: profit=%s ratio=%.8f benchmark=%.8f",
            self.name,
            best.pair.from_asset,
            best.pair.to_asset,
            format_profit(best.profit),
            best.current_ratio,
            best.pair.ratio,
        )

        if ctx.shutdown_event.is_set():
            logger.info("Shutdown requested, not starting jump")
            return None

        quantity = self.jump_quantity(ctx, best.pair.from_asset)
        return await ctx.executor.execute(best, quantity, snapshot)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
