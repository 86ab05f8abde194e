"""Multi-asset strategy: evaluates every pair and tracks per-asset balances."""

import logging
from collections.abc import Sequence

from ringtrader.config.constants import STRATEGY_MULTIPLE_COINS
from ringtrader.config.settings import Settings
from ringtrader.core.types import PairRatio
from ringtrader.strategy.base import Strategy, StrategyContext


logger = logging.getLogger(__name__)


class MultipleCoinsStrategy(Strategy):
    """
    Picks the globally best jump across all pairs.

    A jump sells the whole tracked balance of its source asset. Pairs
    from an asset without balance can still win the selection; they
    are then aborted by the sizing check.
    """

    name = STRATEGY_MULTIPLE_COINS

    def initial_holding(self, settings: Settings) -> str:
        return settings.bridge

    async def initialize(self, ctx: StrategyContext) -> None:
        pairs = ctx.store.all_pairs()
        if not pairs:
            logger.warning("No pairs found; %s strategy will not be able to trade", self.name)

        balances = {s: ctx.store.get_asset_quantity(s) for s in ctx.store.enabled_assets()}
        if not any(q > 0 for q in balances.values()):
            logger.warning("No asset has a tracked balance; set STARTING_QUANTITIES")
        logger.info("%s strategy initialized (pairs=%d, balances=%s)", self.name, len(pairs), balances)

    def candidate_pairs(self, ctx: StrategyContext) -> Sequence[PairRatio]:
        return ctx.store.all_pairs()

    def jump_quantity(self, ctx: StrategyContext, from_asset: str) -> float:
        return ctx.store.get_asset_quantity(from_asset)
