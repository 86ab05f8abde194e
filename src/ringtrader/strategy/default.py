"""Single-holding strategy: only jumps away from the asset currently held."""

import logging
import random
from collections.abc import Sequence

from ringtrader.config.constants import STRATEGY_DEFAULT
from ringtrader.config.settings import Settings
from ringtrader.core.types import PairRatio
from ringtrader.strategy.base import Strategy, StrategyContext


logger = logging.getLogger(__name__)


class DefaultStrategy(Strategy):
    """
    Holds one asset at a time.

    Each tick evaluates the pairs leaving the current holding and sells
    the configured quantity on a jump.
    """

    name = STRATEGY_DEFAULT

    def initial_holding(self, settings: Settings) -> str:
        if settings.initial_coin and settings.initial_coin != settings.bridge:
            return settings.initial_coin
        choices = [c for c in settings.trade_coins if c != settings.bridge]
        return random.choice(choices)

    async def initialize(self, ctx: StrategyContext) -> None:
        holding = ctx.store.get_current_holding()

        # The bridge and disabled assets have no pairs to jump from
        if (
            holding is None
            or holding == ctx.settings.bridge
            or holding not in ctx.store.enabled_assets()
        ):
            replacement = self.initial_holding(ctx.settings)
            logger.warning("Stored holding %s cannot be traded, switching to %s", holding, replacement)
            ctx.store.set_current_holding(replacement)
            holding = replacement

        pairs = ctx.store.pairs_from(holding)
        if not pairs:
            logger.warning("No pairs leave %s; %s strategy cannot trade", holding, self.name)
        logger.info("%s strategy initialized (holding=%s, pairs=%d)", self.name, holding, len(pairs))

    def candidate_pairs(self, ctx: StrategyContext) -> Sequence[PairRatio]:
        holding = ctx.store.get_current_holding()
        if holding is None:
            return []
        return ctx.store.pairs_from(holding)

    def jump_quantity(self, ctx: StrategyContext, from_asset: str) -> float:
        return ctx.settings.quantity
