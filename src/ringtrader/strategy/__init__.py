"""Scouting strategies and profit evaluation."""

from ringtrader.config.constants import STRATEGY_DEFAULT, STRATEGY_MULTIPLE_COINS
from ringtrader.strategy.base import Strategy, StrategyContext
from ringtrader.strategy.calculator import PairEvaluationError, ProfitCalculator, calculate_profit
from ringtrader.strategy.default import DefaultStrategy
from ringtrader.strategy.multiple_coins import MultipleCoinsStrategy
from ringtrader.strategy.scout import ScoutResult, find_best_jump


STRATEGIES: dict[str, type[Strategy]] = {
    STRATEGY_DEFAULT: DefaultStrategy,
    STRATEGY_MULTIPLE_COINS: MultipleCoinsStrategy,
}


def create_strategy(name: str) -> Strategy:
    """
    Instantiate a strategy by name.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        return STRATEGIES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown strategy {name!r}, expected one of {sorted(STRATEGIES)}"
        ) from None


__all__ = [
    "STRATEGIES",
    "DefaultStrategy",
    "MultipleCoinsStrategy",
    "PairEvaluationError",
    "ProfitCalculator",
    "ScoutResult",
    "Strategy",
    "StrategyContext",
    "calculate_profit",
    "create_strategy",
    "find_best_jump",
]
