"""
Concurrent pair evaluation.

One task per candidate pair evaluates it against the shared snapshot
and pushes qualifying opportunities onto a queue. gather() is the join
barrier; the best opportunity is selected once every task finished.
"""

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from ringtrader.core.types import Opportunity, PairRatio, PriceSnapshot
from ringtrader.strategy.calculator import PairEvaluationError, ProfitCalculator
from ringtrader.utils.math import format_profit


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class ScoutResult:
    """Outcome of evaluating one tick's candidate pairs."""

    best: Opportunity | None
    evaluated: int
    candidates: int
    failed: int


async def _evaluate_pair(
    pair: PairRatio,
    snapshot: PriceSnapshot,
    calculator: ProfitCalculator,
    results: "asyncio.Queue[Opportunity]",
) -> bool:
    """
    Evaluate one pair and enqueue it if profitable.

    Returns:
        False if the pair could not be evaluated.
    """
    try:
        opportunity = calculator.evaluate(pair, snapshot)
    except (PairEvaluationError, ArithmeticError, ValueError) as e:
        logger.warning("Failed to calculate profit for %s: %s", pair.key, e)
        return False

    if opportunity.is_profitable:
        await results.put(opportunity)
    return True


async def find_best_jump(
    pairs: Sequence[PairRatio],
    snapshot: PriceSnapshot,
    calculator: ProfitCalculator,
) -> ScoutResult:
    """
    Select the most profitable jump among pairs.

    Fan-out is bounded by len(pairs). Pair snapshots are immutable, so
    evaluation never touches the store. Among equal profits the first
    result dequeued wins.

    Args:
        pairs: Candidate pairs.
        snapshot: Price snapshot shared by every evaluation.
        calculator: Profit calculator.

    Returns:
        ScoutResult with the best opportunity, if any.
    """
    if not pairs:
        return ScoutResult(best=None, evaluated=0, candidates=0, failed=0)

    results: asyncio.Queue[Opportunity] = asyncio.Queue(maxsize=len(pairs))

    outcomes = await asyncio.gather(
        *(_evaluate_pair(pair, snapshot, calculator, results) for pair in pairs)
    )

    best: Opportunity | None = None
    candidates = 0
    while not results.empty():
        opportunity = results.get_nowait()
        candidates += 1
        logger.debug("Candidate %s profit=%s", opportunity.pair.key, format_profit(opportunity.profit))
        if best is None or opportunity.profit > best.profit:
            best = opportunity

    failed = sum(1 for ok in outcomes if not ok)
    return ScoutResult(best=best, evaluated=len(pairs), candidates=candidates, failed=failed)
