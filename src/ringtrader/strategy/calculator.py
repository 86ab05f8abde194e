"""
Jump profit calculation.

Compares the live FromAsset/ToAsset market ratio against the pair's
benchmark, net of both legs' fees and the scout margin. Pure: the
result depends only on the prices, the benchmark, the fee rate and
the margin.
"""

from ringtrader.core.types import Opportunity, PairRatio, PriceSnapshot


class PairEvaluationError(ValueError):
    """A pair cannot be evaluated against the current snapshot."""


def calculate_profit(
    current_ratio: float,
    benchmark_ratio: float,
    fee_rate: float,
    scout_margin_percent: float,
) -> float:
    """
    Profit fraction of a jump.

    Args:
        current_ratio: price(From/bridge) / price(To/bridge).
        benchmark_ratio: Pair's anchor ratio (must be positive).
        fee_rate: Fee per leg (e.g., 0.001 = 0.1%).
        scout_margin_percent: Extra required profit in percent.

    Returns:
        (current_ratio * (1 - fee)^2 / benchmark) - 1 - margin/100

    Example:
        >>> round(calculate_profit(30000 / 1800, 15.0, 0.001, 0.0), 4)
        0.1089
    """
    effective_ratio = current_ratio * (1.0 - fee_rate) * (1.0 - fee_rate)
    return (effective_ratio / benchmark_ratio) - 1.0 - (scout_margin_percent / 100.0)


class ProfitCalculator:
    """
    Evaluates pairs against a price snapshot.

    Holds only immutable configuration so one instance is shared by
    all concurrent evaluation tasks.
    """

    __slots__ = ("_bridge", "_fee_rate", "_scout_margin")

    def __init__(self, bridge: str, fee_rate: float, scout_margin_percent: float = 0.0) -> None:
        """
        Initialize calculator.

        Args:
            bridge: Bridge currency all jumps route through.
            fee_rate: Trading fee per leg.
            scout_margin_percent: Extra required profit in percent.
        """
        self._bridge = bridge
        self._fee_rate = fee_rate
        self._scout_margin = scout_margin_percent

    @property
    def bridge(self) -> str:
        return self._bridge

    @property
    def fee_rate(self) -> float:
        return self._fee_rate

    def profit_for(self, pair: PairRatio, snapshot: PriceSnapshot) -> tuple[float, float]:
        """
        Compute (profit, current_ratio) for one pair.

        Jumping to the bridge is never an opportunity and yields zero.

        Raises:
            PairEvaluationError: If a leg price is missing or the
                benchmark is not initialized.
        """
        if pair.to_asset == self._bridge:
            return 0.0, 0.0

        current_ratio = snapshot.ratio(pair.from_asset, pair.to_asset, self._bridge)
        if current_ratio is None:
            raise PairEvaluationError(
                f"Prices not available for {pair.from_asset}{self._bridge}/{pair.to_asset}{self._bridge}"
            )

        if pair.ratio <= 0:
            raise PairEvaluationError(f"Benchmark ratio not initialized for {pair.key}")

        profit = calculate_profit(current_ratio, pair.ratio, self._fee_rate, self._scout_margin)
        return profit, current_ratio

    def evaluate(self, pair: PairRatio, snapshot: PriceSnapshot) -> Opportunity:
        """Evaluate a pair into an Opportunity (profitable or not)."""
        profit, current_ratio = self.profit_for(pair, snapshot)
        return Opportunity(pair=pair, profit=profit, current_ratio=current_ratio)
