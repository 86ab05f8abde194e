"""
Exchange lot-size rule cache.

Loaded once at startup from exchangeInfo and consulted before every
order so quantities are floored to the symbol's step size and checked
against its minimum.
"""

import logging

from ringtrader.core.errors import SizingError
from ringtrader.core.types import ExchangeRule
from ringtrader.exchange.models import ExchangeInfo, SymbolData
from ringtrader.utils.math import round_step


logger = logging.getLogger(__name__)


class ExchangeRuleCache:
    """
    Per-symbol minimum quantity and step size.

    Responsibilities:
    - Extracting the LOT_SIZE filter from exchange info
    - Flooring order quantities to the step size
    - Rejecting quantities below the exchange minimum
    """

    __slots__ = ("_rules",)

    def __init__(self) -> None:
        """Initialize empty rule cache."""
        self._rules: dict[str, ExchangeRule] = {}

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._rules

    def load_from_exchange_info(self, exchange_info: ExchangeInfo) -> int:
        """
        Load LOT_SIZE rules for every listed symbol.

        Args:
            exchange_info: Exchange info response.

        Returns:
            Number of rules loaded.
        """
        for symbol_data in exchange_info.symbols:
            rule = self._convert_symbol_data(symbol_data)
            if rule is not None:
                self._rules[rule.symbol] = rule

        return len(self._rules)

    @staticmethod
    def _convert_symbol_data(data: SymbolData) -> ExchangeRule | None:
        lot_size = data.lot_size
        if lot_size is None or lot_size.step_size is None:
            return None

        try:
            min_qty = float(lot_size.min_qty or 0)
            max_qty = float(lot_size.max_qty) if lot_size.max_qty else float("inf")
        except ValueError:
            logger.warning("Ignoring malformed LOT_SIZE filter for %s", data.symbol)
            return None

        return ExchangeRule(
            symbol=data.symbol,
            min_qty=min_qty,
            step_size=lot_size.step_size,
            # Binance reports 0 for "no maximum"
            max_qty=max_qty if max_qty > 0 else float("inf"),
        )

    def add(self, rule: ExchangeRule) -> None:
        """Add or replace a single rule."""
        self._rules[rule.symbol] = rule

    def get(self, symbol: str) -> ExchangeRule | None:
        """Get the rule for a symbol."""
        return self._rules.get(symbol)

    def format_quantity(self, symbol: str, quantity: float) -> float:
        """
        Floor a quantity to the symbol's step size and check its minimum.

        Symbols without a cached rule pass through unchanged.

        Args:
            symbol: Exchange symbol (e.g. "BTCUSDT").
            quantity: Desired order quantity.

        Returns:
            Quantity accepted by the exchange rule.

        Raises:
            SizingError: If the quantity is below minQty before or after
                flooring.
        """
        rule = self._rules.get(symbol)
        if rule is None:
            logger.warning("No LOT_SIZE rule cached for %s, sending quantity unrounded", symbol)
            return quantity

        if quantity < rule.min_qty:
            raise SizingError(symbol, quantity, rule.min_qty)

        rounded = round_step(quantity, rule.step_size)
        if rounded < rule.min_qty or rounded <= 0:
            raise SizingError(symbol, rounded, rule.min_qty)

        if rounded > rule.max_qty:
            rounded = round_step(rule.max_qty, rule.step_size)
            logger.warning("Quantity for %s capped at maxQty %s", symbol, rule.max_qty)

        return rounded
