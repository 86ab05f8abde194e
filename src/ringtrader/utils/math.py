"""
Mathematical utilities for trading calculations.

Provides precision-safe operations for price and quantity calculations,
handling the specific requirements of exchange trading systems.
"""

from decimal import ROUND_FLOOR, Decimal, InvalidOperation

from ringtrader.config.constants import QUANTITY_PRECISION


def _to_decimal(value: float | str) -> Decimal:
    # str() keeps the shortest repr, so 0.1 becomes Decimal("0.1")
    return Decimal(value) if isinstance(value, str) else Decimal(str(value))


def round_step(value: float, step_size: float | str) -> float:
    """
    Round a quantity down to a multiple of the step size.

    Never rounds up, so the result never exceeds what the exchange
    rule permits. Step-aligned inputs are returned unchanged.

    Args:
        value: Quantity to round.
        step_size: Minimum quantity increment, as a number or the
            exchange's string form (e.g. "0.00100000").

    Returns:
        Quantity floored to the step.

    Example:
        >>> round_step(1.234567, 0.001)
        1.234
        >>> round_step(0.3, "0.1")
        0.3
    """
    try:
        step = _to_decimal(step_size)
    except InvalidOperation:
        return value
    if step <= 0:
        return value

    steps = (_to_decimal(value) / step).to_integral_value(rounding=ROUND_FLOOR)
    return float(steps * step)


def format_decimal(value: float, precision: int = QUANTITY_PRECISION) -> str:
    """
    Render a number for the wire without trailing zeros.

    Example:
        >>> format_decimal(0.00100000)
        '0.001'
        >>> format_decimal(50000.0)
        '50000'
    """
    return f"{value:.{precision}f}".rstrip("0").rstrip(".")


def format_profit(profit: float) -> str:
    """
    Format a profit fraction as a signed percentage for display.

    Example:
        >>> format_profit(0.109)
        '+10.9000%'
    """
    pct = profit * 100.0
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.4f}%"
