"""Trading error taxonomy raised around jump execution and startup."""


class TradingError(Exception):
    """Base exception for trading-level failures."""


class StartupError(TradingError):
    """
    The bot cannot start without exchange connectivity or lot-size rules.

    Raised before the scouting loop is entered.
    """


class JumpError(TradingError):
    """Base exception for a failed jump."""

    def __init__(self, message: str, from_asset: str = "", to_asset: str = "") -> None:
        super().__init__(message)
        self.from_asset = from_asset
        self.to_asset = to_asset


class SizingError(JumpError):
    """
    A quantity is below the exchange minimum after flooring to the step.

    Always raised before the affected order is sent.
    """

    def __init__(self, symbol: str, quantity: float, min_qty: float) -> None:
        super().__init__(
            f"Quantity {quantity:.8f} is below minQty {min_qty:.8f} for {symbol}"
        )
        self.symbol = symbol
        self.quantity = quantity
        self.min_qty = min_qty


class PartialJumpError(JumpError):
    """
    The sell leg filled but the buy leg did not.

    The account now holds bridge currency that the bot does not track
    as its current holding. Needs operator attention; never retried.
    """

    def __init__(
        self,
        message: str,
        from_asset: str,
        to_asset: str,
        bridge: str,
        bridge_amount: float,
    ) -> None:
        super().__init__(message, from_asset, to_asset)
        self.bridge = bridge
        self.bridge_amount = bridge_amount


class JumpCommitError(JumpError):
    """
    Both legs filled but the new holding could not be persisted.

    The stored holding no longer matches the account. Needs operator
    attention; never retried.
    """
