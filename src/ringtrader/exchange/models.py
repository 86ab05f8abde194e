"""
Pydantic models for Binance API responses.

These models provide type-safe parsing of exchange responses
with automatic validation. Only the fields the bot consumes are
required; everything else is optional so schema additions on the
exchange side do not break parsing.
"""

from pydantic import BaseModel, Field

from ringtrader.config.constants import FILTER_LOT_SIZE


class SymbolFilter(BaseModel):
    """Symbol trading filter from exchange info."""

    filter_type: str = Field(alias="filterType")
    min_qty: str | None = Field(default=None, alias="minQty")
    max_qty: str | None = Field(default=None, alias="maxQty")
    step_size: str | None = Field(default=None, alias="stepSize")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class SymbolData(BaseModel):
    """Symbol information from exchange info."""

    symbol: str
    status: str = "TRADING"
    base_asset: str | None = Field(default=None, alias="baseAsset")
    quote_asset: str | None = Field(default=None, alias="quoteAsset")
    filters: list[SymbolFilter] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}

    def get_filter(self, filter_type: str) -> SymbolFilter | None:
        """Get a specific filter by type."""
        for f in self.filters:
            if f.filter_type == filter_type:
                return f
        return None

    @property
    def lot_size(self) -> SymbolFilter | None:
        """The LOT_SIZE filter, if the symbol has one."""
        return self.get_filter(FILTER_LOT_SIZE)


class ExchangeInfo(BaseModel):
    """Exchange information response."""

    timezone: str = "UTC"
    server_time: int | None = Field(default=None, alias="serverTime")
    symbols: list[SymbolData] = Field(default_factory=list)

    model_config = {"populate_by_name": True, "extra": "ignore"}


class TickerPrice(BaseModel):
    """One entry of the bulk ticker price response."""

    symbol: str
    price: str


class OrderResponse(BaseModel):
    """Order placement response."""

    symbol: str
    order_id: int = Field(alias="orderId")
    client_order_id: str = Field(default="", alias="clientOrderId")
    transact_time: int = Field(alias="transactTime")
    orig_qty: str = Field(default="0", alias="origQty")
    executed_qty: str = Field(default="0", alias="executedQty")
    cummulative_quote_qty: str = Field(default="0", alias="cummulativeQuoteQty")
    status: str = ""
    type: str = ""
    side: str = ""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def is_filled(self) -> bool:
        """Check if order is fully filled."""
        return self.status == "FILLED"

    @property
    def executed_qty_float(self) -> float:
        """Get executed quantity as float."""
        return float(self.executed_qty)

    @property
    def quote_qty_float(self) -> float:
        """Get cumulative quote quantity as float."""
        return float(self.cummulative_quote_qty)

    @property
    def avg_fill_price(self) -> float:
        """Average fill price from quote and base quantities."""
        executed = self.executed_qty_float
        if executed == 0:
            return 0.0
        return self.quote_qty_float / executed


class ServerTime(BaseModel):
    """Server time response."""

    server_time: int = Field(alias="serverTime")

    model_config = {"populate_by_name": True}
