"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ringtrader.config.constants import (
    DEFAULT_BACKOFF_BASE,
    DEFAULT_BRIDGE,
    DEFAULT_DATABASE_URL,
    DEFAULT_FEE_RATE,
    DEFAULT_MAX_RETRIES,
    DEFAULT_QUANTITY,
    DEFAULT_RATE_LIMIT,
    DEFAULT_RATE_LIMIT_BURST,
    DEFAULT_RECV_WINDOW_MS,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_SCOUT_MARGIN,
    DEFAULT_TICK_INTERVAL,
    DEFAULT_TRADE_COINS,
    STRATEGY_DEFAULT,
    STRATEGY_MULTIPLE_COINS,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Sensitive values use SecretStr for safe handling.
    List and mapping fields are read from JSON, e.g.
    ``TRADE_COINS='["BTC", "ETH"]'``.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Exchange Credentials
    # =========================================================================

    binance_api_key: SecretStr = Field(
        ...,
        description="Binance API key for authentication",
    )
    binance_api_secret: SecretStr = Field(
        ...,
        description="Binance API secret for signing requests",
    )

    # =========================================================================
    # Network Configuration
    # =========================================================================

    use_testnet: bool = Field(
        default=False,
        description="Use Binance testnet instead of production",
    )

    rate_limit: float = Field(
        default=DEFAULT_RATE_LIMIT,
        gt=0.0,
        description="Sustained request rate (requests per second)",
    )

    rate_limit_burst: int = Field(
        default=DEFAULT_RATE_LIMIT_BURST,
        ge=1,
        description="Number of requests that may be sent in a burst",
    )

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=0,
        le=10,
        description="Retries after the first attempt for transient failures",
    )

    backoff_base_seconds: float = Field(
        default=DEFAULT_BACKOFF_BASE,
        gt=0.0,
        description="First exponential backoff delay, doubled per retry",
    )

    recv_window_ms: int = Field(
        default=DEFAULT_RECV_WINDOW_MS,
        ge=1,
        le=60000,
        description="Validity window of signed requests in milliseconds",
    )

    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0.0,
        description="Total timeout of a single HTTP attempt",
    )

    # =========================================================================
    # Trading Configuration
    # =========================================================================

    bridge: str = Field(
        default=DEFAULT_BRIDGE,
        min_length=2,
        description="Bridge currency all jumps are routed through",
    )

    trade_coins: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TRADE_COINS),
        min_length=2,
        description="Coins the bot may hold and jump between",
    )

    quantity: float = Field(
        default=DEFAULT_QUANTITY,
        gt=0.0,
        description="Quantity of the held coin sold on each jump (default strategy)",
    )

    starting_quantities: dict[str, float] = Field(
        default_factory=dict,
        description="Seed balances per coin (multiple_coins strategy)",
    )

    initial_coin: str | None = Field(
        default=None,
        description="Coin to start holding; random trade coin if unset",
    )

    fee_rate: float = Field(
        default=DEFAULT_FEE_RATE,
        ge=0.0,
        le=0.01,
        description="Trading fee rate per leg (e.g., 0.001 = 0.1%)",
    )

    scout_margin: float = Field(
        default=DEFAULT_SCOUT_MARGIN,
        ge=0.0,
        le=100.0,
        description="Extra required profit in percent on top of fees",
    )

    tick_interval: int = Field(
        default=DEFAULT_TICK_INTERVAL,
        ge=1,
        le=3600,
        description="Seconds between scout cycles",
    )

    strategy: Literal["default", "multiple_coins"] = Field(
        default=STRATEGY_DEFAULT,
        description=f"Scouting strategy: {STRATEGY_DEFAULT} or {STRATEGY_MULTIPLE_COINS}",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    dry_run: bool = Field(
        default=True,
        description="Simulate trades without sending real orders",
    )

    database_url: str = Field(
        default=DEFAULT_DATABASE_URL,
        description="SQLAlchemy database URL",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional log file path",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("binance_api_key", "binance_api_secret", mode="after")
    @classmethod
    def validate_credentials(cls, v: SecretStr) -> SecretStr:
        """Ensure credentials are not empty."""
        if not v.get_secret_value():
            raise ValueError("Credential cannot be empty")
        return v

    @field_validator("bridge", "initial_coin", mode="after")
    @classmethod
    def normalize_symbol(cls, v: str | None) -> str | None:
        """Coin symbols are upper case on Binance."""
        return v.strip().upper() if v else v

    @field_validator("trade_coins", mode="after")
    @classmethod
    def normalize_trade_coins(cls, v: list[str]) -> list[str]:
        """Upper-case and de-duplicate, keeping configured order."""
        seen: dict[str, None] = {}
        for coin in v:
            symbol = coin.strip().upper()
            if symbol:
                seen[symbol] = None
        return list(seen)

    @field_validator("starting_quantities", mode="after")
    @classmethod
    def normalize_quantities(cls, v: dict[str, float]) -> dict[str, float]:
        """Upper-case keys and reject negative balances."""
        normalized: dict[str, float] = {}
        for coin, qty in v.items():
            if qty < 0:
                raise ValueError(f"Starting quantity for {coin} cannot be negative")
            normalized[coin.strip().upper()] = qty
        return normalized

    @model_validator(mode="after")
    def validate_universe(self) -> "Settings":
        """Require at least two tradable coins besides the bridge."""
        tradable = [c for c in self.trade_coins if c != self.bridge]
        if len(tradable) < 2:
            raise ValueError("trade_coins needs at least two coins other than the bridge")
        if self.initial_coin and self.initial_coin not in self.trade_coins:
            raise ValueError(f"initial_coin {self.initial_coin} is not in trade_coins")
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()  # type: ignore[call-arg, unused-ignore]
