"""
Bot configuration from the environment and an optional `.env` file.

Credentials, endpoint selection, the traded pairs and the trading
limits are validated once at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from usdbot.config.constants import (
    BINANCE_WS_API_TESTNET_URL,
    BINANCE_WS_API_URL,
    DEFAULT_AUTH_FAILURE_LIMIT,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_SYMBOLS,
    DEFAULT_VOLUME_MAXIMUM,
    DEFAULT_VOLUME_PER_TRANSACTION,
    PROFIT_THRESHOLD,
)


class Settings(BaseSettings):
    """
    Settings for one bot process.

    Every field maps to an upper-case environment variable of the same
    name. Credentials are SecretStr so they never show up in reprs.
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
        description="Binance API key sent with signed requests",
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
        description="Use the Binance testnet WebSocket API instead of production",
    )

    websocket_url: str | None = Field(
        default=None,
        description="Explicit WebSocket API endpoint, overrides use_testnet",
    )

    request_timeout_ms: int = Field(
        default=DEFAULT_REQUEST_TIMEOUT_MS,
        ge=1000,
        le=60000,
        description="Timeout for awaited RPC calls in milliseconds",
    )

    # =========================================================================
    # Trading Configuration
    # =========================================================================

    symbols: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYMBOLS),
        description='Trading pairs as "BASE/QUOTE" strings',
    )

    volume_per_transaction: int = Field(
        default=DEFAULT_VOLUME_PER_TRANSACTION,
        ge=1,
        description="Minimum balance to trade an asset and the order quantity",
    )

    volume_maximum: int = Field(
        default=DEFAULT_VOLUME_MAXIMUM,
        ge=1,
        description="Skip conversions into assets holding more than this",
    )

    profit_threshold: float = Field(
        default=PROFIT_THRESHOLD,
        gt=1.0,
        le=1.1,
        description="Conversion price that must be strictly exceeded to trade",
    )

    # =========================================================================
    # Risk Management
    # =========================================================================

    auth_failure_limit: int = Field(
        default=DEFAULT_AUTH_FAILURE_LIMIT,
        ge=1,
        le=100,
        description="Consecutive authentication failures before trading halts",
    )

    # =========================================================================
    # Operation Mode
    # =========================================================================

    dry_run: bool = Field(
        default=True,
        description="Log order intents instead of sending real orders",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional file to receive a DEBUG copy of the log",
    )

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for improved async performance",
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

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def endpoint(self) -> str:
        """WebSocket API endpoint to connect to."""
        if self.websocket_url:
            return self.websocket_url
        return BINANCE_WS_API_TESTNET_URL if self.use_testnet else BINANCE_WS_API_URL

    @property
    def request_timeout(self) -> float:
        """Awaited RPC timeout in seconds."""
        return self.request_timeout_ms / 1000.0


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process; `get_settings.cache_clear()` reloads."""
    return Settings()  # type: ignore[call-arg, unused-ignore]
