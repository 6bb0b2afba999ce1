"""Configuration module for the conversion bot."""

from usdbot.config.constants import (
    BINANCE_WS_API_URL,
    ORDER_COOLDOWN,
    PRICE_POLL_INTERVAL,
    PROFIT_THRESHOLD,
    RECONNECT_DELAY,
)
from usdbot.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "BINANCE_WS_API_URL",
    "ORDER_COOLDOWN",
    "PRICE_POLL_INTERVAL",
    "PROFIT_THRESHOLD",
    "RECONNECT_DELAY",
]
