"""Core module containing type definitions and the trading cycle."""

from usdbot.core.types import OrderIntent, OrderSide, OrderType, Quote


__all__ = [
    "OrderIntent",
    "OrderSide",
    "OrderType",
    "Quote",
]
