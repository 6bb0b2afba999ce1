"""
Type definitions for the conversion bot.

This module contains the dataclasses and enums shared between the
gateway, the decision engine and the orchestration loop. Using
slots=True for memory efficiency and faster attribute access.
"""

from dataclasses import dataclass
from enum import Enum

from usdbot.config.constants import ORDER_TYPE_MARKET, SIDE_BUY, SIDE_SELL


# =============================================================================
# Enums
# =============================================================================


class OrderSide(str, Enum):
    """Order side enumeration."""

    BUY = SIDE_BUY
    SELL = SIDE_SELL


class OrderType(str, Enum):
    """Order type enumeration."""

    MARKET = ORDER_TYPE_MARKET


# =============================================================================
# Market Data Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class Quote:
    """
    Last price for one pair.

    The price is kept as the exchange-supplied decimal string; it is
    parsed at evaluation time so that one bad quote only skips itself.
    """

    symbol: str
    price: str


# =============================================================================
# Trading Types
# =============================================================================


@dataclass(slots=True, frozen=True)
class OrderIntent:
    """A single market order the decision engine wants placed."""

    symbol: str
    side: OrderSide
    quantity: int
    price: float
    type: OrderType = OrderType.MARKET

    def __repr__(self) -> str:
        return f"{self.side.value} {self.symbol} qty={self.quantity} @~{self.price:.6f}"
