"""Strategy module for balance tracking and conversion decisions."""

from usdbot.strategy.balances import BalanceBook
from usdbot.strategy.context import TradingContext
from usdbot.strategy.decision import Conversion, DecisionEngine


__all__ = [
    "BalanceBook",
    "Conversion",
    "DecisionEngine",
    "TradingContext",
]
