"""
Single-hop conversion decision engine.

For each asset holding at least one transaction's volume, every
quote that converts it directly into another tracked asset is priced
as the amount of the other asset received per unit given:

    asset is the base  (symbol = ASSET + OTHER):  SELL at price
    asset is the quote (symbol = OTHER + ASSET):  BUY  at 1 / price

The best price across all (asset, quote) pairs wins, and an order is
emitted only when it strictly exceeds the profit threshold.
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from usdbot.core.types import OrderIntent, OrderSide, Quote
from usdbot.strategy.context import TradingContext


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Conversion:
    """Best conversion found by a scan."""

    asset: str
    symbol: str
    side: OrderSide
    price: float


def _parse_price(raw: str) -> float | None:
    try:
        price = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class DecisionEngine:
    """
    Turns the balance snapshot and a quote snapshot into at most one order.

    Pure with respect to its inputs: it reads the balance book and
    never writes to it.
    """

    def __init__(self, context: TradingContext) -> None:
        """
        Initialize the engine.

        Args:
            context: Trading context holding balances and limits.
        """
        self._context = context

    def scan(self, quotes: Sequence[Quote]) -> Conversion | None:
        """
        Find the highest-priced direct conversion.

        Assets are scanned in configured order and quotes in the order
        given; on equal prices the first candidate is kept.

        Args:
            quotes: Latest quotes.

        Returns:
            The best conversion, or None if no quote applies.
        """
        balances = self._context.balances
        volume = self._context.volume_per_transaction
        ceiling = self._context.volume_maximum

        best: Conversion | None = None
        best_price = 0.0

        for asset, balance in balances.items():
            if int(balance) < volume:
                continue

            for quote in quotes:
                other = quote.symbol.replace(asset, "")
                other_balance = balances.get(other)
                if other_balance is None or other_balance > ceiling:
                    continue

                if quote.symbol.startswith(asset):
                    side = OrderSide.SELL
                elif quote.symbol.endswith(asset):
                    side = OrderSide.BUY
                else:
                    continue

                price = _parse_price(quote.price)
                if price is None:
                    logger.debug(f"Skipping unparseable quote {quote.symbol}={quote.price!r}")
                    continue

                if side == OrderSide.BUY:
                    price = 1.0 / price

                if price > best_price:
                    best = Conversion(asset=asset, symbol=quote.symbol, side=side, price=price)
                    best_price = price

        return best

    def evaluate(self, quotes: Sequence[Quote]) -> OrderIntent | None:
        """
        Decide whether to place an order for this quote snapshot.

        Args:
            quotes: Latest quotes.

        Returns:
            An OrderIntent for the best conversion if its price strictly
            exceeds the profit threshold, otherwise None.
        """
        best = self.scan(quotes)
        if best is None:
            return None

        if best.price <= self._context.profit_threshold:
            logger.debug(f"Best conversion {best.symbol} {best.side.value} @ {best.price:.6f}")
            return None

        logger.info(f"Best conversion {best.symbol} {best.side.value} @ {best.price:.6f}")
        return OrderIntent(
            symbol=best.symbol,
            side=best.side,
            quantity=self._context.volume_per_transaction,
            price=best.price,
        )
