"""
Trading cycle state machine.

The bot alternates between waiting for balances and waiting for
prices. Each handled message yields the next request to send and how
long to wait before sending it:

    balances applied        -> AWAITING_PRICE,   ticker.price,   now
    prices, order placed    -> AWAITING_BALANCE, account.status, ORDER_COOLDOWN
    prices, no order        -> AWAITING_PRICE,   ticker.price,   PRICE_POLL_INTERVAL
    any failure             -> AWAITING_BALANCE, account.status, FAILURE_RETRY_DELAY
    stalled                 -> AWAITING_BALANCE, account.status, now
"""

from dataclasses import dataclass
from enum import Enum, auto

from usdbot.config.constants import (
    FAILURE_RETRY_DELAY,
    ORDER_COOLDOWN,
    PRICE_POLL_INTERVAL,
)
from usdbot.exchange.protocol import RpcMethod


class CycleState(Enum):
    """What the cycle is waiting for."""

    AWAITING_BALANCE = auto()
    AWAITING_PRICE = auto()


@dataclass(slots=True, frozen=True)
class Transition:
    """Next state, the request that moves the cycle on, and its delay."""

    state: CycleState
    request: RpcMethod
    delay: float


class TradingCycle:
    """Two-state cycle with named delays; holds no timers itself."""

    __slots__ = ("_state", "_order_cooldown", "_poll_interval", "_retry_delay")

    def __init__(
        self,
        order_cooldown: float = ORDER_COOLDOWN,
        poll_interval: float = PRICE_POLL_INTERVAL,
        retry_delay: float = FAILURE_RETRY_DELAY,
    ) -> None:
        self._state = CycleState.AWAITING_BALANCE
        self._order_cooldown = order_cooldown
        self._poll_interval = poll_interval
        self._retry_delay = retry_delay

    @property
    def state(self) -> CycleState:
        return self._state

    @property
    def awaiting(self) -> RpcMethod:
        """The response kind that moves the cycle on from its current state."""
        if self._state == CycleState.AWAITING_PRICE:
            return RpcMethod.TICKER_PRICE
        return RpcMethod.ACCOUNT_STATUS

    def _move(self, state: CycleState, request: RpcMethod, delay: float) -> Transition:
        self._state = state
        return Transition(state, request, delay)

    def on_balances(self) -> Transition:
        """Balances were applied; poll prices right away."""
        return self._move(CycleState.AWAITING_PRICE, RpcMethod.TICKER_PRICE, 0.0)

    def on_prices(self, order_placed: bool) -> Transition:
        """Prices were evaluated."""
        if order_placed:
            return self._move(
                CycleState.AWAITING_BALANCE,
                RpcMethod.ACCOUNT_STATUS,
                self._order_cooldown,
            )
        return self._move(CycleState.AWAITING_PRICE, RpcMethod.TICKER_PRICE, self._poll_interval)

    def on_failure(self) -> Transition:
        """A step failed; restart from a balance refresh."""
        return self._move(CycleState.AWAITING_BALANCE, RpcMethod.ACCOUNT_STATUS, self._retry_delay)

    def on_stalled(self) -> Transition:
        """Nothing is scheduled or answered in time; refresh balances right away."""
        return self._move(CycleState.AWAITING_BALANCE, RpcMethod.ACCOUNT_STATUS, 0.0)
