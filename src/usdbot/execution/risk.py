"""
Circuit breaker for signed requests.

A bot that never stops retrying will keep hammering the exchange
with a revoked key or a wrong secret. The guard counts consecutive
authentication failures and halts order placement once the limit
is reached.
"""

import logging
from dataclasses import dataclass

from usdbot.config.constants import AUTH_ERROR_CODES, DEFAULT_AUTH_FAILURE_LIMIT


logger = logging.getLogger(__name__)


@dataclass
class GuardState:
    """Current breaker state."""

    consecutive_auth_failures: int = 0
    total_auth_failures: int = 0
    is_halted: bool = False
    halt_reason: str = ""


class TradingGuard:
    """
    Halts trading after repeated authentication failures.

    Features:
    - Consecutive failure counting on signed methods
    - Reset of the count on any successful signed response
    - A halt that stays latched until the process restarts
    """

    def __init__(self, failure_limit: int = DEFAULT_AUTH_FAILURE_LIMIT) -> None:
        """
        Initialize the guard.

        Args:
            failure_limit: Consecutive auth failures that trip the breaker.
        """
        self._failure_limit = failure_limit
        self._state = GuardState()

    @staticmethod
    def is_auth_error(code: int | None) -> bool:
        """Check if an API error code means bad credentials or signature."""
        return code in AUTH_ERROR_CODES

    def record_success(self) -> None:
        """Record a successful signed response."""
        self._state.consecutive_auth_failures = 0

    def record_failure(self, code: int | None, method: str) -> None:
        """
        Record a failed signed response.

        Args:
            code: Exchange error code.
            method: RPC method that failed.
        """
        if not self.is_auth_error(code):
            return

        self._state.consecutive_auth_failures += 1
        self._state.total_auth_failures += 1

        if (
            not self._state.is_halted
            and self._state.consecutive_auth_failures >= self._failure_limit
        ):
            self._halt(
                f"{self._state.consecutive_auth_failures} consecutive authentication "
                f"failures (last: {method} code {code})"
            )

    def _halt(self, reason: str) -> None:
        self._state.is_halted = True
        self._state.halt_reason = reason
        logger.critical(f"Trading halted: {reason}")

    @property
    def state(self) -> GuardState:
        return self._state

    @property
    def is_trading_allowed(self) -> bool:
        """Check if trading is currently allowed."""
        return not self._state.is_halted
