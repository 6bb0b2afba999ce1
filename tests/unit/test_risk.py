"""
Unit tests for TradingGuard.

Tests authentication failure counting and trading halts.
"""

import pytest

from usdbot.execution.risk import GuardState, TradingGuard


class TestGuardState:
    """Tests for GuardState dataclass."""

    def test_default_state(self) -> None:
        """Test default state values."""
        state = GuardState()

        assert state.consecutive_auth_failures == 0
        assert state.total_auth_failures == 0
        assert state.is_halted is False
        assert state.halt_reason == ""


class TestTradingGuard:
    """Tests for TradingGuard."""

    @pytest.fixture
    def guard(self) -> TradingGuard:
        return TradingGuard(failure_limit=3)

    @pytest.mark.parametrize("code", [-1022, -2014, -2015])
    def test_auth_codes(self, code: int) -> None:
        """Test which codes count as authentication failures."""
        assert TradingGuard.is_auth_error(code)

    @pytest.mark.parametrize("code", [-1003, -1021, -2010, None])
    def test_other_codes(self, code: int | None) -> None:
        """Test that other errors are not authentication failures."""
        assert not TradingGuard.is_auth_error(code)

    def test_halts_at_limit(self, guard: TradingGuard) -> None:
        """Test the breaker trips after consecutive auth failures."""
        guard.record_failure(-2015, "account.status")
        guard.record_failure(-2015, "account.status")
        assert guard.is_trading_allowed

        guard.record_failure(-1022, "order.place")

        assert not guard.is_trading_allowed
        assert guard.state.is_halted
        assert "order.place" in guard.state.halt_reason

    def test_success_resets_count(self, guard: TradingGuard) -> None:
        """Test that a success clears the consecutive count."""
        guard.record_failure(-2015, "account.status")
        guard.record_failure(-2015, "account.status")
        guard.record_success()
        guard.record_failure(-2015, "account.status")

        assert guard.is_trading_allowed
        assert guard.state.consecutive_auth_failures == 1
        assert guard.state.total_auth_failures == 3

    def test_non_auth_errors_ignored(self, guard: TradingGuard) -> None:
        """Test that rate limits and rejections do not count."""
        for _ in range(10):
            guard.record_failure(-1003, "ticker.price")

        assert guard.is_trading_allowed
        assert guard.state.consecutive_auth_failures == 0

    def test_halt_stays_latched_after_success(self, guard: TradingGuard) -> None:
        """Test that a success after the trip clears the count but not the halt."""
        for _ in range(3):
            guard.record_failure(-2015, "account.status")

        guard.record_success()

        assert not guard.is_trading_allowed
        assert guard.state.consecutive_auth_failures == 0
        assert guard.state.total_auth_failures == 3
