"""Mock implementations for testing."""

from tests.mocks.clock import FakeClock, settle
from tests.mocks.exchange import MockExchange
from tests.mocks.websocket import MockSocketFactory, MockWebSocket


__all__ = [
    "FakeClock",
    "MockExchange",
    "MockSocketFactory",
    "MockWebSocket",
    "settle",
]
