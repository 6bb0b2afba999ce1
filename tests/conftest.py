"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from usdbot.config.settings import Settings
from usdbot.core.types import Quote
from usdbot.market.symbols import SymbolUniverse
from usdbot.strategy.context import TradingContext
from usdbot.telemetry.metrics import MetricsCollector
from tests.mocks import FakeClock, MockExchange
from tests.mocks.exchange import TEST_API_KEY, TEST_API_SECRET


TEST_PAIRS = ["USDC/USDT", "FDUSD/USDT", "TUSD/USDT"]


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings for a live-trading bot on the default pairs."""
    return Settings(
        _env_file=None,
        binance_api_key=TEST_API_KEY,
        binance_api_secret=TEST_API_SECRET,
        symbols=TEST_PAIRS,
        volume_per_transaction=10,
        volume_maximum=1000,
        dry_run=False,
    )


# =============================================================================
# Strategy Fixtures
# =============================================================================


@pytest.fixture
def universe() -> SymbolUniverse:
    """USDC, FDUSD and TUSD against USDT."""
    return SymbolUniverse.from_pairs(TEST_PAIRS)


@pytest.fixture
def context(universe: SymbolUniverse) -> TradingContext:
    """Trading context with all balances at zero."""
    return TradingContext(
        universe=universe,
        volume_per_transaction=10,
        volume_maximum=1000,
    )


@pytest.fixture
def parity_quotes() -> list[Quote]:
    """Every pair trading exactly at parity."""
    return [
        Quote("USDCUSDT", "1.00000000"),
        Quote("FDUSDUSDT", "1.00000000"),
        Quote("TUSDUSDT", "1.00000000"),
    ]


# =============================================================================
# Mock Fixtures
# =============================================================================


@pytest.fixture
def clock() -> FakeClock:
    """Virtual clock starting at zero."""
    return FakeClock()


@pytest.fixture
def metrics() -> MetricsCollector:
    """Fresh metrics collector."""
    return MetricsCollector()


@pytest.fixture
def exchange() -> MockExchange:
    """Mock exchange holding 100 USDT and quoting at parity."""
    return MockExchange(
        balances={
            "USDT": "100.00000000",
            "USDC": "0.00000000",
            "FDUSD": "0.00000000",
            "TUSD": "0.00000000",
            "BNB": "0.05000000",
        },
        prices={
            "USDCUSDT": "1.00000000",
            "FDUSDUSDT": "1.00000000",
            "TUSDUSDT": "1.00000000",
        },
    )
