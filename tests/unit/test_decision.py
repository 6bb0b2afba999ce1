"""
Unit tests for DecisionEngine.

Tests conversion pricing, eligibility filters and the strict
profit threshold.
"""

import pytest

from usdbot.config.constants import PROFIT_THRESHOLD
from usdbot.core.types import OrderSide, OrderType, Quote
from usdbot.exchange.models import AccountBalance
from usdbot.market.symbols import SymbolUniverse
from usdbot.strategy.context import TradingContext
from usdbot.strategy.decision import DecisionEngine


def fund(context: TradingContext, **free: str) -> None:
    context.balances.update(AccountBalance(asset=a, free=f) for a, f in free.items())


class TestDecisionEngine:
    """Tests for DecisionEngine."""

    @pytest.fixture
    def engine(self, context: TradingContext) -> DecisionEngine:
        return DecisionEngine(context)

    def test_no_funded_asset(self, engine: DecisionEngine, parity_quotes: list[Quote]) -> None:
        """Test that nothing is scanned with empty balances."""
        assert engine.scan(parity_quotes) is None
        assert engine.evaluate(parity_quotes) is None

    def test_buy_when_quote_asset_held(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test holding the quote asset prices the conversion at 1 / price."""
        fund(context, USDT="100")

        intent = engine.evaluate([Quote("USDCUSDT", "0.99900000")])

        assert intent is not None
        assert intent.symbol == "USDCUSDT"
        assert intent.side == OrderSide.BUY
        assert intent.type == OrderType.MARKET
        assert intent.quantity == 10
        assert intent.price == pytest.approx(1 / 0.999)

    def test_sell_when_base_asset_held(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test holding the base asset prices the conversion at price."""
        fund(context, USDC="100")

        intent = engine.evaluate([Quote("USDCUSDT", "1.00100000")])

        assert intent is not None
        assert intent.side == OrderSide.SELL
        assert intent.price == pytest.approx(1.001)

    def test_threshold_is_strict(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that a price equal to the threshold does not trade."""
        fund(context, USDC="100")
        quotes = [Quote("USDCUSDT", repr(PROFIT_THRESHOLD))]

        best = engine.scan(quotes)

        assert best is not None
        assert best.price == PROFIT_THRESHOLD
        assert engine.evaluate(quotes) is None

    def test_parity_does_not_trade(
        self,
        engine: DecisionEngine,
        context: TradingContext,
        parity_quotes: list[Quote],
    ) -> None:
        """Test that quotes at parity yield no order."""
        fund(context, USDT="100", USDC="100")

        assert engine.evaluate(parity_quotes) is None

    def test_picks_best_conversion(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that the highest price wins across quotes."""
        fund(context, USDT="100")
        quotes = [
            Quote("USDCUSDT", "0.99900000"),
            Quote("FDUSDUSDT", "0.99800000"),
            Quote("TUSDUSDT", "0.99950000"),
        ]

        intent = engine.evaluate(quotes)

        assert intent is not None
        assert intent.symbol == "FDUSDUSDT"
        assert intent.side == OrderSide.BUY

    def test_tie_keeps_first_asset(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that equal prices keep the first candidate in asset order."""
        fund(context, FDUSD="100", USDC="100")
        quotes = [
            Quote("FDUSDUSDT", "1.00100000"),
            Quote("USDCUSDT", "1.00100000"),
        ]

        best = engine.scan(quotes)

        assert best is not None
        assert best.asset == "USDC"
        assert best.symbol == "USDCUSDT"

    def test_balance_below_volume_is_skipped(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that balances are truncated before comparing with the volume."""
        fund(context, USDT="9.99")

        assert engine.scan([Quote("USDCUSDT", "0.99000000")]) is None

    def test_target_above_ceiling_is_skipped(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that assets holding more than the ceiling are not bought."""
        fund(context, USDT="100", USDC="1500")
        quotes = [
            Quote("USDCUSDT", "0.99000000"),
            Quote("FDUSDUSDT", "0.99900000"),
        ]

        intent = engine.evaluate(quotes)

        assert intent is not None
        assert intent.symbol == "FDUSDUSDT"

    def test_unparseable_quote_is_skipped(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that a bad price only skips its own quote."""
        fund(context, USDT="100")
        quotes = [
            Quote("USDCUSDT", "abc"),
            Quote("TUSDUSDT", "0"),
            Quote("FDUSDUSDT", "0.99800000"),
        ]

        intent = engine.evaluate(quotes)

        assert intent is not None
        assert intent.symbol == "FDUSDUSDT"

    def test_untracked_symbol_is_ignored(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that quotes into untracked assets never trade."""
        fund(context, USDT="100")

        assert engine.scan([Quote("BTCUSDT", "0.50000000")]) is None

    def test_does_not_mutate_balances(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that evaluation only reads the balance book."""
        fund(context, USDT="100", USDC="3")
        before = context.balances.snapshot()

        engine.evaluate([Quote("USDCUSDT", "0.99000000")])

        assert context.balances.snapshot() == before

    def test_just_above_threshold_trades(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test that 1.0006 clears the 1.0005 threshold."""
        fund(context, USDC="100")

        intent = engine.evaluate([Quote("USDCUSDT", "1.0006")])

        assert intent is not None
        assert intent.side == OrderSide.SELL

    def test_evaluate_is_deterministic(
        self,
        engine: DecisionEngine,
        context: TradingContext,
    ) -> None:
        """Test repeated evaluation of the same snapshots gives the same intent."""
        fund(context, USDT="100", USDC="20")
        quotes = [Quote("USDCUSDT", "0.99910000"), Quote("FDUSDUSDT", "0.99920000")]

        first = engine.evaluate(quotes)

        assert first is not None
        assert all(engine.evaluate(quotes) == first for _ in range(5))


class TestScanExample:
    """USD/EUR walk-through of the scan rules."""

    @pytest.fixture
    def context(self) -> TradingContext:
        context = TradingContext(
            universe=SymbolUniverse.from_pairs(["EUR/USD"]),
            volume_per_transaction=10,
            volume_maximum=1000,
        )
        fund(context, USD="50", EUR="5")
        return context

    def test_inverted_price_below_threshold(self, context: TradingContext) -> None:
        """Test USD held against EURUSD buys at 1 / 1.10 and does not trade."""
        engine = DecisionEngine(context)

        best = engine.scan([Quote("EURUSD", "1.10")])

        assert best is not None
        assert best.asset == "USD"
        assert best.side == OrderSide.BUY
        assert best.price == pytest.approx(1 / 1.10)
        assert engine.evaluate([Quote("EURUSD", "1.10")]) is None

    def test_direct_price_above_threshold(self, context: TradingContext) -> None:
        """Test USD held against USDEUR sells at 1.0010 and trades."""
        engine = DecisionEngine(context)

        intent = engine.evaluate([Quote("USDEUR", "1.0010")])

        assert intent is not None
        assert intent.symbol == "USDEUR"
        assert intent.side == OrderSide.SELL
        assert intent.quantity == 10
