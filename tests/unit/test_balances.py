"""
Unit tests for BalanceBook.

Tests the fixed key set and all-or-nothing updates.
"""

import pytest

from usdbot.exchange.models import AccountBalance
from usdbot.strategy.balances import BalanceBook


def entries(**free: str) -> list[AccountBalance]:
    return [AccountBalance(asset=asset, free=amount) for asset, amount in free.items()]


class TestBalanceBook:
    """Tests for BalanceBook."""

    @pytest.fixture
    def book(self) -> BalanceBook:
        return BalanceBook(["USDC", "USDT", "FDUSD"])

    def test_starts_at_zero(self, book: BalanceBook) -> None:
        """Test every tracked asset starts at zero."""
        assert book.snapshot() == {"USDC": 0.0, "USDT": 0.0, "FDUSD": 0.0}
        assert book.assets == ["USDC", "USDT", "FDUSD"]
        assert len(book) == 3

    def test_update(self, book: BalanceBook) -> None:
        """Test tracked balances are overwritten."""
        written = book.update(entries(USDC="12.5", USDT="100.00000000"))

        assert written == 2
        assert book.get("USDC") == 12.5
        assert book.get("USDT") == 100.0
        assert book.get("FDUSD") == 0.0

    def test_update_ignores_untracked_assets(self, book: BalanceBook) -> None:
        """Test that the key set never grows."""
        book.update(entries(BTC="1.0", USDC="5"))

        assert "BTC" not in book
        assert book.get("BTC") is None
        assert len(book) == 3

    def test_unparseable_entry_rejects_whole_update(self, book: BalanceBook) -> None:
        """Test that one bad amount leaves the book unchanged."""
        book.update(entries(USDC="1", USDT="2", FDUSD="3"))
        before = book.snapshot()

        with pytest.raises(ValueError):
            book.update(entries(USDC="50", USDT="not-a-number", FDUSD="70"))

        assert book.snapshot() == before

    @pytest.mark.parametrize("amount", ["nan", "inf", "-inf", ""])
    def test_non_finite_entry_rejected(self, book: BalanceBook, amount: str) -> None:
        """Test that non-finite and empty amounts are rejected."""
        with pytest.raises(ValueError):
            book.update(entries(USDC="50", USDT=amount))

        assert book.get("USDC") == 0.0

    def test_bad_untracked_entry_is_ignored(self, book: BalanceBook) -> None:
        """Test that garbage on an untracked asset does not block the update."""
        book.update(entries(BTC="garbage", USDC="9"))

        assert book.get("USDC") == 9.0

    def test_snapshot_is_a_copy(self, book: BalanceBook) -> None:
        """Test that callers cannot mutate the book through a snapshot."""
        snapshot = book.snapshot()
        snapshot["USDC"] = 999.0

        assert book.get("USDC") == 0.0

    def test_failure_after_valid_entry_applies_nothing(self) -> None:
        """Test that a bad entry late in the list does not leave earlier ones applied."""
        book = BalanceBook(["USD", "EUR"])
        book.update(entries(USD="7", EUR="3"))

        with pytest.raises(ValueError):
            book.update(entries(USD="100", EUR="bad"))

        assert book.get("USD") == 7.0
        assert book.get("EUR") == 3.0
