"""
Symbol universe built from the configured trading pairs.

Turns `"BASE/QUOTE"` strings into the exchange symbols to poll and
the set of assets whose balances are tracked.
"""

import logging
from collections.abc import Iterable


logger = logging.getLogger(__name__)


class SymbolUniverse:
    """
    Configured pairs, the symbols they form and the assets they touch.

    Responsibilities:
    - Parsing configured pairs, skipping malformed entries
    - Providing the symbol list for price polls
    - Providing the fixed, ordered set of tracked assets
    """

    __slots__ = ("_symbols", "_assets", "_pairs")

    def __init__(self) -> None:
        """Initialize an empty universe."""
        self._symbols: list[str] = []
        self._assets: list[str] = []
        self._pairs: dict[str, tuple[str, str]] = {}

    @classmethod
    def from_pairs(cls, pairs: Iterable[str]) -> "SymbolUniverse":
        """
        Build a universe from `"BASE/QUOTE"` strings.

        Entries that are not exactly two non-empty `/`-separated tokens
        are logged and skipped. Order follows the input; duplicates
        are ignored.

        Args:
            pairs: Configured pair strings.

        Returns:
            Populated SymbolUniverse.
        """
        universe = cls()

        for raw in pairs:
            tokens = [t.strip().upper() for t in str(raw).split("/")]
            if len(tokens) != 2 or not all(tokens):
                logger.warning(f"Skipping invalid trading pair: {raw!r}")
                continue

            base, quote = tokens
            universe._add_pair(base, quote)

        return universe

    def _add_pair(self, base: str, quote: str) -> None:
        """Add pair to internal indexes."""
        symbol = f"{base}{quote}"
        if symbol not in self._pairs:
            self._pairs[symbol] = (base, quote)
            self._symbols.append(symbol)

        for asset in (base, quote):
            if asset not in self._assets:
                self._assets.append(asset)

    @property
    def symbols(self) -> list[str]:
        """Exchange symbols in configured order."""
        return list(self._symbols)

    @property
    def assets(self) -> list[str]:
        """Tracked assets in configured order."""
        return list(self._assets)

    def get_pair(self, symbol: str) -> tuple[str, str] | None:
        """
        Get (base, quote) for a symbol.

        Args:
            symbol: Exchange symbol (e.g., "USDCUSDT").

        Returns:
            The pair or None if the symbol is not configured.
        """
        return self._pairs.get(symbol)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._pairs

    def __len__(self) -> int:
        return len(self._symbols)
