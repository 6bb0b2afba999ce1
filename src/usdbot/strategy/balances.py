"""
In-memory balance snapshot for the tracked assets.

The key set is fixed when the book is created and never grows or
shrinks; updates only overwrite the free amounts.
"""

import logging
import math
from collections.abc import Iterable
from typing import Protocol


logger = logging.getLogger(__name__)


class BalanceEntry(Protocol):
    """A wire balance entry: asset code and free amount string."""

    asset: str
    free: str


class BalanceBook:
    """
    Free balances keyed by asset code.

    Only the orchestration loop writes to the book, so it carries no
    lock of its own.
    """

    __slots__ = ("_balances",)

    def __init__(self, assets: Iterable[str]) -> None:
        """
        Initialize with every asset at zero.

        Args:
            assets: Tracked asset codes, in scan order.
        """
        self._balances: dict[str, float] = {asset: 0.0 for asset in assets}

    def update(self, entries: Iterable[BalanceEntry]) -> int:
        """
        Overwrite balances from an account snapshot, all or nothing.

        Every tracked entry is parsed before anything is written, so a
        single unparseable amount leaves the whole book unchanged.
        Untracked assets are ignored.

        Args:
            entries: Balance entries from `account.status`.

        Returns:
            Number of tracked balances written.

        Raises:
            ValueError: If a tracked entry's free amount is not a finite number.
        """
        parsed: dict[str, float] = {}

        for entry in entries:
            if entry.asset not in self._balances:
                continue

            try:
                amount = float(entry.free)
            except (TypeError, ValueError) as e:
                raise ValueError(f"Invalid free balance for {entry.asset}: {entry.free!r}") from e

            if not math.isfinite(amount):
                raise ValueError(f"Invalid free balance for {entry.asset}: {entry.free!r}")

            parsed[entry.asset] = amount

        self._balances.update(parsed)
        return len(parsed)

    def get(self, asset: str) -> float | None:
        """Get the free balance, or None if the asset is not tracked."""
        return self._balances.get(asset)

    def snapshot(self) -> dict[str, float]:
        """Copy of the current balances."""
        return dict(self._balances)

    @property
    def assets(self) -> list[str]:
        return list(self._balances)

    def items(self) -> Iterable[tuple[str, float]]:
        return self._balances.items()

    def __contains__(self, asset: object) -> bool:
        return asset in self._balances

    def __len__(self) -> int:
        return len(self._balances)

    def __repr__(self) -> str:
        inner = ", ".join(f"{a}={v:g}" for a, v in self._balances.items())
        return f"BalanceBook({inner})"
