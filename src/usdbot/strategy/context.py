"""Trading context shared by the decision engine and the orchestration loop."""

from dataclasses import dataclass, field

from usdbot.config.constants import PROFIT_THRESHOLD
from usdbot.config.settings import Settings
from usdbot.market.symbols import SymbolUniverse
from usdbot.strategy.balances import BalanceBook


@dataclass(slots=True)
class TradingContext:
    """
    Everything the bot knows about what it trades.

    Built once at startup; the balance book is the only part that
    changes afterwards.
    """

    universe: SymbolUniverse
    volume_per_transaction: int
    volume_maximum: int
    profit_threshold: float = PROFIT_THRESHOLD
    balances: BalanceBook = field(init=False)

    def __post_init__(self) -> None:
        self.balances = BalanceBook(self.universe.assets)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TradingContext":
        """Build the context from application settings."""
        return cls(
            universe=SymbolUniverse.from_pairs(settings.symbols),
            volume_per_transaction=settings.volume_per_transaction,
            volume_maximum=settings.volume_maximum,
            profit_threshold=settings.profit_threshold,
        )

    @property
    def symbols(self) -> list[str]:
        return self.universe.symbols
