"""Market configuration: the configured pairs and tracked assets."""

from usdbot.market.symbols import SymbolUniverse


__all__ = [
    "SymbolUniverse",
]
