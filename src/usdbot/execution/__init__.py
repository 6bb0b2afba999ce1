"""Request signing and trading safeguards."""

from usdbot.execution.risk import GuardState, TradingGuard
from usdbot.execution.signer import RequestSigner


__all__ = [
    "GuardState",
    "RequestSigner",
    "TradingGuard",
]
