"""
Time utilities and the clock abstraction.

Provides millisecond timestamps for signed requests and a swappable
clock so that cycle delays can be driven without real timers.
"""

import asyncio
import time
from typing import Protocol


def get_timestamp_us() -> int:
    """
    Get current timestamp in microseconds.

    Returns:
        Current Unix timestamp in microseconds.
    """
    return time.time_ns() // 1000


def get_timestamp_ms() -> int:
    """
    Get current timestamp in milliseconds.

    Used for the Binance `timestamp` parameter on signed requests.

    Returns:
        Current Unix timestamp in milliseconds.
    """
    return time.time_ns() // 1_000_000


def format_duration_us(duration_us: float) -> str:
    """
    Format a duration in microseconds for human-readable display.

    Examples:
        >>> format_duration_us(500)
        '500μs'
        >>> format_duration_us(1500)
        '1.50ms'
        >>> format_duration_us(1500000)
        '1.50s'
    """
    if duration_us < 1000:
        return f"{duration_us:.0f}μs"
    elif duration_us < 1_000_000:
        return f"{duration_us / 1000:.2f}ms"
    else:
        return f"{duration_us / 1_000_000:.2f}s"


class Clock(Protocol):
    """Source of elapsed time and delays."""

    def monotonic(self) -> float:
        """Seconds from an arbitrary fixed point."""
        ...

    async def sleep(self, seconds: float) -> None:
        """Suspend the calling task for `seconds`."""
        ...


class SystemClock:
    """Clock backed by the event loop."""

    __slots__ = ()

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
