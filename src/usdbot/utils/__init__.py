"""Utility functions for the conversion bot."""

from usdbot.utils.time import (
    Clock,
    SystemClock,
    format_duration_us,
    get_timestamp_ms,
    get_timestamp_us,
)


__all__ = [
    "Clock",
    "SystemClock",
    "format_duration_us",
    "get_timestamp_ms",
    "get_timestamp_us",
]
