"""Telemetry module for logging and metrics."""

from usdbot.telemetry.logger import AsyncLogger, SecretRedactingFilter, setup_logging
from usdbot.telemetry.metrics import LatencyStats, MetricsCollector


__all__ = [
    "AsyncLogger",
    "LatencyStats",
    "MetricsCollector",
    "SecretRedactingFilter",
    "setup_logging",
]
