"""Telemetry module for logging and metrics."""

from ringtrader.telemetry.logger import AsyncLogger, SecretRedactingFilter, setup_logging
from ringtrader.telemetry.metrics import MetricsCollector


__all__ = [
    "AsyncLogger",
    "MetricsCollector",
    "SecretRedactingFilter",
    "setup_logging",
]
