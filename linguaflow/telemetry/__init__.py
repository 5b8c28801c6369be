"""Telemetry helpers.

This package provides structured event logging and usage counters.
"""

from .logger import RunLogger, redact_sensitive
from .metrics import MetricsCollector

__all__ = ["MetricsCollector", "RunLogger", "redact_sensitive"]
