"""Unit tests for usage counters and lifecycle hook listeners."""

from __future__ import annotations

import io
import threading

from linguaflow.errors import RateLimitError
from linguaflow.hooks import CompositeHooks, LifecycleHooks, LoggingHooks
from linguaflow.telemetry.logger import RunLogger
from linguaflow.telemetry.metrics import MetricsCollector


def test_metrics_summary_derives_averages() -> None:
    """Summary should report totals plus averages and error rate."""

    metrics = MetricsCollector()
    metrics.record_start("en", "fr", 100)
    metrics.record_complete(1.5)
    metrics.record_start(None, "es", 50)
    metrics.record_error()
    metrics.record_rate_limit()

    summary = metrics.summary()

    assert summary["total_translations"] == 2
    assert summary["total_characters"] == 150
    assert summary["translations_by_language"] == {"en->fr": 1, "auto->es": 1}
    assert summary["average_translation_time"] == 0.75
    assert summary["average_characters_per_translation"] == 75
    assert summary["error_rate"] == 50.0
    assert summary["rate_limits_hit"] == 1


def test_metrics_disabled_collect_nothing() -> None:
    """A disabled collector should ignore events and report an empty summary."""

    metrics = MetricsCollector(enabled=False)
    metrics.record_start("en", "fr", 10)
    metrics.record_error()

    assert metrics.summary() == {}
    assert metrics.total_translations == 0


def test_metrics_reset_and_empty_averages() -> None:
    """Reset should zero counters and averages should not divide by zero."""

    metrics = MetricsCollector()
    metrics.record_start("en", "fr", 10)
    metrics.reset()

    summary = metrics.summary()
    assert summary["total_translations"] == 0
    assert summary["average_translation_time"] == 0
    assert summary["translations_by_language"] == {}


def test_metrics_are_thread_safe() -> None:
    """Concurrent updates should not lose increments."""

    metrics = MetricsCollector()

    def _worker() -> None:
        """Record a burst of operations."""

        for _ in range(500):
            metrics.record_start("en", "fr", 1)
            metrics.record_complete(0.001)

    threads = [threading.Thread(target=_worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert metrics.total_translations == 2000
    assert metrics.translations_by_language["en->fr"] == 2000


def test_base_hooks_are_no_ops() -> None:
    """The base listener should accept every event without side effects."""

    hooks = LifecycleHooks()

    hooks.on_start("en", "fr", 5)
    hooks.on_complete("en", "fr", 5, 7, 0.1)
    hooks.on_error("en", "fr", RateLimitError(), 2)
    hooks.on_rate_limit(None, "fr", 2.0, 1)
    hooks.on_batch_complete(3, 0.5, 2, 1)


def test_logging_hooks_emit_one_line_per_event() -> None:
    """Logging hooks should report each event with its key fields."""

    stream = io.StringIO()
    logger = RunLogger(stream, verbose=False)
    try:
        hooks = LoggingHooks(logger)
        hooks.on_start(None, "fr", 12)
        hooks.on_complete("en", "fr", 12, 10, 1.234)
        hooks.on_error("en", "fr", RateLimitError(), 3)
        hooks.on_rate_limit("en", "fr", 2.0, 1)
        hooks.on_batch_complete(4, 2.0, 3, 1)
    finally:
        logger.close()

    lines = stream.getvalue().splitlines()
    assert len(lines) == 5
    assert "event=hook_start" in lines[0] and "source=auto" in lines[0] and "chars=12" in lines[0]
    assert "duration=1.23s" in lines[1]
    assert "level=ERROR" in lines[2] and "error_type=RateLimitError" in lines[2]
    assert "level=WARNING" in lines[3] and "wait=2.0s" in lines[3]
    assert "succeeded=3" in lines[4] and "failed=1" in lines[4]


def test_composite_hooks_dispatch_to_every_listener() -> None:
    """Composite hooks should forward each event to all listeners in order."""

    calls: list[str] = []

    class _Recorder(LifecycleHooks):
        """Listener recording its name on start and batch events."""

        def __init__(self, name: str) -> None:
            self.name = name

        def on_start(self, source: str | None, target: str, text_length: int) -> None:
            calls.append(f"{self.name}:start")

        def on_batch_complete(
            self, batch_size: int, duration: float, success_count: int, error_count: int
        ) -> None:
            calls.append(f"{self.name}:batch")

    hooks = CompositeHooks(_Recorder("a"), _Recorder("b"))
    hooks.on_start("en", "fr", 1)
    hooks.on_complete("en", "fr", 1, 1, 0.0)
    hooks.on_batch_complete(1, 0.0, 1, 0)

    assert calls == ["a:start", "b:start", "a:batch", "b:batch"]
