"""Lifecycle hook listeners invoked by the orchestrators.

Responsibilities:
- Define a fixed-signature listener with one no-op method per lifecycle event.
- Provide a logging listener that reports events through `RunLogger`.

Key types:
- `LifecycleHooks`: base listener; subclass and override the events you need.
- `LoggingHooks`: listener emitting one log line per event.
- `CompositeHooks`: fan one event out to several listeners.
"""

from __future__ import annotations

from .telemetry.logger import RunLogger


class LifecycleHooks:
    """No-op listener for operation lifecycle events."""

    def on_start(self, source: str | None, target: str, text_length: int) -> None:
        """Called before the first request of one logical operation."""

    def on_complete(
        self,
        source: str | None,
        target: str,
        original_length: int,
        result_length: int,
        duration: float,
    ) -> None:
        """Called after an operation produced its result."""

    def on_error(
        self,
        source: str | None,
        target: str,
        error: Exception,
        attempt: int,
    ) -> None:
        """Called once when an operation fails terminally."""

    def on_rate_limit(
        self,
        source: str | None,
        target: str,
        wait_seconds: float,
        attempt: int,
    ) -> None:
        """Called when a rate-limit wait begins."""

    def on_batch_complete(
        self,
        batch_size: int,
        duration: float,
        success_count: int,
        error_count: int,
    ) -> None:
        """Called after a batch or multi-target operation finished."""


class LoggingHooks(LifecycleHooks):
    """Listener that reports every lifecycle event as a log line."""

    def __init__(self, run_logger: RunLogger | None = None) -> None:
        self.logger = run_logger if run_logger is not None else RunLogger()

    def on_start(self, source: str | None, target: str, text_length: int) -> None:
        self.logger.info("hook_start", source=source or "auto", target=target, chars=text_length)

    def on_complete(
        self,
        source: str | None,
        target: str,
        original_length: int,
        result_length: int,
        duration: float,
    ) -> None:
        self.logger.info(
            "hook_complete",
            source=source or "auto",
            target=target,
            duration=f"{duration:.2f}s",
        )

    def on_error(
        self,
        source: str | None,
        target: str,
        error: Exception,
        attempt: int,
    ) -> None:
        self.logger.error(
            "hook_error",
            source=source or "auto",
            target=target,
            error_type=type(error).__name__,
            attempt=attempt,
        )

    def on_rate_limit(
        self,
        source: str | None,
        target: str,
        wait_seconds: float,
        attempt: int,
    ) -> None:
        self.logger.warning(
            "hook_rate_limit",
            source=source or "auto",
            target=target,
            wait=f"{wait_seconds}s",
            attempt=attempt,
        )

    def on_batch_complete(
        self,
        batch_size: int,
        duration: float,
        success_count: int,
        error_count: int,
    ) -> None:
        self.logger.info(
            "hook_batch_complete",
            size=batch_size,
            duration=f"{duration:.2f}s",
            succeeded=success_count,
            failed=error_count,
        )


class CompositeHooks(LifecycleHooks):
    """Dispatch each lifecycle event to several listeners in order."""

    def __init__(self, *listeners: LifecycleHooks) -> None:
        self.listeners = list(listeners)

    def on_start(self, source: str | None, target: str, text_length: int) -> None:
        for listener in self.listeners:
            listener.on_start(source, target, text_length)

    def on_complete(
        self,
        source: str | None,
        target: str,
        original_length: int,
        result_length: int,
        duration: float,
    ) -> None:
        for listener in self.listeners:
            listener.on_complete(source, target, original_length, result_length, duration)

    def on_error(
        self,
        source: str | None,
        target: str,
        error: Exception,
        attempt: int,
    ) -> None:
        for listener in self.listeners:
            listener.on_error(source, target, error, attempt)

    def on_rate_limit(
        self,
        source: str | None,
        target: str,
        wait_seconds: float,
        attempt: int,
    ) -> None:
        for listener in self.listeners:
            listener.on_rate_limit(source, target, wait_seconds, attempt)

    def on_batch_complete(
        self,
        batch_size: int,
        duration: float,
        success_count: int,
        error_count: int,
    ) -> None:
        for listener in self.listeners:
            listener.on_batch_complete(batch_size, duration, success_count, error_count)
