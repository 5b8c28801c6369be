"""Structured operation logging utilities.

Responsibilities:
- Emit concise, deterministic event lines for translation and summary operations.
- Redact credential-like tokens before anything reaches a sink.
- Suppress repeated warnings (rate limits, retries) within a time-to-live window.
"""

from __future__ import annotations

import os
import re
import threading
from time import monotonic
from typing import Callable, TextIO

from loguru import logger as _loguru_logger


_REDACTION_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9._-]+"), "Bearer [REDACTED]"),
    (re.compile(r"[?&]api_key=[A-Za-z0-9_-]+"), "?api_key=[REDACTED]"),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{8,}\b"), "[REDACTED]"),
    (re.compile(r"token[=:]\s*[A-Za-z0-9_-]+"), "token=[REDACTED]"),
    (re.compile(r"password[=:]\s*[^\s&]+"), "password=[REDACTED]"),
    (re.compile(r"secret[=:]\s*[A-Za-z0-9_-]+"), "secret=[REDACTED]"),
)


def redact_sensitive(text: str) -> str:
    """Mask bearer tokens, API keys, passwords and secrets in free text."""

    redacted = text
    for pattern, replacement in _REDACTION_PATTERNS:
        redacted = pattern.sub(replacement, redacted)
    return redacted


def _sanitize_context_value(value: object) -> str:
    """Convert context values into stable, shell-safe tokens."""

    raw = redact_sensitive(str(value).strip())
    if not raw:
        return "none"
    return "".join(
        character if character.isalnum() or character in {"-", "_", ".", ":", "/"} else "_"
        for character in raw
    )


def _format_context(context: dict[str, object]) -> str:
    """Serialize context key/value pairs in deterministic key order."""

    if not context:
        return ""
    tokens = [
        f"{key}={_sanitize_context_value(context[key])}"
        for key in sorted(context.keys())
    ]
    return " " + " ".join(tokens)


class RunLogger:
    """Emit deterministic event lines through `loguru`.

    When `sink` is given, a dedicated handler is attached that only receives
    lines emitted by this logger instance; call `close()` to detach it.
    """

    def __init__(
        self,
        sink: TextIO | None = None,
        *,
        verbose: bool | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        """Initialize logger sink, verbosity and the warn-once cache."""

        if verbose is None:
            verbose = os.environ.get("LINGUAFLOW_VERBOSE", "").strip().lower() == "true"
        self.verbose = verbose
        self._clock = clock
        self._warned_at: dict[str, float] = {}
        self._warn_lock = threading.Lock()
        self._logger = _loguru_logger.bind(linguaflow_logger=id(self))
        self._handler_id: int | None = None
        if sink is not None:
            owner = id(self)
            self._handler_id = _loguru_logger.add(
                sink,
                format="{message}",
                level="DEBUG" if verbose else "INFO",
                colorize=False,
                filter=lambda record: record["extra"].get("linguaflow_logger") == owner,
            )

    def close(self) -> None:
        """Detach the dedicated sink handler, if one was attached."""

        if self._handler_id is not None:
            _loguru_logger.remove(self._handler_id)
            self._handler_id = None

    def _emit(self, level: str, event: str, **context: object) -> None:
        """Emit one structured log line."""

        line = f"[linguaflow] level={level} event={event}{_format_context(context)}"
        self._logger.log(level, line)

    def debug(self, event: str, **context: object) -> None:
        """Emit a debug event when verbose mode is enabled."""

        if self.verbose:
            self._emit("DEBUG", event, **context)

    def info(self, event: str, **context: object) -> None:
        """Emit an informational event."""

        self._emit("INFO", event, **context)

    def warning(self, event: str, **context: object) -> None:
        """Emit a warning event."""

        self._emit("WARNING", event, **context)

    def error(self, event: str, **context: object) -> None:
        """Emit an error event without payload details."""

        self._emit("ERROR", event, **context)

    def warn_once(self, key: str, event: str, ttl_seconds: float = 300.0, **context: object) -> bool:
        """Emit a warning unless the same key was warned within `ttl_seconds`.

        Returns:
            `True` when the warning was emitted.
        """

        now = self._clock()
        with self._warn_lock:
            last = self._warned_at.get(key)
            if last is not None and now - last <= ttl_seconds:
                return False
            self._warned_at[key] = now
        self.warning(event, **context)
        return True

    def log_operation_failure(self, operation: str, error_type: str, **context: object) -> None:
        """Emit an operation-failure event without sensitive payload details."""

        self.error("failure", operation=operation, error_type=error_type, **context)
