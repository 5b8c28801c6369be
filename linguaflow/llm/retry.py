"""Bounded retry policy shared by the translation and summary orchestrators.

Responsibilities:
- Retry content and transient API failures with exponential backoff.
- Wait out upstream rate limiting with a fixed delay, outside the attempt budget.
- Never retry authentication, configuration or validation failures.
"""

from __future__ import annotations

from dataclasses import dataclass
import time
from typing import Callable, TypeVar

from ..errors import (
    ApiError,
    AuthenticationError,
    BatchMismatchError,
    EmptyTranslationError,
    InvalidResponseError,
    RateLimitError,
)

T = TypeVar("T")

RetryCallback = Callable[[Exception, int, float], None]
RateLimitCallback = Callable[[RateLimitError, int, float], None]


@dataclass(slots=True)
class RetryPolicy:
    """Explicit retry loop with exponential backoff and rate-limit waits.

    Attributes:
        max_retries: Retries allowed after the first attempt for retryable errors.
        base_delay: Backoff base; retry `n` (from zero) waits `base_delay * 2**n`.
        rate_limit_delay: Wait after an upstream 429 without a `Retry-After` hint.
        max_rate_limit_waits: Optional cap on 429 waits per run (`None` is unbounded).
        sleeper: Sleep function; `time.sleep` when unset.
        retry_attempt_count: Total retries performed across all runs.
    """

    max_retries: int = 3
    base_delay: float = 2.0
    rate_limit_delay: float = 2.0
    max_rate_limit_waits: int | None = None
    sleeper: Callable[[float], None] | None = None
    retry_attempt_count: int = 0

    def __post_init__(self) -> None:
        """Validate retry bounds."""

        if self.max_retries < 0:
            raise ValueError("`max_retries` must be zero or a positive integer.")
        if self.base_delay < 0 or self.rate_limit_delay < 0:
            raise ValueError("Retry delays must be non-negative numbers.")

    def backoff_delay(self, attempt: int) -> float:
        """Return the wait before retry number `attempt` (zero-based)."""

        return self.base_delay * (2**attempt)

    def run(
        self,
        operation: Callable[[], T],
        *,
        on_retry: RetryCallback | None = None,
        on_rate_limit: RateLimitCallback | None = None,
    ) -> T:
        """Run `operation` until it succeeds or a non-retryable error surfaces.

        Exhausted retries re-raise the last error unchanged.
        """

        attempt = 0
        rate_limit_waits = 0
        while True:
            try:
                return operation()
            except RateLimitError as exc:
                if (
                    self.max_rate_limit_waits is not None
                    and rate_limit_waits >= self.max_rate_limit_waits
                ):
                    raise
                rate_limit_waits += 1
                wait = exc.retry_after if exc.retry_after is not None else self.rate_limit_delay
                if on_rate_limit is not None:
                    on_rate_limit(exc, rate_limit_waits, wait)
                self._sleep(wait)
            except (AuthenticationError, BatchMismatchError):
                raise
            except (EmptyTranslationError, InvalidResponseError, ApiError) as exc:
                if attempt >= self.max_retries:
                    raise
                delay = self.backoff_delay(attempt)
                attempt += 1
                self.retry_attempt_count += 1
                if on_retry is not None:
                    on_retry(exc, attempt, delay)
                self._sleep(delay)

    def _sleep(self, seconds: float) -> None:
        if seconds <= 0:
            return
        (self.sleeper or time.sleep)(seconds)
