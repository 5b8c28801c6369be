"""Rate limiting for completion requests.

Responsibilities:
- Bound the number of requests issued within a rolling time window.
- Block callers until budget is available instead of failing.
- Stay correct when many threads share one limiter.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import threading
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class SlidingWindowRateLimiter:
    """Thread-safe sliding-window limiter shared by every request of one client.

    At any instant no more than `max_requests` timestamps fall inside the
    trailing `window_seconds`.
    """

    max_requests: int = 50
    window_seconds: float = 60.0
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _timestamps: deque[float] = field(default_factory=deque, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __post_init__(self) -> None:
        if self.max_requests <= 0:
            raise ValueError("`max_requests` must be a positive integer.")
        if self.window_seconds <= 0:
            raise ValueError("`window_seconds` must be a positive number.")

    def acquire(self) -> float:
        """Block until a slot is free, record it, and return the total time waited."""

        waited = 0.0
        while True:
            with self._lock:
                now = self.clock()
                self._prune(now)
                if len(self._timestamps) < self.max_requests:
                    self._timestamps.append(now)
                    return waited
                wait_seconds = self._timestamps[0] + self.window_seconds - now
            # Lock is released while sleeping.
            if wait_seconds > 0.0:
                self.sleeper(wait_seconds)
                waited += wait_seconds

    def in_flight(self) -> int:
        """Return how many timestamps currently fall inside the window."""

        with self._lock:
            self._prune(self.clock())
            return len(self._timestamps)

    def clear(self) -> None:
        """Forget every recorded timestamp."""

        with self._lock:
            self._timestamps.clear()

    def _prune(self, now: float) -> None:
        """Drop timestamps that left the window. Caller holds the lock."""

        window_start = now - self.window_seconds
        while self._timestamps and self._timestamps[0] <= window_start:
            self._timestamps.popleft()
