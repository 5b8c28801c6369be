"""Usage counters for translation and summary operations.

Responsibilities:
- Accumulate per-run totals (operations, characters, duration, errors, rate limits).
- Stay safe under concurrent callers sharing one collector.
- Provide a summary mapping with derived averages for reporting.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import threading


@dataclass(slots=True)
class MetricsCollector:
    """Thread-safe counters updated by lifecycle events when metrics are enabled."""

    enabled: bool = True
    total_translations: int = 0
    total_characters: int = 0
    total_duration: float = 0.0
    rate_limits_hit: int = 0
    errors_count: int = 0
    translations_by_language: Counter = field(default_factory=Counter)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_start(self, source: str | None, target: str, text_length: int) -> None:
        """Count one started operation for a language pair."""

        if not self.enabled:
            return
        with self._lock:
            self.total_translations += 1
            self.total_characters += max(0, text_length)
            self.translations_by_language[f"{source or 'auto'}->{target}"] += 1

    def record_complete(self, duration: float) -> None:
        """Add the wall-clock duration of one completed operation."""

        if not self.enabled:
            return
        with self._lock:
            self.total_duration += max(0.0, duration)

    def record_error(self) -> None:
        """Count one failed attempt."""

        if not self.enabled:
            return
        with self._lock:
            self.errors_count += 1

    def record_rate_limit(self) -> None:
        """Count one upstream rate-limit signal."""

        if not self.enabled:
            return
        with self._lock:
            self.rate_limits_hit += 1

    def reset(self) -> None:
        """Zero every counter."""

        with self._lock:
            self.total_translations = 0
            self.total_characters = 0
            self.total_duration = 0.0
            self.rate_limits_hit = 0
            self.errors_count = 0
            self.translations_by_language = Counter()

    def summary(self) -> dict[str, object]:
        """Return counters plus derived averages, or `{}` when disabled."""

        if not self.enabled:
            return {}
        with self._lock:
            total = self.total_translations
            return {
                "total_translations": total,
                "total_characters": self.total_characters,
                "total_duration": self.total_duration,
                "rate_limits_hit": self.rate_limits_hit,
                "errors_count": self.errors_count,
                "translations_by_language": dict(self.translations_by_language),
                "average_translation_time": round(self.total_duration / total, 3) if total else 0,
                "average_characters_per_translation": (
                    round(self.total_characters / total) if total else 0
                ),
                "error_rate": round(self.errors_count / total * 100, 2) if total else 0,
            }
