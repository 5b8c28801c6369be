"""Convenience facade over a client, translator and summarizer.

Responsibilities:
- Bundle one configured client with its orchestrators and shared metrics.
- Keep a process-wide default instance that `configure()` replaces and
  `reset()` discards, so tests can always start from a fresh one.
- Report API connectivity through `health_check()`.
"""

from __future__ import annotations

import threading
from typing import Callable, Sequence

from .config import ConfigLoader, LinguaflowConfig, RuntimeConfigSources
from .errors import ApiError, AuthenticationError, LinguaflowError
from .locales import LocaleTable, default_locale_table
from .models.datatypes import QualityCheckedTranslation, SummaryOptions, TranslationOptions
from .provider_factory import ProviderFactory
from .telemetry.logger import RunLogger
from .telemetry.metrics import MetricsCollector


class Linguaflow:
    """Translation and summary entry points sharing one client."""

    def __init__(
        self,
        config: LinguaflowConfig | None = None,
        *,
        sources: RuntimeConfigSources | None = None,
        run_logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
        locales: LocaleTable | None = None,
    ) -> None:
        """Build the client and orchestrators described by `config`."""

        self.config = config if config is not None else LinguaflowConfig()
        self.locales = locales if locales is not None else default_locale_table
        self.logger = run_logger if run_logger is not None else RunLogger()
        self.metrics = MetricsCollector(enabled=self.config.enable_metrics)
        self.client = ProviderFactory.create_client(self.config, sources, self.logger)
        self.translator = ProviderFactory.create_translator(
            self.config, self.client, self.metrics, self.logger, sleeper
        )
        self.summarizer = ProviderFactory.create_summarizer(
            self.config, self.client, self.metrics, self.logger, sleeper
        )

    def translate(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        return self.translator.translate(text, source_locale, target_locale, options)

    def translate_auto(
        self, text: str, target_locale: str, options: TranslationOptions | None = None
    ) -> str:
        return self.translator.translate_auto(text, target_locale, options)

    def translate_to_multiple(
        self,
        text: str,
        source_locale: str,
        target_locales: Sequence[str] | str,
        options: TranslationOptions | None = None,
        *,
        use_batch: bool = False,
    ) -> dict[str, str]:
        return self.translator.translate_to_multiple(
            text, source_locale, target_locales, options, use_batch=use_batch
        )

    def translate_batch(
        self,
        texts: Sequence[str],
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> dict[int, str]:
        return self.translator.translate_batch(texts, source_locale, target_locale, options)

    def translate_with_quality_check(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> QualityCheckedTranslation:
        return self.translator.translate_with_quality_check(
            text, source_locale, target_locale, options
        )

    def summarize(
        self,
        text: str,
        language: str = "fr",
        max_words: int = 250,
        options: SummaryOptions | None = None,
    ) -> str:
        return self.summarizer.summarize(text, language, max_words, options)

    def summarize_and_translate(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        max_words: int = 250,
        options: SummaryOptions | None = None,
    ) -> str:
        return self.summarizer.summarize_and_translate(
            text, source_locale, target_locale, max_words, options
        )

    def summarize_to_multiple(
        self,
        text: str,
        languages: Sequence[str] | str,
        max_words: int = 250,
        options: SummaryOptions | None = None,
    ) -> dict[str, str]:
        return self.summarizer.summarize_to_multiple(text, languages, max_words, options)

    def summarize_tiered(
        self,
        text: str,
        language: str = "fr",
        short: int = 50,
        medium: int = 150,
        long: int = 300,
        options: SummaryOptions | None = None,
    ) -> dict[str, str]:
        return self.summarizer.summarize_tiered(text, language, short, medium, long, options)

    def supported_locales(self) -> list[str]:
        return self.locales.supported_locales()

    def supported_languages(self) -> str:
        return self.locales.supported_languages_list()

    def locale_supported(self, locale: str) -> bool:
        return self.locales.is_supported(locale)

    def metrics_summary(self) -> dict[str, object]:
        """Return derived usage counters; empty when metrics are disabled."""

        return self.metrics.summary()

    def health_check(self) -> dict[str, str]:
        """Issue one tiny completion and report `{"status", "message"}`.

        Status is `ok` or `error`; failures are reported, never raised.
        """

        try:
            self.client.complete(self.client.prompts.health_check_prompt(), max_tokens=10)
        except AuthenticationError:
            return {"status": "error", "message": "Authentication failed - check your API key"}
        except ApiError as exc:
            return {"status": "error", "message": f"API error: {exc}"}
        except LinguaflowError as exc:
            return {"status": "error", "message": f"{type(exc).__name__}: {exc}"}
        return {"status": "ok", "message": "API connection successful"}


_default_lock = threading.Lock()
_default_instance: Linguaflow | None = None


def get_default() -> Linguaflow:
    """Return the process-wide default instance, building it from env on first use."""

    global _default_instance
    with _default_lock:
        if _default_instance is None:
            _default_instance = Linguaflow(ConfigLoader.from_env())
        return _default_instance


def configure(config: LinguaflowConfig | None = None, **kwargs: object) -> Linguaflow:
    """Replace the default instance with one built from `config`."""

    global _default_instance
    instance = Linguaflow(config, **kwargs)  # type: ignore[arg-type]
    with _default_lock:
        _default_instance = instance
    return instance


def reset() -> None:
    """Discard the default instance; the next call builds a fresh one."""

    global _default_instance
    with _default_lock:
        _default_instance = None
