"""Top-level package for Linguaflow.

Linguaflow turns a chat-completions API into translation and summarization
operations with rate limiting, retries, batching and defensive JSON parsing.
The module-level functions below delegate to a resettable default `Linguaflow`
instance; build your own `Linguaflow`, `Translator` or `Summarizer` for
explicit control.
"""

from __future__ import annotations

from typing import Sequence

from .config import ConfigLoader, LinguaflowConfig
from .errors import (
    ApiError,
    AuthenticationError,
    BatchMismatchError,
    ConfigurationError,
    EmptySummaryError,
    EmptyTranslationError,
    InputLimitError,
    InputValidationError,
    InvalidResponseError,
    LinguaflowError,
    RateLimitError,
    UnsupportedLanguageError,
)
from .facade import Linguaflow, configure, get_default, reset
from .hooks import CompositeHooks, LifecycleHooks, LoggingHooks
from .llm import CompletionClient, Summarizer, Translator
from .models.datatypes import QualityCheckedTranslation, SummaryOptions, TranslationOptions
from .version import __version__


def translate(
    text: str,
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None = None,
) -> str:
    return get_default().translate(text, source_locale, target_locale, options)


def translate_auto(text: str, target_locale: str, options: TranslationOptions | None = None) -> str:
    return get_default().translate_auto(text, target_locale, options)


def translate_to_multiple(
    text: str,
    source_locale: str,
    target_locales: Sequence[str] | str,
    options: TranslationOptions | None = None,
) -> dict[str, str]:
    return get_default().translate_to_multiple(text, source_locale, target_locales, options)


def translate_batch(
    texts: Sequence[str],
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None = None,
) -> dict[int, str]:
    return get_default().translate_batch(texts, source_locale, target_locale, options)


def translate_with_quality_check(
    text: str,
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None = None,
) -> QualityCheckedTranslation:
    return get_default().translate_with_quality_check(text, source_locale, target_locale, options)


def summarize(text: str, language: str = "fr", max_words: int = 250) -> str:
    return get_default().summarize(text, language, max_words)


def summarize_and_translate(
    text: str, source_locale: str, target_locale: str, max_words: int = 250
) -> str:
    return get_default().summarize_and_translate(text, source_locale, target_locale, max_words)


def summarize_to_multiple(
    text: str, languages: Sequence[str] | str, max_words: int = 250
) -> dict[str, str]:
    return get_default().summarize_to_multiple(text, languages, max_words)


def summarize_tiered(
    text: str, language: str = "fr", short: int = 50, medium: int = 150, long: int = 300
) -> dict[str, str]:
    return get_default().summarize_tiered(text, language, short, medium, long)


def supported_locales() -> list[str]:
    return get_default().supported_locales()


def locale_supported(locale: str) -> bool:
    return get_default().locale_supported(locale)


def health_check() -> dict[str, str]:
    return get_default().health_check()


__all__ = [
    "ApiError",
    "AuthenticationError",
    "BatchMismatchError",
    "CompletionClient",
    "CompositeHooks",
    "ConfigLoader",
    "ConfigurationError",
    "EmptySummaryError",
    "EmptyTranslationError",
    "InputLimitError",
    "InputValidationError",
    "InvalidResponseError",
    "LifecycleHooks",
    "Linguaflow",
    "LinguaflowConfig",
    "LinguaflowError",
    "LoggingHooks",
    "QualityCheckedTranslation",
    "RateLimitError",
    "SummaryOptions",
    "Summarizer",
    "TranslationOptions",
    "Translator",
    "UnsupportedLanguageError",
    "__version__",
    "configure",
    "get_default",
    "health_check",
    "locale_supported",
    "reset",
    "summarize",
    "summarize_and_translate",
    "summarize_tiered",
    "summarize_to_multiple",
    "supported_locales",
    "translate",
    "translate_auto",
    "translate_batch",
    "translate_to_multiple",
    "translate_with_quality_check",
]
