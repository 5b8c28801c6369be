"""Per-unit-recovery and analysis helpers built on `Translator` and `Summarizer`.

Responsibilities:
- Offer partial-success variants of batch, multi-target and multi-style
  translation that record failures inline as `UnitFailure` instead of aborting.
- Translate keyed items one by one with a progress callback.
- Size summaries from text statistics and estimate request cost offline.
- Check locale codes without raising.

Input validation errors still raise before any call is made. Authentication
and configuration errors abort the whole helper.
"""

from __future__ import annotations

import dataclasses
import re
from typing import Callable, Hashable, Mapping, Sequence, TypeVar

from .errors import (
    AuthenticationError,
    ConfigurationError,
    InputValidationError,
    LinguaflowError,
    UnsupportedLanguageError,
)
from .locales import LocaleTable, default_locale_table
from .llm.summarizer import Summarizer
from .llm.translator import Translator
from .models.datatypes import (
    CostEstimate,
    LocaleCheck,
    SmartSummary,
    SummaryOptions,
    TextComplexity,
    TranslationOptions,
    UnitFailure,
)

K = TypeVar("K", bound=Hashable)

UnitResult = str | UnitFailure
ProgressCallback = Callable[[int, int, K, UnitResult], None]

DEFAULT_STYLES = ("formal", "casual")
DEFAULT_RATE_PER_1K_CHARS = 0.02

_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n")
_HTML_TAG_RE = re.compile(r"<[^>]*>")


def _translate_unit(
    translator: Translator,
    text: str,
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None,
) -> UnitResult:
    """Translate one unit, recording recoverable failures as `UnitFailure`."""

    try:
        return translator.translate(text, source_locale, target_locale, options)
    except (AuthenticationError, ConfigurationError):
        raise
    except LinguaflowError as exc:
        return UnitFailure.from_exception(exc)


def translate_batch_with_fallback(
    translator: Translator,
    texts: Sequence[str],
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None = None,
) -> dict[int, UnitResult]:
    """Translate a batch, recording per-item failures instead of raising.

    The combined batch path runs first; if it fails outright every item is
    translated individually, each call paced after the one before it.
    """

    batch = translator.validator.batch(texts)
    translator.validator.locale(source_locale, "source_locale")
    translator.validator.locale(target_locale, "target_locale")

    try:
        return dict(translator.translate_batch(batch, source_locale, target_locale, options))
    except (AuthenticationError, ConfigurationError):
        raise
    except LinguaflowError as exc:
        translator.logger.warning(
            "batch_failed_translating_individually",
            error_type=type(exc).__name__,
            items=len(batch),
        )

    results: dict[int, UnitResult] = {}
    for index, text in enumerate(batch):
        translator.pace()
        results[index] = _translate_unit(translator, text, source_locale, target_locale, options)
    return results


def translate_to_multiple_with_fallback(
    translator: Translator,
    text: str,
    source_locale: str,
    target_locales: Sequence[str] | str,
    options: TranslationOptions | None = None,
) -> dict[str, UnitResult]:
    """Translate into every target, keeping every requested locale as a key."""

    translator.validator.text(text)
    translator.validator.locale(source_locale, "source_locale")
    targets = translator.validator.locales_list(target_locales, "target_locales")

    results: dict[str, UnitResult] = {}
    for position, target in enumerate(targets):
        if position > 0:
            translator.pace()
        results[target] = _translate_unit(translator, text, source_locale, target, options)
    return results


def translate_with_progress(
    translator: Translator,
    items: Mapping[K, str] | Sequence[str],
    source_locale: str,
    target_locale: str,
    options: TranslationOptions | None = None,
    progress: ProgressCallback | None = None,
) -> dict[K, UnitResult]:
    """Translate keyed items one at a time, reporting progress after each.

    Sequences are keyed by position. `progress` receives
    `(processed, total, key, result)`.
    """

    pairs = list(items.items()) if isinstance(items, Mapping) else list(enumerate(items))
    total = len(pairs)
    results: dict[K, UnitResult] = {}
    for position, (key, text) in enumerate(pairs):
        if position > 0:
            translator.pace()
        results[key] = _translate_unit(translator, text, source_locale, target_locale, options)
        if progress is not None:
            progress(position + 1, total, key, results[key])
    return results


def translate_multi_style(
    translator: Translator,
    text: str,
    source_locale: str,
    target_locale: str,
    styles: Sequence[str] = DEFAULT_STYLES,
    options: TranslationOptions | None = None,
) -> dict[str, UnitResult]:
    """Translate `text` once per style, recording per-style failures inline.

    The style is appended to the translation context, e.g.
    `"product page (Style: formal)"` or `"Style: casual"`.
    """

    translator.validator.text(text)
    translator.validator.locale(source_locale, "source_locale")
    translator.validator.locale(target_locale, "target_locale")
    if isinstance(styles, str):
        styles = [styles]
    names = list(dict.fromkeys(str(style).strip().lower() for style in styles))
    if not names or "" in names:
        raise InputValidationError("`styles` must be a non-empty list of style names.")

    base = options or TranslationOptions()
    results: dict[str, UnitResult] = {}
    for position, style in enumerate(names):
        if position > 0:
            translator.pace()
        context = f"{base.context} (Style: {style})" if base.context else f"Style: {style}"
        styled = dataclasses.replace(base, context=context)
        results[style] = _translate_unit(translator, text, source_locale, target_locale, styled)
    return results


def estimate_translation_cost(
    texts: str | Sequence[str],
    target_locales: str | Sequence[str] = (),
    rate_per_1k_chars: float = DEFAULT_RATE_PER_1K_CHARS,
) -> CostEstimate:
    """Estimate the price of translating `texts` into every target locale.

    Each text is sent once per target (once when no targets are given) and
    priced by character count. No request is made.
    """

    if rate_per_1k_chars < 0:
        raise InputValidationError("`rate_per_1k_chars` must be a non-negative number.")
    items = [texts] if isinstance(texts, str) else list(texts)
    targets = [target_locales] if isinstance(target_locales, str) else list(target_locales)
    fan_out = max(len(targets), 1)

    characters = sum(len(item) for item in items) * fan_out
    return CostEstimate(
        characters=characters,
        requests=len(items) * fan_out,
        rate_per_1k_chars=rate_per_1k_chars,
        estimated_cost=round(characters / 1000 * rate_per_1k_chars, 4),
    )


def analyze_text_complexity(text: str) -> TextComplexity:
    """Return word/sentence/paragraph counts and a 0-100 complexity score.

    The score adds average word length x 10 and average sentence length x 2,
    each capped at 50.
    """

    words = text.split()
    sentences = [part for part in _SENTENCE_SPLIT_RE.split(text) if part.strip()]
    paragraphs = [part for part in _PARAGRAPH_SPLIT_RE.split(text) if part.strip()]
    if not words:
        return TextComplexity(0, 0, 0, 0.0, 0.0, 0.0)

    words_per_sentence = len(words) / max(len(sentences), 1)
    word_score = min(sum(len(word) for word in words) / len(words) * 10, 50)
    sentence_score = min(words_per_sentence * 2, 50)
    return TextComplexity(
        word_count=len(words),
        sentence_count=len(sentences),
        paragraph_count=len(paragraphs),
        average_words_per_sentence=round(words_per_sentence, 2),
        average_sentences_per_paragraph=round(len(sentences) / max(len(paragraphs), 1), 2),
        complexity_score=round(word_score + sentence_score, 1),
    )


def suggest_summary_length(text: str, max_words: int = 250) -> int:
    """Return a summary length scaled to the text, never above `max_words`.

    Texts up to 100 words get half their length, up to 500 a third, up to 2000
    a quarter, longer texts a fifth; the result is at least 1.
    """

    word_count = len(_HTML_TAG_RE.sub(" ", text).split())
    if word_count <= 100:
        divisor = 2
    elif word_count <= 500:
        divisor = 3
    elif word_count <= 2000:
        divisor = 4
    else:
        divisor = 5
    return max(min(max_words, word_count // divisor), 1)


def smart_summarize(
    summarizer: Summarizer,
    text: str,
    language: str = "fr",
    max_words: int = 250,
    options: SummaryOptions | None = None,
) -> SmartSummary:
    """Summarize `text` with a length chosen by `suggest_summary_length`.

    HTML tags are ignored when counting words.
    """

    max_words = summarizer.validator.max_words(max_words)
    original_words = len(_HTML_TAG_RE.sub(" ", text).split())
    summary_words = suggest_summary_length(text, max_words)
    summary = summarizer.summarize(text, language, summary_words, options)
    ratio = round(summary_words / original_words * 100, 1) if original_words else 0.0
    return SmartSummary(
        summary=summary,
        original_words=original_words,
        summary_words=summary_words,
        compression_ratio=ratio,
    )


def validate_locale_with_suggestions(
    locale: str, locales: LocaleTable | None = None
) -> LocaleCheck:
    """Validate `locale` without raising, returning close matches on failure."""

    table = locales if locales is not None else default_locale_table
    try:
        return LocaleCheck(valid=True, locale=table.validate(locale))
    except UnsupportedLanguageError as exc:
        return LocaleCheck(valid=False, error=str(exc), suggestions=tuple(exc.suggestions))
