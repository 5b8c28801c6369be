"""Core datatypes shared across Linguaflow modules.

Responsibilities:
- Represent immutable records exchanged between client, parser and orchestrators.
- Provide explicit typing for call options and batch outcomes.

Key types:
- `TranslationOptions`, `SummaryOptions`, `BatchItem`, `ParsedTranslation`,
  `ParsedSummary`, `UnitFailure`, and the helper results
  `QualityCheckedTranslation`, `CostEstimate`, `TextComplexity`,
  `SmartSummary` and `LocaleCheck`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class TranslationOptions:
    """Optional prompt enrichments for translation calls.

    Attributes:
        context: Free text describing where the text is used.
        glossary: Term mapping (or free text) the translation must respect.
        preserve_html: Whether HTML markup must be kept intact.
        max_tokens: Per-call `max_tokens` override.
        temperature: Per-call `temperature` override.
    """

    context: str | None = None
    glossary: Mapping[str, str] | str | None = None
    preserve_html: bool = False
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass(frozen=True, slots=True)
class SummaryOptions:
    """Optional prompt enrichments for summary calls."""

    style: str | None = None
    context: str | None = None
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass(frozen=True, slots=True)
class BatchItem:
    """One member of a combined batch prompt.

    Attributes:
        text: Text to translate.
        source_locale: Validated source code, or `None` to let the model detect it.
        target_locale: Validated target code.
    """

    text: str
    source_locale: str | None
    target_locale: str


@dataclass(frozen=True, slots=True)
class ParsedTranslation:
    """Structured translation envelope recovered from model output."""

    source: str | None
    target: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ParsedSummary:
    """Structured summary envelope recovered from model output."""

    source: str | None
    summary: str
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UnitFailure:
    """Error marker recorded in place of a result by per-unit-recovery helpers.

    Attributes:
        error_type: Exception class name.
        message: Human-readable error message.
    """

    error_type: str
    message: str

    @classmethod
    def from_exception(cls, exc: Exception) -> UnitFailure:
        """Build a failure marker from a caught exception."""

        return cls(error_type=type(exc).__name__, message=str(exc))


@dataclass(frozen=True, slots=True)
class QualityCheckedTranslation:
    """Translation returned together with the model's own quality assessment.

    Attributes:
        translation: Translated text.
        confidence: Score in `[0, 1]`; the model's own figure when it gave one,
            otherwise derived from the source/translation length ratio.
        quality_check: Free-form assessment fields reported by the model.
        metadata: Envelope metadata.
    """

    translation: str
    confidence: float
    quality_check: Mapping[str, Any] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CostEstimate:
    """Character-based price estimate for a set of translation requests."""

    characters: int
    requests: int
    rate_per_1k_chars: float
    estimated_cost: float
    currency: str = "USD"


@dataclass(frozen=True, slots=True)
class TextComplexity:
    """Word, sentence and paragraph statistics used to size summaries."""

    word_count: int
    sentence_count: int
    paragraph_count: int
    average_words_per_sentence: float
    average_sentences_per_paragraph: float
    complexity_score: float


@dataclass(frozen=True, slots=True)
class SmartSummary:
    """Summary produced with a length derived from the source text."""

    summary: str
    original_words: int
    summary_words: int
    compression_ratio: float


@dataclass(frozen=True, slots=True)
class LocaleCheck:
    """Outcome of validating a locale code without raising."""

    valid: bool
    locale: str | None = None
    error: str | None = None
    suggestions: tuple[str, ...] = ()
