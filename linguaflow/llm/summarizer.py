"""Summary orchestration on top of the completion client.

Responsibilities:
- Normalize document whitespace before summarizing.
- Summarize in one language, summarize-and-translate in one call, produce tiered
  summaries, and fan out summaries across languages with pacing.
- Share the translator's retry policy, hooks, metrics and logging.
"""

from __future__ import annotations

import re
from typing import Sequence

from ..models.datatypes import SummaryOptions
from .translator import _Orchestrator


DEFAULT_MAX_WORDS = 250
DEFAULT_LANGUAGE = "fr"

_HORIZONTAL_SPACE_RE = re.compile(r"[ \t]+")
_RULE_RE = re.compile(r"-{3,}")
_BLANK_LINES_RE = re.compile(r"\n\s*\n+")
_LINE_EDGE_SPACE_RE = re.compile(r"^[ \t]+|[ \t]+$", re.MULTILINE)


def clean_document_content(content: str) -> str:
    """Collapse whitespace, drop `---` rules and blank lines, and trim line edges."""

    cleaned = _HORIZONTAL_SPACE_RE.sub(" ", content)
    cleaned = _RULE_RE.sub("", cleaned)
    cleaned = _BLANK_LINES_RE.sub("\n", cleaned)
    cleaned = _LINE_EDGE_SPACE_RE.sub("", cleaned)
    cleaned = _HORIZONTAL_SPACE_RE.sub(" ", cleaned)
    return cleaned.strip()


class Summarizer(_Orchestrator):
    """Summarize texts through the completion client."""

    def summarize(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE,
        max_words: int = DEFAULT_MAX_WORDS,
        options: SummaryOptions | None = None,
    ) -> str:
        """Summarize `text` in `language` within `max_words` words.

        Blank text yields `""` without calling the client.
        """

        text = self.validator.text(text)
        target = self.validator.language(language)
        max_words = self.validator.max_words(max_words)
        cleaned = clean_document_content(text) if text else ""
        if not cleaned:
            return ""
        return self._summarize_validated(cleaned, target, max_words, options or SummaryOptions())

    def summarize_and_translate(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        max_words: int = DEFAULT_MAX_WORDS,
        options: SummaryOptions | None = None,
    ) -> str:
        """Summarize `text` and write the summary in `target_locale` with one call.

        Identical locales delegate to a plain summary.
        """

        text = self.validator.text(text)
        source = self.validator.locale(source_locale, "source_locale")
        target = self.validator.locale(target_locale, "target_locale")
        max_words = self.validator.max_words(max_words)
        options = options or SummaryOptions()
        cleaned = clean_document_content(text) if text else ""
        if not cleaned:
            return ""
        if source == target:
            return self._summarize_validated(cleaned, target, max_words, options)

        prompt = self.prompts.summary_translation_prompt(cleaned, source, target, max_words, options)

        def _call() -> str:
            raw = self.client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                context={"operation": "summarize_and_translate", "source": source, "target": target},
            )
            return self.parser.parse_summary_response(raw).summary

        return self._instrumented("summarize_and_translate", source, target, cleaned, _call)

    def summarize_tiered(
        self,
        text: str,
        language: str = DEFAULT_LANGUAGE,
        short: int = 50,
        medium: int = 150,
        long: int = 300,
        options: SummaryOptions | None = None,
    ) -> dict[str, str]:
        """Return `short`, `medium` and `long` summaries of `text`.

        Bounds must increase strictly; they are checked before any call.
        """

        short_words, medium_words, long_words = self.validator.tiered_bounds(short, medium, long)
        text = self.validator.text(text)
        target = self.validator.language(language)
        options = options or SummaryOptions()
        cleaned = clean_document_content(text) if text else ""
        tiers = {"short": short_words, "medium": medium_words, "long": long_words}
        if not cleaned:
            return {tier: "" for tier in tiers}
        return {
            tier: self._summarize_validated(cleaned, target, words, options)
            for tier, words in tiers.items()
        }

    def summarize_to_multiple(
        self,
        text: str,
        languages: Sequence[str] | str,
        max_words: int = DEFAULT_MAX_WORDS,
        options: SummaryOptions | None = None,
    ) -> dict[str, str]:
        """Summarize `text` once per language, sequentially with pacing and fail-fast."""

        text = self.validator.text(text)
        targets = self.validator.locales_list(languages, "languages", accept_names=True)
        max_words = self.validator.max_words(max_words)
        options = options or SummaryOptions()
        cleaned = clean_document_content(text) if text else ""
        if not cleaned:
            return {target: "" for target in targets}

        results: dict[str, str] = {}
        for position, target in enumerate(targets):
            if position > 0:
                self.pace()
            results[target] = self._summarize_validated(cleaned, target, max_words, options)
        return results

    def _summarize_validated(
        self,
        text: str,
        language: str,
        max_words: int,
        options: SummaryOptions,
    ) -> str:
        prompt = self.prompts.summary_prompt(text, max_words, language, options)

        def _call() -> str:
            raw = self.client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                context={"operation": "summarize", "language": language, "max_words": max_words},
            )
            return self.parser.parse_summary_response(raw).summary

        return self._instrumented("summarize", None, language, text, _call)
