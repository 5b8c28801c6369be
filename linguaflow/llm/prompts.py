"""Prompt template library for translation and summary operations.

Responsibilities:
- Centralize prompt construction for every operation.
- Ask the model for one JSON envelope per response, in a fixed shape the
  response parser understands.
"""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from ..locales import LocaleTable, default_locale_table
from ..models.datatypes import BatchItem, SummaryOptions, TranslationOptions


_STYLE_INSTRUCTIONS: Mapping[str, str] = {
    "formal": "Use a formal, professional style.",
    "casual": "Use a relaxed, conversational style.",
    "academic": "Use a precise, academic style.",
    "marketing": "Use a persuasive marketing style.",
}


def _envelope_example(payload: Mapping[str, Any]) -> str:
    """Render the expected JSON envelope for embedding in a prompt."""

    return json.dumps(payload, ensure_ascii=False, indent=2)


class PromptLibrary:
    """Build prompt strings for supported completion tasks."""

    def __init__(self, locales: LocaleTable | None = None) -> None:
        self.locales = locales if locales is not None else default_locale_table

    def _language(self, locale: str) -> str:
        return f"{self.locales.display_name(locale)} ({locale})"

    def translation_prompt(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        """Return a prompt translating `text` between two known locales."""

        options = options or TranslationOptions()
        envelope = _envelope_example(
            {
                "content": {"source": "original text", "target": "translated text"},
                "metadata": {"source": source_locale, "target": target_locale},
            }
        )
        return (
            "You are a professional translator. Do not invent content; only translate the "
            "text below, following these rules strictly:\n"
            f"1. Source language: {self._language(source_locale)}\n"
            f"2. Target language: {self._language(target_locale)}\n"
            '3. The "target" field MUST contain the translation, NOT the original text.\n'
            "4. Keep the style, tone and formatting of the original.\n"
            "5. Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._translation_extras(options)}"
            "\nText to translate:\n"
            f"{text}"
        )

    def auto_translation_prompt(
        self,
        text: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        """Return a prompt that detects the source language and translates."""

        options = options or TranslationOptions()
        envelope = _envelope_example(
            {
                "content": {"source": "original text", "target": "translated text"},
                "metadata": {"source": "detected ISO 639-1 code", "target": target_locale},
            }
        )
        return (
            "You are a professional translator. Detect the language of the text below, "
            f"then translate it into {self._language(target_locale)}.\n"
            '1. Put the detected ISO 639-1 code in "metadata.source".\n'
            '2. The "target" field MUST contain the translation, NOT the original text.\n'
            "3. Keep the style, tone and formatting of the original.\n"
            "4. Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._translation_extras(options)}"
            "\nText to translate:\n"
            f"{text}"
        )

    def quality_check_prompt(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        """Return a prompt that translates and self-assesses the result."""

        options = options or TranslationOptions()
        envelope = _envelope_example(
            {
                "content": {"source": "original text", "target": "translated text"},
                "quality_check": {
                    "confidence": 0.9,
                    "terminology_consistent": True,
                    "meaning_preserved": True,
                    "issues": [],
                },
                "metadata": {"source": source_locale, "target": target_locale},
            }
        )
        return (
            "You are a professional translator and reviewer. Translate the text below, "
            "then review your own translation.\n"
            f"1. Source language: {self._language(source_locale)}\n"
            f"2. Target language: {self._language(target_locale)}\n"
            '3. The "target" field MUST contain the translation, NOT the original text.\n'
            '4. In "quality_check", give a confidence between 0 and 1 and list any '
            "ambiguities or terms you were unsure about under \"issues\".\n"
            "5. Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._translation_extras(options)}"
            "\nText to translate:\n"
            f"{text}"
        )

    def batch_translation_prompt(
        self,
        items: Sequence[BatchItem],
        options: TranslationOptions | None = None,
    ) -> str:
        """Return one prompt translating every item, numbered from 1."""

        options = options or TranslationOptions()
        lines = []
        for position, item in enumerate(items, start=1):
            source = self._language(item.source_locale) if item.source_locale else "auto-detect"
            lines.append(
                f"{position}. [{source} -> {self._language(item.target_locale)}] "
                f"{json.dumps(item.text, ensure_ascii=False)}"
            )
        envelope = _envelope_example(
            {
                "translations": [
                    {"index": 1, "source": "original text 1", "target": "translated text 1"},
                    {"index": 2, "source": "original text 2", "target": "translated text 2"},
                ],
                "metadata": {"count": len(items)},
            }
        )
        return (
            "You are a professional translator. Translate each numbered text below into "
            "the language given in its brackets. Keep the style, tone and formatting of "
            "each original.\n"
            f"Return exactly {len(items)} entries, one per number, with the same index.\n"
            "Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._translation_extras(options)}"
            "\nTexts to translate:\n" + "\n".join(lines)
        )

    def summary_prompt(
        self,
        text: str,
        max_words: int,
        language: str,
        options: SummaryOptions | None = None,
    ) -> str:
        """Return a prompt summarizing `text` in `language` within `max_words`."""

        options = options or SummaryOptions()
        envelope = _envelope_example(
            {
                "content": {"source": "original text", "target": "summary"},
                "metadata": {
                    "operation": "summarize",
                    "word_count": max_words,
                    "language": language,
                },
            }
        )
        return (
            "You are an assistant that writes summaries. Do not invent content; summarize "
            "the text below following these rules strictly:\n"
            f"1. Maximum length: {max_words} words\n"
            f"2. Language: {self._language(language)}\n"
            "3. Keep the essential information of the original.\n"
            "4. Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._summary_extras(options)}"
            "\nText to summarize:\n"
            f"{text}"
        )

    def summary_translation_prompt(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        max_words: int,
        options: SummaryOptions | None = None,
    ) -> str:
        """Return a prompt that summarizes and translates in a single call."""

        options = options or SummaryOptions()
        envelope = _envelope_example(
            {
                "content": {"source": "original text", "target": "translated summary"},
                "metadata": {
                    "source": source_locale,
                    "target": target_locale,
                    "max_words": max_words,
                    "operation": "summarize_and_translate",
                },
            }
        )
        return (
            "You are an assistant that summarizes and translates at the same time.\n"
            f"1. Source language: {self._language(source_locale)}\n"
            f"2. Target language: {self._language(target_locale)}\n"
            f"3. Maximum length: {max_words} words\n"
            "4. Summarize the text AND write the summary in the target language.\n"
            "5. Answer with this JSON object only:\n"
            f"{envelope}\n"
            f"{self._summary_extras(options)}"
            "\nText to summarize and translate:\n"
            f"{text}"
        )

    def health_check_prompt(self) -> str:
        """Return a minimal prompt used to verify connectivity."""

        return "Reply with the single word: pong"

    @staticmethod
    def _translation_extras(options: TranslationOptions) -> str:
        """Render context, glossary and HTML instructions, if any."""

        sections: list[str] = []
        if options.context and options.context.strip():
            sections.append(f"CONTEXT: {options.context.strip()}")
        glossary = options.glossary
        if isinstance(glossary, Mapping) and glossary:
            terms = ", ".join(f"{term} -> {value}" for term, value in glossary.items())
            sections.append(f"GLOSSARY (apply strictly): {terms}")
        elif isinstance(glossary, str) and glossary.strip():
            sections.append(f"GLOSSARY: {glossary.strip()}")
        if options.preserve_html:
            sections.append(
                "IMPORTANT: Preserve every HTML element (tags, attributes, structure). "
                "Translate only the text content inside the tags."
            )
        if not sections:
            return ""
        return "\n" + "\n".join(sections) + "\n"

    @staticmethod
    def _summary_extras(options: SummaryOptions) -> str:
        """Render style and context instructions, if any."""

        sections: list[str] = []
        if options.context and options.context.strip():
            sections.append(f"CONTEXT: {options.context.strip()}")
        if options.style:
            instruction = _STYLE_INSTRUCTIONS.get(options.style.strip().lower())
            sections.append(instruction or f"STYLE: {options.style.strip()}")
        if not sections:
            return ""
        return "\n" + "\n".join(sections) + "\n"
