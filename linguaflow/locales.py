"""Supported locale table and locale normalization.

Responsibilities:
- Normalize caller locale codes (`en-US`, `pt_BR`, ` FR `) to two-letter codes.
- Validate codes against the supported table and suggest close matches.
- Map codes to display names used in prompts.
"""

from __future__ import annotations

from typing import Mapping

from .errors import UnsupportedLanguageError


SUPPORTED_LANGUAGES: Mapping[str, str] = {
    "fr": "français",
    "en": "english",
    "es": "español",
    "pt": "português",
    "de": "deutsch",
    "it": "italiano",
    "nl": "nederlands",
    "ru": "русский",
    "mg": "malagasy",
    "ja": "日本語",
    "ko": "한국어",
    "zh": "中文",
    "ar": "العربية",
}

_ENGLISH_NAMES: Mapping[str, str] = {
    "french": "fr",
    "spanish": "es",
    "portuguese": "pt",
    "german": "de",
    "italian": "it",
    "dutch": "nl",
    "russian": "ru",
    "japanese": "ja",
    "korean": "ko",
    "chinese": "zh",
    "arabic": "ar",
}


def levenshtein_distance(source: str, target: str) -> int:
    """Return the edit distance between two strings."""

    if source == target:
        return 0
    if not source:
        return len(target)
    if not target:
        return len(source)

    previous = list(range(len(target) + 1))
    for row, source_char in enumerate(source, start=1):
        current = [row]
        for column, target_char in enumerate(target, start=1):
            cost = 0 if source_char == target_char else 1
            current.append(
                min(previous[column] + 1, current[column - 1] + 1, previous[column - 1] + cost)
            )
        previous = current
    return previous[-1]


class LocaleTable:
    """Lookup and validation over a table of supported locale codes."""

    def __init__(self, languages: Mapping[str, str] | None = None) -> None:
        self.languages = dict(languages if languages is not None else SUPPORTED_LANGUAGES)

    @staticmethod
    def normalize(locale: object) -> str:
        """Lowercase a locale and drop region suffixes (`en-US` -> `en`)."""

        code = str(locale if locale is not None else "").strip().lower()
        return code.split("-")[0].split("_")[0]

    def is_supported(self, locale: object) -> bool:
        """Return whether the normalized locale is in the table."""

        return self.normalize(locale) in self.languages

    def validate(self, locale: object) -> str:
        """Return the normalized code or raise `UnsupportedLanguageError`."""

        normalized = self.normalize(locale)
        if normalized not in self.languages:
            raise UnsupportedLanguageError(
                normalized or str(locale),
                suggestions=self.suggestions(str(locale if locale is not None else "")),
            )
        return normalized

    def display_name(self, locale: object) -> str:
        """Return the native language name for a code, or the code itself."""

        code = self.normalize(locale)
        return self.languages.get(code, code)

    def language_to_locale(self, language: str) -> str:
        """Map a language name (`français`, `French`) to its code when known."""

        normalized = language.strip().lower()
        if normalized in self.languages:
            return normalized
        for code, name in self.languages.items():
            if name.lower() == normalized:
                return code
        if normalized in _ENGLISH_NAMES:
            return _ENGLISH_NAMES[normalized]
        for code, name in self.languages.items():
            lowered = name.lower()
            if lowered in normalized or normalized in lowered:
                return code
        return normalized

    def supported_locales(self) -> list[str]:
        """Return supported codes in table order."""

        return list(self.languages)

    def supported_languages_list(self) -> str:
        """Return a `code (name)` listing of every supported locale."""

        return ", ".join(f"{code} ({name})" for code, name in self.languages.items())

    def suggestions(self, locale: str, limit: int = 3) -> list[str]:
        """Suggest supported codes close to an unknown locale."""

        candidate = locale.strip().lower()
        if not candidate:
            return []
        matches = [
            code
            for code in self.languages
            if code.startswith(candidate) or candidate.startswith(code)
        ]
        if not matches:
            matches = [
                code for code in self.languages if levenshtein_distance(candidate, code) <= 1
            ]
        return matches[:limit]


default_locale_table = LocaleTable()
