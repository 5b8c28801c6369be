"""Centralized input validation for every public operation.

All size limits and argument checks live here so that every entry point raises
the same typed errors before any prompt is built or request is sent.
"""

from __future__ import annotations

from typing import Sequence

from .errors import InputLimitError, InputValidationError
from .locales import LocaleTable, default_locale_table


class InputValidator:
    """Validate texts, batches, locales and length bounds."""

    def __init__(
        self,
        *,
        max_text_length: int = 50_000,
        max_batch_items: int = 20,
        locales: LocaleTable | None = None,
    ) -> None:
        self.max_text_length = max_text_length
        self.max_batch_items = max_batch_items
        self.locales = locales if locales is not None else default_locale_table

    def text(self, text: object, field_name: str = "text") -> str:
        """Return the text unchanged, or `""` when it is blank.

        Raises:
            InputValidationError: If the value is `None` or not a string.
            InputLimitError: If the text exceeds `max_text_length`.
        """

        if text is None:
            raise InputValidationError(f"`{field_name}` cannot be None.")
        if not isinstance(text, str):
            raise InputValidationError(f"`{field_name}` must be a string.")
        if not text.strip():
            return ""
        if len(text) > self.max_text_length:
            raise InputLimitError(
                f"`{field_name}` is too long ({len(text)} chars, max {self.max_text_length}).",
                limit=self.max_text_length,
                actual=len(text),
            )
        return text

    def batch(self, texts: object) -> list[str]:
        """Validate a batch of texts and return it as a list.

        Raises:
            InputValidationError: If the batch is not a non-empty sequence of strings.
            InputLimitError: If the batch or any member exceeds the limits.
        """

        if texts is None or isinstance(texts, str) or not isinstance(texts, Sequence):
            raise InputValidationError("`texts` must be a list of strings.")
        if not texts:
            raise InputValidationError("`texts` cannot be empty.")
        if len(texts) > self.max_batch_items:
            raise InputLimitError(
                f"Batch too large ({len(texts)} items, max {self.max_batch_items}).",
                limit=self.max_batch_items,
                actual=len(texts),
            )
        return [self.text(item, field_name=f"texts[{index}]") for index, item in enumerate(texts)]

    def locale(self, locale: object, field_name: str = "locale") -> str:
        """Return a normalized supported locale code.

        Raises:
            InputValidationError: If the locale is missing or blank.
            UnsupportedLanguageError: If the locale is not supported.
        """

        if locale is None or not str(locale).strip():
            raise InputValidationError(f"`{field_name}` cannot be empty.")
        return self.locales.validate(locale)

    def language(self, language: object, field_name: str = "language") -> str:
        """Return the locale code for a code or a language name (`French`, `español`).

        Raises:
            InputValidationError: If the value is missing or blank.
            UnsupportedLanguageError: If it maps to no supported locale.
        """

        if language is None or not str(language).strip():
            raise InputValidationError(f"`{field_name}` cannot be empty.")
        return self.locales.validate(self.locales.language_to_locale(str(language)))

    def locales_list(
        self,
        locales: object,
        field_name: str = "locales",
        *,
        accept_names: bool = False,
    ) -> list[str]:
        """Validate a non-empty list of locales, dropping duplicates in order.

        With `accept_names`, language names are resolved as in `language()`.
        """

        if isinstance(locales, str):
            locales = [locales]
        if locales is None or not isinstance(locales, Sequence) or not locales:
            raise InputValidationError(f"`{field_name}` cannot be empty.")
        normalized: list[str] = []
        for item in locales:
            code = self.language(item, field_name) if accept_names else self.locale(item, field_name)
            if code not in normalized:
                normalized.append(code)
        return normalized

    @staticmethod
    def max_words(value: object, field_name: str = "max_words") -> int:
        """Return a positive integer word bound."""

        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            raise InputValidationError(f"`{field_name}` must be a positive integer.")
        return value

    def tiered_bounds(self, short: object, medium: object, long: object) -> tuple[int, int, int]:
        """Validate strictly increasing summary lengths."""

        short_words = self.max_words(short, "short")
        medium_words = self.max_words(medium, "medium")
        long_words = self.max_words(long, "long")
        if medium_words <= short_words:
            raise InputValidationError("Medium length must be greater than short.")
        if long_words <= medium_words:
            raise InputValidationError("Long length must be greater than medium.")
        return short_words, medium_words, long_words
