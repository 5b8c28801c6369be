"""Domain exceptions for translation and summarization diagnostics.

Responsibilities:
- Define one exception type per failure class so callers can branch on kind.
- Carry structured fields (status code, raw response, locale, suggested wait).

Key types:
- `ApiError` and its `AuthenticationError` / `RateLimitError` subclasses raised
  at the transport boundary.
- `InvalidResponseError`, `BatchMismatchError`, `EmptyTranslationError` and
  `EmptySummaryError` raised while parsing model output.
- `UnsupportedLanguageError`, `InputValidationError` and `InputLimitError`
  raised before any network call.
"""

from __future__ import annotations

from typing import Mapping


class LinguaflowError(RuntimeError):
    """Base class for every error raised by this package."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        """Initialize an error with an optional user-facing hint."""

        super().__init__(message)
        self.hint = hint


class ConfigurationError(LinguaflowError):
    """Raised when credentials or endpoint settings are missing or invalid."""


class ApiError(LinguaflowError):
    """Raised when the completion endpoint fails at the transport or HTTP level."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response: str | None = None,
        hint: str | None = None,
    ) -> None:
        """Initialize an API error with optional HTTP status and raw body snippet."""

        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.response = response


class AuthenticationError(ApiError):
    """Raised on HTTP 401/403 responses. Never retried."""

    def __init__(
        self,
        message: str = "Invalid API key",
        *,
        status_code: int | None = 401,
        response: str | None = None,
    ) -> None:
        super().__init__(
            message,
            status_code=status_code,
            response=response,
            hint="Check the configured API key.",
        )


class RateLimitError(ApiError):
    """Raised on HTTP 429 responses.

    `retry_after` holds the upstream `Retry-After` suggestion in seconds when
    the endpoint sent one.
    """

    def __init__(
        self,
        message: str = "API rate limit exceeded",
        *,
        status_code: int | None = 429,
        response: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code, response=response)
        self.retry_after = retry_after


class InvalidResponseError(LinguaflowError):
    """Raised when model output holds no parseable structure."""

    def __init__(self, message: str, *, raw_response: str | None = None) -> None:
        super().__init__(message)
        self.raw_response = raw_response


class BatchMismatchError(InvalidResponseError):
    """Raised when a combined batch response does not cover every requested item.

    `partial` maps the indices that were recovered to their text so callers can
    fall back for the missing ones only.
    """

    def __init__(
        self,
        message: str,
        *,
        expected_count: int,
        partial: Mapping[int, str] | None = None,
        raw_response: str | None = None,
    ) -> None:
        super().__init__(message, raw_response=raw_response)
        self.expected_count = expected_count
        self.partial = dict(partial or {})

    @property
    def missing_indices(self) -> list[int]:
        """Return zero-based indices absent from the recovered mapping."""

        return [index for index in range(self.expected_count) if index not in self.partial]


class EmptyTranslationError(LinguaflowError):
    """Raised when a response parses but carries no translated text."""

    def __init__(self, message: str = "Empty translation received from API") -> None:
        super().__init__(message)


class EmptySummaryError(EmptyTranslationError):
    """Raised when a response parses but carries no summary text."""

    def __init__(self, message: str = "Empty summary received from API") -> None:
        super().__init__(message)


class UnsupportedLanguageError(LinguaflowError):
    """Raised when a locale code is not in the supported locale table."""

    def __init__(self, language: str, suggestions: list[str] | None = None) -> None:
        self.language = language
        self.suggestions = list(suggestions or [])
        hint = None
        if self.suggestions:
            hint = f"Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(f"Unsupported language: {language}", hint=hint)


class InputValidationError(LinguaflowError, ValueError):
    """Raised when caller input is rejected before any network call."""


class InputLimitError(InputValidationError):
    """Raised when text length or batch size exceeds the configured limits."""

    def __init__(self, message: str, *, limit: int, actual: int) -> None:
        super().__init__(message)
        self.limit = limit
        self.actual = actual
