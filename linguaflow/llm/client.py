"""HTTP client for the upstream chat-completions endpoint.

Responsibilities:
- Send one chat-completions request per call, after acquiring rate-limit budget.
- Classify transport and HTTP failures into typed errors exactly once.
- Partition batch translations into combined prompts and merge per-item results.

The client never retries and never decides what to log beyond request/response
debug lines; retry policy belongs to the orchestrators.
"""

from __future__ import annotations

import json
import re
import socket
from typing import Any, Callable, Mapping, Sequence

import requests

from ..errors import (
    ApiError,
    AuthenticationError,
    BatchMismatchError,
    ConfigurationError,
    InvalidResponseError,
    RateLimitError,
)
from ..models.datatypes import BatchItem, TranslationOptions
from ..telemetry.logger import RunLogger, redact_sensitive
from ..version import __version__
from .prompts import PromptLibrary
from .rate_limiter import SlidingWindowRateLimiter
from .response_parser import ResponseParser

ChunkRunner = Callable[[Callable[[], str]], str]


class CompletionClient:
    """Minimal requests-based chat-completions client with local rate limiting."""

    _MAX_PROVIDER_MESSAGE_CHARS = 180
    _MAX_RAW_RESPONSE_CHARS = 500

    def __init__(
        self,
        *,
        api_key: str | None,
        model: str,
        base_url: str = "https://api.mistral.ai/v1",
        default_max_tokens: int | None = None,
        default_temperature: float | None = None,
        timeout_seconds: float = 60.0,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        prompts: PromptLibrary | None = None,
        parser: ResponseParser | None = None,
        run_logger: RunLogger | None = None,
    ) -> None:
        """Initialize endpoint settings, rate limiter and batch collaborators."""

        self.api_key = api_key.strip() if isinstance(api_key, str) else ""
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.default_max_tokens = default_max_tokens
        self.default_temperature = default_temperature
        self.timeout_seconds = timeout_seconds
        self.rate_limiter = rate_limiter if rate_limiter is not None else SlidingWindowRateLimiter()
        self.prompts = prompts if prompts is not None else PromptLibrary()
        self.parser = parser if parser is not None else ResponseParser()
        self.logger = run_logger if run_logger is not None else RunLogger()

    def complete(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        context: Mapping[str, object] | None = None,
    ) -> str:
        """Return the first assistant message text for `prompt`.

        Raises:
            ConfigurationError: If no API key is configured.
            AuthenticationError: On HTTP 401/403.
            RateLimitError: On HTTP 429.
            ApiError: On other HTTP or transport failures.
            InvalidResponseError: If the response envelope is malformed.
        """

        self._require_api_key()
        self.rate_limiter.acquire()

        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        resolved_max_tokens = max_tokens if max_tokens is not None else self.default_max_tokens
        resolved_temperature = temperature if temperature is not None else self.default_temperature
        if resolved_max_tokens is not None:
            payload["max_tokens"] = resolved_max_tokens
        if resolved_temperature is not None:
            payload["temperature"] = resolved_temperature

        self.logger.debug("request_sent", model=self.model, **dict(context or {}))
        raw_payload = self._post_json(endpoint_path="/chat/completions", payload=payload)
        return self._extract_message_text(raw_payload)

    def translate_batch(
        self,
        items: Sequence[BatchItem],
        batch_size: int,
        options: TranslationOptions | None = None,
        *,
        run_chunk: ChunkRunner | None = None,
    ) -> dict[int, str]:
        """Translate `items` with one combined prompt per chunk of `batch_size`.

        `run_chunk` wraps each chunk request, so a caller can retry a single
        chunk without re-sending the chunks that already succeeded.

        Returns:
            Zero-based index -> translated text for every item.

        Raises:
            BatchMismatchError: If any chunk did not cover all of its items;
                `partial` holds every index recovered across all chunks.
        """

        if batch_size <= 0:
            raise ValueError("`batch_size` must be a positive integer.")
        options = options or TranslationOptions()

        results: dict[int, str] = {}
        mismatched_chunks = 0
        for offset in range(0, len(items), batch_size):
            chunk = list(items[offset : offset + batch_size])
            prompt = self.prompts.batch_translation_prompt(chunk, options)

            def _request() -> str:
                return self.complete(
                    prompt,
                    max_tokens=options.max_tokens,
                    temperature=options.temperature,
                    context={"operation": "batch", "offset": offset, "size": len(chunk)},
                )

            raw = run_chunk(_request) if run_chunk is not None else _request()
            try:
                chunk_results = self.parser.parse_batch_response(raw, len(chunk))
            except BatchMismatchError as exc:
                chunk_results = exc.partial
                mismatched_chunks += 1
            except InvalidResponseError:
                chunk_results = {}
                mismatched_chunks += 1
            for local_index, text in chunk_results.items():
                results[offset + local_index] = text

        if mismatched_chunks:
            raise BatchMismatchError(
                f"{mismatched_chunks} batch chunk(s) returned an incomplete item set.",
                expected_count=len(items),
                partial=results,
            )
        return results

    def _require_api_key(self) -> None:
        """Require API key presence before issuing requests."""

        if not self.api_key:
            raise ConfigurationError(
                "API key is required.",
                hint="Set `LINGUAFLOW_API_KEY`, pass `--api-key`, or store one with "
                "`linguaflow credentials set`.",
            )

    def _post_json(self, *, endpoint_path: str, payload: dict[str, Any]) -> str:
        """POST a JSON payload and return the decoded response body."""

        endpoint = f"{self.base_url}{endpoint_path}"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "User-Agent": f"linguaflow/{__version__}",
        }
        try:
            response = requests.post(
                endpoint,
                headers=headers,
                json=payload,
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            body = bytes(response.content).decode("utf-8", errors="replace")
        except requests.HTTPError as exc:
            raise self._http_error_to_api_error(exc) from exc
        except requests.RequestException as exc:
            if self._is_timeout(exc):
                detail = "Request timed out."
            else:
                detail = f"Request transport error: {self._short_message(str(exc))}"
            raise ApiError(detail) from exc
        except TimeoutError as exc:
            raise ApiError("Request timed out.") from exc

        self.logger.debug("response_received", status=getattr(response, "status_code", 200))
        return body

    @classmethod
    def _extract_message_text(cls, raw_payload: str) -> str:
        """Extract first assistant message text from a chat-completions JSON payload."""

        snippet = cls._raw_snippet(raw_payload)
        try:
            payload = json.loads(raw_payload)
        except json.JSONDecodeError as exc:
            raise InvalidResponseError(
                f"Invalid JSON in API response: {exc.msg}.",
                raw_response=snippet,
            ) from exc

        choices = payload.get("choices") if isinstance(payload, dict) else None
        if not isinstance(choices, list) or not choices:
            raise InvalidResponseError(
                "API response missing non-empty `choices` list.",
                raw_response=snippet,
            )

        first_choice = choices[0]
        message = first_choice.get("message") if isinstance(first_choice, dict) else None
        if not isinstance(message, dict):
            raise InvalidResponseError(
                "API response missing `choices[0].message` object.",
                raw_response=snippet,
            )

        text = cls._message_content_to_text(message.get("content"))
        if not text.strip():
            raise InvalidResponseError("No content in API response.", raw_response=snippet)
        return text

    @staticmethod
    def _message_content_to_text(content: Any) -> str:
        """Convert message content variants (string or text parts) into plain text."""

        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts: list[str] = []
            for item in content:
                if not isinstance(item, dict):
                    continue
                if item.get("type") == "text" and isinstance(item.get("text"), str):
                    parts.append(item["text"])
            return "".join(parts)
        return ""

    @staticmethod
    def _is_timeout(reason: object) -> bool:
        return isinstance(reason, TimeoutError | socket.timeout | requests.Timeout)

    @classmethod
    def _short_message(cls, text: str) -> str:
        """Normalize, redact and cap user-facing provider message length."""

        compact = " ".join(redact_sensitive(text).split())
        if len(compact) <= cls._MAX_PROVIDER_MESSAGE_CHARS:
            return compact
        return f"{compact[: cls._MAX_PROVIDER_MESSAGE_CHARS - 1]}..."

    @classmethod
    def _raw_snippet(cls, body: str) -> str:
        """Return a redacted, length-capped copy of a raw body."""

        return redact_sensitive(body[: cls._MAX_RAW_RESPONSE_CHARS])

    @classmethod
    def _extract_provider_message(cls, body: str) -> str:
        """Extract a concise provider-facing message from an error body."""

        if not body:
            return ""
        try:
            payload = json.loads(body)
        except json.JSONDecodeError:
            return cls._short_message(body)

        message: str | None = None
        if isinstance(payload, dict):
            error_payload = payload.get("error")
            if isinstance(error_payload, dict):
                value = error_payload.get("message")
                if isinstance(value, str) and value.strip():
                    message = value.strip()
            elif isinstance(payload.get("message"), str):
                message = payload["message"].strip()
        return cls._short_message(message or body)

    @staticmethod
    def _parse_retry_after(headers: Mapping[str, str] | None) -> float | None:
        """Parse a numeric `Retry-After` header into seconds."""

        if not headers:
            return None
        value = headers.get("Retry-After") or headers.get("retry-after")
        if value is None or not re.fullmatch(r"\s*\d+(\.\d+)?\s*", str(value)):
            return None
        return float(value)

    @classmethod
    def _http_error_to_api_error(cls, exc: requests.HTTPError) -> ApiError:
        """Convert an HTTP error into the matching typed error."""

        response = exc.response
        status_code = response.status_code if response is not None else 0
        body = ""
        if response is not None:
            body = bytes(response.content or b"").decode("utf-8", errors="replace").strip()
        provider_message = cls._extract_provider_message(body)
        raw = cls._raw_snippet(body) if body else None

        if status_code in {401, 403}:
            detail = f"Authentication failed (HTTP {status_code})"
            if provider_message:
                detail = f"{detail}: {provider_message}"
            return AuthenticationError(detail, status_code=status_code, response=raw)
        if status_code == 429:
            headers = getattr(response, "headers", None)
            return RateLimitError(
                f"API rate limit exceeded (HTTP 429)"
                + (f": {provider_message}" if provider_message else ""),
                response=raw,
                retry_after=cls._parse_retry_after(headers),
            )

        kind = "Server error" if status_code >= 500 else "Client error"
        detail = f"{kind} (HTTP {status_code})"
        if provider_message:
            detail = f"{detail}: {provider_message}"
        return ApiError(detail, status_code=status_code, response=raw)
