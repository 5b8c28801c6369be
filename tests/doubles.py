"""Deterministic test doubles shared across unit and integration tests."""

from __future__ import annotations

import json
from typing import Any, Callable, Mapping, Sequence

from linguaflow.llm.prompts import PromptLibrary
from linguaflow.llm.response_parser import ResponseParser
from linguaflow.models.datatypes import BatchItem, TranslationOptions


class FakeClock:
    """Manually advanced monotonic clock whose `sleep` advances time."""

    def __init__(self, start: float = 0.0) -> None:
        """Initialize fake time and the recorded sleep list."""

        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        """Return the current fake time."""

        return self.now

    def sleep(self, seconds: float) -> None:
        """Record the requested wait and advance fake time."""

        self.sleeps.append(seconds)
        self.now += seconds


def envelope(target: str, source: str = "original", **metadata: object) -> str:
    """Return a translation-shaped JSON envelope wrapped in model chatter."""

    payload = {"content": {"source": source, "target": target}, "metadata": metadata}
    return f"Here is the result:\n```json\n{json.dumps(payload, ensure_ascii=False)}\n```"


def batch_envelope(translations: Sequence[str], indices: Sequence[int] | None = None) -> str:
    """Return a batch JSON envelope with 1-based indices."""

    positions = list(indices) if indices is not None else list(range(1, len(translations) + 1))
    entries = [
        {"index": index, "source": f"src {index}", "target": text}
        for index, text in zip(positions, translations)
    ]
    return json.dumps({"translations": entries, "metadata": {"count": len(entries)}})


class ScriptedCompletionClient:
    """Completion client double replaying scripted replies in order.

    Each scripted entry is either a raw reply string or an exception to raise.
    Batch replies are index -> text mappings or exceptions.
    """

    def __init__(
        self,
        replies: Sequence[str | Exception] = (),
        batch_replies: Sequence[Mapping[int, str] | Exception] = (),
    ) -> None:
        """Initialize scripted replies and call recording."""

        self.replies = list(replies)
        self.batch_replies = list(batch_replies)
        self.prompts = PromptLibrary()
        self.parser = ResponseParser()
        self.complete_calls: list[dict[str, object]] = []
        self.batch_calls: list[list[BatchItem]] = []

    def complete(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        context: Mapping[str, object] | None = None,
    ) -> str:
        """Record the call and return or raise the next scripted reply."""

        self.complete_calls.append(
            {
                "prompt": prompt,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "context": dict(context or {}),
            }
        )
        if not self.replies:
            raise AssertionError("ScriptedCompletionClient ran out of replies.")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def translate_batch(
        self,
        items: Sequence[BatchItem],
        batch_size: int,
        options: TranslationOptions | None = None,
        *,
        run_chunk: Callable[[Callable[[], Any]], Any] | None = None,
    ) -> dict[int, str]:
        """Replay the next scripted batch reply, through `run_chunk` when given.

        Every attempt is recorded in `batch_calls`, so retries show up there.
        """

        _ = (batch_size, options)

        def _attempt() -> Mapping[int, str]:
            self.batch_calls.append(list(items))
            if not self.batch_replies:
                raise AssertionError("ScriptedCompletionClient ran out of batch replies.")
            reply = self.batch_replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply

        return dict(run_chunk(_attempt) if run_chunk is not None else _attempt())


class InMemoryCredentialStore:
    """Simple per-provider in-memory credential store used for CLI tests."""

    def __init__(self, initial_keys: Mapping[str, str] | None = None) -> None:
        """Initialize the store with optional pre-seeded keys by provider."""

        self.keys: dict[str, str] = dict(initial_keys or {})
        self.lookups: list[str] = []

    def is_available(self) -> bool:
        """Return availability flag expected by the CLI status command."""

        return True

    def get_api_key(self, provider: str) -> str | None:
        """Return the key stored for `provider` and record the lookup."""

        self.lookups.append(provider)
        return self.keys.get(provider)

    def set_api_key(self, provider: str, api_key: str) -> None:
        """Persist a normalized API key value."""

        self.keys[provider] = api_key.strip()

    def clear_api_key(self, provider: str) -> bool:
        """Clear the provider's key and return whether one existed."""

        return self.keys.pop(provider, None) is not None

    def stored_providers(self) -> tuple[str, ...]:
        """Return providers with a stored key."""

        return tuple(sorted(self.keys))
