"""Integration-test fixtures for deterministic completion behavior."""

from __future__ import annotations

import json
from typing import Mapping

import pytest

from linguaflow.llm.client import CompletionClient
from tests.doubles import InMemoryCredentialStore


def _mocked_reply(prompt: str, context: Mapping[str, object]) -> str:
    """Return a deterministic envelope shaped by the operation in `context`."""

    operation = context.get("operation")
    last_line = prompt.rsplit("\n", 1)[-1]
    if operation == "batch":
        size = int(str(context.get("size", 0)))
        entries = [{"index": index, "target": f"batch-{index}"} for index in range(1, size + 1)]
        return json.dumps({"translations": entries})
    if operation in {"translate", "translate_auto"}:
        target = context.get("target")
        return "Result:\n" + json.dumps({"content": {"source": last_line, "target": f"[{target}] {last_line}"}})
    if operation == "summarize":
        summary = f"summary-{context.get('language')}-{context.get('max_words')}"
        return json.dumps({"content": {"target": summary}})
    if operation == "summarize_and_translate":
        return json.dumps({"content": {"target": f"summary-{context.get('target')}"}})
    return "pong"


@pytest.fixture
def credential_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryCredentialStore:
    """Replace secure storage with an in-memory store for CLI commands."""

    store = InMemoryCredentialStore()
    monkeypatch.setattr("linguaflow.cli.create_credential_store", lambda: store)
    monkeypatch.setattr("linguaflow.cli_runtime.create_credential_store", lambda: store)
    return store


@pytest.fixture(autouse=True)
def completion_calls(
    monkeypatch: pytest.MonkeyPatch, credential_store: InMemoryCredentialStore
) -> list[dict[str, object]]:
    """Mock completion calls and pacing sleeps to avoid network and wall-clock waits."""

    del credential_store
    calls: list[dict[str, object]] = []

    def _mock_complete(
        self: CompletionClient,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        context: Mapping[str, object] | None = None,
    ) -> str:
        """Require a key like the real client, record the call and reply deterministically."""

        self._require_api_key()
        calls.append({"prompt": prompt, "max_tokens": max_tokens, "context": dict(context or {})})
        return _mocked_reply(prompt, context or {})

    monkeypatch.setattr(CompletionClient, "complete", _mock_complete)
    monkeypatch.setattr("linguaflow.llm.translator.time.sleep", lambda _seconds: None)
    return calls
