"""Unit tests for per-unit-recovery and analysis helpers."""

from __future__ import annotations

import pytest

from linguaflow.config import LinguaflowConfig
from linguaflow.errors import (
    ApiError,
    AuthenticationError,
    InputValidationError,
    UnsupportedLanguageError,
)
from linguaflow.helpers import (
    analyze_text_complexity,
    estimate_translation_cost,
    smart_summarize,
    suggest_summary_length,
    translate_batch_with_fallback,
    translate_multi_style,
    translate_to_multiple_with_fallback,
    translate_with_progress,
    validate_locale_with_suggestions,
)
from linguaflow.llm.summarizer import Summarizer
from linguaflow.llm.translator import Translator
from linguaflow.models.datatypes import (
    CostEstimate,
    LocaleCheck,
    SmartSummary,
    TextComplexity,
    TranslationOptions,
    UnitFailure,
)
from linguaflow.telemetry.logger import RunLogger
from tests.doubles import FakeClock, ScriptedCompletionClient, envelope


def _translator(
    client: ScriptedCompletionClient, clock: FakeClock, run_logger: RunLogger
) -> Translator:
    """Build a translator without retries so each scripted failure is terminal."""

    return Translator(
        client,  # type: ignore[arg-type]
        config=LinguaflowConfig(max_retries=0, pacing_delay_seconds=1.0),
        run_logger=run_logger,
        sleeper=clock.sleep,
        clock=clock,
    )


def test_batch_with_fallback_translates_individually_after_batch_failure(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """A failed combined request should fall back to per-item calls with inline failures."""

    client = ScriptedCompletionClient(
        replies=[envelope("un"), ApiError("Server error (HTTP 500)", status_code=500)],
        batch_replies=[ApiError("Server error (HTTP 503)", status_code=503)],
    )
    translator = _translator(client, fake_clock, run_logger)

    results = translate_batch_with_fallback(translator, ["one", "two"], "en", "fr")

    assert results[0] == "un"
    assert results[1] == UnitFailure(error_type="ApiError", message="Server error (HTTP 500)")
    assert fake_clock.sleeps == [1.0, 1.0]


def test_batch_with_fallback_uses_batch_result_when_it_succeeds(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """A successful batch should be returned as-is."""

    client = ScriptedCompletionClient(batch_replies=[{0: "un", 1: "deux"}])
    translator = _translator(client, fake_clock, run_logger)

    assert translate_batch_with_fallback(translator, ["one", "two"], "en", "fr") == {
        0: "un",
        1: "deux",
    }
    assert client.complete_calls == []


def test_batch_with_fallback_propagates_authentication_and_validation(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Authentication failures and invalid input should still raise."""

    client = ScriptedCompletionClient(batch_replies=[AuthenticationError()])
    translator = _translator(client, fake_clock, run_logger)

    with pytest.raises(AuthenticationError):
        translate_batch_with_fallback(translator, ["one"], "en", "fr")
    with pytest.raises(InputValidationError):
        translate_batch_with_fallback(translator, [], "en", "fr")
    with pytest.raises(UnsupportedLanguageError):
        translate_batch_with_fallback(translator, ["one"], "en", "xx")
    assert client.complete_calls == []


def test_multiple_with_fallback_keeps_every_target(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Every requested target should appear, failures recorded inline."""

    client = ScriptedCompletionClient(
        [
            envelope("Bonjour"),
            ApiError("Server error (HTTP 502)", status_code=502),
            envelope("Hallo"),
        ]
    )
    translator = _translator(client, fake_clock, run_logger)

    results = translate_to_multiple_with_fallback(translator, "Hello", "en", ["fr", "es", "de"])

    assert list(results) == ["fr", "es", "de"]
    assert results["fr"] == "Bonjour"
    assert isinstance(results["es"], UnitFailure)
    assert results["es"].error_type == "ApiError"
    assert results["de"] == "Hallo"
    assert fake_clock.sleeps == [1.0, 1.0]


def test_translate_with_progress_reports_each_item(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Progress should be reported after each keyed item, including failures."""

    client = ScriptedCompletionClient([envelope("Titre"), "garbage"])
    translator = _translator(client, fake_clock, run_logger)
    progress: list[tuple[int, int, object, object]] = []

    results = translate_with_progress(
        translator,
        {"title": "Title", "body": "Body"},
        "en",
        "fr",
        progress=lambda done, total, key, result: progress.append((done, total, key, result)),
    )

    assert results["title"] == "Titre"
    assert isinstance(results["body"], UnitFailure)
    assert results["body"].error_type == "InvalidResponseError"
    assert [entry[:3] for entry in progress] == [(1, 2, "title"), (2, 2, "body")]


def test_translate_with_progress_keys_sequences_by_position(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Sequence input should be keyed by position."""

    client = ScriptedCompletionClient([envelope("a"), envelope("b")])
    translator = _translator(client, fake_clock, run_logger)

    assert translate_with_progress(translator, ["x", "y"], "en", "fr") == {0: "a", 1: "b"}


def test_multiple_with_fallback_stops_on_authentication_error(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """An invalid key should abort instead of being retried for every remaining target."""

    client = ScriptedCompletionClient([envelope("Bonjour"), AuthenticationError("Invalid API key")])
    translator = _translator(client, fake_clock, run_logger)

    with pytest.raises(AuthenticationError):
        translate_to_multiple_with_fallback(translator, "Hello", "en", ["fr", "es", "de"])

    assert len(client.complete_calls) == 2


def test_translate_with_progress_stops_on_authentication_error(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Progress translation should also abort on authentication failures."""

    client = ScriptedCompletionClient([AuthenticationError("Invalid API key")])
    translator = _translator(client, fake_clock, run_logger)
    progress: list[object] = []

    with pytest.raises(AuthenticationError):
        translate_with_progress(
            translator, ["x", "y"], "en", "fr", progress=lambda *args: progress.append(args)
        )

    assert progress == []
    assert len(client.complete_calls) == 1


def test_multi_style_appends_style_to_context(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Each style should get its own paced call with the style in the context."""

    client = ScriptedCompletionClient([envelope("Bonjour"), envelope("Salut")])
    translator = _translator(client, fake_clock, run_logger)

    results = translate_multi_style(
        translator, "Hello", "en", "fr", options=TranslationOptions(context="greeting")
    )

    assert results == {"formal": "Bonjour", "casual": "Salut"}
    assert "CONTEXT: greeting (Style: formal)" in str(client.complete_calls[0]["prompt"])
    assert "CONTEXT: greeting (Style: casual)" in str(client.complete_calls[1]["prompt"])
    assert fake_clock.sleeps == [1.0]


def test_multi_style_records_failures_and_rejects_empty_styles(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """Per-style failures are inline; an empty style list is rejected up front."""

    client = ScriptedCompletionClient(["no json here"])
    translator = _translator(client, fake_clock, run_logger)

    results = translate_multi_style(translator, "Hello", "en", "fr", styles=["Technical"])

    assert isinstance(results["technical"], UnitFailure)
    assert "CONTEXT: Style: technical" in str(client.complete_calls[0]["prompt"])
    with pytest.raises(InputValidationError):
        translate_multi_style(translator, "Hello", "en", "fr", styles=[])
    assert len(client.complete_calls) == 1


def test_estimate_translation_cost_multiplies_by_targets() -> None:
    """Every text is priced once per target locale."""

    estimate = estimate_translation_cost(["Hello", "World!"], ["fr", "es", "de"])

    assert estimate == CostEstimate(
        characters=33, requests=6, rate_per_1k_chars=0.02, estimated_cost=0.0007
    )
    single = estimate_translation_cost("a" * 1000, rate_per_1k_chars=0.05)
    assert (single.characters, single.requests, single.estimated_cost) == (1000, 1, 0.05)
    with pytest.raises(InputValidationError):
        estimate_translation_cost("Hello", rate_per_1k_chars=-1)


def test_analyze_text_complexity_counts_structure() -> None:
    """Counts and the capped score should follow the text's words and sentences."""

    complexity = analyze_text_complexity("The cat sat. The dog ran!\n\nBirds fly high.")

    assert complexity == TextComplexity(
        word_count=9,
        sentence_count=3,
        paragraph_count=2,
        average_words_per_sentence=3.0,
        average_sentences_per_paragraph=1.5,
        complexity_score=42.7,
    )
    assert analyze_text_complexity("   ") == TextComplexity(0, 0, 0, 0.0, 0.0, 0.0)


@pytest.mark.parametrize(
    ("text", "max_words", "expected"),
    [
        ("word " * 80, 250, 40),
        ("word " * 300, 250, 100),
        ("word " * 1200, 250, 250),
        ("word " * 3000, 1000, 600),
        ("<p>one two</p>", 250, 1),
        ("", 250, 1),
    ],
)
def test_suggest_summary_length_scales_with_text(text: str, max_words: int, expected: int) -> None:
    """Longer texts are compressed harder, capped by `max_words` and never below 1."""

    assert suggest_summary_length(text, max_words) == expected


def test_smart_summarize_uses_suggested_length(
    fake_clock: FakeClock, run_logger: RunLogger
) -> None:
    """The summary request should carry the suggested word budget."""

    client = ScriptedCompletionClient([envelope("A short summary.")])
    summarizer = Summarizer(
        client,  # type: ignore[arg-type]
        config=LinguaflowConfig(max_retries=0),
        run_logger=run_logger,
        sleeper=fake_clock.sleep,
        clock=fake_clock,
    )

    result = smart_summarize(summarizer, "word " * 300, language="en")

    assert result == SmartSummary(
        summary="A short summary.", original_words=300, summary_words=100, compression_ratio=33.3
    )
    assert client.complete_calls[0]["context"]["max_words"] == 100


def test_validate_locale_with_suggestions_never_raises() -> None:
    """Known locales normalize; unknown ones report the error and close matches."""

    assert validate_locale_with_suggestions("fr-FR") == LocaleCheck(valid=True, locale="fr")

    check = validate_locale_with_suggestions("fx")
    assert check.valid is False
    assert check.error == "Unsupported language: fx"
    assert "fr" in check.suggestions
