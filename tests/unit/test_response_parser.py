"""Unit tests for defensive JSON envelope extraction."""

from __future__ import annotations

import json

import pytest

from linguaflow.errors import (
    BatchMismatchError,
    EmptySummaryError,
    EmptyTranslationError,
    InvalidResponseError,
)
from linguaflow.llm.response_parser import ResponseParser, length_ratio_confidence
from tests.doubles import batch_envelope


@pytest.fixture
def parser() -> ResponseParser:
    """Provide a fresh parser."""

    return ResponseParser()


def test_translation_envelope_inside_prose_and_fence(parser: ResponseParser) -> None:
    """A fenced envelope surrounded by chatter should parse with its metadata."""

    raw = (
        "Sure! Here you go:\n```json\n"
        '{"content": {"source": "Hello", "target": "Bonjour"}, '
        '"metadata": {"source": "en", "target": "fr"}}\n'
        "```\nLet me know if you need anything else."
    )

    parsed = parser.parse_translation_response(raw)

    assert parsed.target == "Bonjour"
    assert parsed.source == "Hello"
    assert parsed.metadata == {"source": "en", "target": "fr"}


@pytest.mark.parametrize(
    "raw",
    [
        '{"target": "Hola"}',
        '{"translation": {"target": "Hola"}}',
        '{"content": {"translated": "Hola"}}',
        '   \n{"translated": "Hola"}\n  ',
    ],
)
def test_translation_accepts_alternate_field_layouts(parser: ResponseParser, raw: str) -> None:
    """Known alternate envelope shapes should all yield the target text."""

    assert parser.parse_translation_response(raw).target == "Hola"


def test_translation_prefers_object_with_target_over_first_object(
    parser: ResponseParser,
) -> None:
    """A leading unrelated object should not shadow the real envelope."""

    raw = 'Notes: {"note": "draft"} and the answer {"content": {"target": "Ciao"}}'

    assert parser.parse_translation_response(raw).target == "Ciao"


def test_translation_braces_inside_strings_do_not_break_scanning(
    parser: ResponseParser,
) -> None:
    """Brackets inside JSON strings should not end the balanced scan early."""

    raw = 'Result -> {"content": {"source": "a } b", "target": "x { y \\" z"}} done'

    assert parser.parse_translation_response(raw).target == 'x { y " z'


def test_translation_repairs_line_continuations_and_trailing_commas(
    parser: ResponseParser,
) -> None:
    """Backslash line continuations and trailing commas should be repaired."""

    raw = '{"content": {"source": "Hi", "target": "Salut \\\n  tout le monde",},}'

    assert parser.parse_translation_response(raw).target == "Salut tout le monde"


def test_translation_tolerates_raw_newlines_in_strings(parser: ResponseParser) -> None:
    """Unescaped newlines inside string values should still decode."""

    raw = '{"content": {"target": "ligne un\nligne deux"}}'

    assert parser.parse_translation_response(raw).target == "ligne un\nligne deux"


@pytest.mark.parametrize("raw", [None, "", "   ", "I am not JSON at all."])
def test_translation_without_json_raises_invalid_response(
    parser: ResponseParser, raw: str | None
) -> None:
    """Blank or structure-free output should raise `InvalidResponseError`."""

    with pytest.raises(InvalidResponseError):
        parser.parse_translation_response(raw)


@pytest.mark.parametrize(
    "raw",
    ['{"content": {"source": "Hello", "target": ""}}', '{"content": {"source": "Hello"}}'],
)
def test_translation_without_target_raises_empty_translation(
    parser: ResponseParser, raw: str
) -> None:
    """An envelope lacking non-blank target text should raise `EmptyTranslationError`."""

    with pytest.raises(EmptyTranslationError):
        parser.parse_translation_response(raw)


def test_oversized_content_is_rejected(parser: ResponseParser) -> None:
    """Content beyond the size cap should be rejected before scanning."""

    parser.MAX_CONTENT_CHARS = 50
    with pytest.raises(InvalidResponseError, match="too large"):
        parser.parse_translation_response('{"target": "' + "x" * 100 + '"}')


def test_raw_snippet_is_redacted(parser: ResponseParser) -> None:
    """Diagnostic snippets should not leak credential-like tokens."""

    with pytest.raises(InvalidResponseError) as exc_info:
        parser.parse_translation_response("no json here, key sk-abcdefghijklmnopq")

    assert exc_info.value.raw_response is not None
    assert "sk-abcdefghijklmnopq" not in exc_info.value.raw_response


def test_summary_envelope_and_empty_summary(parser: ResponseParser) -> None:
    """Summary parsing should read `target`/`summary` and reject empty envelopes."""

    assert parser.parse_summary_response('{"summary": "Short."}').summary == "Short."
    assert (
        parser.parse_summary_response('{"content": {"target": " Résumé. "}}').summary == "Résumé."
    )
    with pytest.raises(EmptySummaryError):
        parser.parse_summary_response('{"content": {"source": "long text"}}')


def test_batch_response_with_one_based_indices(parser: ResponseParser) -> None:
    """Batch entries should map 1-based indices to zero-based positions."""

    raw = json.dumps(
        {
            "translations": [
                {"index": 2, "target": "deux"},
                {"index": 1, "target": "un"},
            ]
        }
    )

    assert parser.parse_batch_response(raw, 2) == {0: "un", 1: "deux"}


def test_batch_response_out_of_order_inside_prose(parser: ResponseParser) -> None:
    """Batch envelopes wrapped in chatter should be reordered by their indices."""

    raw = f"Voici les traductions :\n{batch_envelope(['trois', 'un', 'deux'], indices=[3, 1, 2])}\nFin."

    assert parser.parse_batch_response(raw, 3) == {0: "un", 1: "deux", 2: "trois"}


def test_batch_response_as_bare_array_and_numbered_object(parser: ResponseParser) -> None:
    """Bare arrays and objects keyed by item number should both be accepted."""

    assert parser.parse_batch_response('["uno", "dos"]', 2) == {0: "uno", 1: "dos"}
    assert parser.parse_batch_response('{"1": "eins", "2": "zwei"}', 2) == {0: "eins", 1: "zwei"}


def test_batch_response_short_answer_raises_mismatch_with_partial(
    parser: ResponseParser,
) -> None:
    """Missing entries should raise `BatchMismatchError` carrying recovered items."""

    raw = 'Done:\n{"translations": [{"index": 1, "target": "un"}, {"index": 3, "target": "trois"}]}'

    with pytest.raises(BatchMismatchError) as exc_info:
        parser.parse_batch_response(raw, 3)

    assert exc_info.value.partial == {0: "un", 2: "trois"}
    assert exc_info.value.missing_indices == [1]


def test_batch_response_ignores_out_of_range_and_duplicate_indices(
    parser: ResponseParser,
) -> None:
    """Indices outside the batch or repeated should not override valid entries."""

    raw = json.dumps(
        {
            "translations": [
                {"index": 1, "target": "un"},
                {"index": 1, "target": "encore"},
                {"index": 9, "target": "neuf"},
                {"index": 2, "target": "deux"},
            ]
        }
    )

    assert parser.parse_batch_response(raw, 2) == {0: "un", 1: "deux"}


def test_batch_response_without_structure_raises_invalid(parser: ResponseParser) -> None:
    """Output with no batch structure should raise `InvalidResponseError`."""

    with pytest.raises(InvalidResponseError) as exc_info:
        parser.parse_batch_response('{"note": "nothing"}', 2)

    assert not isinstance(exc_info.value, BatchMismatchError)


def test_quality_check_response_uses_reported_confidence(parser: ResponseParser) -> None:
    """A numeric confidence in `[0, 1]` from the model should be kept as-is."""

    raw = json.dumps(
        {
            "content": {"source": "Hello world", "target": " Bonjour le monde "},
            "quality_check": {"confidence": 0.93, "meaning_preserved": True, "issues": []},
        }
    )

    checked = parser.parse_quality_check_response(raw, "Hello world", "en", "fr")

    assert checked.translation == "Bonjour le monde"
    assert checked.confidence == 0.93
    assert checked.quality_check == {"confidence": 0.93, "meaning_preserved": True, "issues": []}


@pytest.mark.parametrize(
    "quality",
    [
        {"quality_check": {"confidence": "high"}},
        {"metadata": {"quality_check": {"confidence": 1.5}}},
        {},
    ],
)
def test_quality_check_response_falls_back_to_length_ratio(
    parser: ResponseParser, quality: dict[str, object]
) -> None:
    """Missing or out-of-range confidences should be derived from the length ratio."""

    raw = json.dumps({"content": {"target": "b" * 22}, **quality})

    checked = parser.parse_quality_check_response(raw, "a" * 20, "en", "fr")

    assert checked.translation == "b" * 22
    assert checked.confidence == 0.8


def test_quality_check_response_without_target_raises_empty(parser: ResponseParser) -> None:
    """An assessment with no translation should raise `EmptyTranslationError`."""

    with pytest.raises(EmptyTranslationError):
        parser.parse_quality_check_response(
            '{"quality_check": {"confidence": 0.9}}', "Hello", "en", "fr"
        )


@pytest.mark.parametrize(
    ("original", "translated", "source", "target", "expected"),
    [
        ("a" * 20, "b" * 22, "en", "fr", 0.8),
        ("a" * 20, "b" * 40, "en", "fr", 0.6),
        ("a" * 20, "b" * 40, "de", "it", 0.8),
        ("abcd", "abcd", "en", "fr", 0.6),
        ("abc", "abcd", "en", "fr", 0.4),
        ("", "abcd", "en", "fr", 0.1),
        ("a" * 20, "   ", "en", "fr", 0.0),
    ],
)
def test_length_ratio_confidence(
    original: str, translated: str, source: str, target: str, expected: float
) -> None:
    """Scores follow the pair's expected length range, with short originals penalized."""

    assert length_ratio_confidence(original, translated, source, target) == expected
