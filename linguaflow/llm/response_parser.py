"""Defensive extraction of JSON envelopes from free-form model output.

Responsibilities:
- Locate JSON objects/arrays inside prose, code fences and whitespace noise by
  balanced-bracket scanning instead of trusting the whole body.
- Repair common model formatting slips (line continuations, raw newlines in
  strings, trailing commas) before giving up on a candidate.
- Validate fields strictly once a candidate decodes.

Key types:
- `ResponseParser`: stateless parser for translation, summary, batch and
  quality-check envelopes.
"""

from __future__ import annotations

import json
import re
from typing import Any, Iterator, Mapping

from ..errors import (
    BatchMismatchError,
    EmptySummaryError,
    EmptyTranslationError,
    InvalidResponseError,
)
from ..models.datatypes import ParsedSummary, ParsedTranslation, QualityCheckedTranslation
from ..telemetry.logger import redact_sensitive


_CODE_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)
_SPLIT_STRING_RE = re.compile(r'"\s*\\\r?\n\s*"')
_LINE_CONTINUATION_RE = re.compile(r"\\\s*\r?\n\s*")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_CLOSING = {"{": "}", "[": "]"}

_TARGET_PATHS: tuple[tuple[str, ...], ...] = (
    ("content", "target"),
    ("translation", "target"),
    ("target",),
    ("content", "translated"),
    ("translated",),
    ("content", "summary"),
    ("summary",),
)
_SOURCE_PATHS: tuple[tuple[str, ...], ...] = (
    ("content", "source"),
    ("translation", "source"),
    ("source",),
    ("content", "original"),
    ("original",),
)


_EXPECTED_LENGTH_RATIOS: Mapping[tuple[str, str], tuple[float, float]] = {
    ("fr", "en"): (0.8, 1.2),
    ("en", "fr"): (1.0, 1.3),
    ("es", "en"): (0.7, 1.1),
    ("en", "es"): (1.0, 1.4),
}
_DEFAULT_LENGTH_RATIO = (0.5, 2.0)


def length_ratio_confidence(
    original: str, translated: str, source_locale: str, target_locale: str
) -> float:
    """Score a translation in `[0, 1]` from its length relative to the original.

    Ratios inside the expected range for the pair score 0.8, others 0.6.
    Originals under ten characters lose 0.2 (never below 0.1); a blank
    translation scores 0.
    """

    if not translated.strip():
        return 0.0
    if not original:
        return 0.1
    low, high = _EXPECTED_LENGTH_RATIOS.get((source_locale, target_locale), _DEFAULT_LENGTH_RATIO)
    base = 0.8 if low <= len(translated) / len(original) <= high else 0.6
    if len(original) < 10:
        return round(max(base - 0.2, 0.1), 2)
    return base


def _dig(data: Mapping[str, Any], path: tuple[str, ...]) -> Any:
    """Follow a key path through nested mappings, returning `None` on any miss."""

    current: Any = data
    for key in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
    return current


def _first_text(data: Mapping[str, Any], paths: tuple[tuple[str, ...], ...]) -> str | None:
    """Return the first non-blank string found along `paths`."""

    for path in paths:
        value = _dig(data, path)
        if isinstance(value, str) and value.strip():
            return value
    return None


class ResponseParser:
    """Parse translation, summary and batch envelopes from raw model text."""

    MAX_CONTENT_CHARS = 1_000_000
    MAX_SCAN_CANDIDATES = 200
    _RAW_SNIPPET_CHARS = 500

    def parse_translation_response(self, raw: str | None) -> ParsedTranslation:
        """Return the translation envelope found in `raw`.

        Raises:
            InvalidResponseError: If no JSON object can be recovered.
            EmptyTranslationError: If an object parses but has no target text.
        """

        data = self._find_envelope(raw)
        target = _first_text(data, _TARGET_PATHS)
        if target is None:
            raise EmptyTranslationError()
        return ParsedTranslation(
            source=_first_text(data, _SOURCE_PATHS),
            target=target.strip(),
            metadata=self._metadata(data),
        )

    def parse_summary_response(self, raw: str | None) -> ParsedSummary:
        """Return the summary envelope found in `raw`.

        Raises:
            InvalidResponseError: If no JSON object can be recovered.
            EmptySummaryError: If an object parses but has no summary text.
        """

        data = self._find_envelope(raw)
        summary = _first_text(data, _TARGET_PATHS)
        if summary is None:
            raise EmptySummaryError()
        return ParsedSummary(
            source=_first_text(data, _SOURCE_PATHS),
            summary=summary.strip(),
            metadata=self._metadata(data),
        )

    def parse_batch_response(self, raw: str | None, expected_count: int) -> dict[int, str]:
        """Return a zero-based index -> text mapping for a combined batch response.

        Accepted shapes: `{"translations": [...]}`, a bare array, or an object
        keyed by item number. Entries carry a 1-based `index` or are taken in
        order.

        Raises:
            InvalidResponseError: If no batch structure can be recovered.
            BatchMismatchError: If the recovered items do not cover all
                `expected_count` indices; the partial mapping is attached.
        """

        text = self._checked_text(raw)
        entries: Any = None
        for value in self._iter_json_values(text):
            entries = self._batch_entries(value)
            if entries is not None:
                break
        if entries is None:
            raise InvalidResponseError(
                "No batch translations found in response.",
                raw_response=self._snippet(text),
            )

        results = self._index_entries(entries, expected_count)
        if len(results) != expected_count:
            raise BatchMismatchError(
                f"Batch response recovered {len(results)} of {expected_count} items.",
                expected_count=expected_count,
                partial=results,
                raw_response=self._snippet(text),
            )
        return results

    def parse_quality_check_response(
        self,
        raw: str | None,
        original: str,
        source_locale: str,
        target_locale: str,
    ) -> QualityCheckedTranslation:
        """Return a translation plus the quality assessment the model attached.

        The assessment is read from `quality_check` or `metadata.quality_check`.
        A numeric `confidence` within `[0, 1]` is used as-is; otherwise the
        score is derived with `length_ratio_confidence`.

        Raises:
            InvalidResponseError: If no JSON object can be recovered.
            EmptyTranslationError: If an object parses but has no target text.
        """

        data = self._find_envelope(raw)
        target = _first_text(data, _TARGET_PATHS)
        if target is None:
            raise EmptyTranslationError()
        translation = target.strip()
        metadata = self._metadata(data)
        quality = data.get("quality_check", metadata.get("quality_check"))
        quality_check = dict(quality) if isinstance(quality, Mapping) else {}

        reported = quality_check.get("confidence")
        if isinstance(reported, int | float) and not isinstance(reported, bool) and 0 <= reported <= 1:
            confidence = float(reported)
        else:
            confidence = length_ratio_confidence(original, translation, source_locale, target_locale)
        return QualityCheckedTranslation(
            translation=translation,
            confidence=confidence,
            quality_check=quality_check,
            metadata=metadata,
        )

    def _find_envelope(self, raw: str | None) -> Mapping[str, Any]:
        """Return the most plausible envelope object in `raw`.

        Objects carrying a target/summary field win over the first object seen.
        """

        text = self._checked_text(raw)
        first_object: Mapping[str, Any] | None = None
        for value in self._iter_json_values(text):
            if not isinstance(value, Mapping):
                continue
            if _first_text(value, _TARGET_PATHS) is not None:
                return value
            if first_object is None:
                first_object = value
        if first_object is None:
            raise InvalidResponseError(
                "No JSON object found in response.",
                raw_response=self._snippet(text),
            )
        return first_object

    def _checked_text(self, raw: str | None) -> str:
        """Reject missing, blank and oversized responses."""

        if raw is None or not str(raw).strip():
            raise InvalidResponseError("Empty response content.", raw_response=raw)
        text = str(raw)
        if len(text) > self.MAX_CONTENT_CHARS:
            raise InvalidResponseError(
                f"Response content too large ({len(text)} chars, max {self.MAX_CONTENT_CHARS}).",
                raw_response=self._snippet(text),
            )
        return text

    def _iter_json_values(self, text: str) -> Iterator[Any]:
        """Yield JSON values found in `text`, most explicit first.

        Order: the whole body, fenced code blocks, then balanced-bracket
        substrings in order of appearance.
        """

        whole = self._decode(text.strip())
        if whole is not _UNDECODABLE:
            yield whole

        for match in _CODE_FENCE_RE.finditer(text):
            fenced = self._decode(match.group(1).strip())
            if fenced is not _UNDECODABLE:
                yield fenced

        consumed_until = -1
        attempts = 0
        for start, character in enumerate(text):
            if character not in _CLOSING or start <= consumed_until:
                continue
            attempts += 1
            if attempts > self.MAX_SCAN_CANDIDATES:
                return
            end = self._balanced_end(text, start)
            if end is None:
                continue
            value = self._decode(text[start : end + 1])
            if value is _UNDECODABLE:
                continue
            consumed_until = end
            yield value

    @staticmethod
    def _balanced_end(text: str, start: int) -> int | None:
        """Return the index closing the bracket at `start`, string/escape aware."""

        stack: list[str] = []
        in_string = False
        escape_next = False
        for index in range(start, len(text)):
            character = text[index]
            if in_string:
                if escape_next:
                    escape_next = False
                elif character == "\\":
                    escape_next = True
                elif character == '"':
                    in_string = False
                continue
            if character == '"':
                in_string = True
            elif character in _CLOSING:
                stack.append(_CLOSING[character])
            elif character in "}]":
                if not stack or stack[-1] != character:
                    return None
                stack.pop()
                if not stack:
                    return index
        return None

    @staticmethod
    def _decode(candidate: str) -> Any:
        """Decode a JSON candidate, applying repairs before giving up."""

        if not candidate or candidate[0] not in _CLOSING:
            return _UNDECODABLE
        attempts = (
            candidate,
            _SPLIT_STRING_RE.sub("", candidate),
        )
        repaired = _LINE_CONTINUATION_RE.sub("", attempts[1])
        attempts += (repaired, _TRAILING_COMMA_RE.sub(r"\1", repaired))
        for attempt in attempts:
            try:
                return json.loads(attempt, strict=False)
            except json.JSONDecodeError:
                continue
        return _UNDECODABLE

    @staticmethod
    def _batch_entries(value: Any) -> Any:
        """Return the list/mapping of batch entries held by `value`, if any."""

        if isinstance(value, list):
            return value
        if isinstance(value, Mapping):
            for key in ("translations", "results", "items"):
                nested = value.get(key)
                if isinstance(nested, list | Mapping):
                    return nested
            if value and all(str(key).strip().isdigit() for key in value):
                return value
        return None

    @staticmethod
    def _index_entries(entries: Any, expected_count: int) -> dict[int, str]:
        """Map batch entries to zero-based indices within `expected_count`."""

        pairs: list[tuple[int | None, Any]] = []
        if isinstance(entries, Mapping):
            keys = [int(str(key).strip()) for key in entries if str(key).strip().isdigit()]
            offset = 0 if 0 in keys else 1
            for key, value in entries.items():
                key_text = str(key).strip()
                if key_text.isdigit():
                    pairs.append((int(key_text) - offset, value))
        else:
            for position, entry in enumerate(entries):
                declared = entry.get("index") if isinstance(entry, Mapping) else None
                if isinstance(declared, int | str) and not isinstance(declared, bool):
                    try:
                        pairs.append((int(declared) - 1, entry))
                        continue
                    except ValueError:
                        pass
                pairs.append((position, entry))

        results: dict[int, str] = {}
        for index, entry in pairs:
            if index is None or not 0 <= index < expected_count or index in results:
                continue
            if isinstance(entry, str):
                text = entry if entry.strip() else None
            elif isinstance(entry, Mapping):
                text = _first_text(entry, _TARGET_PATHS)
            else:
                text = None
            if text is not None:
                results[index] = text.strip()
        return results

    @staticmethod
    def _metadata(data: Mapping[str, Any]) -> dict[str, Any]:
        metadata = data.get("metadata")
        return dict(metadata) if isinstance(metadata, Mapping) else {}

    def _snippet(self, text: str | None) -> str | None:
        """Return a redacted, length-capped copy of raw output for diagnostics."""

        if text is None:
            return None
        return redact_sensitive(text[: self._RAW_SNIPPET_CHARS])


_UNDECODABLE = object()
