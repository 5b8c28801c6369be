"""Translation orchestration on top of the completion client.

Responsibilities:
- Validate inputs and locales before any network call.
- Turn each operation into prompt -> client -> parser steps under the retry policy.
- Fan out multi-target and batch requests, preferring one combined prompt and
  falling back to per-item calls for whatever the combined answer missed.
- Fire lifecycle hooks, metrics and log lines around every call.

Key types:
- `Translator`: translate, translate_auto, translate_with_quality_check,
  translate_to_multiple, translate_batch.
"""

from __future__ import annotations

from time import monotonic
import time
from typing import Callable, Sequence, TypeVar

from ..config import LinguaflowConfig
from ..errors import BatchMismatchError, LinguaflowError, RateLimitError
from ..hooks import LifecycleHooks
from ..locales import LocaleTable, default_locale_table
from ..models.datatypes import BatchItem, QualityCheckedTranslation, TranslationOptions
from ..telemetry.logger import RunLogger
from ..telemetry.metrics import MetricsCollector
from ..validation import InputValidator
from .client import CompletionClient
from .prompts import PromptLibrary
from .response_parser import ResponseParser
from .retry import RateLimitCallback, RetryCallback, RetryPolicy

T = TypeVar("T")


class _Orchestrator:
    """Shared collaborators and instrumentation for translator and summarizer."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        config: LinguaflowConfig | None = None,
        prompts: PromptLibrary | None = None,
        parser: ResponseParser | None = None,
        locales: LocaleTable | None = None,
        validator: InputValidator | None = None,
        retry_policy: RetryPolicy | None = None,
        metrics: MetricsCollector | None = None,
        run_logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
        clock: Callable[[], float] = monotonic,
    ) -> None:
        """Wire the client with prompt, parsing, retry and telemetry collaborators."""

        self.client = client
        self.config = config if config is not None else LinguaflowConfig()
        self.locales = locales if locales is not None else default_locale_table
        self.prompts = prompts if prompts is not None else PromptLibrary(self.locales)
        self.parser = parser if parser is not None else ResponseParser()
        self.validator = (
            validator
            if validator is not None
            else InputValidator(
                max_text_length=self.config.max_text_length,
                max_batch_items=self.config.max_batch_items,
                locales=self.locales,
            )
        )
        self.sleeper = sleeper
        self.retry_policy = (
            retry_policy
            if retry_policy is not None
            else RetryPolicy(
                max_retries=self.config.max_retries,
                base_delay=self.config.retry_base_delay,
                rate_limit_delay=self.config.rate_limit_delay_seconds,
                max_rate_limit_waits=self.config.max_rate_limit_waits,
                sleeper=sleeper,
            )
        )
        self.metrics = (
            metrics if metrics is not None else MetricsCollector(enabled=self.config.enable_metrics)
        )
        self.logger = run_logger if run_logger is not None else RunLogger()
        self.clock = clock

    @property
    def hooks(self) -> LifecycleHooks:
        return self.config.hooks

    def pace(self) -> None:
        """Wait the pacing delay between sequential fan-out calls."""

        delay = self.config.pacing_delay_seconds
        if delay > 0:
            (self.sleeper or time.sleep)(delay)

    def _retry_callbacks(
        self,
        operation: str,
        source: str | None,
        target: str,
        attempts: dict[str, int],
    ) -> tuple[RetryCallback, RateLimitCallback]:
        """Build `on_retry`/`on_rate_limit` callbacks that log, count and fire hooks."""

        def _on_retry(error: Exception, attempt: int, delay: float) -> None:
            attempts["count"] += 1
            self.logger.warn_once(
                f"retry:{operation}:{type(error).__name__}:{attempt}",
                "retry_scheduled",
                ttl_seconds=120.0,
                operation=operation,
                error_type=type(error).__name__,
                attempt=attempt,
                max_retries=self.retry_policy.max_retries,
                delay_seconds=delay,
            )

        def _on_rate_limit(error: RateLimitError, attempt: int, wait: float) -> None:
            self.metrics.record_rate_limit()
            self.hooks.on_rate_limit(source, target, wait, attempt)
            self.logger.warn_once(
                f"rate_limit:{source or 'auto'}:{target}",
                "rate_limit_wait",
                operation=operation,
                source=source or "auto",
                target=target,
                wait_seconds=wait,
            )

        return _on_retry, _on_rate_limit

    def _instrumented(
        self,
        operation: str,
        source: str | None,
        target: str,
        text: str,
        call: Callable[[], T],
        measure: Callable[[T], int] = len,
    ) -> T:
        """Run `call` under the retry policy with hooks, metrics and logging.

        `measure` gives the result length reported to `on_complete`.
        """

        attempts = {"count": 1}
        on_retry, on_rate_limit = self._retry_callbacks(operation, source, target, attempts)

        self.hooks.on_start(source, target, len(text))
        self.metrics.record_start(source, target, len(text))
        started = self.clock()
        try:
            result = self.retry_policy.run(call, on_retry=on_retry, on_rate_limit=on_rate_limit)
        except LinguaflowError as exc:
            self.metrics.record_error()
            self.hooks.on_error(source, target, exc, attempts["count"])
            self.logger.log_operation_failure(
                operation,
                type(exc).__name__,
                source=source or "auto",
                target=target,
                attempts=attempts["count"],
            )
            raise
        duration = self.clock() - started
        self.metrics.record_complete(duration)
        self.hooks.on_complete(source, target, len(text), measure(result), duration)
        self.logger.debug(
            "operation_complete",
            operation=operation,
            source=source or "auto",
            target=target,
            duration_seconds=round(duration, 3),
        )
        return result


class Translator(_Orchestrator):
    """Translate texts between supported locales through the completion client."""

    def translate(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        """Translate `text` from `source_locale` into `target_locale`.

        Blank text yields `""` and identical locales return `text` unchanged,
        both without calling the client.
        """

        text = self.validator.text(text)
        source = self.validator.locale(source_locale, "source_locale")
        target = self.validator.locale(target_locale, "target_locale")
        if not text:
            return ""
        if source == target:
            return text
        return self._translate_validated(text, source, target, options or TranslationOptions())

    def translate_auto(
        self,
        text: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> str:
        """Translate `text` into `target_locale`, letting the model detect the source."""

        text = self.validator.text(text)
        target = self.validator.locale(target_locale, "target_locale")
        if not text:
            return ""
        options = options or TranslationOptions()
        prompt = self.prompts.auto_translation_prompt(text, target, options)

        def _call() -> str:
            raw = self.client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                context={"operation": "translate_auto", "target": target},
            )
            return self.parser.parse_translation_response(raw).target

        return self._instrumented("translate_auto", None, target, text, _call)

    def translate_with_quality_check(
        self,
        text: str,
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> QualityCheckedTranslation:
        """Translate `text` in one call that also asks the model to rate its output.

        Blank text and identical locales short-circuit with full confidence.
        """

        text = self.validator.text(text)
        source = self.validator.locale(source_locale, "source_locale")
        target = self.validator.locale(target_locale, "target_locale")
        if not text:
            return QualityCheckedTranslation(translation="", confidence=1.0)
        if source == target:
            return QualityCheckedTranslation(translation=text, confidence=1.0)
        options = options or TranslationOptions()
        prompt = self.prompts.quality_check_prompt(text, source, target, options)

        def _call() -> QualityCheckedTranslation:
            raw = self.client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                context={"operation": "quality_check", "source": source, "target": target},
            )
            return self.parser.parse_quality_check_response(raw, text, source, target)

        return self._instrumented(
            "quality_check", source, target, text, _call, lambda checked: len(checked.translation)
        )

    def translate_to_multiple(
        self,
        text: str,
        source_locale: str,
        target_locales: Sequence[str] | str,
        options: TranslationOptions | None = None,
        *,
        use_batch: bool = False,
    ) -> dict[str, str]:
        """Translate `text` into every target locale, sequentially and fail-fast.

        With `use_batch`, more than `multi_target_batch_threshold` targets are
        requested in one combined prompt; targets the combined answer misses
        are translated one by one.
        """

        text = self.validator.text(text)
        source = self.validator.locale(source_locale, "source_locale")
        targets = self.validator.locales_list(target_locales, "target_locales")
        options = options or TranslationOptions()
        if not text:
            return {target: "" for target in targets}

        results: dict[str, str] = {target: text for target in targets if target == source}
        pending = [target for target in targets if target != source]

        batched = use_batch and len(pending) > self.config.multi_target_batch_threshold
        if batched:
            items = [BatchItem(text, source, target) for target in pending]
            recovered = self._batch_or_partial(items, options)
            for local_index, translated in recovered.items():
                results[pending[local_index]] = translated
            pending = [target for target in pending if target not in results]

        for position, target in enumerate(pending):
            if position > 0 or batched:
                self.pace()
            results[target] = self._translate_validated(text, source, target, options)

        return {target: results[target] for target in targets}

    def translate_batch(
        self,
        texts: Sequence[str],
        source_locale: str,
        target_locale: str,
        options: TranslationOptions | None = None,
    ) -> dict[int, str]:
        """Translate every text and return a zero-based index -> text mapping.

        Combined prompts of `batch_size` items are tried first; indices the
        combined answers miss are translated one by one, so every input index
        is present in the result.
        """

        batch = self.validator.batch(texts)
        source = self.validator.locale(source_locale, "source_locale")
        target = self.validator.locale(target_locale, "target_locale")
        options = options or TranslationOptions()

        results: dict[int, str] = {index: "" for index, text in enumerate(batch) if not text}
        pending = [index for index, text in enumerate(batch) if text]
        if source == target:
            results.update({index: batch[index] for index in pending})
            pending = []

        if pending:
            items = [BatchItem(batch[index], source, target) for index in pending]
            recovered = self._batch_or_partial(items, options)
            for local_index, translated in recovered.items():
                results[pending[local_index]] = translated

            missing = [index for index in pending if index not in results]
            for index in missing:
                self.pace()
                results[index] = self._translate_validated(batch[index], source, target, options)

        return {index: results[index] for index in range(len(batch))}

    def _translate_validated(
        self,
        text: str,
        source: str,
        target: str,
        options: TranslationOptions,
    ) -> str:
        """Translate already-validated input under the retry policy."""

        prompt = self.prompts.translation_prompt(text, source, target, options)

        def _call() -> str:
            raw = self.client.complete(
                prompt,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                context={"operation": "translate", "source": source, "target": target},
            )
            return self.parser.parse_translation_response(raw).target

        return self._instrumented("translate", source, target, text, _call)

    def _batch_or_partial(
        self,
        items: Sequence[BatchItem],
        options: TranslationOptions,
    ) -> dict[int, str]:
        """Run the combined batch path, returning whatever indices it recovered.

        Each chunk request runs under the retry policy on its own. Item-count
        mismatches are logged and turned into a partial mapping; every other
        error propagates.
        """

        source = items[0].source_locale
        target = ",".join(dict.fromkeys(item.target_locale for item in items))
        attempts = {"count": 1}
        on_retry, on_rate_limit = self._retry_callbacks("batch", source, target, attempts)

        def _run_chunk(request: Callable[[], str]) -> str:
            return self.retry_policy.run(request, on_retry=on_retry, on_rate_limit=on_rate_limit)

        started = self.clock()
        try:
            recovered = self.client.translate_batch(
                items, self.config.batch_size, options, run_chunk=_run_chunk
            )
        except BatchMismatchError as exc:
            recovered = dict(exc.partial)
            self.logger.warning(
                "batch_fallback",
                expected=len(items),
                recovered=len(recovered),
                missing=len(items) - len(recovered),
            )
        except LinguaflowError:
            self.metrics.record_error()
            self.hooks.on_batch_complete(len(items), self.clock() - started, 0, len(items))
            raise

        duration = self.clock() - started
        for index in recovered:
            item = items[index]
            self.metrics.record_start(item.source_locale, item.target_locale, len(item.text))
            self.metrics.record_complete(duration / max(len(recovered), 1))
        self.hooks.on_batch_complete(
            len(items), duration, len(recovered), len(items) - len(recovered)
        )
        return recovered
