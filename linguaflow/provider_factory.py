"""Factory helpers for completion clients and orchestrators.

Responsibilities:
- Resolve provider runtime settings and build a configured `CompletionClient`.
- Build translators and summarizers that share one client, one metrics
  collector and one logger.

Notes:
- `mistral` and `openai` share the chat-completions wire format; only the
  default endpoint differs.
"""

from __future__ import annotations

from typing import Callable

from .config import LinguaflowConfig, RuntimeConfigSources
from .llm.client import CompletionClient
from .llm.rate_limiter import SlidingWindowRateLimiter
from .llm.summarizer import Summarizer
from .llm.translator import Translator
from .telemetry.logger import RunLogger
from .telemetry.metrics import MetricsCollector


class ProviderFactory:
    """Factory for provider-backed clients and the orchestrators built on them."""

    @staticmethod
    def create_rate_limiter(config: LinguaflowConfig) -> SlidingWindowRateLimiter:
        """Create the local sliding-window limiter configured by `config`."""

        return SlidingWindowRateLimiter(
            max_requests=config.rate_limit_max_requests,
            window_seconds=config.rate_limit_window_seconds,
        )

    @staticmethod
    def create_client(
        config: LinguaflowConfig,
        sources: RuntimeConfigSources | None = None,
        run_logger: RunLogger | None = None,
    ) -> CompletionClient:
        """Create a completion client from validated config and runtime sources."""

        config.validate()
        runtime = config.resolved_provider_runtime(sources)
        return CompletionClient(
            api_key=runtime.api_key,
            model=runtime.model,
            base_url=runtime.base_url,
            default_max_tokens=config.default_max_tokens,
            default_temperature=config.default_temperature,
            timeout_seconds=config.timeout_seconds,
            rate_limiter=ProviderFactory.create_rate_limiter(config),
            run_logger=run_logger,
        )

    @staticmethod
    def create_translator(
        config: LinguaflowConfig,
        client: CompletionClient,
        metrics: MetricsCollector | None = None,
        run_logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> Translator:
        """Create a translator bound to `client`."""

        return Translator(
            client,
            config=config,
            prompts=client.prompts,
            parser=client.parser,
            metrics=metrics,
            run_logger=run_logger,
            sleeper=sleeper,
        )

    @staticmethod
    def create_summarizer(
        config: LinguaflowConfig,
        client: CompletionClient,
        metrics: MetricsCollector | None = None,
        run_logger: RunLogger | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> Summarizer:
        """Create a summarizer bound to `client`."""

        return Summarizer(
            client,
            config=config,
            prompts=client.prompts,
            parser=client.parser,
            metrics=metrics,
            run_logger=run_logger,
            sleeper=sleeper,
        )
