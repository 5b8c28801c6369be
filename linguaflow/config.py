"""Configuration model and loaders for Linguaflow.

Responsibilities:
- Define client and orchestration settings as a typed dataclass.
- Provide deterministic precedence resolution for provider, model and API key.
- Provide loader entry points for file- and environment-based configuration.

Key types:
- `LinguaflowConfig`: normalized settings shared by client and orchestrators.
- `ProviderRuntimeConfig`: resolved provider/model/endpoint/credential values.
- `RuntimeConfigSources`: optional value sources for precedence resolution.
- `ConfigLoader`: static construction helpers for `LinguaflowConfig`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigurationError
from .hooks import LifecycleHooks
from .parsing import (
    normalize_optional_string,
    parse_positive_number,
    parse_required_boolean,
)


_DEFAULT_PROVIDER = "mistral"
_DEFAULT_MODEL = "mistral-small"
_PROVIDER_BASE_URLS: dict[str, str] = {
    "mistral": "https://api.mistral.ai/v1",
    "openai": "https://api.openai.com/v1",
}
_DEFAULT_RETRY_DELAYS: tuple[float, ...] = (2, 4, 8, 16, 32, 64, 128, 256, 512, 1024)

SUPPORTED_PROVIDERS: tuple[str, ...] = tuple(sorted(_PROVIDER_BASE_URLS))
DEFAULT_PROVIDER = _DEFAULT_PROVIDER


@dataclass(frozen=True, slots=True)
class RuntimeConfigSources:
    """Source mappings used for deterministic runtime value precedence.

    Attributes:
        cli: Values explicitly provided by CLI arguments.
        secure: Values loaded from secure local credential storage.
        env: Values loaded from environment variables.
    """

    cli: Mapping[str, str] = field(default_factory=dict)
    secure: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ProviderRuntimeConfig:
    """Resolved provider, model, endpoint and credential for one client.

    Attributes:
        provider: Provider identifier (`mistral` or `openai`).
        model: Model identifier sent with every completion request.
        base_url: Endpoint root without trailing slash.
        api_key: Resolved API key (never persisted or logged).
    """

    provider: str
    model: str
    base_url: str
    api_key: str | None = None

    def as_metadata(self) -> dict[str, str]:
        """Return non-secret runtime metadata safe to print or log."""

        return {
            "provider": self.provider,
            "model": self.model,
            "base_url": self.base_url,
            "api_key": "set" if self.api_key else "missing",
        }


@dataclass(slots=True)
class LinguaflowConfig:
    """Settings for the completion client and the translation orchestrators.

    Attributes:
        provider: Provider identifier selecting the default endpoint.
        api_key: API key for bearer authentication.
        base_url: Endpoint root; defaults to the provider's public endpoint.
        model: Model identifier.
        default_max_tokens: `max_tokens` sent when a call does not set one.
        default_temperature: `temperature` sent when a call does not set one.
        timeout_seconds: HTTP timeout per request.
        retry_delays: Delay schedule; its first entry seeds exponential backoff.
        max_retries: Bounded retries after the first attempt for content/API errors.
        rate_limit_delay_seconds: Fixed wait after an upstream 429.
        max_rate_limit_waits: Optional cap on 429 waits per operation (`None` is unbounded).
        pacing_delay_seconds: Wait between sequential fan-out calls.
        rate_limit_max_requests: Local sliding-window request budget.
        rate_limit_window_seconds: Local sliding-window length.
        batch_size: Items per combined batch prompt.
        multi_target_batch_threshold: Target count above which multi-target uses one prompt.
        max_text_length: Maximum characters per input text.
        max_batch_items: Maximum texts per `translate_batch` call.
        enable_metrics: Whether usage counters are collected.
        hooks: Lifecycle listener invoked by the orchestrators.
    """

    provider: str = _DEFAULT_PROVIDER
    api_key: str | None = None
    base_url: str | None = None
    model: str = _DEFAULT_MODEL
    default_max_tokens: int | None = None
    default_temperature: float | None = None
    timeout_seconds: float = 60.0
    retry_delays: tuple[float, ...] = _DEFAULT_RETRY_DELAYS
    max_retries: int = 3
    rate_limit_delay_seconds: float = 2.0
    max_rate_limit_waits: int | None = None
    pacing_delay_seconds: float = 2.0
    rate_limit_max_requests: int = 50
    rate_limit_window_seconds: float = 60.0
    batch_size: int = 10
    multi_target_batch_threshold: int = 3
    max_text_length: int = 50_000
    max_batch_items: int = 20
    enable_metrics: bool = False
    hooks: LifecycleHooks = field(default_factory=LifecycleHooks)

    def validate(self) -> None:
        """Validate settings before a client is constructed."""

        self._validate_provider_id(self.provider)
        self._require_non_empty(self.model, "model")
        if self.base_url is not None:
            self._require_non_empty(self.base_url, "base_url")
        if self.default_max_tokens is not None and self.default_max_tokens <= 0:
            raise ValueError("`default_max_tokens` must be a positive integer.")
        if self.default_temperature is not None and not 0.0 <= self.default_temperature <= 2.0:
            raise ValueError("`default_temperature` must be between 0 and 2.")
        if self.timeout_seconds <= 0:
            raise ValueError("`timeout_seconds` must be a positive number.")
        if not self.retry_delays or any(delay < 0 for delay in self.retry_delays):
            raise ValueError("`retry_delays` must be a non-empty list of non-negative numbers.")
        if self.max_retries < 0:
            raise ValueError("`max_retries` must be zero or a positive integer.")
        if self.rate_limit_delay_seconds < 0 or self.pacing_delay_seconds < 0:
            raise ValueError("Delays must be non-negative numbers.")
        if self.max_rate_limit_waits is not None and self.max_rate_limit_waits < 0:
            raise ValueError("`max_rate_limit_waits` must be zero or a positive integer.")
        for name in (
            "rate_limit_max_requests",
            "batch_size",
            "multi_target_batch_threshold",
            "max_text_length",
            "max_batch_items",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"`{name}` must be a positive integer.")
        if self.rate_limit_window_seconds <= 0:
            raise ValueError("`rate_limit_window_seconds` must be a positive number.")
        if not isinstance(self.hooks, LifecycleHooks):
            raise ValueError("`hooks` must be a `LifecycleHooks` instance.")

    @property
    def retry_base_delay(self) -> float:
        """Return the exponential backoff base taken from the delay schedule."""

        return float(self.retry_delays[0])

    def resolved_base_url(self) -> str:
        """Return the explicit base URL or the provider's default endpoint."""

        if self.base_url:
            return self.base_url.rstrip("/")
        return _PROVIDER_BASE_URLS[self.provider]

    def require_api_key(self) -> str:
        """Return the API key or raise when none is configured."""

        api_key = normalize_optional_string(self.api_key)
        if api_key is None:
            raise ConfigurationError(
                "API key is required.",
                hint="Set `LINGUAFLOW_API_KEY`, pass `--api-key`, or store one with "
                "`linguaflow credentials set`.",
            )
        return api_key

    def resolved_provider_runtime(
        self, sources: RuntimeConfigSources | None = None
    ) -> ProviderRuntimeConfig:
        """Resolve provider settings with deterministic source precedence.

        Precedence for each key is:
        `cli` > `secure` > `env` > config field default.
        """

        resolved_sources = sources if sources is not None else RuntimeConfigSources()

        provider = self._resolve_runtime_value(
            key="provider",
            env_keys=("LINGUAFLOW_PROVIDER",),
            default_value=self.provider,
            sources=resolved_sources,
        )
        self._validate_provider_id(provider)
        model = self._resolve_runtime_value(
            key="model",
            env_keys=("LINGUAFLOW_MODEL",),
            default_value=self.model,
            sources=resolved_sources,
        )
        base_url = self._resolve_optional_runtime_value(
            key="base_url",
            env_keys=("LINGUAFLOW_BASE_URL",),
            default_value=self.base_url,
            sources=resolved_sources,
        )
        api_key = self._resolve_optional_runtime_value(
            key="api_key",
            env_keys=("LINGUAFLOW_API_KEY", "MISTRAL_API_KEY"),
            default_value=self.api_key,
            sources=resolved_sources,
        )

        return ProviderRuntimeConfig(
            provider=provider,
            model=model,
            base_url=(base_url or _PROVIDER_BASE_URLS[provider]).rstrip("/"),
            api_key=api_key,
        )

    def _resolve_runtime_value(
        self,
        key: str,
        env_keys: tuple[str, ...],
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str:
        """Resolve a required runtime value from sources in precedence order."""

        resolved = self._resolve_optional_runtime_value(key, env_keys, default_value, sources)
        if resolved is None:
            raise ValueError(
                f"`{key}` could not be resolved from CLI, secure storage, env, or defaults."
            )
        return resolved

    def _resolve_optional_runtime_value(
        self,
        key: str,
        env_keys: tuple[str, ...],
        default_value: str | None,
        sources: RuntimeConfigSources,
    ) -> str | None:
        """Resolve an optional runtime value from sources in precedence order."""

        cli_value = self._normalized_lookup(sources.cli, key)
        if cli_value is not None:
            return cli_value

        secure_value = self._normalized_lookup(sources.secure, key)
        if secure_value is not None:
            return secure_value

        for env_key in env_keys:
            env_value = self._normalized_lookup(sources.env, env_key)
            if env_value is not None:
                return env_value

        return normalize_optional_string(default_value)

    @staticmethod
    def _normalized_lookup(mapping: Mapping[str, str], key: str) -> str | None:
        """Return a stripped mapping value for a key or `None` when missing/blank."""

        if key not in mapping:
            return None
        return normalize_optional_string(mapping.get(key))

    @staticmethod
    def _validate_provider_id(provider_id: str) -> None:
        """Validate provider identifiers against supported providers."""

        if provider_id not in _PROVIDER_BASE_URLS:
            supported = ", ".join(sorted(_PROVIDER_BASE_URLS))
            raise ValueError(f"Unsupported `provider` value `{provider_id}`; supported: {supported}.")

    @staticmethod
    def _require_non_empty(value: str, field_name: str) -> None:
        """Validate that string fields are not empty."""

        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"`{field_name}` must be a non-empty string.")


class ConfigLoader:
    """Factory methods for creating `LinguaflowConfig` from external sources."""

    _STRING_KEYS = frozenset({"provider", "api_key", "base_url", "model"})
    _POSITIVE_INT_KEYS = frozenset(
        {
            "default_max_tokens",
            "rate_limit_max_requests",
            "batch_size",
            "multi_target_batch_threshold",
            "max_text_length",
            "max_batch_items",
        }
    )
    _NON_NEGATIVE_INT_KEYS = frozenset({"max_retries", "max_rate_limit_waits"})
    _NUMBER_KEYS = frozenset(
        {
            "default_temperature",
            "timeout_seconds",
            "rate_limit_delay_seconds",
            "pacing_delay_seconds",
            "rate_limit_window_seconds",
        }
    )
    _BOOLEAN_KEYS = frozenset({"enable_metrics"})
    _SUPPORTED_KEYS = (
        _STRING_KEYS
        | _POSITIVE_INT_KEYS
        | _NON_NEGATIVE_INT_KEYS
        | _NUMBER_KEYS
        | _BOOLEAN_KEYS
        | frozenset({"retry_delays"})
    )
    _ENV_KEYS: dict[str, str] = {
        "LINGUAFLOW_PROVIDER": "provider",
        "LINGUAFLOW_API_KEY": "api_key",
        "LINGUAFLOW_BASE_URL": "base_url",
        "LINGUAFLOW_MODEL": "model",
        "LINGUAFLOW_MAX_TOKENS": "default_max_tokens",
        "LINGUAFLOW_TEMPERATURE": "default_temperature",
        "LINGUAFLOW_TIMEOUT_SECONDS": "timeout_seconds",
        "LINGUAFLOW_MAX_RETRIES": "max_retries",
        "LINGUAFLOW_RATE_LIMIT_MAX_REQUESTS": "rate_limit_max_requests",
        "LINGUAFLOW_RATE_LIMIT_WINDOW_SECONDS": "rate_limit_window_seconds",
        "LINGUAFLOW_ENABLE_METRICS": "enable_metrics",
    }

    @staticmethod
    def from_yaml(path: Path) -> LinguaflowConfig:
        """Create a validated config from a YAML file."""

        path_text = path.read_text(encoding="utf-8")
        payload = yaml.safe_load(path_text)
        if payload is None:
            payload = {}
        if not isinstance(payload, Mapping):
            raise ValueError(f"YAML config `{path}` must contain a top-level mapping/object.")
        return ConfigLoader.from_mapping(payload, source_label=f"YAML `{path}`")

    @staticmethod
    def from_env(env: Mapping[str, str] | None = None) -> LinguaflowConfig:
        """Create a validated config from environment variables."""

        env_map: Mapping[str, str] = os.environ if env is None else env
        payload: dict[str, Any] = {}
        for env_key, field_name in ConfigLoader._ENV_KEYS.items():
            value = normalize_optional_string(env_map.get(env_key))
            if value is not None:
                payload[field_name] = value
        if "api_key" not in payload:
            fallback_key = normalize_optional_string(env_map.get("MISTRAL_API_KEY"))
            if fallback_key is not None:
                payload["api_key"] = fallback_key
        return ConfigLoader.from_mapping(payload, source_label="Environment")

    @staticmethod
    def from_mapping(payload: Mapping[str, Any], source_label: str = "Config") -> LinguaflowConfig:
        """Build a validated config from a mapping of field names to raw values."""

        unknown = sorted(set(payload).difference(ConfigLoader._SUPPORTED_KEYS))
        if unknown:
            raise ValueError(f"{source_label} includes unsupported key(s): {', '.join(unknown)}.")

        values: dict[str, Any] = {}
        for key, raw_value in payload.items():
            try:
                parsed = ConfigLoader._parse_value(key, raw_value)
            except ValueError as exc:
                raise ValueError(f"{source_label} field {exc}") from exc
            if parsed is not None:
                values[key] = parsed

        config = LinguaflowConfig(**values)
        config.validate()
        return config

    @staticmethod
    def _parse_value(key: str, raw_value: Any) -> Any:
        """Parse one raw field value according to its declared kind."""

        if key in ConfigLoader._STRING_KEYS:
            return normalize_optional_string(raw_value)
        if key in ConfigLoader._POSITIVE_INT_KEYS:
            parsed = ConfigLoader._parse_int(raw_value, key)
            if parsed is not None and parsed <= 0:
                raise ValueError(f"`{key}` must be a positive integer.")
            return parsed
        if key in ConfigLoader._NON_NEGATIVE_INT_KEYS:
            parsed = ConfigLoader._parse_int(raw_value, key)
            if parsed is not None and parsed < 0:
                raise ValueError(f"`{key}` must be zero or a positive integer.")
            return parsed
        if key in ConfigLoader._NUMBER_KEYS:
            if normalize_optional_string(raw_value) is None:
                return None
            if key == "default_temperature":
                try:
                    return float(str(raw_value).strip())
                except ValueError as exc:
                    raise ValueError(f"`{key}` must be a number.") from exc
            return parse_positive_number(raw_value, key)
        if key in ConfigLoader._BOOLEAN_KEYS:
            return parse_required_boolean(raw_value, key)
        return ConfigLoader._parse_retry_delays(raw_value)

    @staticmethod
    def _parse_int(raw_value: Any, key: str) -> int | None:
        """Parse an integer from an int or numeric string, rejecting booleans."""

        if isinstance(raw_value, bool):
            raise ValueError(f"`{key}` must be an integer.")
        if isinstance(raw_value, int):
            return raw_value
        normalized = normalize_optional_string(raw_value)
        if normalized is None:
            return None
        try:
            return int(normalized)
        except ValueError as exc:
            raise ValueError(f"`{key}` must be an integer.") from exc

    @staticmethod
    def _parse_retry_delays(raw_value: Any) -> tuple[float, ...]:
        """Parse the retry delay schedule from a list or comma-separated string."""

        if isinstance(raw_value, str):
            items: list[Any] = [item for item in raw_value.split(",") if item.strip()]
        elif isinstance(raw_value, list | tuple):
            items = list(raw_value)
        else:
            raise ValueError("`retry_delays` must be a list of numbers.")
        if not items:
            raise ValueError("`retry_delays` must not be empty.")
        delays: list[float] = []
        for item in items:
            try:
                delay = float(str(item).strip())
            except ValueError as exc:
                raise ValueError("`retry_delays` must be a list of numbers.") from exc
            if delay < 0:
                raise ValueError("`retry_delays` must contain non-negative numbers.")
            delays.append(delay)
        return tuple(delays)
