"""CLI runtime resolution helpers.

This module isolates config-file loading, runtime source assembly and the
optional hidden API-key prompt from the command wiring layer.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Mapping

import typer
import yaml

from .config import (
    DEFAULT_PROVIDER,
    SUPPORTED_PROVIDERS,
    ConfigLoader,
    LinguaflowConfig,
    RuntimeConfigSources,
)
from .credentials import CredentialStore, create_credential_store
from .errors import ConfigurationError
from .parsing import normalize_optional_string


def load_base_config(
    config_path: Path | None,
    env: Mapping[str, str] | None = None,
) -> LinguaflowConfig:
    """Load YAML config when requested, otherwise build one from the environment."""

    if config_path is None:
        try:
            return ConfigLoader.from_env(os.environ if env is None else env)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid environment configuration: {exc}",
                hint="Fix the `LINGUAFLOW_*` environment variables and rerun.",
            ) from exc

    try:
        return ConfigLoader.from_yaml(config_path)
    except FileNotFoundError as exc:
        raise ConfigurationError(
            f"Config file not found: `{config_path}`.",
            hint="Provide an existing path via `--config <path.yaml>`.",
        ) from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Config file `{config_path}` is not valid YAML: {exc}",
            hint="Verify YAML syntax and rerun.",
        ) from exc
    except ValueError as exc:
        raise ConfigurationError(
            f"Invalid config file `{config_path}`: {exc}",
            hint="Fix config keys/values and rerun.",
        ) from exc


def resolve_runtime_sources(
    provider: str | None,
    model: str | None,
    base_url: str | None,
    api_key: str | None,
    prompt_api_key: bool,
    env: Mapping[str, str] | None = None,
    credential_store_factory: Callable[[], CredentialStore] | None = None,
    default_provider: str = DEFAULT_PROVIDER,
) -> RuntimeConfigSources:
    """Assemble CLI, secure-store and environment sources for precedence resolution.

    The stored key is read for the provider the run will use: `--provider`,
    then `LINGUAFLOW_PROVIDER`, then `default_provider`. Unknown providers skip
    the lookup and fail later in config resolution.
    `credential_store_factory` defaults to `create_credential_store`.
    """

    env_values = dict(os.environ if env is None else env)

    runtime_cli_values: dict[str, str] = {}
    for key, value in (
        ("provider", provider),
        ("model", model),
        ("base_url", base_url),
        ("api_key", api_key),
    ):
        normalized = normalize_optional_string(value)
        if normalized is not None:
            runtime_cli_values[key] = normalized

    if prompt_api_key and "api_key" not in runtime_cli_values:
        prompted = normalize_optional_string(
            typer.prompt(
                "API key (hidden; leave blank to skip)",
                default="",
                hide_input=True,
                show_default=False,
            )
        )
        if prompted is not None:
            runtime_cli_values["api_key"] = prompted

    key_provider = (
        runtime_cli_values.get("provider")
        or normalize_optional_string(env_values.get("LINGUAFLOW_PROVIDER"))
        or default_provider
    )
    runtime_secure_values: dict[str, str] = {}
    if key_provider in SUPPORTED_PROVIDERS:
        factory = credential_store_factory or create_credential_store
        stored_api_key = factory().get_api_key(key_provider)
        if stored_api_key is not None:
            runtime_secure_values["api_key"] = stored_api_key

    return RuntimeConfigSources(
        cli=runtime_cli_values,
        secure=runtime_secure_values,
        env=env_values,
    )
