"""Command-line interface for Linguaflow.

Responsibilities:
- Expose translation, summary, locale listing, health and credential commands.
- Convert CLI arguments into `LinguaflowConfig` plus runtime sources.

Key public functions:
- `app`: Typer application instance.
- `main`: invoke the Typer application.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from .cli_rendering import (
    echo_health,
    echo_metrics_summary,
    echo_results,
    exit_with_command_error,
)
from .cli_runtime import load_base_config, resolve_runtime_sources
from .config import DEFAULT_PROVIDER, SUPPORTED_PROVIDERS
from .credentials import create_credential_store
from .errors import ConfigurationError, LinguaflowError
from .facade import Linguaflow
from .locales import default_locale_table
from .models.datatypes import SummaryOptions, TranslationOptions
from .parsing import normalize_optional_string
from .telemetry.logger import RunLogger

app = typer.Typer(
    name="linguaflow",
    no_args_is_help=True,
    help="Linguaflow CLI: translate and summarize text through a chat-completions API.",
)
credentials_app = typer.Typer(
    no_args_is_help=True,
    help="Manage the API key stored in secure credential storage.",
)
app.add_typer(credentials_app, name="credentials")


ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", help="Path to YAML config file."),
]
ProviderOption = Annotated[
    str | None, typer.Option("--provider", help="Provider id (`mistral` or `openai`).")
]
ModelOption = Annotated[str | None, typer.Option("--model", help="Model id override.")]
BaseUrlOption = Annotated[
    str | None, typer.Option("--base-url", help="Endpoint root override.")
]
ApiKeyOption = Annotated[
    str | None,
    typer.Option(
        "--api-key",
        help="API key override. Prefer `--prompt-api-key` to avoid shell history.",
    ),
]
PromptApiKeyOption = Annotated[
    bool,
    typer.Option("--prompt-api-key", help="Prompt for the API key with hidden input."),
]
VerboseOption = Annotated[
    bool, typer.Option("--verbose", help="Emit debug log lines for every request.")
]
MetricsOption = Annotated[
    bool, typer.Option("--metrics", help="Print usage counters after the command.")
]


def _read_text_argument(text: str) -> str:
    """Return the text argument, reading stdin when it is `-`."""

    if text == "-":
        return typer.get_text_stream("stdin").read()
    return text


def _parse_glossary(entries: list[str] | None) -> dict[str, str] | None:
    """Parse repeated `term=translation` options into a glossary mapping."""

    if not entries:
        return None
    glossary: dict[str, str] = {}
    for entry in entries:
        term, separator, value = entry.partition("=")
        if not separator or not term.strip() or not value.strip():
            raise ConfigurationError(
                f"Invalid glossary entry `{entry}`.",
                hint="Use `--glossary term=translation`.",
            )
        glossary[term.strip()] = value.strip()
    return glossary


def _build_service(
    config_file: Path | None,
    provider: str | None,
    model: str | None,
    base_url: str | None,
    api_key: str | None,
    prompt_api_key: bool,
    verbose: bool,
    metrics: bool,
) -> Linguaflow:
    """Resolve config and runtime sources and build a `Linguaflow` instance."""

    config = load_base_config(config_file)
    if metrics:
        config.enable_metrics = True
    sources = resolve_runtime_sources(
        provider, model, base_url, api_key, prompt_api_key, default_provider=config.provider
    )
    return Linguaflow(config, sources=sources, run_logger=RunLogger(verbose=verbose))


@app.command("translate")
def translate_command(
    text: Annotated[str, typer.Argument(help="Text to translate, or `-` to read stdin.")],
    target: Annotated[
        list[str],
        typer.Option("--to", "-t", help="Target locale; repeat for several targets."),
    ],
    source: Annotated[
        str | None,
        typer.Option("--from", "-f", help="Source locale; omit to auto-detect."),
    ] = None,
    context: Annotated[
        str | None, typer.Option("--context", help="Where the text is used.")
    ] = None,
    glossary: Annotated[
        list[str] | None,
        typer.Option("--glossary", help="Glossary entry `term=translation`; repeatable."),
    ] = None,
    preserve_html: Annotated[
        bool, typer.Option("--preserve-html", help="Keep HTML markup intact.")
    ] = False,
    batch: Annotated[
        bool,
        typer.Option("--batch", help="Request many targets with one combined prompt."),
    ] = False,
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    base_url: BaseUrlOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    verbose: VerboseOption = False,
    metrics: MetricsOption = False,
) -> None:
    """Translate text into one or more target locales."""

    try:
        service = _build_service(
            config_file, provider, model, base_url, api_key, prompt_api_key, verbose, metrics
        )
        options = TranslationOptions(
            context=normalize_optional_string(context),
            glossary=_parse_glossary(glossary),
            preserve_html=preserve_html,
        )
        source_text = _read_text_argument(text)
        if source is None:
            if len(target) != 1:
                raise ConfigurationError(
                    "Auto-detection supports exactly one target locale.",
                    hint="Pass `--from <locale>` to translate into several targets.",
                )
            results: dict[str, str] = {
                target[0]: service.translate_auto(source_text, target[0], options)
            }
        elif len(target) == 1:
            results = {target[0]: service.translate(source_text, source, target[0], options)}
        else:
            results = service.translate_to_multiple(
                source_text, source, target, options, use_batch=batch
            )
    except LinguaflowError as exc:
        exit_with_command_error("translate", exc)

    if len(results) == 1:
        typer.echo(next(iter(results.values())))
    else:
        echo_results(results)
    echo_metrics_summary(service.metrics_summary())


@app.command("summarize")
def summarize_command(
    text: Annotated[str, typer.Argument(help="Text to summarize, or `-` to read stdin.")],
    language: Annotated[
        list[str],
        typer.Option("--language", "-l", help="Summary locale; repeat for several."),
    ] = ["fr"],
    source: Annotated[
        str | None,
        typer.Option("--from", "-f", help="Source locale; summarizes and translates in one call."),
    ] = None,
    max_words: Annotated[
        int, typer.Option("--max-words", help="Maximum summary length in words.")
    ] = 250,
    tiered: Annotated[
        bool, typer.Option("--tiered", help="Print short, medium and long summaries.")
    ] = False,
    style: Annotated[
        str | None,
        typer.Option("--style", help="Style: formal, casual, academic or marketing."),
    ] = None,
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    base_url: BaseUrlOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
    verbose: VerboseOption = False,
    metrics: MetricsOption = False,
) -> None:
    """Summarize text in one or more languages."""

    try:
        service = _build_service(
            config_file, provider, model, base_url, api_key, prompt_api_key, verbose, metrics
        )
        options = SummaryOptions(style=normalize_optional_string(style))
        source_text = _read_text_argument(text)
        if tiered:
            results: dict[str, str] = service.summarizer.summarize_tiered(
                source_text, language[0], options=options
            )
        elif source is not None and len(language) == 1:
            results = {
                language[0]: service.summarize_and_translate(
                    source_text, source, language[0], max_words, options
                )
            }
        elif len(language) == 1:
            results = {language[0]: service.summarize(source_text, language[0], max_words, options)}
        else:
            results = service.summarize_to_multiple(source_text, language, max_words, options)
    except LinguaflowError as exc:
        exit_with_command_error("summarize", exc)

    if len(results) == 1:
        typer.echo(next(iter(results.values())))
    else:
        echo_results(results)
    echo_metrics_summary(service.metrics_summary())


@app.command("languages")
def languages_command() -> None:
    """List supported locales with their native names."""

    table = default_locale_table
    for locale in table.supported_locales():
        typer.echo(f"{locale}: {table.display_name(locale)}")


@app.command("health")
def health_command(
    config_file: ConfigOption = None,
    provider: ProviderOption = None,
    model: ModelOption = None,
    base_url: BaseUrlOption = None,
    api_key: ApiKeyOption = None,
    prompt_api_key: PromptApiKeyOption = False,
) -> None:
    """Check API connectivity with one tiny completion request."""

    try:
        service = _build_service(
            config_file, provider, model, base_url, api_key, prompt_api_key, False, False
        )
    except LinguaflowError as exc:
        exit_with_command_error("health", exc)

    status = service.health_check()
    echo_health(status)
    if status.get("status") != "ok":
        raise typer.Exit(code=1)


CredentialProviderOption = Annotated[
    str,
    typer.Option(
        "--provider",
        envvar="LINGUAFLOW_PROVIDER",
        help="Provider whose key to manage (`mistral` or `openai`).",
    ),
]


@credentials_app.command("set")
def credentials_set_command(provider: CredentialProviderOption = DEFAULT_PROVIDER) -> None:
    """Prompt for a provider's API key with hidden input and store it securely."""

    prompted_api_key = normalize_optional_string(
        typer.prompt(
            f"{provider} API key (hidden input)",
            default="",
            hide_input=True,
            show_default=False,
        )
    )
    if prompted_api_key is None:
        exit_with_command_error(
            "credentials set",
            ConfigurationError(
                "No API key entered.",
                hint="Provide a non-empty API key.",
            ),
        )
    try:
        create_credential_store().set_api_key(provider, prompted_api_key)
    except LinguaflowError as exc:
        exit_with_command_error("credentials set", exc)
    typer.echo(f"{provider} API key stored in secure credential storage.")


@credentials_app.command("clear")
def credentials_clear_command(provider: CredentialProviderOption = DEFAULT_PROVIDER) -> None:
    """Clear a provider's stored API key from secure credential storage."""

    try:
        cleared = create_credential_store().clear_api_key(provider)
    except LinguaflowError as exc:
        exit_with_command_error("credentials clear", exc)
    if cleared:
        typer.echo(f"Stored {provider} API key cleared from secure credential storage.")
    else:
        typer.echo(f"No stored {provider} API key found in secure credential storage.")


@credentials_app.command("status")
def credentials_status_command() -> None:
    """Report credential storage availability and which providers have a stored key."""

    credential_store = create_credential_store()
    available = credential_store.is_available()
    typer.echo(f"Secure credential storage: {'available' if available else 'unavailable'}")
    if not available:
        return
    try:
        stored = credential_store.stored_providers()
    except LinguaflowError as exc:
        exit_with_command_error("credentials status", exc)
    for provider in SUPPORTED_PROVIDERS:
        typer.echo(f"Stored {provider} API key: {'present' if provider in stored else 'not set'}")


def main() -> None:
    """CLI entrypoint for console scripts."""
    app()


if __name__ == "__main__":
    main()
