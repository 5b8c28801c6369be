"""CLI output and error rendering helpers.

This module centralizes user-facing CLI presentation for command diagnostics,
result mappings, health status and usage counters.
"""

from __future__ import annotations

from typing import Mapping, NoReturn

import typer

from .errors import LinguaflowError, UnsupportedLanguageError


def exit_with_command_error(command_name: str, exc: Exception) -> NoReturn:
    """Print concise diagnostics for command failures and exit with code 1."""

    typer.secho(f"{command_name} failed: {exc}", fg=typer.colors.RED, err=True)
    hint = exc.hint if isinstance(exc, LinguaflowError) else None
    if hint:
        typer.secho(f"Hint: {hint}", fg=typer.colors.YELLOW, err=True)
    if isinstance(exc, UnsupportedLanguageError):
        typer.echo("Run `linguaflow languages` to list supported locales.", err=True)
    raise typer.Exit(code=1) from exc


def echo_results(results: Mapping[object, object]) -> None:
    """Print one `key: value` row per result, in mapping order."""

    for key, value in results.items():
        typer.echo(f"{key}: {value}")


def echo_health(status: Mapping[str, str]) -> None:
    """Print health-check status, coloured by outcome."""

    colour = typer.colors.GREEN if status.get("status") == "ok" else typer.colors.RED
    typer.secho(f"Status: {status.get('status', 'unknown')}", fg=colour)
    typer.echo(f"Message: {status.get('message', '')}")


def echo_metrics_summary(summary: Mapping[str, object]) -> None:
    """Print usage counters in deterministic key order."""

    if not summary:
        return
    typer.echo("Metrics:")
    for key in sorted(summary):
        typer.echo(f"  {key}: {summary[key]}")

