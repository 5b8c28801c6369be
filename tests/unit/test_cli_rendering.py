"""Unit tests for CLI output and error rendering helpers."""

from __future__ import annotations

import pytest
import typer

from linguaflow.cli_rendering import (
    echo_health,
    echo_metrics_summary,
    echo_results,
    exit_with_command_error,
)
from linguaflow.errors import ConfigurationError, UnsupportedLanguageError


def test_exit_with_command_error_renders_hint(capsys: pytest.CaptureFixture[str]) -> None:
    """Renderer should print the error and its hint before exiting with code 1."""

    error = ConfigurationError("API key is required.", hint="Set `LINGUAFLOW_API_KEY`.")

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("translate", error)

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "translate failed: API key is required." in captured.err
    assert "Hint: Set `LINGUAFLOW_API_KEY`." in captured.err


def test_exit_with_command_error_points_to_locale_listing(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Unsupported locales should include suggestions and the listing command."""

    with pytest.raises(typer.Exit):
        exit_with_command_error("summarize", UnsupportedLanguageError("fx", ["fr"]))

    captured = capsys.readouterr()
    assert "summarize failed: Unsupported language: fx" in captured.err
    assert "Did you mean: fr?" in captured.err
    assert "linguaflow languages" in captured.err


def test_exit_with_command_error_renders_non_domain_fallback(
    capsys: pytest.CaptureFixture[str],
) -> None:
    """Renderer should print fallback exception text for non-domain failures."""

    with pytest.raises(typer.Exit) as exc_info:
        exit_with_command_error("health", RuntimeError("unexpected failure"))

    captured = capsys.readouterr()
    assert exc_info.value.exit_code == 1
    assert "health failed: unexpected failure" in captured.err
    assert "Hint:" not in captured.err


def test_echo_helpers_render_rows(capsys: pytest.CaptureFixture[str]) -> None:
    """Result, health and metrics renderers should print stable rows."""

    echo_results({"fr": "Bonjour", "es": "Hola"})
    echo_health({"status": "ok", "message": "API connection successful"})
    echo_metrics_summary({"total_translations": 2, "errors_count": 0})
    echo_metrics_summary({})

    lines = capsys.readouterr().out.splitlines()
    assert lines == [
        "fr: Bonjour",
        "es: Hola",
        "Status: ok",
        "Message: API connection successful",
        "Metrics:",
        "  errors_count: 0",
        "  total_translations: 2",
    ]
