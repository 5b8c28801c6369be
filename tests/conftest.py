"""Shared pytest fixtures for the full Linguaflow test suite."""

from __future__ import annotations

import io
from typing import Iterator

import pytest

from linguaflow import facade
from linguaflow.telemetry.logger import RunLogger
from tests.doubles import FakeClock


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provide a manually advanced clock with a recording sleeper."""

    return FakeClock()


@pytest.fixture
def log_stream() -> io.StringIO:
    """Provide an in-memory sink for structured log lines."""

    return io.StringIO()


@pytest.fixture
def run_logger(log_stream: io.StringIO) -> Iterator[RunLogger]:
    """Provide a verbose logger writing only to `log_stream`."""

    logger = RunLogger(log_stream, verbose=True)
    yield logger
    logger.close()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop ambient credentials and reset the default facade instance around each test."""

    for key in (
        "LINGUAFLOW_API_KEY",
        "MISTRAL_API_KEY",
        "LINGUAFLOW_PROVIDER",
        "LINGUAFLOW_MODEL",
        "LINGUAFLOW_BASE_URL",
        "LINGUAFLOW_VERBOSE",
    ):
        monkeypatch.delenv(key, raising=False)
    facade.reset()
    yield
    facade.reset()
