"""Shared typed data models for Linguaflow.

This package contains dataclasses used across modules to avoid cross-module
coupling and circular imports.
"""

from .datatypes import (
    BatchItem,
    ParsedSummary,
    ParsedTranslation,
    SummaryOptions,
    TranslationOptions,
    UnitFailure,
)

__all__ = [
    "BatchItem",
    "ParsedSummary",
    "ParsedTranslation",
    "SummaryOptions",
    "TranslationOptions",
    "UnitFailure",
]
