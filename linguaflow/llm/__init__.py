"""LLM-facing building blocks for translation and summarization.

This package defines the completion client, its rate limiter, the prompt
library, the response parser, the retry policy and the two orchestrators.
"""

from .client import CompletionClient
from .prompts import PromptLibrary
from .rate_limiter import SlidingWindowRateLimiter
from .response_parser import ResponseParser
from .retry import RetryPolicy
from .summarizer import Summarizer, clean_document_content
from .translator import Translator

__all__ = [
    "CompletionClient",
    "PromptLibrary",
    "ResponseParser",
    "RetryPolicy",
    "SlidingWindowRateLimiter",
    "Summarizer",
    "Translator",
    "clean_document_content",
]
