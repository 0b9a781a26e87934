"""
Answer source module for LLM Visibility.

Fetches raw answers from LLM answer engines, the only I/O-bound step of a
visibility run.

Components:
- AnswerSource protocol and AnswerResult
- OpenRouterAnswerSource: HTTP chat completions with retry
- MockAnswerSource: deterministic canned answers
- collect_answers: bounded-concurrency fan-out with per-call timeouts

Example:
    >>> from llm_visibility.answer_source import MockAnswerSource, collect_answers
    >>> source = MockAnswerSource(responses={"Best cards?": "Acme is great."})
    >>> result = await collect_answers(source, requests)
"""

from .collector import (
    AnswerRequest,
    CollectedAnswer,
    CollectionFailure,
    CollectionResult,
    build_requests,
    collect_answers,
)
from .mock_source import MockAnswerSource
from .models import AnswerResult, AnswerSource, build_answer_source
from .openrouter_client import OpenRouterAnswerSource

__all__ = [
    # Protocols
    "AnswerSource",
    # Data classes
    "AnswerRequest",
    "AnswerResult",
    "CollectedAnswer",
    "CollectionFailure",
    "CollectionResult",
    # Sources
    "MockAnswerSource",
    "OpenRouterAnswerSource",
    # Functions
    "build_answer_source",
    "build_requests",
    "collect_answers",
]
