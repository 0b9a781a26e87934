"""
Answer source abstraction for LLM Visibility.

An answer source is the black box that turns (prompt text, platform id)
into the raw text an LLM answer engine produced. Visibility analysis never
calls an LLM itself; it only consumes AnswerResult objects.

Key components:
- AnswerResult: Raw answer text plus platform and usage metadata
- AnswerSource: Protocol every source implements
- build_answer_source: Factory creating the configured source

Example:
    >>> source = build_answer_source(config)
    >>> result = await source.fetch_answer("Best travel cards?", "perplexity")
    >>> result.platform_id
    'perplexity'
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from llm_visibility.config.schema import RuntimeConfig


@dataclass
class AnswerResult:
    """
    Raw answer returned by an answer source.

    Attributes:
        raw_text: Answer text exactly as the platform returned it
        platform_id: Platform that produced the answer ("openai", "perplexity", ...)
        model_name: Upstream model identifier, if known
        timestamp_utc: ISO 8601 timestamp with 'Z' suffix when the answer arrived
        tokens_used: Total tokens reported by the upstream API (0 if unknown)
    """

    raw_text: str
    platform_id: str
    model_name: str | None = None
    timestamp_utc: str | None = None
    tokens_used: int = 0


class AnswerSource(Protocol):
    """
    Protocol for answer sources.

    Raising any exception from fetch_answer marks the call as failed; the
    collector records it and excludes the platform's answer from the run.
    """

    async def fetch_answer(self, prompt_text: str, platform_id: str) -> AnswerResult:
        """Return the platform's answer to ``prompt_text``."""
        ...


def build_answer_source(config: "RuntimeConfig") -> AnswerSource:
    """
    Create the answer source named by ``config.answer_source.provider``.

    Supported providers:
    - "openrouter": OpenAI-compatible chat completions over HTTP, one model
      per platform id
    - "mock": canned answers from ``answer_source.mock_responses``

    Raises:
        ValueError: If the provider is unknown or a required API key is missing

    Security:
        - The API key is only passed to the client constructor, never logged
    """
    source_config = config.answer_source

    if source_config.provider == "openrouter":
        from llm_visibility.answer_source.openrouter_client import (
            OpenRouterAnswerSource,
        )

        if not config.api_key:
            raise ValueError("api_key is required for provider 'openrouter'")

        return OpenRouterAnswerSource(
            models=source_config.models,
            api_key=config.api_key,
            system_prompt=source_config.system_prompt,
            base_url=source_config.base_url,
            timeout=config.run_settings.request_timeout_seconds,
        )

    if source_config.provider == "mock":
        from llm_visibility.answer_source.mock_source import MockAnswerSource

        return MockAnswerSource(responses=dict(source_config.mock_responses))

    raise ValueError(f"Unsupported answer source provider: {source_config.provider}")
