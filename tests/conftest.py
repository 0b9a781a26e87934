"""Shared fixtures for the LLM Visibility test suite."""

import pytest
from tenacity import wait_none

from llm_visibility.answer_source.openrouter_client import OpenRouterAnswerSource
from llm_visibility.config.schema import PromptConfig, TrackedBrand
from llm_visibility.extractor.registry import BrandRegistry


@pytest.fixture
def no_retry_wait(monkeypatch):
    """Retry without sleeping between attempts."""
    monkeypatch.setattr(OpenRouterAnswerSource._post_completion.retry, "wait", wait_none())


@pytest.fixture
def registry():
    return BrandRegistry(
        [
            TrackedBrand(name="Acme", is_own_brand=True, domains=["acme.com"]),
            TrackedBrand(name="Globex"),
        ]
    )


@pytest.fixture
def prompts():
    return [
        PromptConfig(id="best-cards", text="What are the best travel cards?", topic="travel", persona="frequent flyer"),
        PromptConfig(id="cheap-cards", text="Which cards have no annual fee?", topic="fees"),
    ]
