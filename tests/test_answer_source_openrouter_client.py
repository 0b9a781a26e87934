"""
Tests for answer_source.openrouter_client module.

Tests cover:
- OpenRouterAnswerSource initialization and validation
- Successful calls with proper response parsing
- Retry logic on transient failures (429, 5xx, timeouts)
- Immediate failure on non-retryable errors (400, 401, 404)
- Mapping of upstream failures to AnswerSourceError subclasses
- API keys never logged
"""

import json
import logging

import httpx
import pytest

from llm_visibility.answer_source.models import AnswerResult
from llm_visibility.answer_source.openrouter_client import (
    DEFAULT_SYSTEM_PROMPT,
    OPENROUTER_BASE_URL,
    OpenRouterAnswerSource,
)
from llm_visibility.exceptions import (
    AnswerSourceAuthenticationError,
    AnswerSourceError,
    AnswerSourceRateLimitError,
    AnswerSourceResponseError,
    AnswerSourceTimeoutError,
)

COMPLETIONS_URL = f"{OPENROUTER_BASE_URL}/chat/completions"
API_KEY = "sk-or-test-0123456789abcdefghij"
MODELS = {"openai": "openai/gpt-4o-mini", "perplexity": "perplexity/sonar"}


def completion(content, model="openai/gpt-4o-mini", total_tokens=150):
    return {
        "choices": [{"message": {"role": "assistant", "content": content}}],
        "usage": {"prompt_tokens": 100, "completion_tokens": 50, "total_tokens": total_tokens},
        "model": model,
    }


@pytest.fixture
def source():
    return OpenRouterAnswerSource(MODELS, API_KEY)


class TestOpenRouterAnswerSourceInit:
    def test_init_success(self, source):
        assert source.models == MODELS
        assert source.system_prompt == DEFAULT_SYSTEM_PROMPT
        assert source.completions_url == COMPLETIONS_URL

    def test_trailing_slash_in_base_url(self):
        source = OpenRouterAnswerSource(MODELS, API_KEY, base_url="https://llm.local/v1/")

        assert source.completions_url == "https://llm.local/v1/chat/completions"

    def test_empty_models(self):
        with pytest.raises(ValueError, match="models cannot be empty"):
            OpenRouterAnswerSource({}, API_KEY)

    @pytest.mark.parametrize("api_key", ["", "   "])
    def test_empty_api_key(self, api_key):
        with pytest.raises(ValueError, match="api_key cannot be empty"):
            OpenRouterAnswerSource(MODELS, api_key)

    def test_empty_system_prompt(self):
        with pytest.raises(ValueError, match="system_prompt cannot be empty"):
            OpenRouterAnswerSource(MODELS, API_KEY, system_prompt=" ")

    def test_api_key_not_logged(self, caplog):
        with caplog.at_level(logging.DEBUG):
            OpenRouterAnswerSource(MODELS, API_KEY)

        assert API_KEY not in caplog.text


class TestFetchAnswerSuccess:
    @pytest.mark.asyncio
    async def test_fetch_answer(self, source, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=COMPLETIONS_URL,
            json=completion("Acme Card Plus is the best travel card."),
        )

        result = await source.fetch_answer("Best travel cards?", "openai")

        assert isinstance(result, AnswerResult)
        assert result.raw_text == "Acme Card Plus is the best travel card."
        assert result.platform_id == "openai"
        assert result.model_name == "openai/gpt-4o-mini"
        assert result.tokens_used == 150
        assert result.timestamp_utc.endswith("Z")

    @pytest.mark.asyncio
    async def test_sends_model_and_messages(self, source, httpx_mock):
        httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, json=completion("ok"))

        await source.fetch_answer("Best travel cards?", "perplexity")

        request = httpx_mock.get_request()
        payload = json.loads(request.content)
        assert payload["model"] == "perplexity/sonar"
        assert payload["messages"] == [
            {"role": "system", "content": DEFAULT_SYSTEM_PROMPT},
            {"role": "user", "content": "Best travel cards?"},
        ]
        assert request.headers["Authorization"] == f"Bearer {API_KEY}"

    @pytest.mark.asyncio
    async def test_list_content_joined(self, source, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=COMPLETIONS_URL,
            json={
                "choices": [
                    {
                        "message": {
                            "content": [
                                {"type": "text", "text": "Acme "},
                                {"type": "image_url", "image_url": {"url": "x"}},
                                {"type": "text", "text": "wins."},
                            ]
                        }
                    }
                ]
            },
        )

        result = await source.fetch_answer("Best?", "openai")

        assert result.raw_text == "Acme wins."
        assert result.tokens_used == 0
        assert result.model_name == "openai/gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_tokens_summed_without_total(self, source, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=COMPLETIONS_URL,
            json={
                "choices": [{"message": {"content": "ok"}}],
                "usage": {"prompt_tokens": 10, "completion_tokens": 5},
            },
        )

        result = await source.fetch_answer("Best?", "openai")

        assert result.tokens_used == 15


class TestFetchAnswerValidation:
    @pytest.mark.asyncio
    async def test_empty_prompt(self, source):
        with pytest.raises(ValueError, match="Prompt cannot be empty"):
            await source.fetch_answer("  ", "openai")

    @pytest.mark.asyncio
    async def test_unknown_platform(self, source):
        with pytest.raises(AnswerSourceError, match="No model configured") as exc_info:
            await source.fetch_answer("Best?", "gemini")

        assert exc_info.value.platform_id == "gemini"


class TestFetchAnswerErrors:
    @pytest.mark.asyncio
    async def test_retries_server_error(self, source, httpx_mock, no_retry_wait):
        httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, status_code=500)
        httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, json=completion("ok"))

        result = await source.fetch_answer("Best?", "openai")

        assert result.raw_text == "ok"
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_rate_limit_after_retries(self, source, httpx_mock, no_retry_wait):
        for _ in range(3):
            httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, status_code=429)

        with pytest.raises(AnswerSourceRateLimitError) as exc_info:
            await source.fetch_answer("Best?", "openai")

        assert exc_info.value.platform_id == "openai"
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_server_error_after_retries(self, source, httpx_mock, no_retry_wait):
        for _ in range(3):
            httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, status_code=503)

        with pytest.raises(AnswerSourceResponseError, match="status=503"):
            await source.fetch_answer("Best?", "openai")

    @pytest.mark.asyncio
    async def test_timeout_after_retries(self, source, httpx_mock, no_retry_wait):
        for _ in range(3):
            httpx_mock.add_exception(httpx.ReadTimeout("timed out"), url=COMPLETIONS_URL)

        with pytest.raises(AnswerSourceTimeoutError):
            await source.fetch_answer("Best?", "openai")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status_code", [401, 403])
    async def test_auth_errors_not_retried(self, source, httpx_mock, status_code):
        httpx_mock.add_response(
            method="POST",
            url=COMPLETIONS_URL,
            status_code=status_code,
            json={"error": {"message": "Invalid API key"}},
        )

        with pytest.raises(AnswerSourceAuthenticationError, match="non-retryable"):
            await source.fetch_answer("Best?", "openai")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_bad_request_not_retried(self, source, httpx_mock):
        httpx_mock.add_response(
            method="POST",
            url=COMPLETIONS_URL,
            status_code=400,
            json={"error": {"message": "model not found"}},
        )

        with pytest.raises(AnswerSourceResponseError, match="model not found"):
            await source.fetch_answer("Best?", "openai")

        assert len(httpx_mock.get_requests()) == 1

    @pytest.mark.asyncio
    async def test_missing_choices(self, source, httpx_mock):
        httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, json={"id": "x"})

        with pytest.raises(AnswerSourceResponseError, match="Invalid OpenRouter response"):
            await source.fetch_answer("Best?", "openai")

    @pytest.mark.asyncio
    async def test_invalid_json(self, source, httpx_mock):
        httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, text="not json")

        with pytest.raises(AnswerSourceResponseError, match="invalid JSON"):
            await source.fetch_answer("Best?", "openai")

    @pytest.mark.asyncio
    async def test_api_key_never_logged_on_error(self, source, httpx_mock, caplog, no_retry_wait):
        for _ in range(3):
            httpx_mock.add_response(method="POST", url=COMPLETIONS_URL, status_code=500)

        with caplog.at_level(logging.DEBUG), pytest.raises(AnswerSourceResponseError):
            await source.fetch_answer("Best?", "openai")

        assert API_KEY not in caplog.text
