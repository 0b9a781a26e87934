"""Tests for answer_source.mock_source module."""

import pytest

from llm_visibility.answer_source.mock_source import MockAnswerSource
from llm_visibility.answer_source.models import AnswerResult
from llm_visibility.exceptions import AnswerSourceError


class TestMockAnswerSource:
    def test_init_defaults(self):
        source = MockAnswerSource()

        assert source.responses == {}
        assert source.default_response == "Mock answer."
        assert source.calls == []

    @pytest.mark.asyncio
    async def test_configured_prompt(self):
        source = MockAnswerSource(responses={"Best cards?": "Acme is the best."})

        result = await source.fetch_answer("Best cards?", "openai")

        assert isinstance(result, AnswerResult)
        assert result.raw_text == "Acme is the best."
        assert result.platform_id == "openai"
        assert result.model_name == "mock-model"
        assert result.tokens_used == 100
        assert result.timestamp_utc.endswith("Z")

    @pytest.mark.asyncio
    async def test_unconfigured_prompt_uses_default(self):
        source = MockAnswerSource(default_response="Nothing to report.")

        result = await source.fetch_answer("Anything?", "openai")

        assert result.raw_text == "Nothing to report."

    @pytest.mark.asyncio
    async def test_platform_responses_win(self):
        source = MockAnswerSource(
            responses={"Best cards?": "Acme."},
            platform_responses={"perplexity": {"Best cards?": "Globex."}},
        )

        assert (await source.fetch_answer("Best cards?", "openai")).raw_text == "Acme."
        assert (await source.fetch_answer("Best cards?", "perplexity")).raw_text == "Globex."

    @pytest.mark.asyncio
    async def test_failing_platform(self):
        source = MockAnswerSource(failing_platforms={"gemini"})

        with pytest.raises(AnswerSourceError, match="gemini") as exc_info:
            await source.fetch_answer("Best cards?", "gemini")

        assert exc_info.value.platform_id == "gemini"

    @pytest.mark.asyncio
    async def test_records_calls(self):
        source = MockAnswerSource()

        await source.fetch_answer("p1", "openai")
        await source.fetch_answer("p2", "perplexity")

        assert source.calls == [("p1", "openai"), ("p2", "perplexity")]
