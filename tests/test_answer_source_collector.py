"""
Tests for answer_source.collector module.

Tests cover:
- Request fan-out (prompt x platform)
- Successful collection
- Failures and timeouts isolated per request
- Concurrency bound
- Failure logging
"""

import asyncio
import logging

import httpx
import pytest

from llm_visibility.answer_source.collector import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    AnswerRequest,
    build_requests,
    collect_answers,
)
from llm_visibility.answer_source.mock_source import MockAnswerSource
from llm_visibility.answer_source.models import AnswerResult
from llm_visibility.answer_source.openrouter_client import OpenRouterAnswerSource
from llm_visibility.answer_source.retry_config import MAX_ATTEMPTS, REQUEST_TIMEOUT, call_timeout


class ConcurrencyTracker:
    """Answer source that records the peak number of in-flight calls."""

    def __init__(self):
        self.in_flight = 0
        self.peak = 0

    async def fetch_answer(self, prompt_text, platform_id):
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        await asyncio.sleep(0.01)
        self.in_flight -= 1
        return AnswerResult(raw_text=prompt_text, platform_id=platform_id)


def make_requests(platforms=("openai", "perplexity"), prompts=("p1", "p2")):
    return [
        AnswerRequest(prompt_id=p, prompt_text=f"Prompt {p}", platform_id=platform)
        for p in prompts
        for platform in platforms
    ]


class TestBuildRequests:
    def test_prompt_major_cross_product(self, prompts):
        requests = build_requests(prompts, ["openai", "perplexity"])

        assert [(r.prompt_id, r.platform_id) for r in requests] == [
            ("best-cards", "openai"),
            ("best-cards", "perplexity"),
            ("cheap-cards", "openai"),
            ("cheap-cards", "perplexity"),
        ]
        assert requests[0].topic == "travel"
        assert requests[0].persona == "frequent flyer"
        assert requests[2].persona is None

    def test_empty(self, prompts):
        assert build_requests(prompts, []) == []


class TestCollectAnswers:
    @pytest.mark.asyncio
    async def test_all_succeed(self):
        source = MockAnswerSource(responses={"Prompt p1": "Acme."})

        result = await collect_answers(source, make_requests())

        assert len(result.answers) == 4
        assert result.failures == []
        assert result.answers[0].result.raw_text == "Acme."
        assert [a.request.platform_id for a in result.answers] == [
            "openai",
            "perplexity",
            "openai",
            "perplexity",
        ]

    @pytest.mark.asyncio
    async def test_failing_platform_isolated(self, caplog):
        source = MockAnswerSource(failing_platforms={"perplexity"})

        with caplog.at_level(logging.WARNING):
            result = await collect_answers(
                source, make_requests(), analysis_id="analysis-test"
            )

        assert len(result.answers) == 2
        assert {a.request.platform_id for a in result.answers} == {"openai"}
        assert len(result.failures) == 2
        assert result.failed_platforms == {"perplexity"}
        assert result.failures[0].error_type == "AnswerSourceError"
        assert result.failures[0].to_dict() == {
            "prompt_id": "p1",
            "platform": "perplexity",
            "error_type": "AnswerSourceError",
            "error_message": "Mock failure for platform 'perplexity'",
        }
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2
        assert warnings[0].analysis_id == "analysis-test"
        assert warnings[0].context["platform"] == "perplexity"

    @pytest.mark.asyncio
    async def test_timeout_recorded_as_failure(self):
        source = MockAnswerSource(delay_seconds=0.5)

        result = await collect_answers(
            source, make_requests(platforms=("openai",), prompts=("p1",)), timeout_seconds=0.01
        )

        assert result.answers == []
        assert result.failures[0].error_type == "TimeoutError"
        assert "Timed out" in result.failures[0].error_message

    @pytest.mark.asyncio
    async def test_default_timeout_leaves_room_for_retries(self, httpx_mock, no_retry_wait):
        source = OpenRouterAnswerSource({"openai": "openai/gpt-4o-mini"}, "sk-or-test-key")
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
        httpx_mock.add_response(
            json={"choices": [{"message": {"content": "Acme is great."}}]}
        )

        result = await collect_answers(
            source, make_requests(platforms=("openai",), prompts=("p1",))
        )

        assert result.failures == []
        assert result.answers[0].result.raw_text == "Acme is great."

    def test_default_timeout_covers_every_attempt(self):
        assert DEFAULT_CALL_TIMEOUT_SECONDS == call_timeout(REQUEST_TIMEOUT)
        assert DEFAULT_CALL_TIMEOUT_SECONDS > REQUEST_TIMEOUT * MAX_ATTEMPTS

    @pytest.mark.asyncio
    async def test_concurrency_bounded(self):
        tracker = ConcurrencyTracker()
        requests = make_requests(prompts=("p1", "p2", "p3", "p4"))

        result = await collect_answers(tracker, requests, max_concurrent_requests=2)

        assert len(result.answers) == 8
        assert tracker.peak <= 2

    @pytest.mark.asyncio
    async def test_progress_callback(self):
        calls = []

        await collect_answers(
            MockAnswerSource(), make_requests(), progress_callback=lambda: calls.append(1)
        )

        assert len(calls) == 4

    @pytest.mark.asyncio
    async def test_invalid_concurrency(self):
        with pytest.raises(ValueError, match="at least 1"):
            await collect_answers(MockAnswerSource(), make_requests(), max_concurrent_requests=0)

    @pytest.mark.asyncio
    async def test_no_requests(self):
        result = await collect_answers(MockAnswerSource(), [])

        assert result.answers == []
        assert result.failures == []
