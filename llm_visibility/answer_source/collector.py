"""
Concurrent answer collection.

Fans (prompt x platform) requests out to an AnswerSource with bounded
concurrency. A failure or timeout on one call never blocks the others:
every failed call becomes a CollectionFailure and the run continues with
whatever completed.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from llm_visibility.answer_source.models import AnswerResult, AnswerSource
from llm_visibility.answer_source.retry_config import call_timeout
from llm_visibility.config import constants
from llm_visibility.config.schema import PromptConfig
from llm_visibility.utils.logging import log_with_context

logger = logging.getLogger(__name__)

# Whole-call budget for the default per-attempt timeout, retries included
DEFAULT_CALL_TIMEOUT_SECONDS = call_timeout(constants.DEFAULT_REQUEST_TIMEOUT_SECONDS)


@dataclass(frozen=True)
class AnswerRequest:
    """One prompt to send to one platform."""

    prompt_id: str
    prompt_text: str
    platform_id: str
    topic: str | None = None
    persona: str | None = None


@dataclass(frozen=True)
class CollectedAnswer:
    request: AnswerRequest
    result: AnswerResult


@dataclass(frozen=True)
class CollectionFailure:
    """
    A request that produced no answer.

    Attributes:
        request: The failed request
        error_type: Exception class name ("AnswerSourceRateLimitError", "TimeoutError", ...)
        error_message: Exception message (never contains API keys)
    """

    request: AnswerRequest
    error_type: str
    error_message: str

    def to_dict(self) -> dict[str, str]:
        return {
            "prompt_id": self.request.prompt_id,
            "platform": self.request.platform_id,
            "error_type": self.error_type,
            "error_message": self.error_message,
        }


@dataclass
class CollectionResult:
    answers: list[CollectedAnswer] = field(default_factory=list)
    failures: list[CollectionFailure] = field(default_factory=list)

    @property
    def failed_platforms(self) -> set[str]:
        """Platforms with at least one failed request."""
        return {f.request.platform_id for f in self.failures}


def build_requests(
    prompts: Iterable[PromptConfig], platforms: Sequence[str]
) -> list[AnswerRequest]:
    """Cross every prompt with every platform, prompt-major order."""
    return [
        AnswerRequest(
            prompt_id=prompt.id,
            prompt_text=prompt.text,
            platform_id=platform,
            topic=prompt.topic,
            persona=prompt.persona,
        )
        for prompt in prompts
        for platform in platforms
    ]


async def collect_answers(
    source: AnswerSource,
    requests: Sequence[AnswerRequest],
    max_concurrent_requests: int = constants.DEFAULT_MAX_CONCURRENT_REQUESTS,
    timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS,
    analysis_id: str | None = None,
    progress_callback: Callable[[], None] | None = None,
) -> CollectionResult:
    """
    Fetch answers for all requests concurrently.

    Args:
        source: AnswerSource to call
        requests: Requests to execute
        max_concurrent_requests: Semaphore size bounding in-flight calls
        timeout_seconds: Whole-call timeout (asyncio.wait_for) covering the
            source's own retries; None disables it
        analysis_id: Run id attached to log records
        progress_callback: Called after each request completes or fails

    Returns:
        CollectionResult with answers and failures in request order

    Example:
        >>> result = await collect_answers(MockAnswerSource(), requests, 5, 10.0)
        >>> len(result.answers) + len(result.failures) == len(requests)
        True
    """
    if max_concurrent_requests < 1:
        raise ValueError("max_concurrent_requests must be at least 1")

    semaphore = asyncio.Semaphore(max_concurrent_requests)
    logger.info(
        f"Collecting {len(requests)} answers "
        f"(max {max_concurrent_requests} concurrent requests)"
    )

    async def _fetch_with_semaphore(request: AnswerRequest) -> AnswerResult:
        async with semaphore:
            try:
                call = source.fetch_answer(request.prompt_text, request.platform_id)
                if timeout_seconds is None:
                    return await call
                return await asyncio.wait_for(call, timeout=timeout_seconds)
            finally:
                if progress_callback:
                    progress_callback()

    results = await asyncio.gather(
        *(_fetch_with_semaphore(r) for r in requests), return_exceptions=True
    )

    collection = CollectionResult()
    for request, result in zip(requests, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                # CancelledError / KeyboardInterrupt must propagate
                raise result
            error_message = str(result) or (
                f"Timed out after {timeout_seconds}s"
                if isinstance(result, TimeoutError)
                else repr(result)
            )
            collection.failures.append(
                CollectionFailure(
                    request=request,
                    error_type=type(result).__name__,
                    error_message=error_message,
                )
            )
            log_with_context(
                logger,
                logging.WARNING,
                f"Answer source call failed: {error_message}",
                context={
                    "platform": request.platform_id,
                    "prompt_id": request.prompt_id,
                    "error_type": type(result).__name__,
                },
                analysis_id=analysis_id,
            )
            continue

        collection.answers.append(CollectedAnswer(request=request, result=result))

    logger.info(
        f"Collected {len(collection.answers)}/{len(requests)} answers, "
        f"{len(collection.failures)} failures"
    )
    return collection
