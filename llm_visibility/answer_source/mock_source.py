"""
Mock answer source for testing.

Provides MockAnswerSource, which implements the AnswerSource protocol without
making network calls. Used for deterministic tests of collection, analysis
and aggregation, and for dry runs with ``provider: mock`` in the config.

Example:
    >>> source = MockAnswerSource(
    ...     responses={"Best travel cards?": "Acme Card Plus is the best."},
    ...     platform_responses={"perplexity": {"Best travel cards?": "Globex leads."}},
    ...     failing_platforms={"gemini"},
    ... )
    >>> (await source.fetch_answer("Best travel cards?", "openai")).raw_text
    'Acme Card Plus is the best.'
    >>> (await source.fetch_answer("Best travel cards?", "perplexity")).raw_text
    'Globex leads.'
"""

import asyncio
import logging
from dataclasses import dataclass, field

from llm_visibility.answer_source.models import AnswerResult
from llm_visibility.exceptions import AnswerSourceError
from llm_visibility.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


@dataclass
class MockAnswerSource:
    """
    Canned answers keyed by prompt text, optionally per platform.

    Attributes:
        responses: Prompt text -> answer used for every platform
        platform_responses: Platform id -> {prompt text -> answer}; wins over
            ``responses``
        default_response: Answer when no mapping matches
        failing_platforms: Platforms whose calls raise AnswerSourceError
        delay_seconds: Sleep before answering (exercises timeouts)
        model_name: Reported model identifier
        tokens_per_response: Reported token usage
        calls: (prompt text, platform id) of every call, in call order
    """

    responses: dict[str, str] = field(default_factory=dict)
    platform_responses: dict[str, dict[str, str]] = field(default_factory=dict)
    default_response: str = "Mock answer."
    failing_platforms: set[str] = field(default_factory=set)
    delay_seconds: float = 0.0
    model_name: str = "mock-model"
    tokens_per_response: int = 100
    calls: list[tuple[str, str]] = field(default_factory=list)

    def __post_init__(self):
        logger.info(
            f"Initialized MockAnswerSource with {len(self.responses)} configured responses"
        )

    async def fetch_answer(self, prompt_text: str, platform_id: str) -> AnswerResult:
        self.calls.append((prompt_text, platform_id))

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

        if platform_id in self.failing_platforms:
            raise AnswerSourceError(
                f"Mock failure for platform '{platform_id}'", platform_id
            )

        platform_map = self.platform_responses.get(platform_id, {})
        raw_text = platform_map.get(
            prompt_text, self.responses.get(prompt_text, self.default_response)
        )

        logger.debug(
            f"MockAnswerSource returning answer for {platform_id}: {prompt_text[:50]}..."
        )

        return AnswerResult(
            raw_text=raw_text,
            platform_id=platform_id,
            model_name=self.model_name,
            timestamp_utc=utc_timestamp(),
            tokens_used=self.tokens_per_response,
        )
