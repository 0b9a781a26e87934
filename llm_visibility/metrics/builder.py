"""
Per-Response Metric Builder.

Assembles Response Analyzer output for one response into the stored
ResponseMetrics record: every tracked brand gets a BrandMention (zero record
when unmentioned) plus a within-response rank.

Within-response rank orders the mentioned brands by first position
(earlier first), then mention count (more first), then brand name, so the
result is fully deterministic. Unmentioned brands get no rank.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

from llm_visibility.extractor.analyzer import ResponseAnalysis
from llm_visibility.metrics.models import BrandMention, ResponseMetrics
from llm_visibility.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


def rank_order_key(mention: BrandMention) -> tuple:
    """Sort key for within-response rank; unmentioned brands sort last."""
    return (
        mention.first_position is None,
        mention.first_position or 0,
        -mention.mention_count,
        mention.brand_name,
    )


def assign_rank_positions(mentions: Sequence[BrandMention]) -> tuple[BrandMention, ...]:
    """
    Return the mentions with ``rank_position`` set, in their original order.

    Example:
        >>> a = BrandMention("A", mentioned=True, mention_count=1, first_position=2)
        >>> b = BrandMention("B", mentioned=True, mention_count=3, first_position=1)
        >>> c = BrandMention("C")
        >>> [m.rank_position for m in assign_rank_positions([a, b, c])]
        [2, 1, None]
    """
    ranked = sorted((m for m in mentions if m.mentioned), key=rank_order_key)
    ranks = {m.brand_name: position for position, m in enumerate(ranked, start=1)}
    return tuple(replace(m, rank_position=ranks.get(m.brand_name)) for m in mentions)


def make_response_id(analysis_id: str, platform: str, prompt_id: str) -> str:
    """Deterministic id for one (run, platform, prompt) answer."""
    return f"{analysis_id}:{platform}:{prompt_id}"


def build_response_metrics(
    analysis: ResponseAnalysis,
    *,
    analysis_id: str,
    prompt_id: str,
    platform: str,
    prompt_text: str = "",
    topic: str | None = None,
    persona: str | None = None,
    response_id: str | None = None,
    created_at: str | None = None,
) -> ResponseMetrics:
    """
    Build the stored record for one analyzed response.

    Args:
        analysis: Response Analyzer output
        analysis_id: Run identifier
        prompt_id: Prompt the answer was produced for
        platform: Answer-source platform id
        prompt_text: Prompt text (kept for re-analysis and reporting)
        topic: Topic partition value
        persona: Persona partition value
        response_id: Defaults to make_response_id(analysis_id, platform, prompt_id)
        created_at: Defaults to now (UTC, 'Z' suffix)

    Returns:
        Immutable ResponseMetrics with ranked brand mentions
    """
    record = ResponseMetrics(
        response_id=response_id or make_response_id(analysis_id, platform, prompt_id),
        analysis_id=analysis_id,
        prompt_id=prompt_id,
        prompt_text=prompt_text,
        platform=platform,
        created_at=created_at or utc_timestamp(),
        metadata=analysis.metadata,
        brand_metrics=assign_rank_positions(analysis.mentions),
        topic=topic,
        persona=persona,
    )
    logger.debug(
        f"Built metrics for response {record.response_id}: "
        f"{sum(1 for m in record.brand_metrics if m.mentioned)} brands mentioned"
    )
    return record
