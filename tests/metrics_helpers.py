"""Builders for hand-made metric records used across the metrics tests."""

from llm_visibility.extractor.sentiment import SentimentResult
from llm_visibility.metrics.builder import assign_rank_positions
from llm_visibility.metrics.models import BrandMention, ResponseMetadata, ResponseMetrics


def mention(name, count=0, first=None, citations=(), sentiment=None, sentences=(), own=False):
    return BrandMention(
        brand_name=name,
        is_own_brand=own,
        mentioned=count > 0,
        mention_count=count,
        first_position=first,
        sentences=tuple(sentences),
        total_word_count=sum(s.word_count for s in sentences),
        citations=tuple(citations),
        sentiment=sentiment or SentimentResult(),
    )


def record(
    response_id,
    mentions,
    platform="openai",
    topic=None,
    persona=None,
    prompt_id=None,
    total_sentences=3,
    total_words=10,
    created_at="2025-11-02T08:00:00Z",
):
    return ResponseMetrics(
        response_id=response_id,
        analysis_id="analysis-2025-11-02T08-00-00Z",
        prompt_id=prompt_id or response_id,
        prompt_text="Best cards?",
        platform=platform,
        created_at=created_at,
        metadata=ResponseMetadata(total_sentences=total_sentences, total_words=total_words),
        brand_metrics=assign_rank_positions(mentions),
        topic=topic,
        persona=persona,
    )
