"""
Aggregation & Ranking Engine.

Reduces many ResponseMetrics records into ranked per-brand metrics for each
scope. There is one generic reducer, ``aggregate(records, scope_key_fn,
brands)``, applied with a different partition-key function per scope
(overall, platform, topic, persona).

For brand b over the responses R of one scope:

    total_mentions     = sum of mention_count
    total_appearances  = responses mentioning b
    visibility_score   = total_appearances / |R| * 100
    share_of_voice     = total_mentions / all brands' mentions * 100
    avg_position       = mean first_position over mentioning responses (None if none)
    depth_of_mention   = sum_r sum_{s in sentences(b, r)} word_count(s) * exp(-index(s) / total_sentences(r))
                         / sum_r total_words(r) * 100
    citation_share     = mentioning responses with >= 1 citation / total_appearances * 100
    sentiment_score    = mean sentiment score over mentioning responses
    sentiment_share    = positive-labelled responses / total_appearances * 100
    position_distribution = how often b ranked 1st, 2nd, 3rd within a response

Depth keeps summed numerators and denominators across responses rather
than averaging per-response depths, and normalizes by total response words.

All floating sums use math.fsum, so results do not depend on record order
and re-running on the same records is bit-identical.
"""

import logging
import math
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from llm_visibility.metrics.builder import assign_rank_positions
from llm_visibility.metrics.models import (
    OVERALL_SCOPE_VALUE,
    UNKNOWN_SCOPE_VALUE,
    AggregatedBrandMetric,
    BrandMention,
    ResponseMetrics,
    ScopeAggregate,
    ScopeKey,
)
from llm_visibility.metrics.ranking import assign_ranks
from llm_visibility.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

ScopeKeyFn = Callable[[ResponseMetrics], ScopeKey]

_POSITION_LABELS = {1: "first", 2: "second", 3: "third"}


def overall_key(record: ResponseMetrics) -> ScopeKey:
    return ScopeKey("overall", OVERALL_SCOPE_VALUE)


def platform_key(record: ResponseMetrics) -> ScopeKey:
    return ScopeKey("platform", record.platform or UNKNOWN_SCOPE_VALUE)


def topic_key(record: ResponseMetrics) -> ScopeKey:
    return ScopeKey("topic", record.topic or UNKNOWN_SCOPE_VALUE)


def persona_key(record: ResponseMetrics) -> ScopeKey:
    return ScopeKey("persona", record.persona or UNKNOWN_SCOPE_VALUE)


SCOPE_KEY_FUNCTIONS: dict[str, ScopeKeyFn] = {
    "overall": overall_key,
    "platform": platform_key,
    "topic": topic_key,
    "persona": persona_key,
}


def brand_universe(
    records: Iterable[ResponseMetrics], brands: Iterable[Any]
) -> list[tuple[str, bool]]:
    """
    List the brands a scope reports on, as (name, is_own_brand).

    Registry brands come first in registry order; brand names present in the
    records but not in the registry follow, sorted. ``brands`` may hold
    TrackedBrand / RegisteredBrand objects or plain names.
    """
    universe: dict[str, bool] = {}
    for brand in brands:
        if isinstance(brand, str):
            universe.setdefault(brand, False)
        else:
            universe.setdefault(brand.name, bool(brand.is_own_brand))

    extra: dict[str, bool] = {}
    for record in records:
        for mention in record.brand_metrics:
            if mention.brand_name not in universe:
                extra.setdefault(mention.brand_name, mention.is_own_brand)

    result = list(universe.items())
    result.extend(sorted(extra.items()))
    return result


def _percentage(numerator: float, denominator: float) -> float:
    return numerator / denominator * 100 if denominator else 0.0


def _brand_metric(
    name: str,
    is_own_brand: bool,
    records: Sequence[ResponseMetrics],
    ranked: Sequence[dict[str, int | None]],
    total_words: int,
) -> AggregatedBrandMetric:
    metric = AggregatedBrandMetric(brand_name=name, is_own_brand=is_own_brand)

    mentioning: list[BrandMention] = []
    depth_terms: list[float] = []
    for record, ranks in zip(records, ranked, strict=True):
        mention = record.get(name)
        if mention is None or not mention.mentioned:
            continue
        mentioning.append(mention)

        metric.total_mentions += mention.mention_count
        for sentence in mention.sentences:
            decay = math.exp(-sentence.index / (record.metadata.total_sentences or 1))
            depth_terms.append(sentence.word_count * decay)

        for category, count in mention.citation_counts.items():
            metric.citation_totals[category] += count
        metric.sentiment_breakdown[mention.sentiment.label] += 1

        label = _POSITION_LABELS.get(ranks.get(name))
        if label:
            metric.position_distribution[label] += 1

    appearances = len(mentioning)
    metric.total_appearances = appearances
    metric.visibility_score = _percentage(appearances, len(records))
    metric.total_citations = sum(metric.citation_totals.values())

    if appearances:
        metric.avg_position = math.fsum(m.first_position for m in mentioning) / appearances
        metric.citation_share = _percentage(
            sum(1 for m in mentioning if m.citations), appearances
        )
        metric.sentiment_score = max(
            -1.0, min(1.0, math.fsum(m.sentiment.score for m in mentioning) / appearances)
        )
        metric.sentiment_share = _percentage(
            metric.sentiment_breakdown["positive"], appearances
        )
        metric.depth_of_mention = min(
            100.0, _percentage(math.fsum(depth_terms), total_words)
        )

    return metric


def aggregate_scope(
    records: Iterable[ResponseMetrics],
    brands: Iterable[Any],
    scope: str = "overall",
    scope_value: str = OVERALL_SCOPE_VALUE,
    calculated_at: str | None = None,
) -> ScopeAggregate:
    """
    Reduce one partition of records into a ranked ScopeAggregate.

    Zero records yield a well-formed aggregate with a zero-valued record per
    brand, so callers never need to tell "empty" from "never computed".

    Args:
        records: Responses belonging to this scope
        brands: Registry brands (objects with name/is_own_brand, or names)
        scope: Scope name ("overall", "platform", "topic", "persona")
        scope_value: Partition value ("all", "openai", ...)
        calculated_at: Timestamp to record; defaults to now

    Returns:
        ScopeAggregate with one ranked AggregatedBrandMetric per brand
    """
    records = sorted(records, key=lambda r: r.response_id)
    universe = brand_universe(records, brands)
    ranked = [
        {m.brand_name: m.rank_position for m in assign_rank_positions(r.brand_metrics)}
        for r in records
    ]
    total_words = sum(r.metadata.total_words for r in records)

    metrics = [
        _brand_metric(name, is_own, records, ranked, total_words)
        for name, is_own in universe
    ]

    all_mentions = sum(m.total_mentions for m in metrics)
    for metric in metrics:
        metric.share_of_voice = _percentage(metric.total_mentions, all_mentions)

    assign_ranks(metrics)

    created = [r.created_at for r in records if r.created_at]
    aggregate = ScopeAggregate(
        scope=scope,
        scope_value=scope_value,
        total_responses=len(records),
        total_prompts=len({r.prompt_id for r in records}),
        total_brands=len(metrics),
        date_from=min(created) if created else None,
        date_to=max(created) if created else None,
        calculated_at=calculated_at or utc_timestamp(),
        response_ids=tuple(r.response_id for r in records),
        brand_metrics=metrics,
    )

    logger.debug(
        f"Aggregated scope {scope}/{scope_value}: {len(records)} responses, "
        f"{all_mentions} mentions across {len(metrics)} brands"
    )
    return aggregate


def aggregate(
    records: Iterable[ResponseMetrics],
    scope_key_fn: ScopeKeyFn,
    brands: Iterable[Any],
    expected_keys: Iterable[ScopeKey] = (),
    calculated_at: str | None = None,
) -> dict[ScopeKey, ScopeAggregate]:
    """
    Partition records by ``scope_key_fn`` and reduce every partition.

    Args:
        records: ResponseMetrics to aggregate
        scope_key_fn: Maps a record to its ScopeKey (see overall_key etc.)
        brands: Registry brands
        expected_keys: Keys that must appear even with zero records, e.g.
            configured platforms whose every call failed
        calculated_at: Shared timestamp for every aggregate; defaults to now

    Returns:
        ScopeKey -> ScopeAggregate, sorted by key

    Example:
        >>> results = aggregate(records, platform_key, registry)
        >>> results[ScopeKey("platform", "openai")].get("Acme").share_of_voice
        70.0
    """
    brands = list(brands)
    calculated_at = calculated_at or utc_timestamp()

    partitions: dict[ScopeKey, list[ResponseMetrics]] = defaultdict(list)
    for key in expected_keys:
        partitions[ScopeKey(*key)]
    for record in records:
        partitions[scope_key_fn(record)].append(record)

    return {
        key: aggregate_scope(
            partitions[key], brands, key.scope, key.value, calculated_at=calculated_at
        )
        for key in sorted(partitions)
    }


def aggregate_all_scopes(
    records: Iterable[ResponseMetrics],
    brands: Iterable[Any],
    platforms: Iterable[str] = (),
    calculated_at: str | None = None,
) -> dict[ScopeKey, ScopeAggregate]:
    """
    Aggregate the overall, platform, topic and persona scopes in one pass.

    The overall scope is always present. Every platform in ``platforms``
    gets a platform scope, even when none of its calls succeeded.
    """
    records = list(records)
    brands = list(brands)
    calculated_at = calculated_at or utc_timestamp()

    expected: dict[str, list[ScopeKey]] = {
        "overall": [ScopeKey("overall", OVERALL_SCOPE_VALUE)],
        "platform": [ScopeKey("platform", p) for p in platforms],
    }

    results: dict[ScopeKey, ScopeAggregate] = {}
    for scope, key_fn in SCOPE_KEY_FUNCTIONS.items():
        results.update(
            aggregate(
                records,
                key_fn,
                brands,
                expected_keys=expected.get(scope, ()),
                calculated_at=calculated_at,
            )
        )

    logger.info(
        f"Aggregated {len(records)} responses into {len(results)} scopes "
        f"for {len(brands)} brands"
    )
    return results
