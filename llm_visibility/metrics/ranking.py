"""
Per-metric ranking of brands within one scope.

Every ranked metric assigns ranks 1..N (1 = best) from a total order:
the metric value, then higher total_mentions, then brand name. Two brands
therefore never share a rank, and re-ranking the same input always yields
the same ranks.
"""

from collections.abc import Callable, Sequence

from llm_visibility.metrics.models import AggregatedBrandMetric

# metric name -> (value getter, higher is better)
RANKED_METRICS: dict[str, tuple[Callable[[AggregatedBrandMetric], float | None], bool]] = {
    "mentions": (lambda m: m.total_mentions, True),
    "share_of_voice": (lambda m: m.share_of_voice, True),
    "avg_position": (lambda m: m.avg_position, False),
    "depth_of_mention": (lambda m: m.depth_of_mention, True),
    "citation_share": (lambda m: m.citation_share, True),
    "visibility": (lambda m: m.visibility_score, True),
    "first": (lambda m: m.position_distribution["first"], True),
    "second": (lambda m: m.position_distribution["second"], True),
    "third": (lambda m: m.position_distribution["third"], True),
}


def ranking_key(metric_name: str) -> Callable[[AggregatedBrandMetric], tuple]:
    """
    Build the sort key for one ranked metric.

    Undefined values (avg_position of an unmentioned brand) sort last.
    """
    getter, higher_is_better = RANKED_METRICS[metric_name]

    def key(metric: AggregatedBrandMetric) -> tuple:
        value = getter(metric)
        if value is None:
            value_key = (1, 0.0)
        else:
            value_key = (0, -value if higher_is_better else value)
        return (value_key, -metric.total_mentions, metric.brand_name)

    return key


def rank_metric(
    metrics: Sequence[AggregatedBrandMetric], metric_name: str
) -> dict[str, int]:
    """
    Rank brands on one metric.

    Example:
        >>> a = AggregatedBrandMetric("A", total_mentions=7)
        >>> b = AggregatedBrandMetric("B", total_mentions=3)
        >>> rank_metric([b, a], "mentions")
        {'A': 1, 'B': 2}
    """
    ordered = sorted(metrics, key=ranking_key(metric_name))
    return {m.brand_name: rank for rank, m in enumerate(ordered, start=1)}


def assign_ranks(metrics: Sequence[AggregatedBrandMetric]) -> None:
    """Fill ``ranks`` on every metric for every ranked metric, in place."""
    all_ranks = {name: rank_metric(metrics, name) for name in RANKED_METRICS}
    for metric in metrics:
        metric.ranks = {name: ranks[metric.brand_name] for name, ranks in all_ranks.items()}
