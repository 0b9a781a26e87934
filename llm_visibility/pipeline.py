"""
Visibility run orchestration.

A run collects answers for every (prompt, platform) pair, analyzes each
answer against the brand registry, stores one ResponseMetrics record per
answer, then recomputes and replaces the scope aggregates.

Failed answer-source calls are logged, excluded from aggregation and
listed in the run summary. Configuration problems (no brand registry, no
store) abort the run before any answer is requested.
"""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from llm_visibility.answer_source.collector import (
    DEFAULT_CALL_TIMEOUT_SECONDS,
    CollectedAnswer,
    build_requests,
    collect_answers,
)
from llm_visibility.answer_source.models import AnswerSource, build_answer_source
from llm_visibility.answer_source.retry_config import call_timeout
from llm_visibility.config import constants
from llm_visibility.config.schema import AnalysisSettings, PromptConfig, RuntimeConfig
from llm_visibility.exceptions import BrandRegistryMissingError, PersistenceMissingError
from llm_visibility.extractor.analyzer import ResponseAnalyzer
from llm_visibility.extractor.registry import BrandRegistry
from llm_visibility.metrics.aggregator import aggregate_all_scopes
from llm_visibility.metrics.builder import build_response_metrics
from llm_visibility.metrics.models import ScopeAggregate, ScopeKey
from llm_visibility.storage.store import MetricsFilter, MetricsStore, SQLiteMetricsStore
from llm_visibility.utils.logging import log_with_context
from llm_visibility.utils.time import analysis_id_from_timestamp, utc_now, utc_timestamp

logger = logging.getLogger(__name__)


async def run_visibility_analysis(
    registry: BrandRegistry | None,
    prompts: Sequence[PromptConfig],
    platforms: Sequence[str],
    source: AnswerSource,
    store: MetricsStore | None,
    settings: AnalysisSettings | None = None,
    max_concurrent_requests: int = constants.DEFAULT_MAX_CONCURRENT_REQUESTS,
    timeout_seconds: float | None = DEFAULT_CALL_TIMEOUT_SECONDS,
    analysis_id: str | None = None,
) -> dict[str, Any]:
    """
    Execute one visibility run and return its summary.

    Args:
        registry: Tracked brands; required
        prompts: Prompts to send to every platform
        platforms: Answer-source platform ids
        source: AnswerSource producing the answers
        store: MetricsStore receiving records and aggregates; required
        settings: Analyzer settings (patterns are already baked into registry)
        max_concurrent_requests: Bound on in-flight answer-source calls
        timeout_seconds: Whole-call timeout per answer, retries included
        analysis_id: Run id; defaults to "analysis-<UTC timestamp>"

    Returns:
        Summary dict:
        {
            "analysis_id": "analysis-2025-11-02T08-00-00Z",
            "timestamp_utc": "2025-11-02T08:00:00Z",
            "total_prompts": 3,
            "total_platforms": 2,
            "total_requests": 6,
            "success_count": 5,
            "error_count": 1,
            "errors": [{"prompt_id": ..., "platform": ..., "error_type": ..., "error_message": ...}],
            "response_ids": [...],
            "scopes": ["overall/all", "platform/openai", ...],
            "aggregates": {ScopeKey: ScopeAggregate},
        }

    Raises:
        BrandRegistryMissingError: If registry is None or empty
        PersistenceMissingError: If store is None
    """
    if registry is None or len(registry) == 0:
        raise BrandRegistryMissingError(
            "A brand registry with at least one tracked brand is required"
        )
    if store is None:
        raise PersistenceMissingError("A metrics store is required to run an analysis")

    now = utc_now()
    analysis_id = analysis_id or analysis_id_from_timestamp(now)
    timestamp = utc_timestamp(now)

    requests = build_requests(prompts, platforms)
    log_with_context(
        logger,
        logging.INFO,
        f"Starting visibility analysis: {len(prompts)} prompts x "
        f"{len(platforms)} platforms, {len(registry)} brands",
        analysis_id=analysis_id,
    )

    collection = await collect_answers(
        source,
        requests,
        max_concurrent_requests=max_concurrent_requests,
        timeout_seconds=timeout_seconds,
        analysis_id=analysis_id,
    )

    # Analysis and sqlite I/O block; keep them off the caller's event loop
    response_ids = await asyncio.to_thread(
        analyze_and_store,
        collection.answers,
        ResponseAnalyzer(registry, settings),
        store,
        analysis_id,
        timestamp,
    )

    aggregates = await asyncio.to_thread(
        reaggregate,
        store,
        registry,
        MetricsFilter(analysis_id=analysis_id),
        platforms,
        timestamp,
    )

    summary = {
        "analysis_id": analysis_id,
        "timestamp_utc": timestamp,
        "total_prompts": len(prompts),
        "total_platforms": len(platforms),
        "total_requests": len(requests),
        "success_count": len(collection.answers),
        "error_count": len(collection.failures),
        "errors": [failure.to_dict() for failure in collection.failures],
        "response_ids": response_ids,
        "scopes": [f"{key.scope}/{key.value}" for key in aggregates],
        "aggregates": aggregates,
    }

    log_with_context(
        logger,
        logging.INFO,
        f"Visibility analysis complete: {summary['success_count']}/"
        f"{summary['total_requests']} answers analyzed, "
        f"{len(aggregates)} scopes aggregated",
        context={"error_count": summary["error_count"]},
        analysis_id=analysis_id,
    )
    return summary


def analyze_and_store(
    answers: Sequence[CollectedAnswer],
    analyzer: ResponseAnalyzer,
    store: MetricsStore,
    analysis_id: str,
    timestamp: str,
) -> list[str]:
    """Analyze each collected answer, store its record and return the response ids."""
    response_ids: list[str] = []
    for answer in answers:
        request = answer.request
        analysis = analyzer.analyze(answer.result.raw_text)
        record = build_response_metrics(
            analysis,
            analysis_id=analysis_id,
            prompt_id=request.prompt_id,
            platform=request.platform_id,
            prompt_text=request.prompt_text,
            topic=request.topic,
            persona=request.persona,
            created_at=answer.result.timestamp_utc or timestamp,
        )
        store.store_response_metrics(record)
        response_ids.append(record.response_id)
    return response_ids


def reaggregate(
    store: MetricsStore,
    brands: Any,
    metrics_filter: MetricsFilter | None = None,
    platforms: Sequence[str] = (),
    calculated_at: str | None = None,
) -> dict[ScopeKey, ScopeAggregate]:
    """
    Recompute aggregates from stored records and replace them in the store.

    Args:
        store: MetricsStore holding the response records
        brands: BrandRegistry, TrackedBrand list or brand names
        metrics_filter: Which stored records to aggregate (default: all)
        platforms: Platforms that get a platform scope even with no records
        calculated_at: Timestamp recorded on every aggregate

    Returns:
        The aggregates written, keyed by ScopeKey
    """
    records = store.fetch_response_metrics(metrics_filter)
    aggregates = aggregate_all_scopes(
        records, brands, platforms=platforms, calculated_at=calculated_at
    )
    for key, aggregate in aggregates.items():
        store.store_aggregated_metrics(key, aggregate)
    return aggregates


async def run_from_config(
    config: RuntimeConfig,
    source: AnswerSource | None = None,
    store: MetricsStore | None = None,
) -> dict[str, Any]:
    """
    Run an analysis described by a loaded configuration.

    The answer source and store default to the ones the configuration
    describes (build_answer_source, SQLiteMetricsStore at sqlite_db_path).
    """
    registry = BrandRegistry(config.brands, config.analysis.patterns)
    source = source or build_answer_source(config)
    store = store or SQLiteMetricsStore(config.run_settings.sqlite_db_path)

    return await run_visibility_analysis(
        registry,
        config.prompts,
        config.platforms,
        source,
        store,
        settings=config.analysis,
        max_concurrent_requests=config.run_settings.max_concurrent_requests,
        timeout_seconds=call_timeout(config.run_settings.request_timeout_seconds),
    )
