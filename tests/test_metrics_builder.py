"""Tests for metrics.builder module."""

from freezegun import freeze_time

from llm_visibility.config.schema import TrackedBrand
from llm_visibility.extractor.analyzer import analyze_response
from llm_visibility.extractor.registry import BrandRegistry
from llm_visibility.metrics.builder import (
    assign_rank_positions,
    build_response_metrics,
    make_response_id,
)

from metrics_helpers import mention


class TestAssignRankPositions:
    def test_orders_by_first_position(self):
        ranked = assign_rank_positions(
            [mention("A", 1, 2), mention("B", 3, 1), mention("C")]
        )

        assert [m.rank_position for m in ranked] == [2, 1, None]
        assert [m.brand_name for m in ranked] == ["A", "B", "C"]

    def test_ties_broken_by_count_then_name(self):
        ranked = assign_rank_positions(
            [mention("Zeta", 1, 1), mention("Beta", 1, 1), mention("Alpha", 2, 1)]
        )

        assert {m.brand_name: m.rank_position for m in ranked} == {
            "Alpha": 1,
            "Beta": 2,
            "Zeta": 3,
        }

    def test_no_mentions(self):
        ranked = assign_rank_positions([mention("A"), mention("B")])

        assert all(m.rank_position is None for m in ranked)


class TestBuildResponseMetrics:
    @freeze_time("2025-11-02T08:30:45Z")
    def test_builds_ranked_record(self):
        registry = BrandRegistry.from_names(["Acme"], ["Globex", "Initech"])
        analysis = analyze_response("Globex leads. Acme follows. Globex again.", registry)

        record = build_response_metrics(
            analysis,
            analysis_id="analysis-2025-11-02T08-30-45Z",
            prompt_id="best-cards",
            platform="openai",
            prompt_text="Best cards?",
            topic="travel",
        )

        assert record.response_id == "analysis-2025-11-02T08-30-45Z:openai:best-cards"
        assert record.created_at == "2025-11-02T08:30:45Z"
        assert record.topic == "travel"
        assert record.persona is None
        assert record.metadata.total_sentences == 3
        assert [m.brand_name for m in record.brand_metrics] == ["Acme", "Globex", "Initech"]
        assert record.get("Globex").rank_position == 1
        assert record.get("Acme").rank_position == 2
        assert record.get("Initech").rank_position is None

    def test_explicit_ids(self):
        registry = BrandRegistry([TrackedBrand(name="Acme")])
        analysis = analyze_response("Acme.", registry)

        record = build_response_metrics(
            analysis,
            analysis_id="a1",
            prompt_id="p1",
            platform="perplexity",
            response_id="custom",
            created_at="2025-01-01T00:00:00Z",
        )

        assert record.response_id == "custom"
        assert record.created_at == "2025-01-01T00:00:00Z"

    def test_make_response_id(self):
        assert make_response_id("a1", "openai", "p1") == "a1:openai:p1"
