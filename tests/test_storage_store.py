"""
Tests for storage/store.py module.

Tests cover:
- Append-only response records
- Filtering by run, partition and date range
- Replace-all semantics for scope aggregates
- Payloads rebuilt into model objects
"""

import sqlite3

import pytest

from llm_visibility.exceptions import DatabaseQueryError
from llm_visibility.metrics.aggregator import aggregate_scope
from llm_visibility.metrics.models import ScopeKey
from llm_visibility.storage.store import MetricsFilter, SQLiteMetricsStore

from metrics_helpers import mention, record


@pytest.fixture
def store(tmp_path):
    return SQLiteMetricsStore(str(tmp_path / "visibility.db"))


@pytest.fixture
def stored_records(store):
    records = [
        record("r1", [mention("A", 2, 1), mention("B")], platform="openai", topic="travel",
               created_at="2025-11-01T08:00:00Z"),
        record("r2", [mention("A"), mention("B", 1, 1)], platform="perplexity", persona="student",
               created_at="2025-11-02T08:00:00Z"),
        record("r3", [mention("A", 1, 1), mention("B", 1, 2)], platform="openai",
               created_at="2025-11-03T08:00:00Z"),
    ]
    for rec in records:
        store.store_response_metrics(rec)
    return records


class TestResponseMetrics:
    def test_round_trip(self, store, stored_records):
        fetched = store.fetch_response_metrics()

        assert fetched == stored_records

    def test_append_only(self, store, stored_records):
        with pytest.raises(DatabaseQueryError, match="append-only"):
            store.store_response_metrics(stored_records[0])

    def test_filter_platform(self, store, stored_records):
        fetched = store.fetch_response_metrics(MetricsFilter(platform="openai"))

        assert [r.response_id for r in fetched] == ["r1", "r3"]

    def test_filter_topic_and_persona(self, store, stored_records):
        assert [r.response_id for r in store.fetch_response_metrics(MetricsFilter(topic="travel"))] == ["r1"]
        assert [r.response_id for r in store.fetch_response_metrics(MetricsFilter(persona="student"))] == ["r2"]

    def test_filter_date_range_inclusive(self, store, stored_records):
        fetched = store.fetch_response_metrics(
            MetricsFilter(date_from="2025-11-02T08:00:00Z", date_to="2025-11-03T08:00:00Z")
        )

        assert [r.response_id for r in fetched] == ["r2", "r3"]

    def test_filter_analysis_id(self, store, stored_records):
        assert len(store.fetch_response_metrics(MetricsFilter(analysis_id="analysis-2025-11-02T08-00-00Z"))) == 3
        assert store.fetch_response_metrics(MetricsFilter(analysis_id="other")) == []

    def test_list_analysis_ids(self, store, stored_records):
        assert store.list_analysis_ids() == ["analysis-2025-11-02T08-00-00Z"]

    def test_filter_sql_is_parameterized(self):
        where, params = MetricsFilter(platform="x' OR 1=1 --").to_sql()

        assert where == "WHERE platform = ?"
        assert params == ["x' OR 1=1 --"]

    def test_empty_filter(self):
        assert MetricsFilter().to_sql() == ("", [])


class TestAggregatedMetrics:
    def test_store_and_fetch(self, store, stored_records):
        aggregate = aggregate_scope(stored_records, ["A", "B"], calculated_at="2025-11-03T09:00:00Z")

        store.store_aggregated_metrics(ScopeKey("overall", "all"), aggregate)

        assert store.fetch_aggregated_metrics("overall") == [aggregate]
        assert store.fetch_aggregated_metrics("overall", "all") == [aggregate]
        assert store.fetch_aggregated_metrics("platform") == []

    def test_replace_for_scope_key(self, store, stored_records):
        key = ScopeKey("platform", "openai")
        first = aggregate_scope(stored_records[:1], ["A", "B"], "platform", "openai")
        second = aggregate_scope(
            [stored_records[0], stored_records[2]], ["A", "B"], "platform", "openai"
        )

        store.store_aggregated_metrics(key, first)
        store.store_aggregated_metrics(key, second)

        fetched = store.fetch_aggregated_metrics("platform", "openai")
        assert len(fetched) == 1
        assert fetched[0].total_responses == 2

    def test_other_scope_keys_untouched(self, store, stored_records):
        openai = aggregate_scope(stored_records[:1], ["A", "B"], "platform", "openai")
        perplexity = aggregate_scope(stored_records[1:2], ["A", "B"], "platform", "perplexity")

        store.store_aggregates(
            {ScopeKey("platform", "openai"): openai, ScopeKey("platform", "perplexity"): perplexity}
        )
        store.store_aggregated_metrics(ScopeKey("platform", "openai"), openai)

        assert [a.scope_value for a in store.fetch_aggregated_metrics("platform")] == [
            "openai",
            "perplexity",
        ]

    def test_query_error_wrapped(self, store, tmp_path):
        with sqlite3.connect(store.db_path) as conn:
            conn.execute("DROP TABLE aggregated_metrics")

        with pytest.raises(DatabaseQueryError):
            store.fetch_aggregated_metrics("overall")
