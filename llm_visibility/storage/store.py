"""
Metrics persistence.

MetricsStore is the persistence collaborator of a visibility run:
per-response records are appended and never updated, while scope
aggregates replace the previous set for their scope key.

SQLiteMetricsStore implements it on sqlite3 with JSON payloads. Each call
opens and closes its own connection, so one store may be shared by the
pipeline and request handlers.
"""

import json
import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Protocol

from llm_visibility.exceptions import DatabaseQueryError
from llm_visibility.metrics.models import ResponseMetrics, ScopeAggregate, ScopeKey
from llm_visibility.storage.db import connect, init_db_if_needed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricsFilter:
    """
    Selects stored response records. Unset fields match everything.

    date_from / date_to are inclusive ISO 8601 'Z' timestamps compared
    lexically against created_at.
    """

    analysis_id: str | None = None
    platform: str | None = None
    topic: str | None = None
    persona: str | None = None
    date_from: str | None = None
    date_to: str | None = None

    def to_sql(self) -> tuple[str, list[str]]:
        """Build a WHERE clause (possibly empty) and its parameters."""
        clauses: list[str] = []
        params: list[str] = []
        for column in ("analysis_id", "platform", "topic", "persona"):
            value = getattr(self, column)
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if self.date_from is not None:
            clauses.append("created_at >= ?")
            params.append(self.date_from)
        if self.date_to is not None:
            clauses.append("created_at <= ?")
            params.append(self.date_to)
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        return where, params


class MetricsStore(Protocol):
    """Persistence collaborator for response records and scope aggregates."""

    def store_response_metrics(self, record: ResponseMetrics) -> None: ...

    def store_aggregated_metrics(
        self, scope_key: ScopeKey, aggregate: ScopeAggregate
    ) -> None: ...

    def fetch_response_metrics(
        self, metrics_filter: MetricsFilter | None = None
    ) -> list[ResponseMetrics]: ...

    def fetch_aggregated_metrics(
        self, scope: str, scope_value: str | None = None
    ) -> list[ScopeAggregate]: ...


class SQLiteMetricsStore:
    """
    MetricsStore backed by a SQLite file.

    The schema is created or migrated on construction.

    Example:
        >>> store = SQLiteMetricsStore("./output/visibility.db")
        >>> store.store_response_metrics(record)
        >>> store.fetch_response_metrics(MetricsFilter(platform="openai"))
        [ResponseMetrics(...)]
    """

    def __init__(self, db_path: str):
        self.db_path = str(db_path)
        init_db_if_needed(self.db_path)

    def store_response_metrics(self, record: ResponseMetrics) -> None:
        """
        Append one response record.

        Raises:
            DatabaseQueryError: If the response_id already exists or the write fails
        """
        payload = json.dumps(record.to_dict(), sort_keys=True)
        conn = connect(self.db_path)
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO response_metrics (
                        response_id,
                        analysis_id,
                        prompt_id,
                        platform,
                        topic,
                        persona,
                        created_at,
                        payload_json
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.response_id,
                        record.analysis_id,
                        record.prompt_id,
                        record.platform,
                        record.topic,
                        record.persona,
                        record.created_at,
                        payload,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DatabaseQueryError(
                f"Response {record.response_id} is already stored; "
                f"response records are append-only"
            ) from e
        except sqlite3.Error as e:
            raise DatabaseQueryError(
                f"Failed to store response {record.response_id}: {e}"
            ) from e
        finally:
            conn.close()

        logger.debug(f"Stored response metrics {record.response_id}")

    def store_aggregated_metrics(
        self, scope_key: ScopeKey, aggregate: ScopeAggregate
    ) -> None:
        """
        Replace the stored aggregate for ``scope_key``.

        Delete and insert run in one transaction, so readers never see an
        empty or half-written scope.
        """
        scope, scope_value = scope_key
        payload = json.dumps(aggregate.to_dict(), sort_keys=True)
        conn = connect(self.db_path)
        try:
            with conn:
                conn.execute(
                    "DELETE FROM aggregated_metrics WHERE scope = ? AND scope_value = ?",
                    (scope, scope_value),
                )
                conn.execute(
                    """
                    INSERT INTO aggregated_metrics (
                        scope,
                        scope_value,
                        calculated_at,
                        total_responses,
                        payload_json
                    ) VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        scope,
                        scope_value,
                        aggregate.calculated_at or "",
                        aggregate.total_responses,
                        payload,
                    ),
                )
        except sqlite3.Error as e:
            raise DatabaseQueryError(
                f"Failed to store aggregate {scope}/{scope_value}: {e}"
            ) from e
        finally:
            conn.close()

        logger.debug(f"Stored aggregate {scope}/{scope_value}")

    def store_aggregates(self, aggregates: dict[ScopeKey, ScopeAggregate]) -> None:
        """Replace every aggregate in ``aggregates``."""
        for key, aggregate in aggregates.items():
            self.store_aggregated_metrics(key, aggregate)

    def fetch_response_metrics(
        self, metrics_filter: MetricsFilter | None = None
    ) -> list[ResponseMetrics]:
        """Return matching response records ordered by response_id."""
        where, params = (metrics_filter or MetricsFilter()).to_sql()
        rows = self._query(
            f"SELECT payload_json FROM response_metrics {where} ORDER BY response_id",
            params,
        )
        return [ResponseMetrics.from_dict(json.loads(row["payload_json"])) for row in rows]

    def fetch_aggregated_metrics(
        self, scope: str, scope_value: str | None = None
    ) -> list[ScopeAggregate]:
        """Return stored aggregates for a scope, optionally one scope value."""
        if scope_value is None:
            rows = self._query(
                "SELECT payload_json FROM aggregated_metrics "
                "WHERE scope = ? ORDER BY scope_value",
                [scope],
            )
        else:
            rows = self._query(
                "SELECT payload_json FROM aggregated_metrics "
                "WHERE scope = ? AND scope_value = ?",
                [scope, scope_value],
            )
        return [ScopeAggregate.from_dict(json.loads(row["payload_json"])) for row in rows]

    def list_analysis_ids(self) -> list[str]:
        rows = self._query(
            "SELECT DISTINCT analysis_id FROM response_metrics ORDER BY analysis_id", []
        )
        return [row["analysis_id"] for row in rows]

    def _query(self, sql: str, params: Iterable[str]) -> list[sqlite3.Row]:
        conn = connect(self.db_path)
        try:
            return conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as e:
            raise DatabaseQueryError(f"Query failed: {e}") from e
        finally:
            conn.close()
