"""
SQLite database initialization and schema management for LLM Visibility.

This module provides database setup with schema versioning and migration support.
All timestamps are stored in ISO 8601 format with 'Z' suffix (UTC).

The database tracks:
- response_metrics: One append-only row per analyzed response (JSON payload
  plus indexed partition columns)
- aggregated_metrics: The current ScopeAggregate per (scope, scope_value),
  replaced wholesale on every aggregation run

Example usage:
    >>> from llm_visibility.storage.db import init_db_if_needed
    >>> init_db_if_needed("./output/visibility.db")
    # Creates database with the current schema if needed
    # Or applies migrations if schema is outdated

Security:
    - ALL queries use parameterized statements to prevent SQL injection
    - NO API keys are ever stored in the database
"""

import logging
import sqlite3
from pathlib import Path

from llm_visibility.exceptions import DatabaseInitError, DatabaseMigrationError
from llm_visibility.utils.time import utc_timestamp

logger = logging.getLogger(__name__)

# Current schema version - increment when migrations are added
CURRENT_SCHEMA_VERSION = 2


def connect(db_path: str) -> sqlite3.Connection:
    """Open a connection with foreign keys enabled and dict-like rows."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db_if_needed(db_path: str) -> None:
    """
    Initialize SQLite database with schema versioning.

    Creates the database file if it doesn't exist, initializes the
    schema_version table, and applies any needed migrations. Idempotent:
    a database already at the current version is left untouched.

    Args:
        db_path: Filesystem path to SQLite database file.
                 Parent directory is created if missing.

    Raises:
        DatabaseInitError: If the file cannot be created or its schema is
            newer than this software supports
        DatabaseMigrationError: If a migration fails (rolled back)
    """
    try:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = connect(db_path)
    except (OSError, sqlite3.Error) as e:
        raise DatabaseInitError(f"Cannot open database {db_path}: {e}") from e

    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL
            )
        """)
        conn.commit()

        current_version = get_schema_version(conn)

        if current_version < CURRENT_SCHEMA_VERSION:
            logger.info(
                f"Database schema upgrade needed: "
                f"v{current_version} -> v{CURRENT_SCHEMA_VERSION}"
            )
            apply_migrations(conn, current_version, CURRENT_SCHEMA_VERSION)
            logger.info(f"Database schema upgraded to v{CURRENT_SCHEMA_VERSION}")
        elif current_version == CURRENT_SCHEMA_VERSION:
            logger.debug(f"Database schema is current (v{CURRENT_SCHEMA_VERSION})")
        else:
            raise DatabaseInitError(
                f"Database schema version {current_version} is newer than "
                f"expected {CURRENT_SCHEMA_VERSION}. Update your software or "
                f"use a different database file."
            )
    except sqlite3.Error as e:
        raise DatabaseInitError(f"Cannot initialize database {db_path}: {e}") from e
    finally:
        conn.close()


def get_schema_version(conn: sqlite3.Connection) -> int:
    """
    Get current schema version from database.

    Returns 0 if no version has been recorded (fresh database). Does NOT
    create the schema_version table.
    """
    cursor = conn.execute("SELECT MAX(version) FROM schema_version")
    result = cursor.fetchone()[0]

    # MAX() returns None if table is empty
    return result if result is not None else 0


def apply_migrations(
    conn: sqlite3.Connection, from_version: int, to_version: int
) -> None:
    """
    Apply schema migrations from one version to another.

    Each migration runs in its own transaction and records itself in
    schema_version. If migration to version N fails the database stays at
    version N-1.

    Args:
        conn: Active SQLite database connection
        from_version: Starting schema version (0 for fresh database)
        to_version: Target schema version (usually CURRENT_SCHEMA_VERSION)

    Raises:
        DatabaseMigrationError: If any migration fails or a downgrade is requested
    """
    if from_version > to_version:
        raise DatabaseMigrationError(
            f"Cannot downgrade schema from v{from_version} to v{to_version}. "
            f"Downgrades are not supported. Use a database backup instead."
        )

    migrations = {1: _migrate_to_v1, 2: _migrate_to_v2}

    for target_version in range(from_version + 1, to_version + 1):
        logger.info(f"Applying migration to schema version {target_version}")

        try:
            conn.execute("BEGIN")

            migration = migrations.get(target_version)
            if migration is None:
                raise ValueError(f"No migration defined for version {target_version}")
            migration(conn)

            timestamp = utc_timestamp()
            conn.execute(
                "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                (target_version, timestamp),
            )

            conn.commit()
            logger.info(
                f"Successfully migrated to schema version {target_version} "
                f"at {timestamp}"
            )

        except (sqlite3.Error, ValueError) as e:
            conn.rollback()
            logger.error(
                f"Migration to version {target_version} failed: {e}", exc_info=True
            )
            raise DatabaseMigrationError(
                f"Failed to migrate database to version {target_version}: {e}"
            ) from e


def _migrate_to_v1(conn: sqlite3.Connection) -> None:
    """
    Create the per-response and aggregate tables.

    Per-response rows are append-only; the full record lives in
    payload_json, and the partition columns are copied out for filtering.
    Aggregates are keyed by (scope, scope_value).
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS response_metrics (
            response_id TEXT PRIMARY KEY,
            analysis_id TEXT NOT NULL,
            prompt_id TEXT NOT NULL,
            platform TEXT NOT NULL,
            topic TEXT,
            persona TEXT,
            created_at TEXT NOT NULL,
            payload_json TEXT NOT NULL
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS aggregated_metrics (
            scope TEXT NOT NULL,
            scope_value TEXT NOT NULL,
            calculated_at TEXT NOT NULL,
            total_responses INTEGER NOT NULL,
            payload_json TEXT NOT NULL,
            PRIMARY KEY (scope, scope_value)
        )
    """)

    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_response_metrics_analysis
        ON response_metrics(analysis_id)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_response_metrics_platform
        ON response_metrics(platform)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_response_metrics_created
        ON response_metrics(created_at)
    """)

    logger.debug("Created schema v1 tables and indexes")


def _migrate_to_v2(conn: sqlite3.Connection) -> None:
    """Add indexes for topic and persona filtering."""
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_response_metrics_topic
        ON response_metrics(topic)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_response_metrics_persona
        ON response_metrics(persona)
    """)

    logger.debug("Created schema v2 indexes")
