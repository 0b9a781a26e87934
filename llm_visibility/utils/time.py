"""
UTC timestamp helpers for LLM Visibility.

Every timestamp written to the metrics store or the logs is UTC with an
explicit 'Z' suffix. Naive datetimes are rejected.

Examples:
    >>> from llm_visibility.utils.time import utc_timestamp, analysis_id_from_timestamp
    >>> utc_timestamp()
    '2025-11-02T08:30:45Z'
    >>> analysis_id_from_timestamp()
    'analysis-2025-11-02T08-30-45Z'
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(UTC)


def utc_timestamp(dt: datetime | None = None) -> str:
    """
    Format a datetime as an ISO 8601 string with a 'Z' suffix.

    Args:
        dt: Timezone-aware datetime. Defaults to utc_now().

    Returns:
        Timestamp such as '2025-11-02T08:30:45Z'

    Raises:
        ValueError: If dt is naive
    """
    if dt is None:
        dt = utc_now()
    if dt.tzinfo is None:
        raise ValueError("Datetime must be timezone-aware (use UTC)")
    return dt.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def analysis_id_from_timestamp(dt: datetime | None = None) -> str:
    """
    Build an analysis identifier from a UTC timestamp.

    The slug has no colons so it is safe in URLs and file names, and it still
    sorts chronologically.

    Args:
        dt: Timezone-aware datetime. Defaults to utc_now().

    Returns:
        Identifier such as 'analysis-2025-11-02T08-30-45Z'

    Raises:
        ValueError: If dt is naive

    Example:
        >>> from datetime import UTC, datetime
        >>> analysis_id_from_timestamp(datetime(2025, 11, 2, 8, 30, 45, tzinfo=UTC))
        'analysis-2025-11-02T08-30-45Z'
    """
    if dt is None:
        dt = utc_now()
    if dt.tzinfo is None:
        raise ValueError(
            "Datetime must be timezone-aware (use UTC). "
            "Got naive datetime; use utc_now() or set tzinfo."
        )
    return "analysis-" + dt.astimezone(UTC).strftime("%Y-%m-%dT%H-%M-%SZ")


def parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse a 'Z'-suffixed ISO 8601 string into an aware UTC datetime.

    Raises:
        ValueError: If the suffix is missing or the format is invalid

    Example:
        >>> parse_timestamp("2025-11-02T08:30:45Z").year
        2025
    """
    if not timestamp_str.endswith("Z"):
        raise ValueError(f"Timestamp must end with 'Z' (UTC): {timestamp_str}")

    try:
        return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except ValueError as e:
        raise ValueError(f"Invalid ISO 8601 timestamp format: {timestamp_str}") from e
