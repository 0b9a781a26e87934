"""
Retry configuration for answer-source HTTP calls.

Centralized tenacity retry policy so every HTTP answer source backs off the
same way.

Key features:
- Exponential backoff with capped wait
- Retry on network errors, timeouts and retryable statuses (429, 5xx)
- Fail fast on client errors (400, 401, 403, 404)

Example:
    >>> @create_retry_decorator()
    ... async def call_platform():
    ...     # Will retry on 429, 5xx with exponential backoff
    ...     pass
"""

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

# Total attempts = 1 initial + 2 retries
MAX_ATTEMPTS = 3

MIN_WAIT_SECONDS = 1
MAX_WAIT_SECONDS = 60

# 429: rate limit, 500-504: server errors
RETRY_STATUS_CODES = frozenset([429, 500, 502, 503, 504])

# Permanent failures; retrying cannot fix them
NO_RETRY_STATUS_CODES = frozenset([400, 401, 403, 404])

# Per-attempt HTTP timeout in seconds
REQUEST_TIMEOUT = 60.0


def call_timeout(attempt_timeout: float, max_attempts: int = MAX_ATTEMPTS) -> float:
    """
    Upper bound on one retried call: every attempt times out and the full
    backoff is waited between attempts.

    A caller-side timeout (asyncio.wait_for) shorter than this would cancel
    the call before tenacity gets to retry a timed-out attempt.

    Example:
        >>> call_timeout(60.0)  # 3 attempts of 60s + waits of 1s and 2s
        183.0
    """
    backoff = sum(
        min(max(2 ** (attempt - 1), MIN_WAIT_SECONDS), MAX_WAIT_SECONDS)
        for attempt in range(1, max_attempts)
    )
    return float(attempt_timeout * max_attempts + backoff)


def create_retry_decorator(max_attempts: int = MAX_ATTEMPTS):
    """
    Create a tenacity retry decorator for answer-source calls.

    Retries on httpx.HTTPStatusError, httpx.ConnectError and
    httpx.TimeoutException. The caller raises a non-httpx exception for
    NO_RETRY_STATUS_CODES so permanent errors are not retried. The last
    exception is re-raised once attempts are exhausted.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=MIN_WAIT_SECONDS,
            max=MAX_WAIT_SECONDS,
        ),
        retry=retry_if_exception_type(
            (
                httpx.HTTPStatusError,
                httpx.ConnectError,
                httpx.TimeoutException,
            )
        ),
        reraise=True,
    )
