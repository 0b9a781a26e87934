"""
OpenRouter answer source for LLM Visibility.

Fetches answers from many LLM platforms through one OpenAI-compatible chat
completions endpoint. Each platform id maps to a model identifier, e.g.
{"openai": "openai/gpt-4o-mini", "perplexity": "perplexity/sonar"}.

Key features:
- Async HTTP client (httpx.AsyncClient) for concurrent collection
- Retry on transient failures (429, 5xx) with exponential backoff (tenacity)
- Fail fast on permanent errors (400, 401, 403, 404)
- Upstream failures surface as AnswerSourceError subclasses
- Security: NEVER logs API keys

Example:
    >>> source = OpenRouterAnswerSource(
    ...     models={"openai": "openai/gpt-4o-mini"},
    ...     api_key="sk-or-...",
    ... )
    >>> result = await source.fetch_answer("Best travel cards?", "openai")
    >>> result.raw_text[:40]
    'Here are some of the best travel credit '
"""

import logging
from typing import Any

import httpx

from llm_visibility.answer_source.models import AnswerResult
from llm_visibility.answer_source.retry_config import (
    NO_RETRY_STATUS_CODES,
    REQUEST_TIMEOUT,
    create_retry_decorator,
)
from llm_visibility.config.constants import MAX_PROMPT_LENGTH
from llm_visibility.exceptions import (
    AnswerSourceAuthenticationError,
    AnswerSourceError,
    AnswerSourceRateLimitError,
    AnswerSourceResponseError,
    AnswerSourceTimeoutError,
)
from llm_visibility.utils.time import utc_timestamp

# Suppress HTTPX request logging; request URLs are logged here when needed
httpx_logger = logging.getLogger("httpx")
httpx_logger.setLevel(logging.WARNING)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. When you mention companies, brands or "
    "products, cite sources as markdown links: [text](https://example.com)."
)

logger = logging.getLogger(__name__)


class _PermanentUpstreamError(Exception):
    """Non-retryable HTTP status; converted to an AnswerSourceError by the caller."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"status={status_code}, detail={detail}")
        self.status_code = status_code
        self.detail = detail


class OpenRouterAnswerSource:
    """
    AnswerSource backed by OpenRouter chat completions.

    Attributes:
        models: Platform id -> model identifier
        api_key: OpenRouter API key (NEVER logged)
        system_prompt: System message sent with every request
        base_url: API base URL (any OpenAI-compatible endpoint works)
        timeout: Per-attempt HTTP timeout in seconds

    Retry behavior:
        - Retries on: 429, 500, 502, 503, 504, connection errors, timeouts
        - Fails immediately on: 400, 401, 403, 404
        - Max attempts: 3 (retry_config.MAX_ATTEMPTS)
    """

    def __init__(
        self,
        models: dict[str, str],
        api_key: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        base_url: str = OPENROUTER_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
    ):
        """
        Raises:
            ValueError: If models is empty, api_key or system_prompt is blank
        """
        if not models:
            raise ValueError("models cannot be empty")

        if not api_key or api_key.isspace():
            raise ValueError("api_key cannot be empty")

        if not system_prompt or system_prompt.isspace():
            raise ValueError("system_prompt cannot be empty")

        self.models = dict(models)
        self.api_key = api_key
        self.system_prompt = system_prompt
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

        logger.info(
            f"Initialized OpenRouter answer source for platforms: {sorted(self.models)}"
        )

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    async def fetch_answer(self, prompt_text: str, platform_id: str) -> AnswerResult:
        """
        Fetch one platform's answer to a prompt.

        Args:
            prompt_text: Prompt sent as the user message
            platform_id: Platform whose model answers

        Returns:
            AnswerResult with the raw answer text

        Raises:
            ValueError: If the prompt is empty or too long
            AnswerSourceError: If the platform has no model mapping
            AnswerSourceAuthenticationError: On 401/403
            AnswerSourceRateLimitError: On 429 after retries
            AnswerSourceTimeoutError: On timeouts after retries
            AnswerSourceResponseError: On other HTTP errors or malformed payloads
        """
        if not prompt_text or prompt_text.isspace():
            raise ValueError("Prompt cannot be empty")

        if len(prompt_text) > MAX_PROMPT_LENGTH:
            raise ValueError(
                f"Prompt exceeds maximum length of {MAX_PROMPT_LENGTH:,} characters "
                f"(received {len(prompt_text):,} characters)"
            )

        model_name = self.models.get(platform_id)
        if not model_name:
            raise AnswerSourceError(
                f"No model configured for platform '{platform_id}'", platform_id
            )

        try:
            data = await self._post_completion(model_name, prompt_text)
        except _PermanentUpstreamError as e:
            if e.status_code in (401, 403):
                raise AnswerSourceAuthenticationError(
                    f"OpenRouter rejected credentials (non-retryable): "
                    f"status={e.status_code}, model={model_name}",
                    platform_id,
                ) from e
            raise AnswerSourceResponseError(
                f"OpenRouter API error (non-retryable): {e}, model={model_name}",
                platform_id,
            ) from e
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 429:
                raise AnswerSourceRateLimitError(
                    f"OpenRouter rate limit exceeded after retries: model={model_name}",
                    platform_id,
                ) from e
            raise AnswerSourceResponseError(
                f"OpenRouter API error after retries: "
                f"status={e.response.status_code}, model={model_name}",
                platform_id,
            ) from e
        except httpx.TimeoutException as e:
            raise AnswerSourceTimeoutError(
                f"OpenRouter request timed out: model={model_name}", platform_id
            ) from e
        except httpx.ConnectError as e:
            raise AnswerSourceError(
                f"OpenRouter connection failed: model={model_name}, error={e}",
                platform_id,
            ) from e

        return AnswerResult(
            raw_text=self._extract_answer_text(data, platform_id),
            platform_id=platform_id,
            model_name=data.get("model") or model_name,
            timestamp_utc=utc_timestamp(),
            tokens_used=self._extract_total_tokens(data),
        )

    @create_retry_decorator()
    async def _post_completion(self, model_name: str, prompt_text: str) -> dict[str, Any]:
        """POST one chat completion; retried by tenacity on transient errors."""
        payload = {
            "model": model_name,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt_text},
            ],
        }
        # NEVER log headers
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(f"Sending request to OpenRouter: model={model_name}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(self.completions_url, json=payload, headers=headers)

            if response.status_code in NO_RETRY_STATUS_CODES:
                raise _PermanentUpstreamError(
                    response.status_code, self._extract_error_detail(response)
                )

            if response.is_error:
                logger.warning(
                    f"OpenRouter API HTTP error: status={response.status_code}, "
                    f"model={model_name}, detail={self._extract_error_detail(response)}"
                )
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError as e:
            raise _PermanentUpstreamError(
                response.status_code, f"invalid JSON body: {e}"
            ) from e

        if not isinstance(data, dict):
            raise _PermanentUpstreamError(response.status_code, "JSON body is not an object")
        return data

    @staticmethod
    def _extract_answer_text(data: dict[str, Any], platform_id: str) -> str:
        """
        Extract choices[0].message.content.

        Content may be a string or a list of typed parts; text parts are joined.

        Raises:
            AnswerSourceResponseError: If the payload has no answer content
        """
        try:
            message = data["choices"][0]["message"]
            content = message.get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise AnswerSourceResponseError(
                f"Invalid OpenRouter response structure: {e}", platform_id
            ) from e

        if isinstance(content, list):
            content = "".join(
                part.get("text", "")
                for part in content
                if isinstance(part, dict) and part.get("type") in (None, "text")
            )

        if content is None:
            raise AnswerSourceResponseError(
                "OpenRouter response missing message content", platform_id
            )
        return str(content)

    @staticmethod
    def _extract_total_tokens(data: dict[str, Any]) -> int:
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return 0
        total = usage.get("total_tokens")
        if total is None:
            total = (usage.get("prompt_tokens") or 0) + (usage.get("completion_tokens") or 0)
        return int(total)

    @staticmethod
    def _extract_error_detail(response: httpx.Response) -> str:
        """Best-effort error message from an error response; never includes headers."""
        try:
            body = response.json()
        except ValueError:
            return response.text[:200]
        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict):
                return str(error.get("message", error))
            if error:
                return str(error)
        return str(body)[:200]
