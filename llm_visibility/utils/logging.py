"""
Structured JSON logging for LLM Visibility.

Every module logs through ``logging.getLogger(__name__)``; this module only
decides how records are rendered:

- one JSON object per line on stderr
- UTC timestamps with a 'Z' suffix
- optional structured ``context`` and ``analysis_id`` fields
- API keys and bearer tokens redacted before output

Examples:
    >>> from llm_visibility.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbose=True)
    >>> logger = get_logger("metrics.aggregator")
    >>> logger.info("Scope aggregated", extra={"context": {"scope": "platform"}})
"""

import json
import logging
import re
import sys
from typing import Any

from llm_visibility.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    Render log records as single-line JSON.

    Fields: timestamp, level, component (logger name), message, and when
    present ``context`` (dict from extra), ``analysis_id`` and ``exception``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and isinstance(record.context, dict):
            log_entry["context"] = record.context

        if hasattr(record, "analysis_id"):
            log_entry["analysis_id"] = record.analysis_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class SecretRedactingFilter(logging.Filter):
    """
    Mask credentials in log messages, args and context.

    Only the last four characters survive:
    "sk-or-v1-abcdef0123456789abcd" -> "sk-...abcd"
    """

    SECRET_PATTERNS = [
        (re.compile(r"\bsk-[a-zA-Z0-9_-]{20,}\b"), "sk-...{last4}"),
        (re.compile(r"\bBearer\s+[a-zA-Z0-9_.-]{20,}\b"), "Bearer ***{last4}"),
        (re.compile(r"\b[a-zA-Z0-9_-]{40,}\b"), "***{last4}"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact_secrets(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact_secrets(str(v)) for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact_secrets(str(arg)) for arg in record.args
                )

        if hasattr(record, "context") and isinstance(record.context, dict):
            record.context = self._redact_dict(record.context)

        return True

    def _redact_secrets(self, text: str) -> str:
        for pattern, template in self.SECRET_PATTERNS:
            text = pattern.sub(
                lambda match, t=template: t.format(last4=match.group(0)[-4:]), text
            )
        return text

    def _redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._redact_secrets(value)
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self._redact_secrets(v) if isinstance(v, str) else v for v in value
                ]
            else:
                result[key] = value
        return result


def setup_logging(verbose: bool = False) -> None:
    """
    Configure the root logger for JSON output on stderr.

    Replaces any existing root handlers so repeated calls do not duplicate
    output.

    Args:
        verbose: DEBUG level when True, INFO otherwise.
    """
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(SecretRedactingFilter())

    root_logger.addHandler(handler)


def get_logger(component: str) -> logging.Logger:
    """Return the logger for a component name such as "storage.db"."""
    return logging.getLogger(component)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
    analysis_id: str | None = None,
) -> None:
    """
    Log a message with a structured context dict and optional analysis id.

    Example:
        >>> log_with_context(
        ...     logger,
        ...     logging.WARNING,
        ...     "Answer source failed",
        ...     context={"platform": "perplexity", "prompt_id": "p-1"},
        ...     analysis_id="analysis-2025-11-02T08-30-00Z",
        ... )
    """
    extra = {}

    if context is not None:
        extra["context"] = context

    if analysis_id is not None:
        extra["analysis_id"] = analysis_id

    logger.log(level, message, extra=extra if extra else None)
