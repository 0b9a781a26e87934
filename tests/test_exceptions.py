"""Tests for the exception hierarchy."""

import pytest

from llm_visibility.exceptions import (
    AnswerSourceAuthenticationError,
    AnswerSourceError,
    AnswerSourceRateLimitError,
    BrandRegistryMissingError,
    ConfigurationError,
    DatabaseError,
    DatabaseQueryError,
    LLMVisibilityError,
    PersistenceMissingError,
)


@pytest.mark.parametrize(
    "exc_class, parent",
    [
        (BrandRegistryMissingError, ConfigurationError),
        (PersistenceMissingError, ConfigurationError),
        (DatabaseQueryError, DatabaseError),
        (AnswerSourceRateLimitError, AnswerSourceError),
        (AnswerSourceAuthenticationError, AnswerSourceError),
        (ConfigurationError, LLMVisibilityError),
        (DatabaseError, LLMVisibilityError),
        (AnswerSourceError, LLMVisibilityError),
    ],
)
def test_hierarchy(exc_class, parent):
    assert issubclass(exc_class, parent)


def test_answer_source_error_keeps_platform():
    error = AnswerSourceRateLimitError("Rate limited", "perplexity")

    assert str(error) == "Rate limited"
    assert error.platform_id == "perplexity"


def test_answer_source_error_platform_optional():
    assert AnswerSourceError("boom").platform_id is None
