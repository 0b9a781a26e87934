"""
Custom exceptions for LLM Visibility.

Only configuration problems are fatal to callers. Malformed answers, empty
brand names and empty scopes degrade to well-formed empty results instead of
raising, and answer-source failures are recorded and excluded from the run.

Exception Hierarchy:
    LLMVisibilityError (base)
    ├── ConfigurationError
    │   ├── ConfigFileNotFoundError
    │   ├── ConfigValidationError
    │   ├── APIKeyMissingError
    │   ├── BrandRegistryMissingError
    │   └── PersistenceMissingError
    ├── DatabaseError
    │   ├── DatabaseInitError
    │   ├── DatabaseMigrationError
    │   └── DatabaseQueryError
    └── AnswerSourceError
        ├── AnswerSourceAuthenticationError
        ├── AnswerSourceRateLimitError
        ├── AnswerSourceTimeoutError
        └── AnswerSourceResponseError

Usage:
    from llm_visibility.exceptions import ConfigurationError

    try:
        config = load_config(path)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        raise
"""


class LLMVisibilityError(Exception):
    """Base exception for all LLM Visibility errors."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(LLMVisibilityError):
    """
    Base class for configuration-related errors.

    These are the only errors reported to the caller immediately; a run never
    starts with an invalid configuration.
    """

    pass


class ConfigFileNotFoundError(ConfigurationError):
    """Configuration file does not exist at the specified path."""

    pass


class ConfigValidationError(ConfigurationError):
    """
    Configuration file is invalid (schema validation failed).

    Example:
        raise ConfigValidationError("Field 'brands' must be a non-empty list")
    """

    pass


class APIKeyMissingError(ConfigurationError):
    """
    Required API key environment variable is not set.

    Example:
        raise APIKeyMissingError("OPENROUTER_API_KEY environment variable not set")
    """

    pass


class BrandRegistryMissingError(ConfigurationError):
    """
    No tracked brands were supplied for an analysis scope.

    Without a registry there is nothing to detect and no denominators to
    aggregate over.
    """

    pass


class PersistenceMissingError(ConfigurationError):
    """A pipeline run was requested without a metrics store handle."""

    pass


# ============================================================================
# Database Errors
# ============================================================================


class DatabaseError(LLMVisibilityError):
    """Base class for metrics store errors."""

    pass


class DatabaseInitError(DatabaseError):
    """
    Database initialization failed.

    Example:
        raise DatabaseInitError("Failed to create database: permission denied")
    """

    pass


class DatabaseMigrationError(DatabaseError):
    """Database schema migration failed."""

    pass


class DatabaseQueryError(DatabaseError):
    """
    Database query execution failed.

    Example:
        raise DatabaseQueryError("Failed to replace aggregates for platform/openai")
    """

    pass


# ============================================================================
# Answer Source Errors
# ============================================================================


class AnswerSourceError(LLMVisibilityError):
    """
    Base class for answer-source (upstream LLM platform) failures.

    Never fatal to a run: the failing platform contributes zero responses.

    Attributes:
        platform_id: Platform whose call failed, if known
    """

    def __init__(self, message: str, platform_id: str | None = None):
        super().__init__(message)
        self.platform_id = platform_id


class AnswerSourceAuthenticationError(AnswerSourceError):
    """Upstream rejected the API key. Not retried."""

    pass


class AnswerSourceRateLimitError(AnswerSourceError):
    """Upstream rate limit exceeded after retries."""

    pass


class AnswerSourceTimeoutError(AnswerSourceError):
    """Upstream call exceeded its timeout."""

    pass


class AnswerSourceResponseError(AnswerSourceError):
    """
    Upstream returned an unusable payload.

    Example:
        raise AnswerSourceResponseError("Response missing 'choices' field", "openai")
    """

    pass
