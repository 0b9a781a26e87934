"""
Configuration loader for LLM Visibility.

Loads a YAML configuration file, validates it with the Pydantic models in
``schema`` and resolves the answer-source API key from the environment into a
RuntimeConfig. The YAML never holds secrets; it only names the environment
variable that does.

Functions:
    load_config: Main entrypoint to load and validate visibility.config.yaml
    resolve_api_key: Resolve the answer-source API key from the environment
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from llm_visibility.exceptions import (
    APIKeyMissingError,
    ConfigFileNotFoundError,
    ConfigValidationError,
)

from .schema import RuntimeConfig, VisibilityConfig

logger = logging.getLogger(__name__)


def load_config(config_path: str | Path) -> RuntimeConfig:
    """
    Load visibility.config.yaml and resolve the API key from the environment.

    Args:
        config_path: Path to the YAML file (relative or absolute)

    Returns:
        RuntimeConfig ready for a pipeline run

    Raises:
        ConfigFileNotFoundError: If the file doesn't exist
        ConfigValidationError: If YAML is invalid or validation fails
        APIKeyMissingError: If the answer source needs a key that is not set

    Security:
        - Uses yaml.safe_load() to prevent code injection
        - The API key is never logged or written to disk
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with config_path.open(encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigValidationError(f"Invalid YAML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigValidationError(
            f"Failed to read configuration file {config_path}: {e}"
        ) from e

    if raw_config is None:
        raise ConfigValidationError(f"Configuration file is empty: {config_path}")

    try:
        visibility_config = VisibilityConfig.model_validate(raw_config)
    except ValidationError as e:
        error_messages = []
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            error_messages.append(f"  - {loc}: {error['msg']}")

        raise ConfigValidationError(
            f"Configuration validation failed in {config_path}:\n"
            + "\n".join(error_messages)
        ) from e

    api_key = resolve_api_key(visibility_config)

    logger.info(
        f"Loaded configuration from {config_path}: "
        f"{len(visibility_config.brands)} brands, "
        f"{len(visibility_config.platforms)} platforms, "
        f"{len(visibility_config.prompts)} prompts"
    )

    return RuntimeConfig(
        brands=visibility_config.brands,
        platforms=visibility_config.platforms,
        prompts=visibility_config.prompts,
        answer_source=visibility_config.answer_source,
        run_settings=visibility_config.run_settings,
        analysis=visibility_config.analysis,
        api_key=api_key,
    )


def resolve_api_key(config: VisibilityConfig) -> str | None:
    """
    Resolve the answer-source API key from its environment variable.

    Returns None for the mock provider, which needs no key.

    Raises:
        APIKeyMissingError: If the variable is unset or whitespace
    """
    source = config.answer_source
    if source.provider == "mock":
        return None

    env_var_name = source.env_api_key
    api_key = os.environ.get(env_var_name)

    if not api_key:
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} not set "
            f"(required for provider {source.provider}). "
            f"Please set it in your environment or .env file."
        )

    if api_key.isspace():
        raise APIKeyMissingError(
            f"Environment variable ${env_var_name} is empty or whitespace "
            f"(required for provider {source.provider})"
        )

    return api_key
