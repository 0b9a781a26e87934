"""
Tests for config.schema module.

Tests cover:
- TrackedBrand name and domain normalization
- PromptConfig validation
- PatternSettings / SentimentSettings table normalization and bounds
- AnswerSourceConfig provider requirements
- RunSettings bounds
- VisibilityConfig cross-field validation
"""

import pytest
from pydantic import ValidationError

from llm_visibility.config import constants
from llm_visibility.config.schema import (
    AnalysisSettings,
    AnswerSourceConfig,
    PatternSettings,
    PromptConfig,
    RunSettings,
    SentimentSettings,
    TrackedBrand,
    VisibilityConfig,
)


class TestTrackedBrand:
    def test_defaults(self):
        brand = TrackedBrand(name="Acme")

        assert brand.name == "Acme"
        assert brand.is_own_brand is False
        assert brand.domains == []

    def test_name_is_stripped(self):
        assert TrackedBrand(name="  Acme Card Plus ").name == "Acme Card Plus"

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError, match="brand name cannot be empty"):
            TrackedBrand(name="   ")

    def test_domains_normalized(self):
        brand = TrackedBrand(
            name="Acme",
            domains=["https://www.Acme.com/cards", "acme.com", "http://blog.acme.com"],
        )

        assert brand.domains == ["acme.com", "blog.acme.com"]


class TestPromptConfig:
    def test_optional_partitions(self):
        prompt = PromptConfig(id="p1", text="Best cards?")

        assert prompt.topic is None
        assert prompt.persona is None

    def test_empty_text_rejected(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            PromptConfig(id="p1", text="")

    def test_too_long_rejected(self):
        with pytest.raises(ValidationError, match="maximum length"):
            PromptConfig(id="p1", text="x" * (constants.MAX_PROMPT_LENGTH + 1))


class TestPatternSettings:
    def test_defaults_come_from_constants(self):
        settings = PatternSettings()

        assert set(settings.stoplist) == constants.PRODUCT_STOPLIST
        assert settings.key_product_indicators == ["card", "credit"]

    def test_words_lowercased(self):
        settings = PatternSettings(stoplist=["Card", " GOLD ", ""])

        assert settings.stoplist == ["card", "gold"]

    def test_min_above_max_rejected(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            PatternSettings(min_abbreviation_length=5, max_abbreviation_length=3)

    def test_zero_min_rejected(self):
        with pytest.raises(ValidationError, match="at least 1"):
            PatternSettings(min_abbreviation_length=0)


class TestSentimentSettings:
    def test_overlapping_tables_rejected(self):
        with pytest.raises(ValidationError, match="both positive and negative"):
            SentimentSettings(positive_keywords=["good"], negative_keywords=["Good"])

    def test_negation_window_non_negative(self):
        assert SentimentSettings().negation_window == 3
        with pytest.raises(ValidationError):
            SentimentSettings(negation_window=-1)

    @pytest.mark.parametrize("weight", [0.0, 1.5])
    def test_weight_bounds(self, weight):
        with pytest.raises(ValidationError):
            SentimentSettings(keyword_weight=weight)

    def test_threshold_bounds(self):
        with pytest.raises(ValidationError):
            SentimentSettings(label_threshold=1.0)


class TestAnalysisSettings:
    def test_fuzzy_disabled_by_default(self):
        assert AnalysisSettings().fuzzy_threshold == 0.0

    def test_fuzzy_threshold_bounds(self):
        with pytest.raises(ValidationError):
            AnalysisSettings(fuzzy_threshold=101)


class TestAnswerSourceConfig:
    def test_openrouter_requires_env_key(self):
        with pytest.raises(ValidationError, match="env_api_key is required"):
            AnswerSourceConfig(provider="openrouter")

    def test_mock_needs_no_key(self):
        config = AnswerSourceConfig(provider="mock")

        assert config.env_api_key is None

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValidationError):
            AnswerSourceConfig(provider="carrier-pigeon")


class TestRunSettings:
    @pytest.mark.parametrize("value", [0, 21])
    def test_concurrency_bounds(self, value):
        with pytest.raises(ValidationError, match="between 1 and 20"):
            RunSettings(max_concurrent_requests=value)

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            RunSettings(request_timeout_seconds=0)

    def test_empty_db_path_rejected(self):
        with pytest.raises(ValidationError, match="sqlite_db_path cannot be empty"):
            RunSettings(sqlite_db_path=" ")


class TestVisibilityConfig:
    def _config(self, **overrides):
        data = {
            "brands": [{"name": "Acme", "is_own_brand": True}, {"name": "Globex"}],
            "platforms": ["openai", "perplexity"],
            "prompts": [{"id": "p1", "text": "Best cards?"}],
        }
        data.update(overrides)
        return VisibilityConfig.model_validate(data)

    def test_minimal_config_uses_mock_source(self):
        config = self._config()

        assert config.answer_source.provider == "mock"
        assert config.run_settings.max_concurrent_requests == 5

    def test_no_brands_rejected(self):
        with pytest.raises(ValidationError, match="At least one tracked brand"):
            self._config(brands=[])

    def test_duplicate_brand_names_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate brand name"):
            self._config(brands=[{"name": "Acme"}, {"name": "ACME"}])

    def test_no_platforms_rejected(self):
        with pytest.raises(ValidationError, match="At least one platform"):
            self._config(platforms=[" "])

    def test_duplicate_platforms_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate platform"):
            self._config(platforms=["openai", "openai"])

    def test_duplicate_prompt_ids_rejected(self):
        with pytest.raises(ValidationError, match="Duplicate prompt ids"):
            self._config(
                prompts=[{"id": "p1", "text": "a"}, {"id": "p1", "text": "b"}]
            )

    def test_openrouter_needs_model_per_platform(self):
        with pytest.raises(ValidationError, match="no model for platforms"):
            self._config(
                answer_source={
                    "provider": "openrouter",
                    "env_api_key": "OPENROUTER_API_KEY",
                    "models": {"openai": "openai/gpt-4o-mini"},
                }
            )
