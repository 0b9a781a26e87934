"""
Configuration schema models for LLM Visibility.

Pydantic v2 models validating a ``visibility.config.yaml`` file, plus the
runtime model carrying the resolved API key.

Models:
    TrackedBrand: One brand in the registry (own brand or competitor)
    PromptConfig: Prompt sent to every platform, tagged with topic and persona
    PatternSettings: Brand pattern generator tables and bounds
    SentimentSettings: Keyword-to-polarity table for the sentiment scorer
    CitationSettings: Known social-media domains
    AnalysisSettings: All analyzer knobs in one place
    AnswerSourceConfig: Which answer source to call and how
    RunSettings: Store location, concurrency and timeouts
    VisibilityConfig: Root configuration model (validates the entire YAML)
    RuntimeConfig: VisibilityConfig plus the resolved API key
"""

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from . import constants


class TrackedBrand(BaseModel):
    """
    A brand tracked in answers.

    Detection is brand-agnostic; ``is_own_brand`` only changes reporting
    emphasis.

    Attributes:
        name: Display name, e.g. "Acme Card Plus"
        is_own_brand: True for the monitored brand, False for competitors
        domains: Known websites of the brand ("acme.com"); used to classify
            brand-owned citations in addition to generated domain stems
    """

    name: str
    is_own_brand: bool = False
    domains: list[str] = []

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is non-empty and strip surrounding whitespace."""
        if not v or v.isspace():
            raise ValueError("brand name cannot be empty")
        return v.strip()

    @field_validator("domains")
    @classmethod
    def normalize_domains(cls, v: list[str]) -> list[str]:
        """Lower-case domains and drop scheme, 'www.' and paths."""
        normalized = []
        for domain in v:
            domain = domain.strip().lower()
            for prefix in ("https://", "http://"):
                if domain.startswith(prefix):
                    domain = domain[len(prefix) :]
            domain = domain.split("/", 1)[0]
            if domain.startswith("www."):
                domain = domain[4:]
            if domain and domain not in normalized:
                normalized.append(domain)
        return normalized


class PromptConfig(BaseModel):
    """
    Prompt sent to each platform.

    Attributes:
        id: Stable prompt identifier
        text: Prompt text
        topic: Topic partition value (optional)
        persona: Audience persona partition value (optional)
    """

    id: str
    text: str
    topic: str | None = None
    persona: str | None = None

    @field_validator("id", "text")
    @classmethod
    def validate_non_empty(cls, v: str) -> str:
        """Validate id and text are non-empty."""
        if not v or v.isspace():
            raise ValueError("prompt id and text cannot be empty")
        return v

    @field_validator("text")
    @classmethod
    def validate_prompt_length(cls, v: str) -> str:
        """Reject prompts that would blow through provider limits."""
        if len(v) > constants.MAX_PROMPT_LENGTH:
            raise ValueError(
                f"prompt exceeds maximum length of {constants.MAX_PROMPT_LENGTH:,} "
                f"characters (got {len(v):,})"
            )
        return v


class PatternSettings(BaseModel):
    """
    Tables driving brand pattern generation.

    Attributes:
        stoplist: Generic product words never used as standalone patterns
        product_indicators: Words that split a product name from its parent brand
        key_product_indicators: Indicator words combined with the parent brand
        min_abbreviation_length: Shortest generated abbreviation kept
        max_abbreviation_length: Longest generated abbreviation kept
    """

    stoplist: list[str] = sorted(constants.PRODUCT_STOPLIST)
    product_indicators: list[str] = list(constants.PRODUCT_INDICATORS)
    key_product_indicators: list[str] = list(constants.KEY_PRODUCT_INDICATORS)
    min_abbreviation_length: int = constants.MIN_ABBREVIATION_LENGTH
    max_abbreviation_length: int = constants.MAX_ABBREVIATION_LENGTH

    @field_validator("stoplist", "product_indicators", "key_product_indicators")
    @classmethod
    def lowercase_words(cls, v: list[str]) -> list[str]:
        """Store word tables lower-cased and without blanks."""
        return [w.strip().lower() for w in v if w and not w.isspace()]

    @model_validator(mode="after")
    def validate_abbreviation_bounds(self) -> "PatternSettings":
        """Validate 1 <= min <= max for abbreviation lengths."""
        if self.min_abbreviation_length < 1:
            raise ValueError("min_abbreviation_length must be at least 1")
        if self.min_abbreviation_length > self.max_abbreviation_length:
            raise ValueError(
                "min_abbreviation_length cannot exceed max_abbreviation_length "
                f"({self.min_abbreviation_length} > {self.max_abbreviation_length})"
            )
        return self


class SentimentSettings(BaseModel):
    """
    Keyword-to-polarity table for the sentiment scorer.

    Attributes:
        positive_keywords: Words counted as positive hits
        negative_keywords: Words counted as negative hits
        negation_words: Words that invert the polarity of keywords shortly after them
        negation_window: Tokens before a keyword searched for a negation word
        keyword_weight: Score contribution of a single hit
        label_threshold: |score| needed for a positive/negative label
    """

    positive_keywords: list[str] = list(constants.POSITIVE_KEYWORDS)
    negative_keywords: list[str] = list(constants.NEGATIVE_KEYWORDS)
    negation_words: list[str] = list(constants.NEGATION_WORDS)
    negation_window: int = Field(default=constants.NEGATION_WINDOW, ge=0)
    keyword_weight: float = Field(
        default=constants.SENTIMENT_KEYWORD_WEIGHT, gt=0.0, le=1.0
    )
    label_threshold: float = Field(
        default=constants.SENTIMENT_LABEL_THRESHOLD, ge=0.0, lt=1.0
    )

    @field_validator("positive_keywords", "negative_keywords", "negation_words")
    @classmethod
    def lowercase_keywords(cls, v: list[str]) -> list[str]:
        """Store keyword tables lower-cased and without blanks."""
        return [w.strip().lower() for w in v if w and not w.isspace()]

    @model_validator(mode="after")
    def validate_disjoint_tables(self) -> "SentimentSettings":
        """A keyword cannot be both positive and negative."""
        overlap = set(self.positive_keywords) & set(self.negative_keywords)
        if overlap:
            raise ValueError(
                f"keywords listed as both positive and negative: {sorted(overlap)}"
            )
        return self


class CitationSettings(BaseModel):
    """Known social-media domains; subdomains match as well."""

    social_domains: list[str] = sorted(constants.SOCIAL_MEDIA_DOMAINS)

    @field_validator("social_domains")
    @classmethod
    def normalize_domains(cls, v: list[str]) -> list[str]:
        """Lower-case and drop 'www.' prefixes."""
        return [d.strip().lower().removeprefix("www.") for d in v if d.strip()]


class AnalysisSettings(BaseModel):
    """
    All Response Analyzer settings.

    Attributes:
        patterns: Brand pattern generator settings
        sentiment: Sentiment keyword table
        citations: Citation classification settings
        fuzzy_threshold: rapidfuzz ratio (0-100) for the fuzzy fallback;
            0 disables fuzzy matching (default)
    """

    patterns: PatternSettings = PatternSettings()
    sentiment: SentimentSettings = SentimentSettings()
    citations: CitationSettings = CitationSettings()
    fuzzy_threshold: float = Field(default=0.0, ge=0.0, le=100.0)


class AnswerSourceConfig(BaseModel):
    """
    Answer source configuration.

    Attributes:
        provider: "openrouter" (HTTP chat completions) or "mock" (canned text)
        env_api_key: Environment variable holding the API key (openrouter only)
        base_url: Chat completions base URL
        models: Platform id -> model identifier, e.g. {"openai": "openai/gpt-4o-mini"}
        system_prompt: System message asking the model to cite sources
        mock_responses: Prompt text -> canned answer (mock only)

    Example:
        answer_source:
          provider: "openrouter"
          env_api_key: "OPENROUTER_API_KEY"
          models:
            openai: "openai/gpt-4o-mini"
            perplexity: "perplexity/sonar"
    """

    provider: Literal["openrouter", "mock"] = "openrouter"
    env_api_key: str | None = None
    base_url: str = "https://openrouter.ai/api/v1"
    models: dict[str, str] = {}
    system_prompt: str = (
        "You are a helpful assistant. When you mention companies, brands or "
        "products, cite sources as markdown links: [text](https://example.com)."
    )
    mock_responses: dict[str, str] = {}

    @model_validator(mode="after")
    def validate_provider_fields(self) -> "AnswerSourceConfig":
        """The HTTP provider needs an API key variable."""
        if self.provider == "openrouter" and not self.env_api_key:
            raise ValueError("env_api_key is required for provider 'openrouter'")
        return self


class RunSettings(BaseModel):
    """
    Runtime settings.

    Attributes:
        sqlite_db_path: Path to the SQLite metrics store
        max_concurrent_requests: Upper bound on in-flight answer-source calls
        request_timeout_seconds: HTTP timeout of each answer-source attempt; a
            whole call may span every retry attempt plus backoff
    """

    sqlite_db_path: str = "./output/visibility.db"
    max_concurrent_requests: int = constants.DEFAULT_MAX_CONCURRENT_REQUESTS
    request_timeout_seconds: float = Field(
        default=constants.DEFAULT_REQUEST_TIMEOUT_SECONDS, gt=0.0
    )

    @field_validator("sqlite_db_path")
    @classmethod
    def validate_sqlite_db_path(cls, v: str) -> str:
        """Validate sqlite_db_path is non-empty."""
        if not v or v.isspace():
            raise ValueError("sqlite_db_path cannot be empty")
        return v

    @field_validator("max_concurrent_requests")
    @classmethod
    def validate_max_concurrent_requests(cls, v: int) -> int:
        """Keep concurrency inside what upstream rate limits tolerate."""
        if not 1 <= v <= 20:
            raise ValueError(
                f"max_concurrent_requests must be between 1 and 20 (got: {v})"
            )
        return v


class VisibilityConfig(BaseModel):
    """
    Root configuration model.

    Example YAML:
        brands:
          - name: "Acme Card Plus"
            is_own_brand: true
            domains: ["acme.com"]
          - name: "Globex"
        platforms: ["openai", "perplexity"]
        prompts:
          - id: "best-cards"
            text: "What are the best travel credit cards?"
            topic: "travel"
            persona: "frequent flyer"
        answer_source:
          provider: "openrouter"
          env_api_key: "OPENROUTER_API_KEY"
          models:
            openai: "openai/gpt-4o-mini"
            perplexity: "perplexity/sonar"
    """

    brands: list[TrackedBrand]
    platforms: list[str]
    prompts: list[PromptConfig] = []
    answer_source: AnswerSourceConfig = AnswerSourceConfig(provider="mock")
    run_settings: RunSettings = RunSettings()
    analysis: AnalysisSettings = AnalysisSettings()

    @field_validator("brands")
    @classmethod
    def validate_brands(cls, v: list[TrackedBrand]) -> list[TrackedBrand]:
        """Require at least one brand and unique names (case-insensitive)."""
        if not v:
            raise ValueError("At least one tracked brand is required")
        seen: set[str] = set()
        for brand in v:
            key = brand.name.lower()
            if key in seen:
                raise ValueError(f"Duplicate brand name: {brand.name}")
            seen.add(key)
        return v

    @field_validator("platforms")
    @classmethod
    def validate_platforms(cls, v: list[str]) -> list[str]:
        """Require unique, non-empty platform ids."""
        cleaned = [p.strip() for p in v if p and not p.isspace()]
        if not cleaned:
            raise ValueError("At least one platform is required")
        if len(set(cleaned)) != len(cleaned):
            raise ValueError(f"Duplicate platform ids in {cleaned}")
        return cleaned

    @field_validator("prompts")
    @classmethod
    def validate_prompt_ids(cls, v: list[PromptConfig]) -> list[PromptConfig]:
        """Prompt ids must be unique."""
        ids = [p.id for p in v]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate prompt ids: {duplicates}")
        return v

    @model_validator(mode="after")
    def validate_platform_models(self) -> "VisibilityConfig":
        """Every platform needs a model when answers come over HTTP."""
        if self.answer_source.provider == "openrouter":
            missing = [p for p in self.platforms if p not in self.answer_source.models]
            if missing:
                raise ValueError(
                    f"answer_source.models has no model for platforms: {missing}"
                )
        return self


class RuntimeConfig(BaseModel):
    """
    Configuration ready for a run: validated fields plus the resolved API key.

    The API key lives only in memory; it is never logged or persisted.
    """

    brands: list[TrackedBrand]
    platforms: list[str]
    prompts: list[PromptConfig]
    answer_source: AnswerSourceConfig
    run_settings: RunSettings
    analysis: AnalysisSettings
    api_key: str | None = None
