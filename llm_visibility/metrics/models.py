"""
Data model for per-response and aggregated brand visibility metrics.

Per-response records (BrandMention, ResponseMetadata, ResponseMetrics) are
created once at analysis time and never updated. Aggregated records
(AggregatedBrandMetric, ScopeAggregate) are recomputed wholesale on every
aggregation run and replace the previous set for their scope key.

Records serialize to plain dicts with dataclasses.asdict() for JSON storage;
the ``from_dict`` helpers rebuild them from stored payloads.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, NamedTuple

from llm_visibility.extractor.citations import Citation
from llm_visibility.extractor.sentiment import SentenceSentiment, SentimentResult
from llm_visibility.extractor.text_processing import Sentence

SCOPES = ("overall", "platform", "topic", "persona")
OVERALL_SCOPE_VALUE = "all"
UNKNOWN_SCOPE_VALUE = "unknown"


class ScopeKey(NamedTuple):
    """Partition identity, e.g. ScopeKey("platform", "perplexity")."""

    scope: str
    value: str


@dataclass(frozen=True)
class ResponseMetadata:
    """Normalizing denominators of one response (depth of mention)."""

    total_sentences: int = 0
    total_words: int = 0


@dataclass(frozen=True)
class BrandMention:
    """
    Signals for one brand in one response.

    Attributes:
        brand_name: Registry name
        is_own_brand: Reporting emphasis only
        mentioned: True when at least one pattern matched
        mention_count: Occurrences across all sentences
        first_position: 1 + index of the first matching sentence, None if unmentioned
        sentences: Sentences mentioning the brand, in order
        total_word_count: Sum of word counts of ``sentences``
        citations: Sources attributed to the brand
        sentiment: Keyword sentiment over ``sentences``
        rank_position: Within-response rank (1 = mentioned first), None if unmentioned
    """

    brand_name: str
    is_own_brand: bool = False
    mentioned: bool = False
    mention_count: int = 0
    first_position: int | None = None
    sentences: tuple[Sentence, ...] = ()
    total_word_count: int = 0
    citations: tuple[Citation, ...] = ()
    sentiment: SentimentResult = field(default_factory=SentimentResult)
    rank_position: int | None = None

    def __post_init__(self):
        """Keep first_position, mentioned and mention_count consistent."""
        if self.mentioned != (self.first_position is not None):
            raise ValueError(
                f"first_position must be None iff mentioned is False "
                f"(brand={self.brand_name}, mentioned={self.mentioned}, "
                f"first_position={self.first_position})"
            )
        if self.mentioned and self.mention_count < 1:
            raise ValueError(f"mentioned brand {self.brand_name} has mention_count 0")
        if not self.mentioned and self.mention_count:
            raise ValueError(f"unmentioned brand {self.brand_name} has mentions")
        if self.first_position is not None and self.first_position < 1:
            raise ValueError(f"first_position must be >= 1, got {self.first_position}")

    @classmethod
    def unmentioned(cls, brand_name: str, is_own_brand: bool = False) -> "BrandMention":
        """Zero record for a brand the response does not mention."""
        return cls(brand_name=brand_name, is_own_brand=is_own_brand)

    @property
    def citation_counts(self) -> dict[str, int]:
        counts = {"brand": 0, "earned": 0, "social": 0}
        for citation in self.citations:
            counts[citation.category] += 1
        return counts


@dataclass(frozen=True)
class ResponseMetrics:
    """
    Stored record for one analyzed response.

    Attributes:
        response_id: Unique id of the response
        analysis_id: Run the response belongs to
        prompt_id / prompt_text: Prompt that produced the answer
        platform: Answer-source platform id ("openai", "perplexity", ...)
        topic / persona: Partition values; None buckets under "unknown"
        created_at: ISO 8601 UTC timestamp with 'Z' suffix
        metadata: Sentence and word totals
        brand_metrics: One BrandMention per tracked brand, registry order
    """

    response_id: str
    analysis_id: str
    prompt_id: str
    prompt_text: str
    platform: str
    created_at: str
    metadata: ResponseMetadata
    brand_metrics: tuple[BrandMention, ...]
    topic: str | None = None
    persona: str | None = None

    def get(self, brand_name: str) -> BrandMention | None:
        for mention in self.brand_metrics:
            if mention.brand_name == brand_name:
                return mention
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ResponseMetrics":
        return cls(
            response_id=data["response_id"],
            analysis_id=data["analysis_id"],
            prompt_id=data["prompt_id"],
            prompt_text=data["prompt_text"],
            platform=data["platform"],
            created_at=data["created_at"],
            metadata=ResponseMetadata(**data["metadata"]),
            brand_metrics=tuple(_mention_from_dict(m) for m in data["brand_metrics"]),
            topic=data.get("topic"),
            persona=data.get("persona"),
        )


def _mention_from_dict(data: dict[str, Any]) -> BrandMention:
    sentiment = data.get("sentiment") or {}
    return BrandMention(
        brand_name=data["brand_name"],
        is_own_brand=data.get("is_own_brand", False),
        mentioned=data.get("mentioned", False),
        mention_count=data.get("mention_count", 0),
        first_position=data.get("first_position"),
        sentences=tuple(Sentence(**s) for s in data.get("sentences", ())),
        total_word_count=data.get("total_word_count", 0),
        citations=tuple(Citation(**c) for c in data.get("citations", ())),
        sentiment=SentimentResult(
            label=sentiment.get("label", "neutral"),
            score=sentiment.get("score", 0.0),
            sentences=tuple(
                SentenceSentiment(**s) for s in sentiment.get("sentences", ())
            ),
        ),
        rank_position=data.get("rank_position"),
    )


def _zero_citations() -> dict[str, int]:
    return {"brand": 0, "earned": 0, "social": 0}


def _zero_sentiment() -> dict[str, int]:
    return {"positive": 0, "neutral": 0, "negative": 0, "mixed": 0}


def _zero_positions() -> dict[str, int]:
    return {"first": 0, "second": 0, "third": 0}


@dataclass
class AggregatedBrandMetric:
    """
    One brand's metrics within one scope.

    Percentages are on a 0-100 scale. A brand never mentioned in the scope
    keeps every default: zero counts, avg_position None, empty ranks until
    ranking runs.
    """

    brand_name: str
    is_own_brand: bool = False
    total_mentions: int = 0
    total_appearances: int = 0
    visibility_score: float = 0.0
    share_of_voice: float = 0.0
    avg_position: float | None = None
    depth_of_mention: float = 0.0
    citation_share: float = 0.0
    citation_totals: dict[str, int] = field(default_factory=_zero_citations)
    total_citations: int = 0
    sentiment_score: float = 0.0
    sentiment_breakdown: dict[str, int] = field(default_factory=_zero_sentiment)
    sentiment_share: float = 0.0
    position_distribution: dict[str, int] = field(default_factory=_zero_positions)
    ranks: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AggregatedBrandMetric":
        return cls(**data)


@dataclass
class ScopeAggregate:
    """
    All brand metrics for one scope key, plus scope-level totals.

    Attributes:
        scope / scope_value: Partition identity
        total_responses: Responses in the partition
        total_prompts: Distinct prompt ids in the partition
        total_brands: Brands with a record (registry + any extra brands found)
        date_from / date_to: Earliest and latest response created_at, None if empty
        calculated_at: When this aggregate was computed
        response_ids: Responses the aggregate was computed from, sorted
        brand_metrics: One AggregatedBrandMetric per brand
    """

    scope: str
    scope_value: str
    total_responses: int = 0
    total_prompts: int = 0
    total_brands: int = 0
    date_from: str | None = None
    date_to: str | None = None
    calculated_at: str | None = None
    response_ids: tuple[str, ...] = ()
    brand_metrics: list[AggregatedBrandMetric] = field(default_factory=list)

    @property
    def key(self) -> ScopeKey:
        return ScopeKey(self.scope, self.scope_value)

    def get(self, brand_name: str) -> AggregatedBrandMetric | None:
        for metric in self.brand_metrics:
            if metric.brand_name == brand_name:
                return metric
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ScopeAggregate":
        return cls(
            scope=data["scope"],
            scope_value=data["scope_value"],
            total_responses=data.get("total_responses", 0),
            total_prompts=data.get("total_prompts", 0),
            total_brands=data.get("total_brands", 0),
            date_from=data.get("date_from"),
            date_to=data.get("date_to"),
            calculated_at=data.get("calculated_at"),
            response_ids=tuple(data.get("response_ids", ())),
            brand_metrics=[
                AggregatedBrandMetric.from_dict(m) for m in data.get("brand_metrics", ())
            ],
        )
