"""
Response Analyzer: one raw answer in, one BrandMention per tracked brand out.

Steps:
1. Split the text into indexed sentences and count words
2. Detect every brand occurrence per sentence (longest pattern wins)
3. Derive mention count, first position and the brand's sentences
4. Extract links once, then attribute and classify them per brand
5. Score keyword sentiment over each brand's sentences

Pure function of (text, registry, settings): no I/O. Empty or unparsable
text yields every brand unmentioned with zero metadata, so aggregation
denominators stay consistent.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, replace

from llm_visibility.config.schema import AnalysisSettings
from llm_visibility.extractor.citations import (
    attribute_citations,
    extract_links,
    strip_urls,
)
from llm_visibility.extractor.mention_detector import detect_mentions
from llm_visibility.extractor.registry import BrandRegistry
from llm_visibility.extractor.sentiment import KeywordSentimentScorer
from llm_visibility.extractor.text_processing import split_into_sentences
from llm_visibility.metrics.models import BrandMention, ResponseMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResponseAnalysis:
    """Analyzer output: brand mentions in registry order plus response totals."""

    mentions: tuple[BrandMention, ...]
    metadata: ResponseMetadata

    def get(self, brand_name: str) -> BrandMention | None:
        for mention in self.mentions:
            if mention.brand_name == brand_name:
                return mention
        return None


class ResponseAnalyzer:
    """
    Analyzes responses against a fixed registry and settings.

    Holds the compiled sentiment table so it is built once per run rather
    than once per response. Instances share no mutable state between calls
    and can be used from several tasks at once.

    Example:
        >>> registry = BrandRegistry.from_names(["Acme"], ["Other Co"])
        >>> analysis = ResponseAnalyzer(registry).analyze(
        ...     "Acme is the best. Other Co is fine. Acme again."
        ... )
        >>> acme = analysis.get("Acme")
        >>> acme.mention_count, acme.first_position
        (2, 1)
    """

    def __init__(
        self,
        registry: BrandRegistry,
        settings: AnalysisSettings | None = None,
    ):
        self.registry = registry
        self.settings = settings or AnalysisSettings()
        self.scorer = KeywordSentimentScorer(self.settings.sentiment)
        self._regexes = registry.regexes
        self._social_domains = tuple(self.settings.citations.social_domains)

    def _unmentioned(self) -> tuple[BrandMention, ...]:
        return tuple(
            BrandMention.unmentioned(b.name, b.is_own_brand) for b in self.registry
        )

    def analyze(self, text: str | None) -> ResponseAnalysis:
        if not isinstance(text, str) or not text.strip():
            logger.debug("Empty or unparsable response; all brands unmentioned")
            return ResponseAnalysis(mentions=self._unmentioned(), metadata=ResponseMetadata())

        sentences = split_into_sentences(text)
        if not sentences:
            return ResponseAnalysis(mentions=self._unmentioned(), metadata=ResponseMetadata())

        metadata = ResponseMetadata(
            total_sentences=len(sentences),
            total_words=sum(s.word_count for s in sentences),
        )

        # Link targets are not mentions: "acme.com" inside a URL must not count
        searchable = [replace(s, text=strip_urls(s.text)) for s in sentences]

        detected = detect_mentions(
            searchable, self._regexes, fuzzy_threshold=self.settings.fuzzy_threshold
        )
        counts: dict[str, int] = defaultdict(int)
        sentence_indices: dict[str, set[int]] = defaultdict(set)
        for mention in detected:
            counts[mention.brand_name] += 1
            sentence_indices[mention.brand_name].add(mention.sentence_index)

        links = extract_links(sentences)

        mentions = []
        for brand in self.registry:
            if not counts.get(brand.name):
                mentions.append(BrandMention.unmentioned(brand.name, brand.is_own_brand))
                continue

            indices = sorted(sentence_indices[brand.name])
            brand_sentences = tuple(sentences[i] for i in indices)
            citations = attribute_citations(
                links,
                sentences,
                brand.regex,
                brand_domains=brand.domains,
                domain_stems=brand.domain_stems,
                social_domains=self._social_domains,
            )
            mentions.append(
                BrandMention(
                    brand_name=brand.name,
                    is_own_brand=brand.is_own_brand,
                    mentioned=True,
                    mention_count=counts[brand.name],
                    first_position=indices[0] + 1,
                    sentences=brand_sentences,
                    total_word_count=sum(s.word_count for s in brand_sentences),
                    citations=tuple(citations),
                    sentiment=self.scorer.score([searchable[i] for i in indices]),
                )
            )

        logger.debug(
            f"Analyzed response: {metadata.total_sentences} sentences, "
            f"{metadata.total_words} words, "
            f"{sum(1 for m in mentions if m.mentioned)}/{len(mentions)} brands mentioned"
        )
        return ResponseAnalysis(mentions=tuple(mentions), metadata=metadata)


def analyze_response(
    text: str | None,
    registry: BrandRegistry,
    settings: AnalysisSettings | None = None,
) -> ResponseAnalysis:
    """Analyze one response; see ResponseAnalyzer for reuse across responses."""
    return ResponseAnalyzer(registry, settings).analyze(text)
