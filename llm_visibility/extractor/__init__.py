"""
Extractor module for turning raw LLM answers into per-brand signals.

Public API:
    - generate_brand_patterns: Ordered (pattern, kind) set for a brand name
    - BrandRegistry: Tracked brands with compiled patterns
    - split_into_sentences: Indexed sentences with word counts
    - detect_mentions: Word-boundary brand detection per sentence
    - extract_links / attribute_citations: Citation extraction and PESO classification
    - KeywordSentimentScorer: Keyword-table sentiment

The Response Analyzer lives in ``llm_visibility.extractor.analyzer``; it is
not re-exported here because it depends on ``llm_visibility.metrics.models``.
"""

from llm_visibility.extractor.brand_patterns import (
    BrandPattern,
    generate_abbreviations,
    generate_brand_patterns,
    generate_domain_variations,
)
from llm_visibility.extractor.citations import (
    Citation,
    attribute_citations,
    classify_citation,
    extract_links,
)
from llm_visibility.extractor.mention_detector import (
    DetectedMention,
    create_brand_regex,
    detect_mentions,
)
from llm_visibility.extractor.registry import BrandRegistry, RegisteredBrand
from llm_visibility.extractor.sentiment import KeywordSentimentScorer, SentimentResult
from llm_visibility.extractor.text_processing import Sentence, split_into_sentences

__all__ = [
    "BrandPattern",
    "BrandRegistry",
    "Citation",
    "DetectedMention",
    "KeywordSentimentScorer",
    "RegisteredBrand",
    "Sentence",
    "SentimentResult",
    "attribute_citations",
    "classify_citation",
    "create_brand_regex",
    "detect_mentions",
    "extract_links",
    "generate_abbreviations",
    "generate_brand_patterns",
    "generate_domain_variations",
    "split_into_sentences",
]
