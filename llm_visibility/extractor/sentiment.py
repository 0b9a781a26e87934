"""
Keyword sentiment scoring for brand mentions.

Heuristic and deterministic: each sentence that mentions a brand is scored
from a keyword -> polarity table (SentimentSettings). No model call is made.

Per sentence:
    positive / negative hits are counted as whole words. A hit preceded by a
    negation word ("not", "never", ...) within negation_window tokens counts
    for the opposite polarity. Hits of both polarities -> "mixed".
    score = clamp(keyword_weight * (positive - negative), -1, 1)

Per brand:
    score = clamp(mean of sentence scores, -1, 1)
    label = positive / negative beyond label_threshold, otherwise "mixed" when
    both polarities occurred, otherwise "neutral"
"""

import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from llm_visibility.config.schema import SentimentSettings
from llm_visibility.extractor.text_processing import Sentence

SENTIMENT_LABELS = ("positive", "neutral", "negative", "mixed")


@dataclass(frozen=True)
class SentenceSentiment:
    """Sentiment of one sentence mentioning a brand."""

    index: int
    label: str
    score: float
    positive_hits: int = 0
    negative_hits: int = 0


@dataclass(frozen=True)
class SentimentResult:
    """
    Sentiment of a brand within one response.

    Attributes:
        label: "positive", "neutral", "negative" or "mixed"
        score: Scalar in [-1, +1]
        sentences: Per-sentence breakdown, in sentence order
    """

    label: str = "neutral"
    score: float = 0.0
    sentences: tuple[SentenceSentiment, ...] = ()


_TOKEN_RE = re.compile(r"\w+(?:'\w+)?")


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def _keyword_regex(words: Iterable[str]) -> re.Pattern | None:
    words = sorted({w for w in words if w}, key=lambda w: (-len(w), w))
    if not words:
        return None
    body = "|".join(re.escape(w) for w in words)
    return re.compile(rf"(?<!\w)(?:{body})(?!\w)", re.IGNORECASE)


class KeywordSentimentScorer:
    """
    Scores sentences against a configurable keyword table.

    Example:
        >>> scorer = KeywordSentimentScorer()
        >>> scorer.score_sentence(Sentence("Acme is the best", 0, 4)).label
        'positive'
        >>> scorer.score_sentence(Sentence("Acme is not reliable", 0, 4)).label
        'negative'
    """

    def __init__(self, settings: SentimentSettings | None = None):
        self.settings = settings or SentimentSettings()
        self._positive = _keyword_regex(self.settings.positive_keywords)
        self._negative = _keyword_regex(self.settings.negative_keywords)
        self._negation_words = frozenset(self.settings.negation_words)

    def _is_negated(self, text: str, start: int) -> bool:
        window = self.settings.negation_window
        if not window or not self._negation_words:
            return False
        preceding = _TOKEN_RE.findall(text[:start])[-window:]
        return any(token.lower() in self._negation_words for token in preceding)

    def _count(self, regex: re.Pattern | None, text: str) -> tuple[int, int]:
        """Return (plain hits, negated hits) of one keyword table."""
        if regex is None:
            return 0, 0
        plain = negated = 0
        for match in regex.finditer(text):
            if self._is_negated(text, match.start()):
                negated += 1
            else:
                plain += 1
        return plain, negated

    def score_sentence(self, sentence: Sentence) -> SentenceSentiment:
        positive, negated_positive = self._count(self._positive, sentence.text)
        negative, negated_negative = self._count(self._negative, sentence.text)
        positive += negated_negative
        negative += negated_positive

        if positive and negative:
            label = "mixed"
        elif positive:
            label = "positive"
        elif negative:
            label = "negative"
        else:
            label = "neutral"

        return SentenceSentiment(
            index=sentence.index,
            label=label,
            score=_clamp(self.settings.keyword_weight * (positive - negative)),
            positive_hits=positive,
            negative_hits=negative,
        )

    def score(self, sentences: Sequence[Sentence]) -> SentimentResult:
        """
        Score a brand from the sentences that mention it.

        An empty sequence (unmentioned brand) is neutral with score 0.
        """
        if not sentences:
            return SentimentResult()

        scored = tuple(self.score_sentence(s) for s in sentences)
        score = _clamp(math.fsum(s.score for s in scored) / len(scored))

        threshold = self.settings.label_threshold
        labels = {s.label for s in scored}
        if score > threshold:
            label = "positive"
        elif score < -threshold:
            label = "negative"
        elif "mixed" in labels or {"positive", "negative"} <= labels:
            label = "mixed"
        else:
            label = "neutral"

        return SentimentResult(label=label, score=score, sentences=scored)
