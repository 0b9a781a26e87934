"""
Brand mention detection for LLM Visibility.

Matches each brand's generated pattern set against the sentences of a
response with word-boundary-safe regexes, avoiding false positives like "hub"
matching in "GitHub".

Key features:
- One compiled regex per brand, alternatives longest-first
- Case-insensitive detection, original casing preserved in results
- Overlapping match resolution across brands (prefers longer matches)
- Optional fuzzy fallback (rapidfuzz) for misspelled brand names
- Every occurrence counted, with its sentence index and character offset

Security:
- Always uses re.escape() to prevent regex injection

Performance:
- Callers compile patterns once per registry and reuse them for every response
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from rapidfuzz import fuzz

from llm_visibility.extractor.brand_patterns import BrandPattern
from llm_visibility.extractor.text_processing import Sentence

_WORD_RE = re.compile(r"[\w][\w&'.-]*[\w]|[\w]")


@dataclass
class DetectedMention:
    """
    One occurrence of a brand in a response.

    Attributes:
        brand_name: Registry name of the brand the match belongs to
        original_text: How the brand appeared in the sentence (preserves case)
        sentence_index: 0-based index of the sentence containing the match
        match_position: Character offset within the sentence
        match_type: "exact" (pattern match) or "fuzzy" (rapidfuzz fallback)
        fuzzy_score: Similarity score if fuzzy matched (0-100), None if exact
    """

    brand_name: str
    original_text: str
    sentence_index: int
    match_position: int
    match_type: str = "exact"
    fuzzy_score: float | None = None

    def __post_init__(self):
        """Validate match_type."""
        if self.match_type not in ("exact", "fuzzy"):
            raise ValueError(
                f"match_type must be 'exact' or 'fuzzy', got: {self.match_type}"
            )

    @property
    def end(self) -> int:
        return self.match_position + len(self.original_text)


def create_brand_regex(patterns: Iterable[BrandPattern | str]) -> re.Pattern | None:
    """
    Compile a brand's pattern set into one word-boundary regex.

    CRITICAL: Uses lookarounds instead of ``\\b`` so patterns that start or end
    with punctuation ("AT&T", "Warmly.io") still match whole words only.

    Alternatives are de-duplicated case-insensitively and ordered longest
    first, so at any position the most specific pattern wins.

    Args:
        patterns: BrandPattern tuples or plain strings

    Returns:
        Compiled case-insensitive regex, or None when there is nothing to match

    Example:
        >>> regex = create_brand_regex(["HubSpot", "Hub"])
        >>> regex.search("I use HubSpot daily").group(0)
        'HubSpot'
        >>> regex.search("I use GitHub") is None
        True
    """
    seen: set[str] = set()
    alternatives: list[str] = []
    for pattern in patterns:
        text = pattern.pattern if isinstance(pattern, BrandPattern) else pattern
        if not text or text.isspace():
            continue
        key = text.lower()
        if key in seen:
            continue
        seen.add(key)
        alternatives.append(text)

    if not alternatives:
        return None

    alternatives.sort(key=lambda p: (-len(p), p.lower()))
    # SECURITY: Escape special regex characters in every alternative
    body = "|".join(re.escape(p) for p in alternatives)
    return re.compile(rf"(?<!\w)(?:{body})(?!\w)", re.IGNORECASE)


def compile_brand_regexes(
    brand_patterns: Mapping[str, Sequence[BrandPattern]],
) -> dict[str, re.Pattern | None]:
    """Compile every brand's pattern set, keeping registry order."""
    return {name: create_brand_regex(patterns) for name, patterns in brand_patterns.items()}


def remove_overlapping_mentions(
    mentions: list[DetectedMention],
    brand_order: Sequence[str] = (),
) -> list[DetectedMention]:
    """
    Remove overlapping mentions within a sentence, keeping the longest match.

    When two matches overlap (e.g. competitor "Acme" inside own brand
    "Acme Bank"), only the longer one survives. Equal lengths fall back to
    the earlier position, then to registry order.

    Args:
        mentions: Mentions from a single sentence (may contain overlaps)
        brand_order: Registry order used as the final tie-breaker

    Returns:
        Non-overlapping mentions sorted by position

    Example:
        >>> hub = DetectedMention("Hub", "Hub", 0, 10)
        >>> hubspot = DetectedMention("HubSpot", "HubSpot", 0, 10)
        >>> [m.brand_name for m in remove_overlapping_mentions([hub, hubspot])]
        ['HubSpot']
    """
    if not mentions:
        return []

    order = {name: i for i, name in enumerate(brand_order)}
    candidates = sorted(
        mentions,
        key=lambda m: (
            -len(m.original_text),
            m.match_position,
            order.get(m.brand_name, len(order)),
            m.brand_name,
        ),
    )

    kept: list[DetectedMention] = []
    for mention in candidates:
        if any(
            mention.match_position < other.end and mention.end > other.match_position
            for other in kept
        ):
            continue
        kept.append(mention)

    kept.sort(key=lambda m: m.match_position)
    return kept


def _fuzzy_match(
    sentence: Sentence,
    brand_name: str,
    fuzzy_threshold: float,
    taken: list[DetectedMention],
) -> DetectedMention | None:
    """Best fuzzy match of brand_name in a sentence, ignoring taken spans."""
    target = brand_name.lower()
    n_words = max(1, len(brand_name.split()))
    tokens = list(_WORD_RE.finditer(sentence.text))

    best: DetectedMention | None = None
    for i in range(len(tokens) - n_words + 1):
        start = tokens[i].start()
        end = tokens[i + n_words - 1].end()
        candidate = sentence.text[start:end]
        if len(candidate) < 3:
            continue
        if any(start < m.end and end > m.match_position for m in taken):
            continue
        score = fuzz.ratio(candidate.lower(), target)
        if score >= fuzzy_threshold and (best is None or score > best.fuzzy_score):
            best = DetectedMention(
                brand_name=brand_name,
                original_text=candidate,
                sentence_index=sentence.index,
                match_position=start,
                match_type="fuzzy",
                fuzzy_score=score,
            )
    return best


def detect_mentions(
    sentences: Sequence[Sentence],
    brand_regexes: Mapping[str, re.Pattern | None],
    fuzzy_threshold: float = 0.0,
) -> list[DetectedMention]:
    """
    Detect every brand occurrence in a response's sentences.

    Process:
    1. For each sentence, run every brand regex and collect all matches
    2. Resolve overlaps across brands (longest match wins)
    3. If fuzzy_threshold > 0, give each brand without an exact match in the
       sentence one fuzzy chance (word n-gram vs brand name, rapidfuzz ratio)
    4. Return matches ordered by (sentence, position)

    Args:
        sentences: Output of split_into_sentences()
        brand_regexes: Brand name -> compiled regex, in registry order
        fuzzy_threshold: Minimum similarity score (0-100) for fuzzy matching.
            0 = disabled (default), 85-90 = recommended for typos.

    Returns:
        DetectedMention list sorted by appearance

    Example:
        >>> from llm_visibility.extractor.text_processing import split_into_sentences
        >>> regexes = {"Acme": create_brand_regex(["Acme"])}
        >>> mentions = detect_mentions(
        ...     split_into_sentences("Acme is the best. Acme again."), regexes
        ... )
        >>> [(m.sentence_index, m.original_text) for m in mentions]
        [(0, 'Acme'), (1, 'Acme')]
    """
    brand_order = list(brand_regexes)
    detected: list[DetectedMention] = []

    for sentence in sentences:
        sentence_matches: list[DetectedMention] = []
        for brand_name, regex in brand_regexes.items():
            if regex is None:
                continue
            for match in regex.finditer(sentence.text):
                sentence_matches.append(
                    DetectedMention(
                        brand_name=brand_name,
                        original_text=match.group(0),
                        sentence_index=sentence.index,
                        match_position=match.start(),
                    )
                )

        kept = remove_overlapping_mentions(sentence_matches, brand_order)

        if fuzzy_threshold > 0:
            matched_brands = {m.brand_name for m in kept}
            for brand_name in brand_order:
                if brand_name in matched_brands:
                    continue
                fuzzy = _fuzzy_match(sentence, brand_name, fuzzy_threshold, kept)
                if fuzzy is not None:
                    kept.append(fuzzy)
            kept.sort(key=lambda m: m.match_position)

        detected.extend(kept)

    return detected


def matches_brand(text: str, regex: re.Pattern | None) -> bool:
    """Return True when ``text`` contains any of the brand's patterns."""
    if not text or regex is None:
        return False
    return regex.search(text) is not None
