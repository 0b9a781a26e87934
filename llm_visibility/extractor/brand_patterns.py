"""
Brand pattern generation for LLM Visibility.

Turns a brand display name into the ordered set of strings that mention
detection searches for. LLM answers rarely repeat a product name verbatim:
"Acme Card Plus" shows up as "Acme", "ACME", "the Acme card" and so on. The
generator maximizes recall with case variants, trademark-free forms,
significant words, prefixes, abbreviations and parent-brand forms, while a
stoplist of generic product terms keeps "card" or "gold" from matching on their
own.

Key features:
- Pure and deterministic: same name + settings -> same tuple
- Tagged (pattern, kind) pairs so kinds can be weighted later
- Longest-first ordering so the detector prefers the most specific match
- Brand-agnostic abbreviation heuristic (no hardcoded brand table)

Example:
    >>> patterns = generate_brand_patterns("Acme Card Plus")
    >>> "Acme" in pattern_strings(patterns)
    True
    >>> "card" in [p.lower() for p in pattern_strings(patterns)]
    False
"""

import re
import string
from typing import NamedTuple

from llm_visibility.config import constants
from llm_visibility.config.schema import PatternSettings

PATTERN_KINDS = (
    "exact",
    "case_variant",
    "normalized",
    "significant_word",
    "prefix",
    "abbreviation",
    "parent_brand",
)

_VOWELS = frozenset("aeiouy")
_TRADEMARK_RE = re.compile(f"[{re.escape(constants.TRADEMARK_SYMBOLS)}]")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


class BrandPattern(NamedTuple):
    """A match string and the rule that produced it."""

    pattern: str
    kind: str


def _case_variants(text: str) -> list[str]:
    return [text, text.lower(), text.upper(), text.capitalize(), text.title()]


def remove_common_words(text: str) -> list[str]:
    """
    Lower-case ``text`` and keep the words that can carry a brand.

    Words are stripped of non-alphanumeric characters; articles, auxiliaries,
    corporate suffixes and words of two characters or fewer are dropped.

    Example:
        >>> remove_common_words("The American Express Company")
        ['american', 'express']
    """
    words = []
    for word in text.lower().split():
        clean = _NON_ALNUM_RE.sub("", word)
        if len(clean) > 2 and clean not in constants.COMMON_WORDS:
            words.append(clean)
    return words


def extract_first_syllables(word: str, max_syllables: int = 2) -> list[str]:
    """
    Return the vowel-terminated prefixes of ``word``.

    A prefix ends at each of the first ``max_syllables`` vowels and must be at
    least two characters long.

    Example:
        >>> extract_first_syllables("american")
        ['ame']
        >>> extract_first_syllables("venture")
        ['ve', 'ventu']
    """
    syllables = []
    vowel_count = 0
    for i, char in enumerate(word):
        if vowel_count >= max_syllables:
            break
        if char.lower() in _VOWELS:
            vowel_count += 1
            prefix = word[: i + 1]
            if len(prefix) >= 2:
                syllables.append(prefix)
    return syllables


def _significant_words(brand_name: str) -> list[str]:
    words = remove_common_words(brand_name)
    if not words:
        words = [
            clean
            for clean in (_NON_ALNUM_RE.sub("", w) for w in brand_name.lower().split())
            if len(clean) > 2
        ]
    return words


def generate_abbreviations(
    brand_name: str,
    min_length: int = constants.MIN_ABBREVIATION_LENGTH,
    max_length: int = constants.MAX_ABBREVIATION_LENGTH,
    stoplist: frozenset[str] | set[str] = constants.PRODUCT_STOPLIST,
) -> list[str]:
    """
    Generate lower-case abbreviations for any brand name.

    Heuristics, applied to the significant words:
    1. Full acronym and first-two-word acronym ("american express" -> "ae")
    2. One or two syllable prefixes of words longer than six characters
    3. First word alone, first two words joined (plus an 8-char truncation)
    4. First word + initial of the last word
    5. First letter + first 3-5 characters of every later word of length >= 4

    Results outside [min_length, max_length], or equal to an English function
    word, a corporate suffix or a stoplist word, are dropped: "is" or "card"
    would match almost every answer.

    Returns:
        Abbreviations in generation order, without duplicates
    """
    if not brand_name or not isinstance(brand_name, str):
        return []

    words = _significant_words(brand_name)
    candidates: list[str] = []

    if len(words) > 1:
        full_acronym = "".join(w[0] for w in words)
        candidates.append(full_acronym)
        two_word_acronym = "".join(w[0] for w in words[:2])
        if two_word_acronym != full_acronym:
            candidates.append(two_word_acronym)

    for word in words:
        if len(word) > 6:
            candidates.extend(s for s in extract_first_syllables(word, 2) if len(s) <= 6)

    if len(words) > 1:
        candidates.append(words[0])

    if len(words) >= 2:
        first_two = words[0] + words[1]
        candidates.append(first_two)
        if len(first_two) > 8:
            candidates.append(first_two[:8])

        candidates.append(words[0] + words[-1][0])

        first_letter = words[0][0]
        for word in words[1:]:
            if len(word) >= 4:
                for length in range(3, min(5, len(word)) + 1):
                    candidates.append(first_letter + word[:length])

    excluded = constants.ABBREVIATION_EXCLUSIONS | constants.COMMON_WORDS | set(stoplist)

    abbreviations = []
    for candidate in candidates:
        if not min_length <= len(candidate) <= max_length:
            continue
        if candidate in excluded or candidate in abbreviations:
            continue
        abbreviations.append(candidate)
    return abbreviations


def generate_domain_variations(brand_name: str) -> list[str]:
    """
    Generate bare domain stems a brand's own website is likely to use.

    Used to classify citations as brand-owned when no domain is configured.
    Stems carry no TLD; "American Express" yields "americanexpress",
    "american-express", "american", "amex"-style abbreviations and so on.

    Returns:
        Sorted, de-duplicated stems
    """
    if not brand_name or not isinstance(brand_name, str) or brand_name.isspace():
        return []

    words = remove_common_words(_TRADEMARK_RE.sub("", brand_name))
    if not words:
        cleaned = re.sub(r"[^a-z0-9\s]", "", brand_name.lower()).strip()
        words = cleaned.split()
    if not words:
        return []

    variations = {
        "".join(words),
        "-".join(words),
        ".".join(words),
        "_".join(words),
    }
    if len(words) > 1 and len(words[0]) >= 3:
        variations.add(words[0])
    if len(words) >= 2:
        variations.add(words[0] + words[1])
        variations.add(f"{words[0]}-{words[1]}")
        variations.add(f"{words[0]}.{words[1]}")

    variations.update(generate_abbreviations(brand_name))
    return sorted(v for v in variations if len(v) >= 2)


def generate_brand_patterns(
    brand_name: str | None,
    settings: PatternSettings | None = None,
) -> tuple[BrandPattern, ...]:
    """
    Build the ordered, immutable pattern set for one brand.

    Patterns (in the order their kind is assigned):
        exact: the display name
        case_variant: lower, upper, capitalized and title case
        normalized: the name without trademark symbols, plus case variants
        significant_word: each word outside the stoplist, in case variants
        prefix: the first two words
        abbreviation: output of generate_abbreviations()
        parent_brand: words before the first product indicator, alone and
            combined with each key indicator ("acme", "acme card")

    A string produced by more than one rule keeps the first kind. A lone
    stoplist word is never emitted unless it is the whole name.

    Args:
        brand_name: Brand display name
        settings: Stoplist, indicators and abbreviation bounds; defaults to
            PatternSettings()

    Returns:
        Tuple sorted by length descending, then lexically. Empty for a
        None/blank name; a single raw-name pattern when the name has nothing
        else to generate from.

    Example:
        >>> [p.pattern for p in generate_brand_patterns("Acme")]
        ['ACME', 'Acme', 'acme']
    """
    if not isinstance(brand_name, str) or not brand_name.strip():
        return ()

    settings = settings or PatternSettings()
    stoplist = set(settings.stoplist)
    name = brand_name.strip()

    collected: dict[str, str] = {}

    def add(pattern: str, kind: str) -> None:
        pattern = " ".join(pattern.split())
        if not pattern or pattern in collected:
            return
        if pattern.lower() in stoplist and pattern.lower() != name.lower():
            return
        collected[pattern] = kind

    add(name, "exact")
    for variant in _case_variants(name):
        add(variant, "case_variant")

    clean_name = " ".join(_TRADEMARK_RE.sub("", name).split())
    if not any(ch.isalnum() for ch in clean_name):
        return (BrandPattern(name, "exact"),)

    for variant in _case_variants(clean_name):
        add(variant, "normalized")

    words = [w.strip(string.punctuation) for w in clean_name.split()]
    words = [w for w in words if len(w) > 1]

    for word in words:
        lower = word.lower()
        if lower in stoplist or lower in constants.COMMON_WORDS:
            continue
        for variant in _case_variants(word):
            add(variant, "significant_word")

    if len(words) >= 2:
        for variant in _case_variants(f"{words[0]} {words[1]}"):
            add(variant, "prefix")

    for abbreviation in generate_abbreviations(
        name,
        min_length=settings.min_abbreviation_length,
        max_length=settings.max_abbreviation_length,
        stoplist=stoplist,
    ):
        for variant in (abbreviation, abbreviation.upper(), abbreviation.capitalize()):
            add(variant, "abbreviation")

    lower_words = clean_name.lower().split()
    indicator_index = next(
        (i for i, w in enumerate(lower_words) if w in settings.product_indicators),
        -1,
    )
    if indicator_index > 0:
        parent_brand = " ".join(lower_words[:indicator_index])
        add(parent_brand, "parent_brand")
        for indicator in settings.key_product_indicators:
            add(f"{parent_brand} {indicator}", "parent_brand")

    return tuple(
        BrandPattern(pattern, kind)
        for pattern, kind in sorted(collected.items(), key=lambda i: (-len(i[0]), i[0]))
    )


def pattern_strings(patterns: tuple[BrandPattern, ...]) -> list[str]:
    """Return just the match strings of a pattern set, keeping order."""
    return [p.pattern for p in patterns]
