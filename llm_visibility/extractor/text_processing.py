"""
Sentence splitting and word counting for response analysis.

Sentences are the unit every per-brand signal is computed on: first position
is a sentence index, depth of mention weights sentence word counts, and
sentiment is scored per sentence.

Splitting rules:
- a run of '.', '!' or '?' followed by whitespace (or end of text) ends a
  sentence, so "3.5%" and "Warmly.io" stay intact
- every line break ends a sentence; LLM answers are mostly lists
- leading list markers ("1.", "-", "*", "#") and markdown emphasis are
  stripped, so a numbered item never becomes a sentence of its own
"""

import re
from dataclasses import dataclass

_TERMINATOR_RE = re.compile(r"(?<=[.!?])\s+")
_LIST_MARKER_RE = re.compile(r"^\s*(?:#{1,6}\s+|[-*+•]\s+|\d{1,3}[.)]\s+|>\s*)+")
_EMPHASIS_RE = re.compile(r"(\*\*|__|`)")


@dataclass(frozen=True)
class Sentence:
    """
    One sentence of a response.

    Attributes:
        text: Sentence text (list markers stripped)
        index: 0-based position within the response
        word_count: Number of whitespace-separated tokens
    """

    text: str
    index: int
    word_count: int


def count_words(text: str | None) -> int:
    """Count whitespace-separated tokens; 0 for None or blank text."""
    if not text:
        return 0
    return len(text.split())


def _clean_line(line: str) -> str:
    line = _LIST_MARKER_RE.sub("", line)
    line = _EMPHASIS_RE.sub("", line)
    return line.strip()


def split_into_sentences(text: str | None) -> list[Sentence]:
    """
    Split response text into indexed sentences.

    Args:
        text: Raw response text

    Returns:
        Sentences in order of appearance, indexed from 0. Empty for None,
        empty or whitespace-only text.

    Example:
        >>> [s.word_count for s in split_into_sentences(
        ...     "Acme is the best. Other Co is fine. Acme again."
        ... )]
        [4, 4, 2]
    """
    if not text or text.isspace():
        return []

    sentences: list[Sentence] = []
    for line in text.splitlines():
        line = _clean_line(line)
        if not line:
            continue
        for part in _TERMINATOR_RE.split(line):
            part = part.strip()
            # Drop fragments that are only punctuation, e.g. a stray "..."
            if not part or not any(ch.isalnum() for ch in part):
                continue
            sentences.append(
                Sentence(text=part, index=len(sentences), word_count=count_words(part))
            )
    return sentences
