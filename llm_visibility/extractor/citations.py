"""
Citation extraction and classification.

Finds the sources an answer links to and classifies each one, per brand,
along the PESO model:

  - brand:  the brand's own website (configured domains or generated stems)
  - social: a known social-media platform or one of its subdomains
  - earned: any other third-party domain

Link forms recognized:
  - Markdown links: [anchor text](url)
  - Bare URLs: https://example.com

A citation counts for a brand only when the link's anchor text, or the
sentence around the link, mentions that brand.
"""

import ipaddress
import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from urllib.parse import urlparse

from llm_visibility.extractor.mention_detector import matches_brand
from llm_visibility.extractor.text_processing import Sentence

logger = logging.getLogger(__name__)

CITATION_CATEGORIES = ("brand", "earned", "social")

# Markdown-style links: [anchor text](url)
_MD_LINK_PATTERN = re.compile(r"\[([^\]]*)\]\((https?://[^\s)]+)\)")

# Bare URLs (not the target of a markdown link)
_BARE_URL_PATTERN = re.compile(r"(?<!\]\()(https?://[^\s)\]\"'<>]+)")

_TRAILING_PUNCTUATION = ".,;:!?'\"*_`"


@dataclass(frozen=True)
class Link:
    """A URL found in a sentence, before brand attribution."""

    url: str
    domain: str
    sentence_index: int
    anchor_text: str | None = None


@dataclass(frozen=True)
class Citation:
    """
    A source attributed to one brand.

    Attributes:
        url: Cleaned URL
        domain: Host without 'www.', lower-case
        category: "brand", "earned" or "social"
        anchor_text: Markdown anchor text, None for bare URLs
    """

    url: str
    domain: str
    category: str
    anchor_text: str | None = None

    def __post_init__(self):
        if self.category not in CITATION_CATEGORIES:
            raise ValueError(
                f"category must be one of {CITATION_CATEGORIES}, got: {self.category}"
            )


def clean_url(url: str) -> str:
    """
    Strip trailing sentence punctuation and unbalanced closing brackets.

    Example:
        >>> clean_url("https://acme.com/cards).")
        'https://acme.com/cards'
    """
    url = url.strip()
    while url:
        if url[-1] in _TRAILING_PUNCTUATION:
            url = url[:-1]
        elif url[-1] == ")" and url.count("(") < url.count(")"):
            url = url[:-1]
        else:
            break
    return url


def extract_domain(url: str) -> str:
    """Extract the lower-case host of a URL without 'www.'; '' if unparsable."""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    host = host.lower().rstrip(".")
    if host.startswith("www."):
        host = host[4:]
    return host


def is_valid_host(domain: str) -> bool:
    """
    Accept public hostnames and globally routable IP addresses only.

    Example:
        >>> is_valid_host("acme.com"), is_valid_host("localhost"), is_valid_host("10.0.0.1")
        (True, False, False)
    """
    if not domain or domain == "localhost" or domain.endswith(".localhost"):
        return False
    try:
        return ipaddress.ip_address(domain).is_global
    except ValueError:
        pass
    labels = domain.split(".")
    if len(labels) < 2 or not all(labels):
        return False
    tld = labels[-1]
    return len(tld) >= 2 and tld.isalpha()


def extract_links(sentences: Sequence[Sentence]) -> list[Link]:
    """
    Find markdown links and bare URLs in each sentence.

    URLs are cleaned and links to invalid hosts are dropped. A URL is
    reported once per sentence it appears in, so each occurrence keeps the
    sentence that attribution checks against.
    """
    links: list[Link] = []
    seen: set[tuple[str, int]] = set()

    def add(raw_url: str, sentence: Sentence, anchor: str | None) -> None:
        url = clean_url(raw_url)
        domain = extract_domain(url)
        if not is_valid_host(domain):
            logger.debug(f"Skipping link with invalid host: {url}")
            return
        if (url, sentence.index) in seen:
            return
        seen.add((url, sentence.index))
        links.append(Link(url=url, domain=domain, sentence_index=sentence.index, anchor_text=anchor))

    for sentence in sentences:
        for match in _MD_LINK_PATTERN.finditer(sentence.text):
            anchor = match.group(1).strip() or None
            add(match.group(2), sentence, anchor)
        for match in _BARE_URL_PATTERN.finditer(sentence.text):
            add(match.group(1), sentence, None)

    return links


def strip_urls(text: str) -> str:
    """Remove link targets from text, keeping markdown anchor text."""
    text = _MD_LINK_PATTERN.sub(lambda m: m.group(1), text)
    return _BARE_URL_PATTERN.sub(" ", text)


def _domain_matches(domain: str, candidate: str) -> bool:
    return domain == candidate or domain.endswith("." + candidate)


def _matches_stem(domain: str, stem: str) -> bool:
    # Stems carry no TLD; "acme" matches acme.com, acme.co.uk, blog.acme.com
    if len(stem) < 3:
        return False
    return domain.startswith(stem + ".") or f".{stem}." in domain


def is_social_domain(domain: str, social_domains: Iterable[str]) -> bool:
    """True for a known social platform or any of its subdomains."""
    return any(_domain_matches(domain, s) for s in social_domains)


def is_brand_domain(
    domain: str,
    brand_domains: Iterable[str] = (),
    domain_stems: Iterable[str] = (),
) -> bool:
    """True when the domain belongs to the brand's own web presence."""
    if any(_domain_matches(domain, d) for d in brand_domains):
        return True
    return any(_matches_stem(domain, stem) for stem in domain_stems)


def classify_citation(
    domain: str,
    brand_domains: Iterable[str],
    domain_stems: Iterable[str],
    social_domains: Iterable[str],
) -> str:
    """
    Classify a cited domain relative to one brand.

    Brand ownership is checked before social platforms.

    Example:
        >>> classify_citation("blog.acme.com", ["acme.com"], [], ["reddit.com"])
        'brand'
        >>> classify_citation("old.reddit.com", ["acme.com"], [], ["reddit.com"])
        'social'
        >>> classify_citation("nerdwallet.com", ["acme.com"], [], ["reddit.com"])
        'earned'
    """
    if is_brand_domain(domain, brand_domains, domain_stems):
        return "brand"
    if is_social_domain(domain, social_domains):
        return "social"
    return "earned"


def attribute_citations(
    links: Sequence[Link],
    sentences: Sequence[Sentence],
    brand_regex: re.Pattern | None,
    brand_domains: Iterable[str] = (),
    domain_stems: Iterable[str] = (),
    social_domains: Iterable[str] = (),
) -> list[Citation]:
    """
    Select and classify the links that belong to one brand.

    A link is attributed when its anchor text matches the brand's patterns, or
    when the sentence containing it does once URLs are removed (so a domain
    name alone does not count as a mention).

    Returns:
        Citations in order of appearance, de-duplicated by URL
    """
    brand_domains = list(brand_domains)
    domain_stems = list(domain_stems)
    social_domains = list(social_domains)
    sentence_text = {s.index: strip_urls(s.text) for s in sentences}

    citations: list[Citation] = []
    seen_urls: set[str] = set()
    for link in links:
        if link.url in seen_urls:
            continue
        in_anchor = matches_brand(link.anchor_text or "", brand_regex)
        in_sentence = matches_brand(sentence_text.get(link.sentence_index, ""), brand_regex)
        if not (in_anchor or in_sentence):
            continue
        seen_urls.add(link.url)
        citations.append(
            Citation(
                url=link.url,
                domain=link.domain,
                category=classify_citation(
                    link.domain, brand_domains, domain_stems, social_domains
                ),
                anchor_text=link.anchor_text,
            )
        )
    return citations
