"""
Brand registry: the ordered list of tracked brands with their compiled patterns.

Pattern sets and regexes are built once when the registry is created and
reused for every response. Build a new registry whenever the tracked-brand
list changes.
"""

import logging
import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from llm_visibility.config.schema import PatternSettings, TrackedBrand
from llm_visibility.exceptions import BrandRegistryMissingError, ConfigValidationError
from llm_visibility.extractor.brand_patterns import (
    BrandPattern,
    generate_brand_patterns,
    generate_domain_variations,
)
from llm_visibility.extractor.mention_detector import create_brand_regex

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegisteredBrand:
    """A tracked brand plus everything derived from its name."""

    name: str
    is_own_brand: bool
    domains: tuple[str, ...]
    patterns: tuple[BrandPattern, ...]
    domain_stems: tuple[str, ...]
    regex: re.Pattern | None


class BrandRegistry:
    """
    Ordered, immutable set of tracked brands (own brand and competitors).

    Detection is brand-agnostic: ``is_own_brand`` is carried through to the
    metrics for reporting emphasis only.

    Raises:
        BrandRegistryMissingError: If no brands are given
        ConfigValidationError: If two brands share a name (case-insensitive)

    Example:
        >>> registry = BrandRegistry([
        ...     TrackedBrand(name="Acme", is_own_brand=True),
        ...     TrackedBrand(name="Globex"),
        ... ])
        >>> registry.names
        ('Acme', 'Globex')
    """

    def __init__(
        self,
        brands: Sequence[TrackedBrand] | None,
        settings: PatternSettings | None = None,
    ):
        if not brands:
            raise BrandRegistryMissingError(
                "A brand registry with at least one tracked brand is required"
            )

        self.settings = settings or PatternSettings()
        registered: list[RegisteredBrand] = []
        seen: set[str] = set()

        for brand in brands:
            key = brand.name.lower()
            if key in seen:
                raise ConfigValidationError(f"Duplicate brand name: {brand.name}")
            seen.add(key)

            patterns = generate_brand_patterns(brand.name, self.settings)
            registered.append(
                RegisteredBrand(
                    name=brand.name,
                    is_own_brand=brand.is_own_brand,
                    domains=tuple(brand.domains),
                    patterns=patterns,
                    domain_stems=tuple(generate_domain_variations(brand.name)),
                    regex=create_brand_regex(patterns),
                )
            )
            logger.debug(
                f"Registered brand '{brand.name}' with {len(patterns)} patterns"
            )

        self._brands = tuple(registered)
        self._by_name = {b.name: b for b in self._brands}

    @classmethod
    def from_names(
        cls,
        own_brands: Sequence[str],
        competitors: Sequence[str] = (),
        settings: PatternSettings | None = None,
    ) -> "BrandRegistry":
        """Build a registry from plain names, own brands first."""
        brands = [TrackedBrand(name=n, is_own_brand=True) for n in own_brands]
        brands += [TrackedBrand(name=n) for n in competitors]
        return cls(brands, settings)

    @property
    def brands(self) -> tuple[RegisteredBrand, ...]:
        return self._brands

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(b.name for b in self._brands)

    @property
    def regexes(self) -> dict[str, re.Pattern | None]:
        return {b.name: b.regex for b in self._brands}

    def get(self, name: str) -> RegisteredBrand | None:
        return self._by_name.get(name)

    def is_own_brand(self, name: str) -> bool:
        brand = self._by_name.get(name)
        return brand.is_own_brand if brand else False

    def __iter__(self) -> Iterator[RegisteredBrand]:
        return iter(self._brands)

    def __len__(self) -> int:
        return len(self._brands)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name
