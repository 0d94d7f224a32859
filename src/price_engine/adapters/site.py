"""
Configuration-driven site adapter.

A ``SiteProfile`` is plain data: selectors, URL patterns and currency
tables for one retailer or one shop platform. ``SiteAdapter`` is the
single implementation of the adapter contract that interprets it, so
supporting a new site means writing a profile, not a subclass.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup

from core.config import settings
from core.currency_data import is_known_currency
from price_engine.adapters.base import BaseAdapter
from price_engine.content_tree import ContentTree
from price_engine.models import ParsedPrice
from price_engine.pipeline import ExtractionPipeline
from price_engine.structured_data import get_structured_data, has_product_schema

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_ATTRIBUTES = (
    "data-old-hires",
    "data-large_image",
    "data-zoom-image",
    "data-src",
    "src",
    "srcset",
)


@dataclass(frozen=True, slots=True)
class SiteProfile:
    """
    Everything that differs between two sites.

    ``detect_selector_sets``: each inner tuple is a conjunction, the outer
    tuple a disjunction: ``(("h1", ".price"), ("#product",))`` reads
    "h1 and .price, or #product".
    """

    name: str
    domains: tuple[str, ...] = ()
    self_detect: bool = False

    # Detection
    product_url_patterns: tuple[str, ...] = ()
    detect_selector_sets: tuple[tuple[str, ...], ...] = ()
    detect_on_product_schema: bool = False

    # Fields
    price_selectors: tuple[str, ...] = ()
    scope_selectors: tuple[str, ...] = ()
    title_selectors: tuple[str, ...] = ()
    image_selectors: tuple[str, ...] = ()
    image_attributes: tuple[str, ...] = DEFAULT_IMAGE_ATTRIBUTES

    # Product id sources, tried in this order
    product_id_url_patterns: tuple[str, ...] = ()
    product_id_selectors: tuple[tuple[str, str | None], ...] = ()   # (selector, attribute | None for text)
    product_id_markup_patterns: tuple[str, ...] = ()
    product_id_query_params: tuple[str, ...] = ()
    invalid_product_ids: tuple[str, ...] = ("N/A", "n/a", "-")

    # Currency
    currency_by_domain: tuple[tuple[str, str], ...] = ()               # (host suffix, ISO code)
    default_currency: str | None = None
    currency_from_structured_data: bool = False

    # Pipeline
    relaxed_threshold: bool = False
    sanity_ceiling: float | None = None                                 # dollar-sized units, see PriceSanityChecker
    use_structured_data: bool = True
    use_meta_tags: bool = True
    use_generic_fallback: bool = True

    def problems(self) -> list[str]:
        """Configuration defects; empty when the profile is usable."""
        issues: list[str] = []
        if not self.name:
            issues.append("profile has no name")
        if not self.domains and not self.self_detect:
            issues.append(f"{self.name}: neither domains nor self_detect set")
        if not self.price_selectors and not self.use_structured_data and not self.use_meta_tags:
            issues.append(f"{self.name}: no price source configured")

        id_patterns = self.product_id_url_patterns + self.product_id_markup_patterns
        for pattern in self.product_url_patterns + id_patterns:
            try:
                compiled = re.compile(pattern)
            except re.error as exc:
                issues.append(f"{self.name}: invalid pattern {pattern!r}: {exc}")
                continue
            # extract_product_id returns group(1)
            if pattern in id_patterns and compiled.groups < 1:
                issues.append(f"{self.name}: product id pattern {pattern!r} has no capture group")

        if self.sanity_ceiling is not None and self.sanity_ceiling <= 0:
            issues.append(f"{self.name}: sanity_ceiling must be positive")

        currencies = [code for _, code in self.currency_by_domain]
        if self.default_currency:
            currencies.append(self.default_currency)
        for code in currencies:
            if not is_known_currency(code):
                issues.append(f"{self.name}: unknown currency {code!r}")
        return issues

    @property
    def threshold(self) -> float:
        if self.relaxed_threshold:
            return settings.relaxed_confidence_threshold
        return settings.confidence_threshold


class SiteAdapter(BaseAdapter):
    """
    Implements the adapter contract from a ``SiteProfile``.

    Usage:
        adapter = SiteAdapter(html, url, AMAZON)
        record = adapter.extract_record()
    """

    def __init__(self, page: str | BeautifulSoup | ContentTree, url: str, profile: SiteProfile) -> None:
        super().__init__(page, url)
        self.profile = profile
        self.name = profile.name

    # ── Detection ──────────────────────────────────────────────────────

    def detect_product(self) -> bool:
        profile = self.profile
        if any(re.search(pattern, self.url) for pattern in profile.product_url_patterns):
            return True
        for selector_set in profile.detect_selector_sets:
            if selector_set and all(self.tree.select_one(sel) is not None for sel in selector_set):
                return True
        if profile.detect_on_product_schema and has_product_schema(self.tree):
            return True
        return False

    # ── Fields ─────────────────────────────────────────────────────────

    def extract_product_id(self) -> str | None:
        profile = self.profile

        for pattern in profile.product_id_url_patterns:
            match = re.search(pattern, self.url)
            if match:
                return match.group(1)

        for selector, attribute in profile.product_id_selectors:
            element = self.tree.select_one(selector)
            value = self.tree.attr(element, attribute) if attribute else self.tree.text(element)
            if self._usable_id(value):
                return value

        if profile.product_id_markup_patterns:
            markup = self.tree.markup
            for pattern in profile.product_id_markup_patterns:
                match = re.search(pattern, markup)
                if match:
                    return match.group(1)

        query = parse_qs(urlparse(self.url).query)
        for param in profile.product_id_query_params:
            values = query.get(param)
            if values and self._usable_id(values[0]):
                return values[0]

        node = get_structured_data(self.context)
        if node is not None and self._usable_id(node.identifier):
            return node.identifier
        return None

    def extract_title(self) -> str | None:
        for selector in self.profile.title_selectors:
            title = self.tree.text(self.tree.select_one(selector))
            if title:
                return title

        node = get_structured_data(self.context)
        if node is not None and node.name:
            return node.name

        return self.tree.attr(self.tree.select_one('meta[property="og:title"]'), "content")

    def extract_price(self) -> ParsedPrice | None:
        profile = self.profile
        pipeline = ExtractionPipeline.for_selectors(
            profile.price_selectors,
            profile.scope_selectors,
            threshold=profile.threshold,
            use_structured_data=profile.use_structured_data,
            use_meta_tags=profile.use_meta_tags,
            use_generic=profile.use_generic_fallback,
            sanity_ceiling=profile.sanity_ceiling,
        )
        return pipeline.run(self.context)

    def extract_image(self) -> str | None:
        for selector in self.profile.image_selectors:
            element = self.tree.select_one(selector)
            if element is None:
                continue
            for attribute in self.profile.image_attributes:
                url = self._resolve_image(self.tree.attr(element, attribute), attribute)
                if url:
                    return url

        node = get_structured_data(self.context)
        if node is not None:
            url = self._resolve_image(node.image_url)
            if url:
                return url

        og_image = self.tree.attr(self.tree.select_one('meta[property="og:image"]'), "content")
        return self._resolve_image(og_image)

    def get_expected_currency(self) -> str | None:
        profile = self.profile

        if profile.currency_from_structured_data:
            node = get_structured_data(self.context)
            offer = node.offer if node is not None else None
            if offer is not None and is_known_currency(offer.price_currency):
                return offer.price_currency.upper()

        host = (urlparse(self.url).hostname or "").lower()
        matches = [(suffix, code) for suffix, code in profile.currency_by_domain if host.endswith(suffix)]
        if matches:
            return max(matches, key=lambda item: len(item[0]))[1]

        return profile.default_currency

    # ── Helpers ────────────────────────────────────────────────────────

    def _usable_id(self, value: str | None) -> bool:
        return bool(value) and value.strip() not in self.profile.invalid_product_ids

    def _resolve_image(self, value: str | None, attribute: str | None = None) -> str | None:
        if not value:
            return None
        if attribute == "srcset":
            value = value.split(",")[0].strip().split(" ")[0]
        if value.startswith("data:"):
            return None
        return urljoin(self.url, value)
