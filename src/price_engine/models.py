"""Data models for the price extraction pipeline (prices, schema nodes, contexts)."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

from core.config import settings

if TYPE_CHECKING:
    from bs4 import Tag

    from price_engine.content_tree import ContentTree


class DetectionMethod(StrEnum):
    """How the parser settled on a currency."""

    ISO_CODE = "iso_code"
    SYMBOL = "symbol"
    SYMBOL_DISAMBIGUATED = "symbol_disambiguated"
    SYMBOL_CONTEXTUAL = "symbol_contextual"
    SYMBOL_WEAK = "symbol_weak"
    DOMAIN = "domain"
    LOCALE = "locale"
    EXPECTED = "expected"
    DEFAULT = "default"
    SPECIAL = "special"        # "FREE", bare zero


@dataclass(slots=True)
class ParsedPrice:
    """
    A single parse result.

    Created by the parser, then adjusted in place by the pipeline
    (regular price attachment, currency validation) before being handed
    to the caller.
    """

    numeric: Decimal
    currency: str
    confidence: float
    symbol: str = ""
    raw: str = ""
    locale: str | None = None
    method: DetectionMethod = DetectionMethod.DEFAULT
    regular_price: Decimal | None = None
    is_on_sale: bool = False

    def attach_regular_price(self, value: Decimal | None) -> bool:
        """Record a crossed-out "was" price. Ignored unless it exceeds ``numeric``."""
        if value is None or value <= self.numeric:
            return False
        self.regular_price = value
        self.is_on_sale = True
        return True

    @property
    def discount_percent(self) -> float | None:
        if self.regular_price is None or self.regular_price <= 0:
            return None
        return float((self.regular_price - self.numeric) / self.regular_price * 100)


@dataclass(frozen=True, slots=True)
class PriceContext:
    """Hints handed to the parser alongside the raw text."""

    domain: str | None = None
    locale: str | None = None
    expected_currency: str | None = None

    @property
    def has_hints(self) -> bool:
        return bool(self.domain or self.locale)


@dataclass(frozen=True, slots=True)
class StructuredOffer:
    """One entry of a schema.org ``offers`` field."""

    price: str | None = None
    price_currency: str | None = None
    availability: str | None = None


@dataclass(frozen=True, slots=True)
class StructuredDataNode:
    """Canonical schema.org Product node, independent of its envelope."""

    name: str | None = None
    sku: str | None = None
    mpn: str | None = None
    gtin: str | None = None
    brand: str | None = None
    image: Any = None                   # str | list | {"url": ...}
    offers: tuple[StructuredOffer, ...] = ()
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def offer(self) -> StructuredOffer | None:
        return self.offers[0] if self.offers else None

    @property
    def image_url(self) -> str | None:
        img = self.image
        if isinstance(img, list):
            img = img[0] if img else None
        if isinstance(img, dict):
            img = img.get("url") or img.get("contentUrl")
        if isinstance(img, str) and img.strip():
            return img.strip()
        return None

    @property
    def identifier(self) -> str | None:
        return self.sku or self.mpn or self.gtin


@dataclass(frozen=True, slots=True)
class CandidateLocation:
    """An element that may hold the price, with its noise markers."""

    element: Tag
    selector: str
    crossed_out: bool = False
    discount_badge: bool = False

    @property
    def is_noise(self) -> bool:
        return self.crossed_out or self.discount_badge


@dataclass(frozen=True, slots=True)
class LocatedPrice:
    """Clean active text for a candidate plus any co-located "was" texts."""

    location: CandidateLocation
    active_text: str
    was_texts: tuple[str, ...] = ()


# Marks "structured data looked up, none present" on the context
_NOT_FOUND: Any = object()


@dataclass(slots=True)
class AdapterContext:
    """
    Per-invocation extraction state for one page.

    Owns the memoized structured-data node so that name, image, offers
    and identifier lookups parse the page's schema blocks only once.
    """

    tree: ContentTree
    url: str
    locale: str = settings.default_locale
    expected_currency: str | None = None
    _structured_data: Any = field(default=None, repr=False)

    @property
    def domain(self) -> str:
        return (urlparse(self.url).hostname or "").lower()

    @property
    def price_context(self) -> PriceContext:
        return PriceContext(
            domain=self.domain or None,
            locale=self.locale,
            expected_currency=self.expected_currency,
        )

    def memoized_structured_data(self) -> tuple[bool, StructuredDataNode | None]:
        """(looked_up, node). ``node`` is None when the page has none."""
        if self._structured_data is None:
            return False, None
        if self._structured_data is _NOT_FOUND:
            return True, None
        return True, self._structured_data

    def remember_structured_data(self, node: StructuredDataNode | None) -> None:
        self._structured_data = node if node is not None else _NOT_FOUND


@dataclass(frozen=True, slots=True)
class ProductRecord:
    """Everything an adapter could extract from one product page."""

    url: str
    adapter: str
    product_id: str | None = None
    title: str | None = None
    image: str | None = None
    price: ParsedPrice | None = None


@dataclass(frozen=True, slots=True)
class PriceComparison:
    """Outcome of comparing a stored price with a fresh one."""

    comparable: bool
    reason: str | None = None
    old_price: Decimal | None = None
    new_price: Decimal | None = None
    currency: str | None = None
    dropped: bool = False
    increased: bool = False
    unchanged: bool = False
    amount: Decimal = Decimal("0")
    percentage: float = 0.0
