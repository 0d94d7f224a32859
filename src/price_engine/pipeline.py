"""
Extraction pipeline — ordered price strategies, first acceptable result wins.

Waterfall (most to least reliable):

  1. StructuredDataStrategy   — schema.org Product offers in JSON-LD
  2. MetaTagStrategy          — product:price / og:price / itemprop meta
  3. PriorityMarkupStrategy   — site selectors, noise filtered
  4. GenericMarkupStrategy    — anything "price"-named carrying a currency

Every candidate goes through the same gate, in this order:

    sanity check → regular price attachment → currency validation → threshold

so a surfaced price always meets the threshold *after* any mismatch
penalty. A strategy that raises is logged and skipped.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field

from core.config import settings
from price_engine.currency_parser import parse_price
from price_engine.models import AdapterContext, DetectionMethod, ParsedPrice
from price_engine.noise_filter import (
    EXCLUDED_REGIONS,
    in_excluded_region,
    is_crossed_out,
    read_located_prices,
)
from price_engine.structured_data import get_structured_data, structured_price_text
from price_engine.validators import CurrencyValidator, PriceSanityChecker

logger = logging.getLogger(__name__)

_RANGE = re.compile(r"\d\s*[-–—]\s*\D{0,4}\d")

# Detections that prove the text itself carried a currency marker
_MARKED_METHODS = frozenset({
    DetectionMethod.ISO_CODE,
    DetectionMethod.SYMBOL,
    DetectionMethod.SYMBOL_DISAMBIGUATED,
    DetectionMethod.SYMBOL_CONTEXTUAL,
    DetectionMethod.SYMBOL_WEAK,
})


@dataclass(slots=True)
class PriceCandidate:
    """A parsed price plus crossed-out texts found next to it."""

    price: ParsedPrice
    source: str
    was_texts: tuple[str, ...] = field(default_factory=tuple)


# ── Strategies ─────────────────────────────────────────────────────────


class PriceStrategy(ABC):
    """One way of finding the price. Side-effect free apart from logging."""

    name: str = "strategy"

    @abstractmethod
    def candidates(self, context: AdapterContext) -> Iterator[PriceCandidate]:
        ...


class StructuredDataStrategy(PriceStrategy):
    name = "structured_data"

    def __init__(self, fallback_currency: str | None = None) -> None:
        self.fallback_currency = fallback_currency or settings.default_currency

    def candidates(self, context: AdapterContext) -> Iterator[PriceCandidate]:
        node = get_structured_data(context)
        if node is None:
            return
        text = structured_price_text(node, self.fallback_currency)
        price = parse_price(text, context.price_context)
        if price is not None:
            yield PriceCandidate(price=price, source=self.name)


class MetaTagStrategy(PriceStrategy):
    """Machine-readable amount/currency pairs outside JSON-LD."""

    name = "meta_tags"

    PAIRS: tuple[tuple[str, str], ...] = (
        ('meta[property="product:price:amount"]', 'meta[property="product:price:currency"]'),
        ('meta[property="og:price:amount"]', 'meta[property="og:price:currency"]'),
        ('meta[itemprop="price"]', 'meta[itemprop="priceCurrency"]'),
        ('[itemprop="price"][content]', '[itemprop="priceCurrency"]'),
    )

    def candidates(self, context: AdapterContext) -> Iterator[PriceCandidate]:
        tree = context.tree
        for amount_selector, currency_selector in self.PAIRS:
            for element in tree.select(amount_selector):
                if in_excluded_region(tree, element) or is_crossed_out(tree, element):
                    continue
                amount = tree.attr(element, "content")
                if not amount:
                    continue
                currency_el = tree.select_one(currency_selector)
                currency = tree.attr(currency_el, "content") or tree.text(currency_el)
                text = f"{amount} {currency}" if currency else amount
                price = parse_price(text, context.price_context)
                if price is not None:
                    yield PriceCandidate(price=price, source=self.name)
                break


class PriorityMarkupStrategy(PriceStrategy):
    """
    Site-specific selectors in priority order, read through the noise filter.

    ``scope_selectors`` narrow the search to the main product block; when
    none of them matches, the whole document is searched.
    """

    name = "priority_markup"

    def __init__(
        self,
        selectors: Sequence[str],
        scope_selectors: Sequence[str] = (),
        excluded: Iterable[str] = EXCLUDED_REGIONS,
    ) -> None:
        self.selectors = tuple(selectors)
        self.scope_selectors = tuple(scope_selectors)
        self.excluded = tuple(excluded)

    def candidates(self, context: AdapterContext) -> Iterator[PriceCandidate]:
        if not self.selectors:
            return
        tree = context.tree
        scope = tree.select_first(self.scope_selectors) if self.scope_selectors else None
        for located in read_located_prices(tree, self.selectors, scope, self.excluded):
            if _RANGE.search(located.active_text):
                logger.debug("Skipping price range %r", located.active_text)
                continue
            price = parse_price(located.active_text, context.price_context)
            if price is not None:
                yield PriceCandidate(price=price, source=self.name, was_texts=located.was_texts)


class GenericMarkupStrategy(PriceStrategy):
    """Last resort: price-named elements whose text carries a currency marker."""

    name = "generic_markup"

    SELECTORS: tuple[str, ...] = (
        '[itemprop="price"]',
        "[data-price]",
        "[class*='price']",
        "[id*='price']",
    )

    def __init__(self, max_candidates: int = 50) -> None:
        self.max_candidates = max_candidates

    def candidates(self, context: AdapterContext) -> Iterator[PriceCandidate]:
        located = read_located_prices(context.tree, self.SELECTORS)
        for item in located[: self.max_candidates]:
            price = parse_price(item.active_text, context.price_context)
            if price is None or price.method not in _MARKED_METHODS:
                continue
            yield PriceCandidate(price=price, source=self.name, was_texts=item.was_texts)


# ── Pipeline ───────────────────────────────────────────────────────────


class ExtractionPipeline:
    """
    Runs strategies in order and returns the first accepted price.

    Usage:
        pipeline = ExtractionPipeline.for_selectors(
            ["#priceblock_ourprice"], scope_selectors=["#centerCol"],
        )
        price = pipeline.run(AdapterContext(tree=tree, url=url, expected_currency="USD"))
    """

    def __init__(
        self,
        strategies: Sequence[PriceStrategy],
        threshold: float | None = None,
        sanity_checker: PriceSanityChecker | None = None,
        currency_validator: CurrencyValidator | None = None,
    ) -> None:
        self.strategies = list(strategies)
        self.threshold = settings.confidence_threshold if threshold is None else threshold
        self.sanity_checker = sanity_checker or PriceSanityChecker()
        self.currency_validator = currency_validator or CurrencyValidator()

    @classmethod
    def for_selectors(
        cls,
        selectors: Sequence[str] = (),
        scope_selectors: Sequence[str] = (),
        threshold: float | None = None,
        use_structured_data: bool = True,
        use_meta_tags: bool = True,
        use_generic: bool = True,
        sanity_ceiling: float | None = None,
    ) -> ExtractionPipeline:
        """Canonical waterfall around one site's priority selectors."""
        strategies: list[PriceStrategy] = []
        if use_structured_data:
            strategies.append(StructuredDataStrategy())
        if use_meta_tags:
            strategies.append(MetaTagStrategy())
        if selectors:
            strategies.append(PriorityMarkupStrategy(selectors, scope_selectors))
        if use_generic:
            strategies.append(GenericMarkupStrategy())
        return cls(strategies, threshold=threshold, sanity_checker=PriceSanityChecker(ceiling=sanity_ceiling))

    def run(self, context: AdapterContext) -> ParsedPrice | None:
        for strategy in self.strategies:
            try:
                for candidate in strategy.candidates(context):
                    price = self.accept(candidate, context)
                    if price is not None:
                        logger.debug(
                            "Price %s %s accepted from %s (confidence %.2f)",
                            price.numeric,
                            price.currency,
                            candidate.source,
                            price.confidence,
                        )
                        return price
            except Exception as e:
                logger.error("Strategy %s failed on %s: %s", strategy.name, context.url, e)
                continue

        logger.debug("No price found on %s after %d strategies", context.url, len(self.strategies))
        return None

    def accept(self, candidate: PriceCandidate, context: AdapterContext) -> ParsedPrice | None:
        """Apply the acceptance gate to one candidate. Returns it or None."""
        price = candidate.price
        if not self.sanity_checker.check(price):
            return None

        self.attach_regular_price(price, candidate.was_texts, context)
        self.currency_validator.validate(price, context.expected_currency)

        if price.confidence < self.threshold:
            logger.debug(
                "Rejected %s %s from %s: confidence %.2f < %.2f",
                price.numeric,
                price.currency,
                candidate.source,
                price.confidence,
                self.threshold,
            )
            return None
        return price

    def attach_regular_price(self, price: ParsedPrice, was_texts: Iterable[str], context: AdapterContext) -> None:
        """Highest plausible crossed-out value above the active one becomes the regular price."""
        best = None
        for text in was_texts:
            was = parse_price(text, context.price_context)
            if was is None or was.currency != price.currency:
                continue
            if not self.sanity_checker.check(was):
                continue
            if was.numeric > price.numeric and (best is None or was.numeric > best):
                best = was.numeric
        if best is not None:
            price.attach_regular_price(best)
