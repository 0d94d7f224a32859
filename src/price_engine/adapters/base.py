"""Abstract base class for all site adapters (capability contract)."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence

from bs4 import BeautifulSoup, Tag

from core.config import settings
from price_engine.content_tree import ContentTree
from price_engine.currency_parser import parse_price
from price_engine.models import AdapterContext, ParsedPrice, ProductRecord
from price_engine.validators import CurrencyValidator
from price_engine.waiter import wait_for_price_element

logger = logging.getLogger(__name__)


class BaseAdapter(ABC):
    """
    Contract every site adapter satisfies.

    The page snapshot and its URL are injected via __init__. Subclasses
    read product fields from it and return typed values.

    Principles:
    - Return None / False on extraction failure (never raise).
    - An unimplemented operation is a programming error: the class
      cannot be instantiated.
    - One adapter instance serves one page; its ``context`` memoizes
      structured data for that page only.
    """

    name: str = "base"

    def __init__(self, page: str | BeautifulSoup | ContentTree, url: str) -> None:
        self.tree = page if isinstance(page, ContentTree) else ContentTree(page)
        self.url = url
        self._context: AdapterContext | None = None

    # ── Contract ───────────────────────────────────────────────────────

    @abstractmethod
    def detect_product(self) -> bool:
        """True when the page is a single-product page this adapter understands."""
        ...

    @abstractmethod
    def extract_product_id(self) -> str | None:
        ...

    @abstractmethod
    def extract_title(self) -> str | None:
        ...

    @abstractmethod
    def extract_price(self) -> ParsedPrice | None:
        ...

    @abstractmethod
    def extract_image(self) -> str | None:
        ...

    def get_expected_currency(self) -> str | None:
        """Currency the site is known to use. Override when there is one."""
        return None

    # ── Shared helpers ─────────────────────────────────────────────────

    @property
    def context(self) -> AdapterContext:
        if self._context is None:
            self._context = AdapterContext(
                tree=self.tree,
                url=self.url,
                locale=self.tree.lang or settings.default_locale,
            )
            # Assigned after creation: resolving it may read the context's structured data
            self._context.expected_currency = self.get_expected_currency()
        return self._context

    @property
    def domain(self) -> str:
        return self.context.domain

    def parse_price_with_context(self, text: str | None) -> ParsedPrice | None:
        return parse_price(text, self.context.price_context)

    def validate_currency(self, price: ParsedPrice) -> ParsedPrice:
        return CurrencyValidator().validate(price, self.context.expected_currency)

    async def wait_for_price_element(self, selectors: Sequence[str], timeout: float | None = None) -> Tag:
        """See ``price_engine.waiter.wait_for_price_element``."""
        return await wait_for_price_element(self.tree, selectors, timeout)

    def extract_record(self) -> ProductRecord | None:
        """All fields for the page, or None when it is not a product page."""
        if not self._safe(self.detect_product, False):
            return None
        return ProductRecord(
            url=self.url,
            adapter=self.name,
            product_id=self._safe(self.extract_product_id),
            title=self._safe(self.extract_title),
            image=self._safe(self.extract_image),
            price=self._safe(self.extract_price),
        )

    def _safe(self, operation, default=None):
        try:
            return operation()
        except Exception as e:
            logger.error("%s.%s failed on %s: %s", type(self).__name__, operation.__name__, self.url, e)
            return default

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, url={self.url!r})"
