"""
Structured-data extractor — schema.org Product nodes from JSON-LD blocks.

Pages embed product data in three envelope shapes:

    {"@type": "Product", ...}                        single object
    [{"@type": "BreadcrumbList"}, {"@type": "Product"}]   top-level array
    {"@context": ..., "@graph": [..., {"@type": "Product"}]}   graph wrapper

All three are flattened to one item list before the first Product is
picked, so equivalent content yields an identical ``StructuredDataNode``
whatever the envelope.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any

from core.config import settings
from price_engine.content_tree import ContentTree
from price_engine.models import AdapterContext, StructuredDataNode, StructuredOffer

logger = logging.getLogger(__name__)

_GTIN_FIELDS = ("gtin", "gtin13", "gtin12", "gtin14", "gtin8")
_PRICE_FIELDS = ("price", "lowPrice", "highPrice")


def iter_schema_items(tree: ContentTree) -> Iterator[dict[str, Any]]:
    """Yield every JSON-LD item on the page, envelopes flattened."""
    for script in tree.select('script[type="application/ld+json"]'):
        raw = script.string or script.get_text()
        if not raw or not raw.strip():
            continue
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, ValueError) as exc:
            logger.debug("Skipping malformed JSON-LD block: %s", exc)
            continue
        yield from normalize_envelope(data)


def normalize_envelope(data: Any) -> list[dict[str, Any]]:
    """Flatten single object / array / ``@graph`` wrapper into a list of dicts."""
    if isinstance(data, list):
        items = data
    elif isinstance(data, dict) and isinstance(data.get("@graph"), list):
        items = data["@graph"]
    else:
        items = [data]
    return [item for item in items if isinstance(item, dict)]


def is_product(item: dict[str, Any]) -> bool:
    declared = item.get("@type")
    if isinstance(declared, list):
        return "Product" in declared
    return declared == "Product"


def find_product_node(tree: ContentTree) -> StructuredDataNode | None:
    """Scan the page; first Product item wins."""
    for item in iter_schema_items(tree):
        if is_product(item):
            return _to_node(item)
    return None


def get_structured_data(context: AdapterContext) -> StructuredDataNode | None:
    """Memoized ``find_product_node`` for one extraction pass."""
    looked_up, node = context.memoized_structured_data()
    if looked_up:
        return node
    node = find_product_node(context.tree)
    context.remember_structured_data(node)
    if node is None:
        logger.debug("No Product JSON-LD on %s", context.url)
    return node


def has_product_schema(tree: ContentTree) -> bool:
    return any(is_product(item) for item in iter_schema_items(tree))


def structured_price_text(node: StructuredDataNode, fallback_currency: str | None = None) -> str | None:
    """
    ``"49.00 GBP"`` for the node's first offer, ready for the currency parser.

    The currency falls back to ``fallback_currency`` (settings default when
    omitted) only when the offer does not declare one.
    """
    offer = node.offer
    if offer is None or offer.price is None:
        return None
    currency = offer.price_currency or fallback_currency or settings.default_currency
    return f"{offer.price} {currency.upper()}"


# ── Normalization ──────────────────────────────────────────────────────


def _to_node(item: dict[str, Any]) -> StructuredDataNode:
    return StructuredDataNode(
        name=_text(item.get("name")),
        sku=_text(item.get("sku")),
        mpn=_text(item.get("mpn")),
        gtin=next((_text(item[f]) for f in _GTIN_FIELDS if item.get(f)), None),
        brand=_brand(item.get("brand")),
        image=item.get("image"),
        offers=_offers(item.get("offers")),
        raw=item,
    )


def _offers(value: Any) -> tuple[StructuredOffer, ...]:
    if isinstance(value, dict):
        entries = [value]
    elif isinstance(value, list):
        entries = [entry for entry in value if isinstance(entry, dict)]
    else:
        return ()

    offers = []
    for entry in entries:
        # AggregateOffer nests its concrete offers one level down
        if entry.get("@type") == "AggregateOffer" and not any(entry.get(f) is not None for f in _PRICE_FIELDS):
            nested = _offers(entry.get("offers"))
            offers.extend(nested)
            continue
        price = next((entry[f] for f in _PRICE_FIELDS if entry.get(f) not in (None, "")), None)
        offers.append(StructuredOffer(
            price=_text(price),
            price_currency=_text(entry.get("priceCurrency")),
            availability=_text(entry.get("availability")),
        ))
    return tuple(offers)


def _brand(value: Any) -> str | None:
    if isinstance(value, dict):
        return _text(value.get("name"))
    if isinstance(value, list) and value:
        return _brand(value[0])
    return _text(value)


def _text(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None
