"""Shared fixtures for the price engine test suite."""

from __future__ import annotations

import json

import pytest

from price_engine.content_tree import ContentTree
from price_engine.models import AdapterContext, PriceContext


@pytest.fixture
def json_ld():
    """Factory: wrap a Python object in a JSON-LD script block."""

    def _wrap(data) -> str:
        return f'<script type="application/ld+json">{json.dumps(data)}</script>'

    return _wrap


@pytest.fixture
def make_page():
    """Factory that builds a full HTML document.

    ``head`` goes inside <head>, ``body`` inside <body>; ``lang`` of None
    omits the attribute.
    """

    def _make(body: str = "", *, head: str = "", lang: str | None = "en-US", body_class: str = "") -> str:
        lang_attr = f' lang="{lang}"' if lang else ""
        class_attr = f' class="{body_class}"' if body_class else ""
        return f"<html{lang_attr}><head>{head}</head><body{class_attr}>{body}</body></html>"

    return _make


@pytest.fixture
def make_tree(make_page):
    """Factory: body markup → ContentTree."""

    def _make(body: str = "", **kwargs) -> ContentTree:
        return ContentTree(make_page(body, **kwargs))

    return _make


@pytest.fixture
def make_context(make_page):
    """Factory for a per-page AdapterContext."""

    def _make(
        body: str = "",
        *,
        url: str = "https://shop.example.com/p/1",
        expected_currency: str | None = None,
        locale: str = "en-US",
        head: str = "",
        style_resolver=None,
    ) -> AdapterContext:
        tree = ContentTree(make_page(body, head=head, lang=locale), style_resolver=style_resolver)
        return AdapterContext(tree=tree, url=url, locale=locale, expected_currency=expected_currency)

    return _make


@pytest.fixture
def product_node_data():
    """schema.org Product used across envelope tests."""
    return {
        "@type": "Product",
        "name": "Desk Lamp",
        "sku": "DL-01",
        "gtin13": "4006381333931",
        "brand": {"@type": "Brand", "name": "Lumo"},
        "image": ["https://cdn.example.com/lamp.jpg"],
        "offers": {"@type": "Offer", "price": "49.00", "priceCurrency": "GBP"},
    }


@pytest.fixture
def us_context():
    return PriceContext(domain="shop.example.com", locale="en-US", expected_currency="USD")
