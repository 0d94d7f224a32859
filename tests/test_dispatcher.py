"""Tests for dispatcher.py: domain matching, self-detection, registration."""

from __future__ import annotations

import pytest

from price_engine.adapters import BaseAdapter, SiteAdapter, SiteProfile
from price_engine.dispatcher import AdapterDispatcher, get_adapter
from price_engine.exceptions import AdapterContractError


class StubAdapter(BaseAdapter):
    name = "stub"

    def detect_product(self):
        return True

    def extract_product_id(self):
        return "stub-1"

    def extract_title(self):
        return None

    def extract_price(self):
        return None

    def extract_image(self):
        return None


class ExplodingDetector(StubAdapter):
    name = "exploding"

    def detect_product(self):
        raise RuntimeError("detector crashed")


@pytest.fixture
def empty_dispatcher():
    return AdapterDispatcher(domain_profiles=(), self_detect_profiles=())


# =====================================================================
# Built-in routing
# =====================================================================


class TestBuiltinRouting:

    @pytest.mark.parametrize("url,expected", [
        ("https://www.amazon.com/dp/B08N5WRWNW", "amazon"),
        ("https://www.amazon.co.uk/dp/B08N5WRWNW", "amazon"),
        ("https://www.ebay.de/itm/1234567890", "ebay"),
        ("https://www.target.com/p/lamp/-/A-123", "target"),
        ("https://en.zalando.de/lamp.html", "zalando"),
    ])
    def test_domain_match(self, url, expected):
        adapter = AdapterDispatcher().create("<html></html>", url)
        assert isinstance(adapter, SiteAdapter)
        assert adapter.name == expected

    def test_domain_match_is_logged(self, caplog):
        caplog.set_level("INFO")
        AdapterDispatcher().create("<html></html>", "https://www.amazon.com/dp/X")
        assert "Using amazon for domain=www.amazon.com." in caplog.text

    def test_woocommerce_self_detected(self, make_page):
        page = make_page('<h1 class="product_title">Mug</h1>', body_class="woocommerce single-product")
        adapter = AdapterDispatcher().create(page, "https://small-shop.example.net/product/mug/")
        assert adapter.name == "woocommerce"

    def test_opencart_reachable_after_woocommerce(self, make_page):
        page = make_page('<h1>Chair</h1><span class="price-new">€99,00</span>')
        adapter = AdapterDispatcher().create(page, "https://shop.example.ee/chair-12")
        assert adapter.name == "opencart"

    def test_unknown_page_returns_none(self, make_page, caplog):
        caplog.set_level("INFO")
        assert AdapterDispatcher().create(make_page("<p>hello</p>"), "https://blog.example.org/about") is None
        assert "No adapter for domain=blog.example.org" in caplog.text

    def test_get_adapter(self):
        assert get_adapter("<html></html>", "https://www.walmart.com/ip/1").name == "walmart"


# =====================================================================
# Registration
# =====================================================================


class TestRegistration:

    def test_registered_class_by_domain(self, empty_dispatcher):
        empty_dispatcher.register(StubAdapter, domains=["Stub-Shop.example"])
        adapter = empty_dispatcher.create("<html></html>", "https://www.stub-shop.example/item")
        assert isinstance(adapter, StubAdapter)
        assert empty_dispatcher.domains == ["stub-shop.example"]

    def test_first_registered_domain_wins(self, empty_dispatcher):
        empty_dispatcher.register(SiteProfile(name="generic-shop", domains=("shop",)))
        empty_dispatcher.register(StubAdapter, domains=["shop.example"])
        adapter = empty_dispatcher.create("<html></html>", "https://shop.example/p")
        assert adapter.name == "generic-shop"

    def test_failing_self_detector_is_skipped(self, empty_dispatcher, caplog):
        empty_dispatcher.register(ExplodingDetector, self_detect=True)
        empty_dispatcher.register(StubAdapter, self_detect=True)
        adapter = empty_dispatcher.create("<html></html>", "https://anything.example/p")
        assert adapter.name == "stub"
        assert "Self-detection by exploding failed" in caplog.text

    def test_same_tree_shared_by_candidates(self, empty_dispatcher):
        empty_dispatcher.register(StubAdapter, self_detect=True)
        adapter = empty_dispatcher.create("<p>x</p>", "https://anything.example/p")
        assert adapter.tree.text(adapter.tree.select_one("p")) == "x"

    def test_abstract_class_rejected(self, empty_dispatcher):
        class Partial(BaseAdapter):
            def detect_product(self):
                return True

        with pytest.raises(AdapterContractError, match="does not implement: extract_image"):
            empty_dispatcher.register(Partial, domains=["partial.example"])

    def test_non_adapter_rejected(self, empty_dispatcher):
        with pytest.raises(AdapterContractError, match="not a BaseAdapter subclass"):
            empty_dispatcher.register(dict, domains=["x.example"])

    def test_class_without_routing_rejected(self, empty_dispatcher):
        with pytest.raises(AdapterContractError, match="neither domains nor self_detect"):
            empty_dispatcher.register(StubAdapter)

    def test_invalid_profile_rejected(self, empty_dispatcher):
        with pytest.raises(AdapterContractError, match="unknown currency"):
            empty_dispatcher.register(SiteProfile(name="bad", domains=("bad.example",), default_currency="ZZZ"))

    def test_profile_without_id_capture_group_rejected(self, empty_dispatcher):
        profile = SiteProfile(name="bad", domains=("bad.example",), product_id_url_patterns=(r"/p/\d+",))
        with pytest.raises(AdapterContractError, match="no capture group"):
            empty_dispatcher.register(profile)

    def test_nothing_registered(self, empty_dispatcher):
        assert empty_dispatcher.create("<html></html>", "https://www.amazon.com/dp/X") is None
