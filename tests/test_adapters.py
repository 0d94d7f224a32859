"""Tests for the adapter contract, SiteAdapter and the built-in profiles."""

from __future__ import annotations

from decimal import Decimal

import pytest

from price_engine.adapters import DOMAIN_PROFILES, SELF_DETECT_PROFILES, BaseAdapter, SiteAdapter, SiteProfile
from price_engine.adapters.profiles import AMAZON, ETSY, OPENCART, WALMART, WOOCOMMERCE, ZALANDO
from price_engine.content_tree import ContentTree
from price_engine.models import ProductRecord

AMAZON_BODY = (
    '<div id="centerCol">'
    '<span id="productTitle">  Wireless Mouse  </span>'
    '<div id="corePrice_feature_div">'
    '<span class="a-price" data-a-color="price"><span class="a-offscreen">$24.99</span></span>'
    '<span class="a-price a-text-price" data-a-strike="true"><span class="a-offscreen">$39.99</span></span>'
    "</div>"
    "</div>"
    '<img id="landingImage" src="data:image/gif;base64,R0lGOD" '
    'data-old-hires="https://m.media-amazon.com/images/I/mouse.jpg">'
    '<input type="hidden" name="ASIN" value="B000TEST01">'
)

WOO_BODY = (
    '<div class="product"><div class="summary entry-summary">'
    '<h1 class="product_title">Kaffeemühle</h1>'
    '<p class="price">'
    '<del><span class="woocommerce-Price-amount amount"><bdi>49,90&nbsp;'
    '<span class="woocommerce-Price-currencySymbol">€</span></bdi></span></del> '
    '<ins><span class="woocommerce-Price-amount amount"><bdi>39,90&nbsp;'
    '<span class="woocommerce-Price-currencySymbol">€</span></bdi></span></ins>'
    "</p>"
    '<span class="sku">KM-200</span>'
    "</div></div>"
)


# =====================================================================
# Marketplace profile end to end
# =====================================================================


class TestAmazon:

    URL = "https://www.amazon.com/dp/B08N5WRWNW?th=1"

    @pytest.fixture
    def adapter(self, make_page):
        return SiteAdapter(make_page(AMAZON_BODY), self.URL, AMAZON)

    def test_detects_product_url(self, adapter):
        assert adapter.detect_product() is True

    def test_fields(self, adapter):
        assert adapter.extract_product_id() == "B08N5WRWNW"
        assert adapter.extract_title() == "Wireless Mouse"
        assert adapter.extract_image() == "https://m.media-amazon.com/images/I/mouse.jpg"

    def test_price_with_strike_through_regular_price(self, adapter):
        price = adapter.extract_price()
        assert (price.numeric, price.currency) == (Decimal("24.99"), "USD")
        assert price.regular_price == Decimal("39.99")
        assert price.confidence == pytest.approx(0.95)

    def test_product_id_from_hidden_input(self, make_page):
        adapter = SiteAdapter(make_page(AMAZON_BODY), "https://www.amazon.com/some-listing", AMAZON)
        assert adapter.extract_product_id() == "B000TEST01"

    @pytest.mark.parametrize("url,expected", [
        ("https://www.amazon.com/dp/X", "USD"),
        ("https://www.amazon.com.au/dp/X", "AUD"),
        ("https://www.amazon.co.uk/dp/X", "GBP"),
        ("https://www.amazon.co.jp/dp/X", "JPY"),
    ])
    def test_expected_currency_by_longest_suffix(self, url, expected):
        assert SiteAdapter("<html></html>", url, AMAZON).get_expected_currency() == expected

    def test_extract_record(self, adapter):
        record = adapter.extract_record()
        assert isinstance(record, ProductRecord)
        assert record.adapter == "amazon"
        assert record.url == self.URL
        assert record.price.numeric == Decimal("24.99")


class TestLargeDenominationCurrencies:

    @staticmethod
    def _page(make_page, price_text: str) -> str:
        return make_page(
            '<div id="centerCol"><span id="productTitle">Laptop</span>'
            f'<span class="a-price" data-a-color="price"><span class="a-offscreen">{price_text}</span></span>'
            "</div>"
        )

    @pytest.mark.parametrize("url,price_text,expected,currency", [
        ("https://www.amazon.co.jp/dp/B000000001", "¥59,800", "59800", "JPY"),
        ("https://www.amazon.in/dp/B000000001", "₹60,000.00", "60000.00", "INR"),
    ])
    def test_ordinary_price_above_dollar_ceiling(self, make_page, url, price_text, expected, currency):
        adapter = SiteAdapter(self._page(make_page, price_text), url, AMAZON)
        price = adapter.extract_price()
        assert (price.numeric, price.currency) == (Decimal(expected), currency)

    def test_dollar_page_still_rejects_concatenated_digits(self, make_page):
        adapter = SiteAdapter(self._page(make_page, "$799999"), "https://www.amazon.com/dp/B000000001", AMAZON)
        assert adapter.extract_price() is None

    def test_profile_ceiling(self, make_page):
        profile = SiteProfile(name="budget", domains=("budget.example",), price_selectors=(".price",), sanity_ceiling=100)
        cheap = SiteAdapter(make_page('<span class="price">$99.00</span>'), "https://budget.example/p/1", profile)
        dear = SiteAdapter(make_page('<span class="price">$150.00</span>'), "https://budget.example/p/2", profile)

        assert cheap.extract_price().numeric == Decimal("99.00")
        assert dear.extract_price() is None


# =====================================================================
# Platform profiles
# =====================================================================


class TestWooCommerce:

    URL = "https://kaffee-shop.de/produkt/kaffeemuehle/"

    @pytest.fixture
    def adapter(self, make_page):
        page = make_page(WOO_BODY, lang="de-DE", body_class="product-template-default single-product woocommerce postid-4242")
        return SiteAdapter(page, self.URL, WOOCOMMERCE)

    def test_detect(self, adapter):
        assert adapter.detect_product() is True

    def test_sale_price_in_ins(self, adapter):
        price = adapter.extract_price()
        assert (price.numeric, price.currency) == (Decimal("39.90"), "EUR")
        assert price.regular_price == Decimal("49.90")
        assert price.locale == "de-DE"

    def test_sku_before_post_id(self, adapter):
        assert adapter.extract_product_id() == "KM-200"

    def test_post_id_from_body_class(self, make_page):
        page = make_page('<h1 class="product_title">Tasse</h1>', body_class="single-product postid-4242")
        assert SiteAdapter(page, self.URL, WOOCOMMERCE).extract_product_id() == "4242"

    def test_title(self, adapter):
        assert adapter.extract_title() == "Kaffeemühle"

    def test_plain_page_not_detected(self, make_page):
        adapter = SiteAdapter(make_page("<h1>Blog</h1>"), "https://blog.example.org/post-12", WOOCOMMERCE)
        assert adapter.detect_product() is False


class TestOpenCart:

    def test_markup_id_before_query_parameter(self, make_page):
        page = make_page('<h1>Tool</h1><script>var data = {"product_id": "512"};</script>')
        url = "https://shop.example.ee/index.php?route=product/product&product_id=77"
        assert SiteAdapter(page, url, OPENCART).extract_product_id() == "512"

    def test_query_parameter(self, make_page):
        url = "https://shop.example.ee/index.php?route=product/product&product_id=77"
        assert SiteAdapter(make_page("<h1>Tool</h1>"), url, OPENCART).extract_product_id() == "77"

    def test_url_suffix_id(self, make_page):
        adapter = SiteAdapter(make_page("<h1>Chair</h1>"), "https://shop.example.ee/en/chair-1234", OPENCART)
        assert adapter.detect_product() is True
        assert adapter.extract_product_id() == "1234"

    def test_special_price_and_baltic_currency(self, make_page):
        body = (
            '<div id="content"><h1>Chair</h1>'
            '<ul class="list-unstyled"><li><span class="price-old">€120,00</span></li>'
            '<li><h2 class="price-new">€99,00</h2></li></ul></div>'
        )
        adapter = SiteAdapter(make_page(body, lang="et"), "https://shop.example.ee/chair-7", OPENCART)
        assert adapter.get_expected_currency() == "EUR"
        price = adapter.extract_price()
        assert price.numeric == Decimal("99.00")
        assert price.regular_price == Decimal("120.00")


# =====================================================================
# Currency resolution
# =====================================================================


class TestExpectedCurrency:

    def test_default_currency(self):
        assert SiteAdapter("<html></html>", "https://www.zalando.de/x.html", ZALANDO).get_expected_currency() == "EUR"
        assert SiteAdapter("<html></html>", "https://www.zalando.co.uk/x.html", ZALANDO).get_expected_currency() == "GBP"

    def test_from_structured_data(self, make_page, json_ld):
        page = make_page(json_ld({"@type": "Product", "offers": {"price": "18.00", "priceCurrency": "eur"}}))
        adapter = SiteAdapter(page, "https://www.etsy.com/listing/123/mug", ETSY)
        assert adapter.get_expected_currency() == "EUR"
        assert adapter.context.expected_currency == "EUR"

    def test_none_when_unknown(self):
        assert SiteAdapter("<html></html>", "https://www.etsy.com/listing/1", ETSY).get_expected_currency() is None


# =====================================================================
# Generic field fallbacks
# =====================================================================


class TestFallbacks:

    PROFILE = SiteProfile(
        name="test-shop",
        domains=("shop.example.com",),
        title_selectors=("h1.missing",),
        image_selectors=("img.hero",),
        image_attributes=("srcset", "src"),
        price_selectors=(".price",),
    )
    URL = "https://shop.example.com/products/lamp"

    def test_structured_identifier_and_name(self, make_page, json_ld, product_node_data):
        adapter = SiteAdapter(make_page(json_ld(product_node_data)), self.URL, self.PROFILE)
        assert adapter.extract_product_id() == "DL-01"
        assert adapter.extract_title() == "Desk Lamp"
        assert adapter.extract_image() == "https://cdn.example.com/lamp.jpg"

    def test_og_tags(self, make_page):
        head = '<meta property="og:title" content="OG Lamp"><meta property="og:image" content="/img/og.jpg">'
        adapter = SiteAdapter(make_page("", head=head), self.URL, self.PROFILE)
        assert adapter.extract_title() == "OG Lamp"
        assert adapter.extract_image() == "https://shop.example.com/img/og.jpg"

    def test_srcset_first_entry_resolved(self, make_page):
        body = '<img class="hero" srcset="img/lamp-320.jpg 320w, img/lamp-640.jpg 640w">'
        adapter = SiteAdapter(make_page(body), self.URL, self.PROFILE)
        assert adapter.extract_image() == "https://shop.example.com/products/img/lamp-320.jpg"

    def test_data_uri_rejected(self, make_page):
        body = '<img class="hero" src="data:image/png;base64,AAAA">'
        assert SiteAdapter(make_page(body), self.URL, self.PROFILE).extract_image() is None

    def test_invalid_product_ids_skipped(self, make_page):
        profile = SiteProfile(name="ids", domains=("x",), product_id_selectors=((".sku", None),))
        adapter = SiteAdapter(make_page('<span class="sku">N/A</span>'), self.URL, profile)
        assert adapter.extract_product_id() is None

    def test_walmart_item_id(self):
        adapter = SiteAdapter("<html></html>", "https://www.walmart.com/ip/Desk-Lamp/123456789", WALMART)
        assert adapter.extract_product_id() == "123456789"

    def test_accepts_existing_tree(self):
        tree = ContentTree('<h1 class="missing">Lamp</h1>')
        adapter = SiteAdapter(tree, self.URL, self.PROFILE)
        assert adapter.tree is tree
        assert adapter.extract_title() == "Lamp"


# =====================================================================
# Contract
# =====================================================================


class TestContract:

    def test_incomplete_adapter_cannot_be_instantiated(self):
        class TitleOnly(BaseAdapter):
            def extract_title(self):
                return "x"

        with pytest.raises(TypeError):
            TitleOnly("<html></html>", "https://x.example")

    def test_failing_field_does_not_break_record(self, caplog):
        class Flaky(BaseAdapter):
            name = "flaky"

            def detect_product(self):
                return True

            def extract_product_id(self):
                return "42"

            def extract_title(self):
                raise ValueError("title markup changed")

            def extract_price(self):
                return None

            def extract_image(self):
                return None

        record = Flaky("<html></html>", "https://x.example/p").extract_record()
        assert record.product_id == "42"
        assert record.title is None
        assert "Flaky.extract_title failed" in caplog.text

    def test_non_product_page_has_no_record(self, make_page):
        adapter = SiteAdapter(make_page("<h1>About us</h1>"), "https://www.amazon.com/about", AMAZON)
        assert adapter.extract_record() is None

    def test_validate_currency_uses_context(self, make_page):
        adapter = SiteAdapter(make_page(""), "https://www.amazon.co.uk/dp/X", AMAZON)
        price = adapter.parse_price_with_context("$10.00")
        adapter.validate_currency(price)
        assert price.currency == "USD"
        assert price.confidence == pytest.approx(0.85 * 0.8)

    def test_context_locale_from_document(self, make_page):
        adapter = SiteAdapter(make_page("", lang="fr-FR"), "https://www.amazon.fr/dp/X", AMAZON)
        assert adapter.context.locale == "fr-FR"
        assert adapter.domain == "www.amazon.fr"


@pytest.mark.parametrize("profile", DOMAIN_PROFILES + SELF_DETECT_PROFILES, ids=lambda p: p.name)
def test_builtin_profiles_are_valid(profile):
    assert profile.problems() == []


class TestProfileProblems:

    def test_unrouteable(self):
        assert "neither domains nor self_detect" in SiteProfile(name="x").problems()[0]

    def test_bad_pattern_and_currency(self):
        profile = SiteProfile(
            name="x",
            domains=("x.com",),
            product_url_patterns=("([",),
            default_currency="XYZ",
        )
        problems = profile.problems()
        assert any("invalid pattern" in p for p in problems)
        assert any("unknown currency 'XYZ'" in p for p in problems)

    def test_no_price_source(self):
        profile = SiteProfile(name="x", domains=("x.com",), use_structured_data=False, use_meta_tags=False)
        assert "no price source" in profile.problems()[0]

    def test_relaxed_threshold(self):
        assert SiteProfile(name="x", relaxed_threshold=True).threshold == 0.65
        assert SiteProfile(name="x").threshold == 0.70

    @pytest.mark.parametrize("field", ["product_id_url_patterns", "product_id_markup_patterns"])
    def test_product_id_pattern_needs_capture_group(self, field):
        profile = SiteProfile(name="x", domains=("x.com",), **{field: (r"/item/\d+",)})
        assert any("has no capture group" in p for p in profile.problems())

    def test_detection_pattern_needs_no_capture_group(self):
        assert SiteProfile(name="x", domains=("x.com",), product_url_patterns=(r"/item/\d+",)).problems() == []

    def test_non_positive_sanity_ceiling(self):
        assert "sanity_ceiling must be positive" in SiteProfile(name="x", domains=("x.com",), sanity_ceiling=0).problems()[0]
