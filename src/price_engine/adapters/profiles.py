"""
Built-in site profiles.

Selector lists go from most to least specific. Domain-matched profiles
come first in ``DOMAIN_PROFILES`` (dispatch order matters: first
substring match wins); platform profiles without a distinguishing domain
live in ``SELF_DETECT_PROFILES`` and are tried in order.
"""

from __future__ import annotations

from price_engine.adapters.site import SiteProfile

# ──────────────────────────────────────────────────────────────────────
# Marketplaces / big-box retailers
# ──────────────────────────────────────────────────────────────────────

AMAZON = SiteProfile(
    name="amazon",
    domains=("amazon",),
    product_url_patterns=(r"/dp/", r"/gp/product/"),
    scope_selectors=("#centerCol", "#ppd", "#dp-container"),
    price_selectors=(
        '.a-price[data-a-color="price"] .a-offscreen',
        "#priceblock_ourprice",
        "#priceblock_dealprice",
        ".priceToPay .a-offscreen",
        "#corePrice_feature_div .a-offscreen",
        ".a-price.aok-align-center .a-offscreen",
    ),
    title_selectors=("#productTitle", "#title", ".product-title"),
    image_selectors=("#landingImage", "#imgBlkFront", ".a-dynamic-image"),
    product_id_url_patterns=(r"/(?:dp|gp/product)/([A-Z0-9]{10})",),
    product_id_selectors=(('input[name="ASIN"]', "value"),),
    currency_by_domain=(
        ("amazon.com", "USD"),
        ("amazon.co.uk", "GBP"),
        ("amazon.de", "EUR"),
        ("amazon.fr", "EUR"),
        ("amazon.it", "EUR"),
        ("amazon.es", "EUR"),
        ("amazon.nl", "EUR"),
        ("amazon.ca", "CAD"),
        ("amazon.com.au", "AUD"),
        ("amazon.co.jp", "JPY"),
        ("amazon.in", "INR"),
        ("amazon.com.mx", "MXN"),
        ("amazon.com.br", "BRL"),
        ("amazon.se", "SEK"),
        ("amazon.pl", "PLN"),
        ("amazon.com.tr", "TRY"),
        ("amazon.ae", "AED"),
        ("amazon.sa", "SAR"),
        ("amazon.sg", "SGD"),
    ),
)

EBAY = SiteProfile(
    name="ebay",
    domains=("ebay",),
    product_url_patterns=(r"/itm/",),
    price_selectors=(
        '.x-price-primary [itemprop="price"]',
        ".x-price-primary span",
        "#prcIsum",
        "#mm-saleDscPrc",
        ".display-price",
    ),
    title_selectors=("h1.x-item-title__mainTitle", "#itemTitle", ".it-ttl"),
    image_selectors=(".ux-image-carousel-item img", "#icImg", ".img-container img"),
    product_id_url_patterns=(r"/itm/(?:[^/]+/)?(\d+)",),
    currency_by_domain=(
        ("ebay.com", "USD"),
        ("ebay.co.uk", "GBP"),
        ("ebay.de", "EUR"),
        ("ebay.fr", "EUR"),
        ("ebay.it", "EUR"),
        ("ebay.es", "EUR"),
        ("ebay.nl", "EUR"),
        ("ebay.ie", "EUR"),
        ("ebay.at", "EUR"),
        ("ebay.ca", "CAD"),
        ("ebay.com.au", "AUD"),
        ("ebay.ch", "CHF"),
        ("ebay.pl", "PLN"),
    ),
)

WALMART = SiteProfile(
    name="walmart",
    domains=("walmart",),
    product_url_patterns=(r"/ip/",),
    price_selectors=('[itemprop="price"]', '[data-automation-id="product-price"]', ".price-characteristic"),
    title_selectors=('h1[itemprop="name"]', "h1"),
    image_selectors=('[data-testid="hero-image-container"] img', ".prod-hero-image img"),
    product_id_url_patterns=(r"/ip/[^/]+/(\d+)", r"/ip/(\d+)"),
    default_currency="USD",
)

TARGET = SiteProfile(
    name="target",
    domains=("target.com",),
    product_url_patterns=(r"/p/",),
    price_selectors=('[data-test="product-price"]',),
    title_selectors=('[data-test="product-title"]', "h1"),
    image_selectors=('[data-test="product-image"] img',),
    product_id_url_patterns=(r"/A-(\d+)",),
    default_currency="USD",
)

BESTBUY = SiteProfile(
    name="bestbuy",
    domains=("bestbuy",),
    product_url_patterns=(r"/site/.*skuId=", r"skuId=\d+"),
    price_selectors=('[data-testid="customer-price"] span', '[data-testid="customer-price"]', ".priceView-customer-price span"),
    title_selectors=(".sku-title h1", "h1"),
    image_selectors=(".primary-image", ".shop-media-gallery img"),
    product_id_url_patterns=(r"skuId=(\d+)",),
    product_id_query_params=("skuId",),
    default_currency="USD",
)

ALIEXPRESS = SiteProfile(
    name="aliexpress",
    domains=("aliexpress",),
    product_url_patterns=(r"/item/\d+", r"/i/\d+"),
    price_selectors=(
        ".product-price-value",
        ".product-price-current",
        ".uniform-banner-box-price",
        ".product-price .price-current",
    ),
    title_selectors=(".product-title-text", "h1"),
    image_selectors=(".magnifier-image", ".images-view-item img"),
    product_id_url_patterns=(r"/item/(\d+)", r"/i/(\d+)"),
    product_id_selectors=(("[data-product-id]", "data-product-id"),),
    # Markup varies per region and A/B bucket
    relaxed_threshold=True,
)

# ──────────────────────────────────────────────────────────────────────
# Fashion / specialist retailers
# ──────────────────────────────────────────────────────────────────────

ZALANDO = SiteProfile(
    name="zalando",
    domains=("zalando",),
    product_url_patterns=(r"\.html", r"/product/"),
    price_selectors=('[data-testid="price-current-price"]', '[data-testid="pdp-price"]', ".price"),
    title_selectors=('[data-testid="pdp-product-name"]', "h1", ".product-name"),
    image_selectors=('[data-testid="pdp-gallery"] img', ".product-image img"),
    product_id_url_patterns=(r"/[a-z0-9-]+-([a-z0-9]+-[a-z0-9]+)\.html", r"/([a-z0-9-]+)\.html"),
    product_id_selectors=(("[data-product-id]", "data-product-id"), ("[data-article-id]", "data-article-id")),
    currency_by_domain=(
        (".co.uk", "GBP"),
        (".se", "SEK"),
        (".dk", "DKK"),
        (".no", "NOK"),
        (".pl", "PLN"),
        (".ch", "CHF"),
        (".cz", "CZK"),
    ),
    default_currency="EUR",
)

ETSY = SiteProfile(
    name="etsy",
    domains=("etsy",),
    product_url_patterns=(r"/listing/\d+",),
    detect_selector_sets=(("[data-listing-id]",), ("h1[data-listing-title]",)),
    price_selectors=('[data-buy-box-region="price"] p', ".wt-text-title-larger", '[data-selector="price-only"]'),
    title_selectors=("h1[data-listing-title]", "h1"),
    image_selectors=('[data-carousel-first-image] img', ".wt-position-absolute img"),
    product_id_url_patterns=(r"/listing/(\d+)",),
    product_id_selectors=(("[data-listing-id]", "data-listing-id"),),
    # Etsy prices in the shopper's chosen currency; the listing schema says which
    currency_from_structured_data=True,
)

BOOZT = SiteProfile(
    name="boozt",
    domains=("boozt",),
    product_url_patterns=(r"/\d+$",),
    detect_selector_sets=((".product-information", ".price-container"),),
    price_selectors=(".current-price", ".price.campaign", ".price-container", ".product-price", ".product-information .price"),
    title_selectors=(".product-name", "h1"),
    image_selectors=(".primary-image img", ".product-image img", ".image-gallery img"),
    product_id_url_patterns=(r"/(\d+)$",),
    currency_by_domain=(
        (".se", "SEK"),
        (".dk", "DKK"),
        (".no", "NOK"),
        (".fi", "EUR"),
        (".com", "EUR"),
    ),
)

SPORTSDIRECT = SiteProfile(
    name="sportsdirect",
    domains=("sportsdirect",),
    product_url_patterns=(r"colcode=\d+",),
    detect_selector_sets=(("#lblProductName",), ("#lblSellingPrice",)),
    price_selectors=("#lblSellingPrice",),
    title_selectors=("#lblProductName", "h1"),
    image_selectors=("#imgProduct", ".pdpMainImage img"),
    product_id_url_patterns=(r"colcode=(\d+)",),
    product_id_selectors=(("#lblProductCode", None),),
    currency_by_domain=((".com", "GBP"), (".ie", "EUR")),
)

THOMANN = SiteProfile(
    name="thomann",
    domains=("thomann",),
    detect_selector_sets=(('input[name="articleId"]',), (".price-wrapper", ".product-image")),
    detect_on_product_schema=True,
    price_selectors=(".price-wrapper .price", ".fx-product-price", ".product-price"),
    title_selectors=("h1",),
    image_selectors=(".product-image img", ".product-gallery img"),
    product_id_selectors=(('input[name="articleId"]', "value"), (".article-number", None)),
    product_id_markup_patterns=(r"Item\s+no[.:]?\s*(\d+)",),
    currency_by_domain=(
        ("thomannmusic.com", "USD"),
        ("thomann.de", "EUR"),
        ("thomann.co.uk", "GBP"),
    ),
)

# ──────────────────────────────────────────────────────────────────────
# Shop platforms (no distinguishing domain, detected from the page)
# ──────────────────────────────────────────────────────────────────────

WOOCOMMERCE = SiteProfile(
    name="woocommerce",
    self_detect=True,
    detect_selector_sets=(
        ("body.woocommerce",),
        ("body.single-product",),
        (".woocommerce-Price-amount",),
        (".product_title", "form.cart"),
    ),
    scope_selectors=(".summary.entry-summary", ".summary", ".product"),
    price_selectors=(
        "p.price ins .woocommerce-Price-amount",
        "p.price ins .amount",
        ".woocommerce-variation-price .price .woocommerce-Price-amount",
        "p.price > .woocommerce-Price-amount",
        ".price .woocommerce-Price-amount",
        '[itemprop="price"]',
    ),
    title_selectors=(".product_title", "h1.product_title", ".product-title", '[itemprop="name"]'),
    image_selectors=(".woocommerce-product-gallery__image img", ".wp-post-image", ".product img"),
    product_id_selectors=((".sku", None),),
    product_id_markup_patterns=(r"postid-(\d+)",),
)

OPENCART = SiteProfile(
    name="opencart",
    self_detect=True,
    product_url_patterns=(
        r"-\d+$",
        r"/product/",
        r"/toode/",
        r"/produkt/",
        r"/produit/",
        r"/producto/",
        r"route=product/product",
    ),
    detect_selector_sets=(
        ("h1", ".price-new"),
        ("h1", ".special"),
        ("h1", ".price"),
        ('meta[property="og:price:amount"]',),
    ),
    scope_selectors=("#product", ".product-info", "#content"),
    price_selectors=(".special", ".price-new", ".product-price", ".price"),
    title_selectors=("h1.product-title", "#content h1", "h1"),
    image_selectors=(".thumbnails img", ".product-image img", "#image"),
    product_id_url_patterns=(r"-(\d+)$",),
    product_id_selectors=(('input[name="product_id"]', "value"),),
    product_id_markup_patterns=(r'"product_id"[:\s]+"?(\d+)',),
    product_id_query_params=("product_id",),
    currency_by_domain=((".ee", "EUR"), (".fi", "EUR"), (".lv", "EUR"), (".lt", "EUR")),
)

DOMAIN_PROFILES: tuple[SiteProfile, ...] = (
    AMAZON,
    EBAY,
    WALMART,
    TARGET,
    BESTBUY,
    ZALANDO,
    ETSY,
    ALIEXPRESS,
    BOOZT,
    SPORTSDIRECT,
    THOMANN,
)

SELF_DETECT_PROFILES: tuple[SiteProfile, ...] = (
    WOOCOMMERCE,
    OPENCART,
)
