"""Smoke test: run the dispatcher + price pipeline over a few canned product pages."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from price_engine.comparison import format_price
from price_engine.content_tree import ContentTree
from price_engine.dispatcher import AdapterDispatcher
from price_engine.exceptions import PriceElementTimeoutError
from price_engine.waiter import wait_for_price_element

logging.basicConfig(level=logging.INFO, format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s")
logger = logging.getLogger("smoke_test_price_engine")

MOCK_AMAZON = """
<html lang="en-US"><body>
<div id="centerCol">
  <span id="productTitle"> Wireless Headphones </span>
  <span class="a-price" data-a-color="price"><span class="a-offscreen">$19.99</span></span>
  <span class="a-price a-text-price" data-a-strike="true"><span class="a-offscreen">$29.99</span></span>
</div>
<img id="landingImage" data-old-hires="https://m.media-amazon.com/images/I/headphones.jpg">
</body></html>
"""

MOCK_WOOCOMMERCE = """
<html lang="de-DE"><body class="product-template-default single-product woocommerce postid-4711">
<div class="summary entry-summary">
  <h1 class="product_title">Laufschuh Pro</h1>
  <p class="price">
    <del><span class="woocommerce-Price-amount amount">34,99&nbsp;€</span></del>
    <ins><span class="woocommerce-Price-amount amount">27,99&nbsp;€</span></ins>
  </p>
  <span class="sku">LS-PRO-42</span>
</div>
</body></html>
"""

MOCK_JSON_LD = """
<html lang="en-GB"><head>
<script type="application/ld+json">
{"@context": "https://schema.org", "@graph": [
  {"@type": "BreadcrumbList"},
  {"@type": "Product", "name": "Desk Lamp", "sku": "DL-01",
   "image": {"url": "/img/lamp.jpg"},
   "offers": {"@type": "Offer", "price": "49.00", "priceCurrency": "GBP"}}
]}
</script>
</head><body><h1>Desk Lamp</h1><meta property="og:price:amount" content="49.00"></body></html>
"""

PAGES = [
    ("https://www.amazon.com/dp/B0ABCDEFGH", MOCK_AMAZON),
    ("https://laufladen.example.de/produkt/laufschuh-pro/", MOCK_WOOCOMMERCE),
    ("https://lamps.example.co.uk/desk-lamp-123", MOCK_JSON_LD),
    ("https://unknown.example.org/about", "<html><body><p>About us</p></body></html>"),
]


async def wait_demo() -> None:
    tree = ContentTree("<html><body><div id='app'></div></body></html>")
    loop = asyncio.get_running_loop()
    loop.call_later(0.1, tree.append_markup, "#app", "<span class='price'>$12.50</span>")
    element = await wait_for_price_element(tree, [".price"], timeout=2)
    print(f"  Waited element: {tree.text(element)}")

    try:
        await wait_for_price_element(tree, [".never-rendered"], timeout=0.2)
    except PriceElementTimeoutError as e:
        print(f"  Timeout as expected: {e}")


def main() -> None:
    print("🚀 Starting Smoke Test: Price Engine")
    dispatcher = AdapterDispatcher()

    for url, html in PAGES:
        print(f"\n--- {url} ---")
        adapter = dispatcher.create(html, url)
        if adapter is None:
            print("  No adapter (generic detection would take over)")
            continue

        record = adapter.extract_record()
        if record is None:
            print(f"  {adapter.name}: not a product page")
            continue

        price = record.price
        print(f"  Adapter: {record.adapter}")
        print(f"  ID:      {record.product_id}")
        print(f"  Title:   {record.title}")
        print(f"  Image:   {record.image}")
        if price is None:
            print("  Price:   NOT FOUND")
        else:
            print(f"  Price:   {format_price(price, localized=True)} "
                  f"({price.currency}, confidence {price.confidence:.2f})")
            if price.is_on_sale:
                print(f"  Regular: {price.regular_price} (-{price.discount_percent:.0f}%)")

    print("\n--- Dynamic page ---")
    asyncio.run(wait_demo())
    print("\n🏁 Finished")


if __name__ == "__main__":
    main()
