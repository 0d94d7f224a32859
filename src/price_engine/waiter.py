"""
Wait for a price element to appear on a dynamically rendered page.

Races an immediate check of the current tree against mutation
notifications; whichever sees a match first resolves the wait. The
mutation subscription is always released, whether the wait succeeds,
times out or is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from bs4 import Tag

from core.config import settings
from price_engine.content_tree import ContentTree
from price_engine.exceptions import PriceElementTimeoutError

logger = logging.getLogger(__name__)


async def wait_for_price_element(
    tree: ContentTree,
    selectors: Sequence[str],
    timeout: float | None = None,
) -> Tag:
    """
    Return the first non-empty element matching any of ``selectors``.

    Raises:
        PriceElementTimeoutError: nothing matched within ``timeout`` seconds
            (``settings.wait_timeout_seconds`` by default).
    """
    timeout = settings.wait_timeout_seconds if timeout is None else timeout
    selectors = tuple(selectors)

    element = _first_with_text(tree, selectors)
    if element is not None:
        return element

    loop = asyncio.get_running_loop()
    found: asyncio.Future[Tag] = loop.create_future()

    def on_mutation(changed: ContentTree) -> None:
        if found.done():
            return
        match = _first_with_text(changed, selectors)
        if match is not None:
            found.set_result(match)

    subscription = tree.subscribe(on_mutation)
    try:
        # Covers a mutation landing between the first check and subscribing
        on_mutation(tree)
        return await asyncio.wait_for(found, timeout=timeout)
    except asyncio.TimeoutError:
        logger.debug("Timed out after %.1fs waiting for %s", timeout, ", ".join(selectors))
        raise PriceElementTimeoutError(selectors, timeout) from None
    finally:
        subscription.close()


def _first_with_text(tree: ContentTree, selectors: Sequence[str]) -> Tag | None:
    for selector in selectors:
        element = tree.select_one(selector)
        if element is not None and tree.text(element):
            return element
    return None
