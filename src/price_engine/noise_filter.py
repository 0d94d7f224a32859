"""
Noise-filtered text locator.

Product pages surround the live price with things that look like prices
but are not: struck-through "was" prices, "-20%" badges, mini-cart totals,
related-product rails. This module finds candidate elements for a list of
selectors and reads their text with that noise removed, using two
complementary techniques:

  1. Structural — class/id naming patterns (``price-old``, ``was-price``,
     ``discount-badge``) and ``<del>``/``<s>``/``<strike>`` wrappers.
  2. Rendered style — ``text-decoration: line-through`` as reported by
     the content tree's style resolver.

Crossed-out texts are not thrown away: they are returned next to the
active text so the pipeline can attach them as the regular price.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from bs4 import Comment, NavigableString, Tag

from core.config import settings
from price_engine.content_tree import ContentTree, normalize_text
from price_engine.models import CandidateLocation, LocatedPrice

logger = logging.getLogger(__name__)

# ── Naming heuristics ──────────────────────────────────────────────────

_DELETED_TAGS = frozenset({"del", "s", "strike"})
_SKIPPED_TAGS = frozenset({"script", "style", "template", "noscript"})

_OLD_PRICE_WORDS = frozenset({
    "old", "was", "original", "strike", "strikethrough", "striked", "crossed",
    "before", "prev", "previous", "compare", "rrp",
})
_OLD_PRICE_FRAGMENTS = ("list-price", "listprice", "compare-at", "compareat")

_DISCOUNT_WORDS = frozenset({
    "discount", "percentage", "percent", "saving", "savings", "badge",
})
_DISCOUNT_FRAGMENTS = ("sale-label", "you-save", "yousave", "sale-badge")

_TOKEN_SPLIT = re.compile(r"[-_\s]+")
_PERCENT_LABEL = re.compile(r"[-–−]?\s*\d{1,3}(?:[.,]\d+)?\s*%")
_BARE_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")
_DIGIT = re.compile(r"\d")
_NUMERIC_RUN = re.compile(r"\d[\d.,'\s\u00a0\u202f]*")

# How many ancestors to inspect for structural old-price markers
_ANCESTOR_DEPTH = 3
# How far up to look for co-located crossed-out prices
_CO_LOCATION_DEPTH = 2

# Attributes carrying a machine-readable amount, read before text
PRICE_ATTRIBUTES = ("content", "data-price", "data-product-price", "data-price-amount", "value")

# Regions whose prices belong to other products or to the cart
EXCLUDED_REGIONS: tuple[str, ...] = (
    "nav",
    "header",
    "footer",
    "[role='navigation']",
    ".mini-cart",
    ".minicart",
    "#mini-cart",
    ".cart-drawer",
    ".cart-dropdown",
    ".shopping-cart",
    ".header-cart",
    "#cart",
    ".related",
    ".related-products",
    "[class*='related-product']",
    ".upsells",
    ".up-sells",
    ".cross-sells",
    "[class*='recommend']",
    ".product-grid",
    ".product-list",
    ".product-thumb",
    ".product-item",
    ".products-list",
)


def _tokens(element: Tag) -> list[str]:
    return [token.lower() for token in ContentTree.class_tokens(element)]


def has_old_price_marker(element: Tag) -> bool:
    if element.name in _DELETED_TAGS or element.get("data-a-strike") == "true":
        return True
    for token in _tokens(element):
        if _OLD_PRICE_WORDS.intersection(_TOKEN_SPLIT.split(token)):
            return True
        if any(fragment in token for fragment in _OLD_PRICE_FRAGMENTS):
            return True
    return False


def has_discount_marker(element: Tag) -> bool:
    for token in _tokens(element):
        if _DISCOUNT_WORDS.intersection(_TOKEN_SPLIT.split(token)):
            return True
        if any(fragment in token for fragment in _DISCOUNT_FRAGMENTS):
            return True
    return False


def is_crossed_out(tree: ContentTree, element: Tag) -> bool:
    """Structurally marked as an old price, or rendered with a line-through."""
    node: Tag | None = element
    for _ in range(_ANCESTOR_DEPTH + 1):
        if not isinstance(node, Tag) or node.name == "[document]":
            break
        if has_old_price_marker(node):
            return True
        node = node.parent
    return tree.is_line_through(element)


def _is_noise_child(tree: ContentTree, child: Tag) -> bool:
    if has_old_price_marker(child) or has_discount_marker(child):
        return True
    style = tree.computed_style(child)
    decoration = style.get("text-decoration-line") or style.get("text-decoration") or ""
    return "line-through" in decoration


# ── Locating ───────────────────────────────────────────────────────────


def in_excluded_region(tree: ContentTree, element: Tag, excluded: Iterable[str] = EXCLUDED_REGIONS) -> bool:
    return any(tree.closest(element, selector) is not None for selector in excluded)


def locate(
    tree: ContentTree,
    selectors: Iterable[str],
    scope: Tag | None = None,
    excluded: Iterable[str] = EXCLUDED_REGIONS,
) -> list[CandidateLocation]:
    """
    Candidate elements for ``selectors`` in order, deduplicated, with
    unrelated regions dropped and noise markers computed.
    """
    excluded = tuple(excluded)
    seen: set[int] = set()
    locations: list[CandidateLocation] = []

    for selector in selectors:
        for element in tree.select(selector, scope):
            if id(element) in seen:
                continue
            seen.add(id(element))
            if excluded and in_excluded_region(tree, element, excluded):
                logger.debug("Candidate %r dropped: inside excluded region", selector)
                continue
            locations.append(CandidateLocation(
                element=element,
                selector=selector,
                crossed_out=is_crossed_out(tree, element),
                discount_badge=has_discount_marker(element),
            ))
    return locations


# ── Reading ────────────────────────────────────────────────────────────


def active_text(tree: ContentTree, element: Tag) -> str:
    """Element text with crossed-out parts, badges and percentage labels removed."""
    parts: list[str] = []
    _collect_active(tree, element, parts)
    text = normalize_text("".join(parts))
    return normalize_text(_PERCENT_LABEL.sub("", text))


def _collect_active(tree: ContentTree, node: Tag, parts: list[str]) -> None:
    for child in node.children:
        if isinstance(child, Comment):
            continue
        if isinstance(child, NavigableString):
            parts.append(str(child))
        elif isinstance(child, Tag):
            if child.name in _SKIPPED_TAGS or _is_noise_child(tree, child):
                continue
            _collect_active(tree, child, parts)


def crossed_out_texts(tree: ContentTree, element: Tag) -> list[str]:
    """
    Texts of crossed-out elements inside ``element`` and among the
    children of its nearest ancestors (the usual ``<del>``/``<ins>`` or
    ``.price-old``/``.price-new`` pairing).
    """
    found: list[Tag] = []
    _collect_crossed(tree, element, found)

    child = element
    for _ in range(_CO_LOCATION_DEPTH):
        parent = child.parent
        if not isinstance(parent, Tag) or parent.name == "[document]":
            break
        for sibling in parent.children:
            if not isinstance(sibling, Tag) or sibling is child:
                continue
            if is_crossed_out(tree, sibling) and not has_discount_marker(sibling):
                found.append(sibling)
            else:
                _collect_crossed(tree, sibling, found)
        child = parent

    texts: list[str] = []
    for tag in found:
        text = tree.text(tag)
        if text and _DIGIT.search(text) and text not in texts:
            texts.append(text)
    return texts


def _collect_crossed(tree: ContentTree, node: Tag, found: list[Tag]) -> None:
    for child in node.children:
        if not isinstance(child, Tag) or child.name in _SKIPPED_TAGS:
            continue
        if has_discount_marker(child):
            continue
        if has_old_price_marker(child) or tree.is_line_through(child):
            found.append(child)
            continue
        _collect_crossed(tree, child, found)


def price_source_text(tree: ContentTree, element: Tag) -> str:
    """
    Machine-readable attribute first, then the active text.

    A bare attribute amount ("19.99") is followed by whatever the visible
    text carries besides digits, so the parser still sees the currency
    marker but can never join the two amounts into one number.
    """
    text = active_text(tree, element)
    for name in PRICE_ATTRIBUTES:
        value = tree.attr(element, name)
        if not value or not _DIGIT.search(value):
            continue
        if _BARE_NUMBER.match(value):
            marker = normalize_text(_NUMERIC_RUN.sub(" ", text))
            return f"{value} {marker}" if marker else value
        return value
    return text


def read_located_prices(
    tree: ContentTree,
    selectors: Iterable[str],
    scope: Tag | None = None,
    excluded: Iterable[str] = EXCLUDED_REGIONS,
    max_length: int | None = None,
) -> list[LocatedPrice]:
    """Clean active text plus co-located "was" texts for every usable candidate."""
    max_length = max_length or settings.max_text_length
    located: list[LocatedPrice] = []

    for location in locate(tree, selectors, scope, excluded):
        if location.is_noise:
            logger.debug("Skipping %r: crossed out or discount badge", location.selector)
            continue
        text = price_source_text(tree, location.element)
        if not text or not _DIGIT.search(text) or len(text) > max_length:
            continue
        located.append(LocatedPrice(
            location=location,
            active_text=text,
            was_texts=tuple(crossed_out_texts(tree, location.element)),
        ))
    return located
