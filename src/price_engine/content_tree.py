"""
Content tree — the page snapshot the engine queries.

Wraps a BeautifulSoup document with the handful of capabilities the
extraction pipeline needs from a host page:

  - find one / many elements by CSS selector
  - read normalized text and attributes
  - read the (computed) style of an element
  - subscribe to subtree mutations

Rendered style is not available from markup alone. Hosts that have a
layout engine pass a ``style_resolver`` returning computed declarations
for an element; without one, inline ``style`` attributes plus user-agent
defaults for ``<del>``/``<s>``/``<strike>`` are used.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Mapping

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

StyleResolver = Callable[[Tag], Mapping[str, str]]
MutationCallback = Callable[["ContentTree"], None]

_DECLARATION = re.compile(r"([a-zA-Z-]+)\s*:\s*([^;]+)")
_WHITESPACE = re.compile(r"[\s\u00a0\u202f]+")

# Default presentation of elements that browsers strike through
_USER_AGENT_STYLES: dict[str, dict[str, str]] = {
    "del": {"text-decoration": "line-through"},
    "s": {"text-decoration": "line-through"},
    "strike": {"text-decoration": "line-through"},
    "ins": {"text-decoration": "underline"},
}


def parse_inline_style(style: str | None) -> dict[str, str]:
    """``"color: red; text-decoration: line-through"`` → dict."""
    if not style:
        return {}
    return {
        prop.strip().lower(): value.strip().lower()
        for prop, value in _DECLARATION.findall(style)
    }


def normalize_text(text: str | None) -> str:
    if not text:
        return ""
    return _WHITESPACE.sub(" ", text).strip()


class MutationSubscription:
    """Handle for a mutation callback. Closing it is idempotent."""

    def __init__(self, tree: ContentTree, callback: MutationCallback) -> None:
        self._tree = tree
        self.callback = callback
        self.active = True

    def close(self) -> None:
        if self.active:
            self.active = False
            self._tree._unsubscribe(self)

    def __enter__(self) -> MutationSubscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ContentTree:
    """
    Queryable page snapshot.

    Usage:
        tree = ContentTree(html)
        el = tree.select_one("[itemprop='price']")
        if el is not None and not tree.is_line_through(el):
            text = tree.text(el)
    """

    def __init__(
        self,
        markup: str | BeautifulSoup,
        style_resolver: StyleResolver | None = None,
    ) -> None:
        self.soup = markup if isinstance(markup, BeautifulSoup) else BeautifulSoup(markup, "html.parser")
        self.style_resolver = style_resolver
        self._subscriptions: list[MutationSubscription] = []

    # ── Queries ────────────────────────────────────────────────────────

    def select_one(self, selector: str, root: Tag | None = None) -> Tag | None:
        scope = root if root is not None else self.soup
        try:
            return scope.select_one(selector)
        except SelectorSyntaxError as exc:
            logger.warning("Invalid selector %r: %s", selector, exc)
            return None

    def select(self, selector: str, root: Tag | None = None) -> list[Tag]:
        scope = root if root is not None else self.soup
        try:
            return list(scope.select(selector))
        except SelectorSyntaxError as exc:
            logger.warning("Invalid selector %r: %s", selector, exc)
            return []

    def select_first(self, selectors: Iterable[str], root: Tag | None = None) -> Tag | None:
        """First element matched by the first selector that matches anything."""
        for selector in selectors:
            element = self.select_one(selector, root)
            if element is not None:
                return element
        return None

    def closest(self, element: Tag, selector: str) -> Tag | None:
        """Nearest ancestor-or-self matching ``selector``."""
        try:
            return element.css.closest(selector)
        except SelectorSyntaxError as exc:
            logger.warning("Invalid selector %r: %s", selector, exc)
            return None

    def matches(self, element: Tag, selector: str) -> bool:
        try:
            return element.css.match(selector)
        except SelectorSyntaxError as exc:
            logger.warning("Invalid selector %r: %s", selector, exc)
            return False

    def text(self, element: Tag | None) -> str:
        """Whitespace-normalized text content (no separator between nodes)."""
        if element is None:
            return ""
        return normalize_text(element.get_text())

    def attr(self, element: Tag | None, name: str) -> str | None:
        if element is None:
            return None
        value = element.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        if value is None:
            return None
        value = value.strip()
        return value or None

    @staticmethod
    def class_tokens(element: Tag) -> list[str]:
        tokens = list(element.get("class") or [])
        if element.get("id"):
            tokens.append(str(element["id"]))
        return tokens

    @property
    def lang(self) -> str | None:
        html = self.soup.find("html")
        if isinstance(html, Tag):
            return self.attr(html, "lang")
        return None

    @property
    def body_classes(self) -> list[str]:
        body = self.soup.body
        return list(body.get("class") or []) if body is not None else []

    @property
    def markup(self) -> str:
        return str(self.soup)

    # ── Style ──────────────────────────────────────────────────────────

    def computed_style(self, element: Tag) -> dict[str, str]:
        if self.style_resolver is not None:
            return {k.lower(): str(v).lower() for k, v in self.style_resolver(element).items()}
        style = dict(_USER_AGENT_STYLES.get(element.name or "", {}))
        style.update(parse_inline_style(self.attr(element, "style")))
        return style

    def is_line_through(self, element: Tag) -> bool:
        """
        True when the element renders struck through.

        Text decoration propagates to every descendant's rendering, so a
        line-through on any ancestor counts.
        """
        node: Tag | None = element
        while isinstance(node, Tag) and node.name != "[document]":
            style = self.computed_style(node)
            decoration = style.get("text-decoration-line") or style.get("text-decoration") or ""
            if "line-through" in decoration:
                return True
            node = node.parent
        return False

    # ── Mutations ──────────────────────────────────────────────────────

    def subscribe(self, callback: MutationCallback) -> MutationSubscription:
        subscription = MutationSubscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def _unsubscribe(self, subscription: MutationSubscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def replace_markup(self, markup: str) -> None:
        """Swap the whole snapshot (e.g. after client-side re-render)."""
        self.soup = BeautifulSoup(markup, "html.parser")
        self._notify()

    def append_markup(self, parent_selector: str, markup: str) -> bool:
        """Insert a fragment under the first match of ``parent_selector``."""
        parent = self.select_one(parent_selector)
        if parent is None:
            logger.debug("append_markup: no parent for %r", parent_selector)
            return False
        fragment = BeautifulSoup(markup, "html.parser")
        for child in list(fragment.contents):
            parent.append(child.extract())
        self._notify()
        return True

    def _notify(self) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.callback(self)
