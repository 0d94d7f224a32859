"""
AdapterDispatcher: picks the adapter for a page.

Flow:
  Step 1 → First profile whose domain substring occurs in the host wins
  Step 2 → Otherwise self-detecting platform profiles are instantiated
           in order and accepted when ``detect_product()`` is true
  Step 3 → Otherwise None; the caller falls back to generic detection

Usage:
    adapter = AdapterDispatcher().create(html, url)
    record = adapter.extract_record() if adapter else None
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Iterable
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from price_engine.adapters.base import BaseAdapter
from price_engine.adapters.profiles import DOMAIN_PROFILES, SELF_DETECT_PROFILES
from price_engine.adapters.site import SiteAdapter, SiteProfile
from price_engine.content_tree import ContentTree
from price_engine.exceptions import AdapterContractError

logger = logging.getLogger(__name__)

Page = str | BeautifulSoup | ContentTree


class AdapterDispatcher:
    """
    Registry of domain-matched and self-detecting adapters.

    Entries are either ``SiteProfile`` records (served by ``SiteAdapter``)
    or ``BaseAdapter`` subclasses for sites that need code.
    """

    def __init__(
        self,
        domain_profiles: Iterable[SiteProfile] = DOMAIN_PROFILES,
        self_detect_profiles: Iterable[SiteProfile] = SELF_DETECT_PROFILES,
    ) -> None:
        self._domain_table: list[tuple[str, SiteProfile | type[BaseAdapter]]] = []
        self._self_detect: list[SiteProfile | type[BaseAdapter]] = []
        for profile in domain_profiles:
            self.register(profile)
        for profile in self_detect_profiles:
            self.register(profile)

    # ── Registration ───────────────────────────────────────────────────

    def register(
        self,
        entry: SiteProfile | type[BaseAdapter],
        domains: Iterable[str] = (),
        self_detect: bool = False,
    ) -> None:
        """
        Add an adapter. Profiles carry their own domains / self_detect
        flag; adapter classes take them as arguments.

        Raises:
            AdapterContractError: invalid profile, or a class that is not a
                concrete ``BaseAdapter``.
        """
        if isinstance(entry, SiteProfile):
            problems = entry.problems()
            if problems:
                raise AdapterContractError("; ".join(problems))
            domains = entry.domains
            self_detect = entry.self_detect
        else:
            self._check_adapter_class(entry)
            domains = tuple(domains)
            if not domains and not self_detect:
                raise AdapterContractError(f"{entry.__name__}: neither domains nor self_detect given")

        for domain in domains:
            self._domain_table.append((domain.lower(), entry))
        if self_detect:
            self._self_detect.append(entry)

    @staticmethod
    def _check_adapter_class(entry: object) -> None:
        if not (isinstance(entry, type) and issubclass(entry, BaseAdapter)):
            raise AdapterContractError(f"{entry!r} is not a BaseAdapter subclass")
        if inspect.isabstract(entry):
            missing = ", ".join(sorted(entry.__abstractmethods__))
            raise AdapterContractError(f"{entry.__name__} does not implement: {missing}")

    # ── Selection ──────────────────────────────────────────────────────

    def create(self, page: Page, url: str) -> BaseAdapter | None:
        """Adapter for ``url``, or None when nothing claims the page."""
        host = (urlparse(url).hostname or "").lower()
        tree = page if isinstance(page, ContentTree) else ContentTree(page)

        for domain, entry in self._domain_table:
            if domain in host:
                adapter = self._instantiate(entry, tree, url)
                logger.info("Using %s for domain=%s.", adapter.name, host)
                return adapter

        for entry in self._self_detect:
            adapter = self._instantiate(entry, tree, url)
            try:
                detected = adapter.detect_product()
            except Exception as e:
                logger.error("Self-detection by %s failed on %s: %s", adapter.name, url, e)
                continue
            if detected:
                logger.info("Using %s for domain=%s (self-detected).", adapter.name, host)
                return adapter

        logger.info("No adapter for domain=%s, caller falls back to generic detection.", host)
        return None

    @staticmethod
    def _instantiate(entry: SiteProfile | type[BaseAdapter], tree: ContentTree, url: str) -> BaseAdapter:
        if isinstance(entry, SiteProfile):
            return SiteAdapter(tree, url, entry)
        return entry(tree, url)

    @property
    def domains(self) -> list[str]:
        return [domain for domain, _ in self._domain_table]


def get_adapter(page: Page, url: str) -> BaseAdapter | None:
    """Dispatch with the built-in profiles."""
    return AdapterDispatcher().create(page, url)
