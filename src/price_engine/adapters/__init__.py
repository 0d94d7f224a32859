"""Site adapters: the capability contract and its configuration-driven implementation."""

from price_engine.adapters.base import BaseAdapter
from price_engine.adapters.profiles import DOMAIN_PROFILES, SELF_DETECT_PROFILES
from price_engine.adapters.site import SiteAdapter, SiteProfile

__all__ = [
    "BaseAdapter",
    "DOMAIN_PROFILES",
    "SELF_DETECT_PROFILES",
    "SiteAdapter",
    "SiteProfile",
]
