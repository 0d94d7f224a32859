"""Fatal error conditions of the price engine.

Page-level problems (malformed schema blocks, missing prices, low
confidence, implausible values) never raise: they surface as ``None``.
Only configuration defects and the explicit wait timeout are exceptions.
"""

from __future__ import annotations


class PriceEngineError(Exception):
    """Base class for all price engine errors."""


class AdapterContractError(PriceEngineError):
    """An adapter does not satisfy the capability contract (configuration defect)."""


class PriceElementTimeoutError(PriceEngineError, TimeoutError):
    """No price-bearing element materialized before the wait timed out."""

    def __init__(self, selectors: list[str] | tuple[str, ...], timeout: float) -> None:
        self.selectors = tuple(selectors)
        self.timeout = timeout
        super().__init__(
            f"Price element not found within {timeout:.1f}s (selectors: {', '.join(self.selectors)})"
        )
