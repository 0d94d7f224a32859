"""
Post-parse checks: numeric plausibility and expected-currency agreement.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from core.config import settings
from core.currency_data import is_known_currency, price_scale
from price_engine.models import ParsedPrice

logger = logging.getLogger(__name__)


class PriceSanityChecker:
    """
    Rejects values no ordinary consumer product costs.

    Anything above the ceiling is far more likely to be two adjacent
    numbers read as one ("799" + "999" → 799999) than a real price.
    The ceiling is expressed in dollar-sized units and multiplied by the
    currency's ``price_scale``, so ¥59,800 or ₹60,000 stay plausible.
    """

    def __init__(self, ceiling: float | None = None, floor: float | None = None) -> None:
        self.ceiling = Decimal(str(settings.sanity_ceiling if ceiling is None else ceiling))
        self.floor = Decimal(str(settings.sanity_floor if floor is None else floor))

    def ceiling_for(self, currency: str | None) -> Decimal:
        return self.ceiling * price_scale(currency)

    def check(self, price: ParsedPrice | Decimal | None, currency: str | None = None) -> bool:
        """
        Plain decimals are checked against ``currency`` (dollar-sized when
        omitted); a ``ParsedPrice`` always uses its own currency.
        """
        if price is None:
            return False
        if isinstance(price, ParsedPrice):
            value, currency = price.numeric, price.currency
        else:
            value = price
        if value < self.floor or value < 0:
            logger.warning("Price %s rejected: below floor %s", value, self.floor)
            return False
        ceiling = self.ceiling_for(currency)
        if value > ceiling:
            logger.warning(
                "Price %s %s rejected: above ceiling %s (likely concatenated digits)",
                value,
                currency or "",
                ceiling,
            )
            return False
        return True


class CurrencyValidator:
    """Degrades confidence when the parsed currency differs from the expected one."""

    def __init__(self, degradation: float | None = None) -> None:
        self.degradation = settings.currency_mismatch_factor if degradation is None else degradation

    def validate(self, price: ParsedPrice, expected: str | None) -> ParsedPrice:
        """
        Mutates and returns ``price``.

        Only ``confidence`` ever changes. No-op when ``expected`` is missing
        or not a recognized currency code.
        """
        if not is_known_currency(expected):
            return price
        expected = expected.upper()
        if price.currency == expected:
            return price

        original = price.confidence
        price.confidence = original * self.degradation
        logger.warning(
            "Currency mismatch: expected %s, got %s (confidence %.2f → %.2f)",
            expected,
            price.currency,
            original,
            price.confidence,
        )
        return price
