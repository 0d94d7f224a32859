"""Price validation, display formatting and old-vs-new comparison."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from core.currency_data import CURRENCIES, ZERO_DECIMAL_CURRENCIES
from price_engine.currency_parser import number_format_for
from price_engine.models import ParsedPrice, PriceComparison

MIN_USEFUL_CONFIDENCE = 0.5
_SMALLEST_NONZERO = Decimal("0.01")
_LARGEST_VALID = Decimal("9999999")
_ONE_CENT = Decimal("0.01")


def validate_price(price: ParsedPrice | None, minimum_confidence: float = MIN_USEFUL_CONFIDENCE) -> bool:
    """
    Structural validity of a parse result, independent of any pipeline gate.

    Zero is valid ("FREE"); sub-cent amounts and values above 9 999 999
    are not.
    """
    if price is None or not isinstance(price.numeric, Decimal) or not price.numeric.is_finite():
        return False
    if price.numeric < 0 or Decimal("0") < price.numeric < _SMALLEST_NONZERO:
        return False
    if price.numeric > _LARGEST_VALID:
        return False
    if not price.currency or len(price.currency) != 3:
        return False
    return minimum_confidence <= price.confidence <= 1


def format_price(price: ParsedPrice | None, localized: bool = False) -> str:
    """
    ``"$99.99"``, ``"¥1500"``, ``"FREE"`` or ``"N/A"``.

    With ``localized=True`` the locale's separators and symbol placement
    are used instead: ``"1.299,99 €"``.
    """
    if not validate_price(price):
        return "N/A"
    if price.numeric == 0:
        return "FREE"

    decimals = 0 if price.currency in ZERO_DECIMAL_CURRENCIES else 2
    info = CURRENCIES.get(price.currency)
    symbol = price.symbol or (info.symbol if info else price.currency)
    amount = price.numeric.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)

    if not localized:
        return f"{symbol}{amount:.{decimals}f}"

    number_format = number_format_for(price.locale)
    grouped = f"{amount:,.{decimals}f}"
    if number_format is not None:
        grouped = (
            grouped.replace(",", "\x00")
            .replace(".", number_format.decimal)
            .replace("\x00", number_format.thousands)
        )
    if info is not None and not info.symbol_first:
        return f"{grouped} {symbol}"
    return f"{symbol}{grouped}"


def compare_prices(old: ParsedPrice | None, new: ParsedPrice | None) -> PriceComparison:
    """Direction and size of a price change. Differences under one cent count as unchanged."""
    if old is None or new is None:
        return PriceComparison(
            comparable=False,
            reason="missing_data",
            old_price=old.numeric if old else None,
            new_price=new.numeric if new else None,
        )

    if old.currency != new.currency:
        return PriceComparison(
            comparable=False,
            reason="currency_mismatch",
            old_price=old.numeric,
            new_price=new.numeric,
            currency=old.currency,
        )

    difference = old.numeric - new.numeric
    percentage = float(difference / old.numeric * 100) if old.numeric > 0 else 0.0

    return PriceComparison(
        comparable=True,
        old_price=old.numeric,
        new_price=new.numeric,
        currency=old.currency,
        dropped=difference > _ONE_CENT,
        increased=difference < -_ONE_CENT,
        unchanged=abs(difference) < _ONE_CENT,
        amount=abs(difference),
        percentage=abs(percentage),
    )
