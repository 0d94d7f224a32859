"""Tests for validators.py: sanity ceiling and currency agreement."""

from __future__ import annotations

from decimal import Decimal

import pytest

from price_engine.models import ParsedPrice
from price_engine.validators import CurrencyValidator, PriceSanityChecker


def _price(value: str = "19.99", currency: str = "USD", confidence: float = 0.9) -> ParsedPrice:
    return ParsedPrice(numeric=Decimal(value), currency=currency, confidence=confidence)


class TestPriceSanityChecker:

    @pytest.mark.parametrize("value,expected", [
        ("799.99", True),
        ("0", True),
        ("50000", True),
        ("799999", False),       # "799" + "999" read as one number
        ("50000.01", False),
    ])
    def test_ceiling(self, value, expected):
        assert PriceSanityChecker().check(_price(value)) is expected

    def test_accepts_plain_decimal(self):
        assert PriceSanityChecker().check(Decimal("12.00")) is True

    def test_none_is_not_sane(self):
        assert PriceSanityChecker().check(None) is False

    def test_custom_bounds(self):
        checker = PriceSanityChecker(ceiling=100, floor=1)
        assert checker.check(Decimal("0.50")) is False
        assert checker.check(Decimal("99")) is True
        assert checker.check(Decimal("101")) is False

    def test_rejection_is_logged(self, caplog):
        PriceSanityChecker().check(Decimal("799999"))
        assert "above ceiling" in caplog.text

    @pytest.mark.parametrize("value,currency,expected", [
        ("59800", "JPY", True),
        ("60000.00", "INR", True),
        ("1290000", "KRW", True),
        ("15000000", "IDR", True),
        ("59800", "USD", False),
        ("59800", "EUR", False),
        ("10000001", "JPY", False),
        ("59800", "XYZ", False),    # unknown codes get the dollar-sized ceiling
    ])
    def test_ceiling_scales_with_currency(self, value, currency, expected):
        assert PriceSanityChecker().check(_price(value, currency=currency)) is expected

    def test_plain_decimal_with_currency(self):
        checker = PriceSanityChecker()
        assert checker.check(Decimal("59800"), currency="JPY") is True
        assert checker.check(Decimal("59800")) is False

    def test_ceiling_for(self):
        checker = PriceSanityChecker(ceiling=100)
        assert checker.ceiling_for("USD") == Decimal("100")
        assert checker.ceiling_for("JPY") == Decimal("20000")
        assert checker.ceiling_for(None) == Decimal("100")


class TestCurrencyValidator:

    def test_mismatch_degrades_by_factor(self):
        price = _price(currency="GBP", confidence=0.95)
        result = CurrencyValidator().validate(price, "USD")
        assert result is price
        assert price.confidence == pytest.approx(0.95 * 0.8)

    def test_only_confidence_changes(self):
        price = _price(value="49.00", currency="GBP", confidence=1.0)
        CurrencyValidator().validate(price, "USD")
        assert (price.numeric, price.currency) == (Decimal("49.00"), "GBP")

    def test_match_is_untouched(self):
        price = _price(confidence=0.9)
        CurrencyValidator().validate(price, "usd")
        assert price.confidence == 0.9

    @pytest.mark.parametrize("expected", [None, "", "XYZ", "dollars"])
    def test_missing_or_unknown_expected_is_noop(self, expected):
        price = _price(currency="EUR", confidence=0.9)
        CurrencyValidator().validate(price, expected)
        assert price.confidence == 0.9

    def test_custom_factor(self):
        price = _price(currency="EUR", confidence=0.9)
        CurrencyValidator(degradation=0.5).validate(price, "USD")
        assert price.confidence == pytest.approx(0.45)

    def test_mismatch_is_logged(self, caplog):
        CurrencyValidator().validate(_price(currency="EUR"), "USD")
        assert "Currency mismatch: expected USD, got EUR" in caplog.text
