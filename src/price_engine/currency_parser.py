"""
Currency / number parser.

Turns raw price text ("$99.99", "1.299,99 €", "kr 1 299,00") plus page
hints into a ``ParsedPrice`` with a reliability score.

Parsing happens in four phases:

  1. Clean    — drop marketing prefixes ("RRP", "Was:", "approx."), unify
                whitespace, reduce ranges to their lowest bound.
  2. Detect   — ISO code → unique symbol → multi-letter symbol → "$"
                → contextual "R" → weak "kr" → domain → locale → expected
                → USD. Each step carries its own base confidence.
  3. Number   — isolate the first numeric token and resolve which
                separator is decimal (see ``parse_number``).
  4. Score    — adjust the base confidence for context and plausibility.

Never raises on bad input: anything that is not a price yields ``None``.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from core.config import settings
from core.currency_data import (
    CURRENCIES,
    CURRENCY_LOCALE,
    CURRENCY_SYMBOLS,
    MULTI_CHAR_SYMBOLS,
    NUMBER_FORMATS,
    PRIORITY_SYMBOLS,
    ZERO_DECIMAL_CURRENCIES,
    NumberFormat,
    currency_for_domain,
    currency_for_locale,
    is_known_currency,
    normalize_locale,
)
from price_engine.models import DetectionMethod, ParsedPrice, PriceContext

logger = logging.getLogger(__name__)

# Values above this are parse errors, not prices
MAX_PARSEABLE_VALUE = Decimal("99999999")
# Values at or above this are parseable but suspicious
PLAUSIBLE_VALUE_LIMIT = Decimal("9999999")

# ── Phase 1 patterns ──────────────────────────────────────────────────

_PREFIXES = [
    re.compile(r"\b(?:RRP|SRP|MSRP)\b:?", re.IGNORECASE),
    re.compile(r"\b(?:price|was|now|sale|from|only)\s*:", re.IGNORECASE),
    re.compile(r"\bapproximately\b", re.IGNORECASE),
    re.compile(r"\bapprox\b\.?", re.IGNORECASE),
    re.compile(r"~\s*"),
]
_WHITESPACE = re.compile(r"[\s\u00a0\u202f]+")
_NOT_A_PRICE = re.compile(r"call|contact|quote", re.IGNORECASE)
_RANGE_SEPARATOR = re.compile(r"\s*[-–—]\s*")
_DIGIT = re.compile(r"\d")

# ── Phase 2 patterns ──────────────────────────────────────────────────

_ISO_CODE = re.compile(
    r"(?<![A-Za-z])(" + "|".join(sorted(CURRENCIES)) + r")(?![A-Za-z])",
    re.IGNORECASE,
)
_MULTI_CHAR = [
    (symbol, re.compile(r"(?<![^\W\d_])" + re.escape(symbol) + r"(?![^\W\d_])"))
    for symbol in MULTI_CHAR_SYMBOLS
]
_RAND = re.compile(r"(?<![A-Za-z])R\s*\d")
_KRONA = re.compile(r"(?<![A-Za-z])kr\b\.?", re.IGNORECASE)

# ── Phase 3 patterns ──────────────────────────────────────────────────

# Space-grouped thousands first ("1 299,00"), then any digit run
_NUMBER_TOKEN = re.compile(
    r"\d{1,3}(?:[ \u00a0\u202f]\d{3})+(?:[.,]\d+)?(?![\d.,])"
    r"|\d[\d.,']*"
)

# TLD → locale, checked before the currency when guessing a page locale
_DOMAIN_LOCALE: dict[str, str] = {
    ".co.uk": "en-GB", ".uk": "en-GB",
    ".de": "de-DE", ".at": "de-AT", ".ch": "de-CH",
    ".fr": "fr-FR", ".be": "fr-BE", ".es": "es-ES", ".it": "it-IT",
    ".nl": "nl-NL", ".pt": "pt-PT", ".pl": "pl-PL", ".cz": "cs-CZ",
    ".se": "sv-SE", ".no": "nb-NO", ".dk": "da-DK", ".fi": "fi-FI",
    ".ee": "et-EE", ".lv": "lv-LV", ".lt": "lt-LT",
    ".ca": "en-CA", ".com.au": "en-AU", ".au": "en-AU",
    ".co.jp": "ja-JP", ".jp": "ja-JP", ".in": "en-IN",
    ".com.br": "pt-BR", ".br": "pt-BR", ".com.mx": "es-MX", ".mx": "es-MX",
    ".com.tr": "tr-TR", ".tr": "tr-TR", ".ru": "ru-RU",
}


@dataclass(frozen=True, slots=True)
class CurrencyDetection:
    code: str
    symbol: str
    confidence: float
    method: DetectionMethod


# ── Public API ────────────────────────────────────────────────────────


def parse_price(raw: str | None, context: PriceContext | None = None) -> ParsedPrice | None:
    """
    Parse ``raw`` into a ``ParsedPrice`` or return None.

    Args:
        raw: Text as displayed on the page.
        context: Domain / locale / expected-currency hints.
    """
    if not raw or not isinstance(raw, str):
        return None
    context = context or PriceContext()

    cleaned = clean_price_text(raw)
    if cleaned is None:
        return None

    if cleaned.lower() == "free" or cleaned == "0":
        code = _known(context.expected_currency) or "USD"
        return ParsedPrice(
            numeric=Decimal("0"),
            currency=code,
            confidence=0.5,
            symbol=CURRENCIES[code].symbol,
            raw=raw,
            locale=context.locale or settings.default_locale,
            method=DetectionMethod.SPECIAL,
        )

    detection = detect_currency(cleaned, context)
    value = parse_number(cleaned, detection.code)
    if value is None:
        logger.debug("No numeric token in %r", raw)
        return None
    if value < 0 or value > MAX_PARSEABLE_VALUE:
        logger.debug("Parsed value %s out of range for %r", value, raw)
        return None

    confidence = score_confidence(detection, value, context)
    return ParsedPrice(
        numeric=value,
        currency=detection.code,
        confidence=confidence,
        symbol=detection.symbol,
        raw=raw,
        locale=context.locale or guess_locale(context.domain, detection.code),
        method=detection.method,
    )


def clean_price_text(raw: str) -> str | None:
    """Phase 1. None when the text is empty or explicitly not a price."""
    cleaned = raw
    for pattern in _PREFIXES:
        cleaned = pattern.sub("", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned).strip()

    if not cleaned or _NOT_A_PRICE.search(cleaned):
        return None

    # "€99.99 - €149.99" → "€99.99"; a lone "-20%" is not a range
    parts = _RANGE_SEPARATOR.split(cleaned)
    if len(parts) >= 2 and _DIGIT.search(parts[0]) and _DIGIT.search(parts[1]):
        cleaned = parts[0].strip()

    return cleaned or None


def detect_currency(text: str, context: PriceContext) -> CurrencyDetection:
    """Phase 2. Always returns a detection; the USD default scores 0.50."""
    match = _ISO_CODE.search(text)
    if match:
        code = match.group(1).upper()
        return CurrencyDetection(code, CURRENCIES[code].symbol, 0.95, DetectionMethod.ISO_CODE)

    symbol_detection = _detect_symbol(text, context)
    if symbol_detection is not None:
        return symbol_detection

    domain_currency = currency_for_domain(context.domain)
    if domain_currency:
        return CurrencyDetection(
            domain_currency, CURRENCIES[domain_currency].symbol, 0.70, DetectionMethod.DOMAIN
        )

    locale_currency = currency_for_locale(context.locale)
    if locale_currency:
        return CurrencyDetection(
            locale_currency, CURRENCIES[locale_currency].symbol, 0.65, DetectionMethod.LOCALE
        )

    expected = _known(context.expected_currency)
    if expected:
        return CurrencyDetection(expected, CURRENCIES[expected].symbol, 0.60, DetectionMethod.EXPECTED)

    return CurrencyDetection("USD", "$", 0.50, DetectionMethod.DEFAULT)


def parse_number(text: str, currency: str) -> Decimal | None:
    """
    Phase 3. Resolve separators of the first numeric token.

    Rules, in order:
      - zero-decimal currencies: every separator groups thousands
        (unless both kinds appear, then the last one still marks decimals)
      - both "," and "." present: the last one is the decimal separator
      - one kind repeated ("1.234.567"): thousands
      - single separator + 1-2 digits ("99,99"): decimal
      - single separator + exactly 3 digits ("1.234"): thousands, since no
        supported currency carries three minor digits

    The page locale is deliberately not consulted. Every case above is
    decided by the token itself or by the currency's minor digits, and the
    one case a locale could decide ("1,234" in a three-decimal currency)
    does not occur in ``CURRENCIES``. Locale number formats are only used
    for display (``format_price``). A mislabelled page locale ("en-US" on a
    German shop) therefore cannot flip ``"1.234 €"`` into 1.23.
    """
    match = _NUMBER_TOKEN.search(text)
    if match is None:
        return None
    token = match.group(0).rstrip(".,'")
    # Spaces and apostrophes only ever group thousands
    token = re.sub(r"[ \u00a0\u202f']", "", token)
    if not token:
        return None

    decimal_sep = _decimal_separator(token, currency)
    if decimal_sep is None:
        normalized = token.replace(".", "").replace(",", "")
    else:
        thousands_sep = "," if decimal_sep == "." else "."
        integer, _, fraction = token.replace(thousands_sep, "").rpartition(decimal_sep)
        normalized = f"{integer}.{fraction}" if integer else fraction

    try:
        value = Decimal(normalized)
    except InvalidOperation:
        return None

    decimals = CURRENCIES[currency].decimals if currency in CURRENCIES else 2
    return value.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def score_confidence(detection: CurrencyDetection, value: Decimal, context: PriceContext) -> float:
    """Phase 4. Base detection confidence adjusted for context and plausibility."""
    confidence = detection.confidence
    if context.has_hints:
        confidence += 0.05
    if context.expected_currency and context.expected_currency.upper() == detection.code:
        confidence += 0.05
    # Zero is a legitimate price ("free"); only absurd magnitudes lose trust
    if not (Decimal("0") <= value < PLAUSIBLE_VALUE_LIMIT):
        confidence -= 0.15
    return round(max(0.0, min(1.0, confidence)), 4)


def guess_locale(domain: str | None, currency: str | None = None) -> str:
    """Most likely page locale from the domain, else from the currency."""
    locale = _locale_for_domain(domain)
    if locale:
        return locale
    if currency and currency in CURRENCY_LOCALE:
        return CURRENCY_LOCALE[currency]
    return settings.default_locale


def number_format_for(locale: str | None) -> NumberFormat | None:
    """Number format for ``locale``; bare languages ("de") match their first region."""
    if not locale:
        return None
    normalized = normalize_locale(locale)
    if normalized in NUMBER_FORMATS:
        return NUMBER_FORMATS[normalized]
    language = normalized.split("-")[0]
    for candidate, number_format in NUMBER_FORMATS.items():
        if candidate.split("-")[0] == language:
            return number_format
    return None


# ── Internals ─────────────────────────────────────────────────────────


def _known(code: str | None) -> str | None:
    return code.upper() if is_known_currency(code) else None


def _locale_for_domain(domain: str | None) -> str | None:
    if not domain:
        return None
    host = domain.lower()
    matches = [tld for tld in _DOMAIN_LOCALE if host.endswith(tld)]
    if not matches:
        return None
    return _DOMAIN_LOCALE[max(matches, key=len)]


def _disambiguate(candidates: list[str], context: PriceContext) -> str:
    """Pick among currencies sharing a symbol: domain → locale → expected → most common."""
    for hint in (
        currency_for_domain(context.domain),
        currency_for_locale(context.locale),
        _known(context.expected_currency),
    ):
        if hint and hint in candidates:
            return hint
    return candidates[0]


def _detect_symbol(text: str, context: PriceContext) -> CurrencyDetection | None:
    ambiguous_confidence = 0.85 if context.has_hints else 0.75

    for symbol in PRIORITY_SYMBOLS:
        if symbol not in text:
            continue
        candidates = CURRENCY_SYMBOLS[symbol]
        if len(candidates) == 1:
            return CurrencyDetection(candidates[0], symbol, 0.90, DetectionMethod.SYMBOL)
        return CurrencyDetection(
            _disambiguate(candidates, context),
            symbol,
            ambiguous_confidence,
            DetectionMethod.SYMBOL_DISAMBIGUATED,
        )

    # Before "$" so that "R$" is not read as dollars
    for symbol, pattern in _MULTI_CHAR:
        if pattern.search(text):
            return CurrencyDetection(CURRENCY_SYMBOLS[symbol][0], symbol, 0.90, DetectionMethod.SYMBOL)

    if "$" in text:
        return CurrencyDetection(
            _disambiguate(CURRENCY_SYMBOLS["$"], context),
            "$",
            ambiguous_confidence,
            DetectionMethod.SYMBOL_DISAMBIGUATED,
        )

    # A bare "R" is only the rand on South African pages
    if _RAND.search(text):
        za_hint = (context.domain or "").lower().endswith(".za") or _known(context.expected_currency) == "ZAR"
        if za_hint:
            return CurrencyDetection("ZAR", "R", 0.80, DetectionMethod.SYMBOL_CONTEXTUAL)

    if _KRONA.search(text):
        return CurrencyDetection(
            _disambiguate(CURRENCY_SYMBOLS["kr"], context),
            "kr",
            0.75 if context.has_hints else 0.70,
            DetectionMethod.SYMBOL_WEAK,
        )

    return None


def _decimal_separator(token: str, currency: str) -> str | None:
    """Which of "." / "," is the decimal separator in ``token`` (None = integer)."""
    has_dot = "." in token
    has_comma = "," in token

    if has_dot and has_comma:
        return "." if token.rfind(".") > token.rfind(",") else ","

    if currency in ZERO_DECIMAL_CURRENCIES or not (has_dot or has_comma):
        return None

    sep = "." if has_dot else ","
    if token.count(sep) > 1:
        return None

    fraction_digits = len(token) - token.index(sep) - 1
    if fraction_digits != 3:
        return sep

    # "1.234" / "1,234": no supported currency has three minor digits
    if currency in CURRENCIES and CURRENCIES[currency].decimals >= 3:
        return sep
    return None
