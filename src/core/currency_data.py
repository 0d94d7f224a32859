"""
Currency reference tables.

Symbols, ISO codes, TLD and locale hints used by the price parser to
detect and disambiguate currencies, plus per-locale number formats used
to resolve ``1.234`` vs ``1,234`` style ambiguity.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CurrencyInfo:
    """Display metadata for an ISO 4217 currency."""

    symbol: str
    name: str
    decimals: int = 2
    symbol_first: bool = True   # $99.99 vs 99,99 €
    # Multiplier on the sanity ceiling; roughly units per US dollar, rounded
    price_scale: int = 1


@dataclass(frozen=True, slots=True)
class NumberFormat:
    """Decimal / thousands separators used by a locale."""

    decimal: str
    thousands: str


# ──────────────────────────────────────────────────────────────────────
# ISO code → currency metadata
# ──────────────────────────────────────────────────────────────────────

CURRENCIES: dict[str, CurrencyInfo] = {
    # Americas
    "USD": CurrencyInfo("$", "US Dollar"),
    "CAD": CurrencyInfo("$", "Canadian Dollar"),
    "MXN": CurrencyInfo("$", "Mexican Peso", price_scale=20),
    "BRL": CurrencyInfo("R$", "Brazilian Real", price_scale=5),
    # Europe
    "EUR": CurrencyInfo("€", "Euro", symbol_first=False),
    "GBP": CurrencyInfo("£", "British Pound"),
    "CHF": CurrencyInfo("CHF", "Swiss Franc"),
    "SEK": CurrencyInfo("kr", "Swedish Krona", symbol_first=False, price_scale=10),
    "NOK": CurrencyInfo("kr", "Norwegian Krone", symbol_first=False, price_scale=10),
    "DKK": CurrencyInfo("kr", "Danish Krone", symbol_first=False, price_scale=10),
    "PLN": CurrencyInfo("zł", "Polish Zloty", symbol_first=False, price_scale=5),
    "CZK": CurrencyInfo("Kč", "Czech Koruna", symbol_first=False, price_scale=25),
    "HUF": CurrencyInfo("Ft", "Hungarian Forint", decimals=0, symbol_first=False, price_scale=400),
    "RON": CurrencyInfo("lei", "Romanian Leu", symbol_first=False, price_scale=5),
    "BGN": CurrencyInfo("лв", "Bulgarian Lev", symbol_first=False),
    # Asia-Pacific
    "JPY": CurrencyInfo("¥", "Japanese Yen", decimals=0, price_scale=200),
    "CNY": CurrencyInfo("¥", "Chinese Yuan", price_scale=10),
    "KRW": CurrencyInfo("₩", "South Korean Won", decimals=0, price_scale=2000),
    "INR": CurrencyInfo("₹", "Indian Rupee", price_scale=100),
    "AUD": CurrencyInfo("$", "Australian Dollar"),
    "NZD": CurrencyInfo("$", "New Zealand Dollar"),
    "SGD": CurrencyInfo("$", "Singapore Dollar"),
    "HKD": CurrencyInfo("$", "Hong Kong Dollar", price_scale=10),
    "THB": CurrencyInfo("฿", "Thai Baht", price_scale=50),
    "PHP": CurrencyInfo("₱", "Philippine Peso", price_scale=100),
    "IDR": CurrencyInfo("Rp", "Indonesian Rupiah", decimals=0, price_scale=20000),
    "MYR": CurrencyInfo("RM", "Malaysian Ringgit", price_scale=5),
    "VND": CurrencyInfo("₫", "Vietnamese Dong", decimals=0, symbol_first=False, price_scale=30000),
    # Eastern Europe
    "RUB": CurrencyInfo("₽", "Russian Ruble", symbol_first=False, price_scale=100),
    "UAH": CurrencyInfo("₴", "Ukrainian Hryvnia", symbol_first=False, price_scale=50),
    # Middle East / Africa
    "AED": CurrencyInfo("د.إ", "UAE Dirham"),
    "SAR": CurrencyInfo("﷼", "Saudi Riyal"),
    "ILS": CurrencyInfo("₪", "Israeli Shekel"),
    "ZAR": CurrencyInfo("R", "South African Rand", price_scale=20),
    "EGP": CurrencyInfo("£", "Egyptian Pound", price_scale=50),
    "TRY": CurrencyInfo("₺", "Turkish Lira", price_scale=50),
}

# ──────────────────────────────────────────────────────────────────────
# Symbol → candidate ISO codes (first entry is the most common reading)
# ──────────────────────────────────────────────────────────────────────

CURRENCY_SYMBOLS: dict[str, list[str]] = {
    "$": ["USD", "CAD", "AUD", "NZD", "SGD", "HKD", "MXN"],
    "¥": ["JPY", "CNY"],
    "€": ["EUR"],
    "£": ["GBP", "EGP"],
    "kr": ["SEK", "NOK", "DKK"],
    "R": ["ZAR"],
    "R$": ["BRL"],
    "₩": ["KRW"],
    "₹": ["INR"],
    "฿": ["THB"],
    "₱": ["PHP"],
    "Rp": ["IDR"],
    "RM": ["MYR"],
    "₫": ["VND"],
    "₽": ["RUB"],
    "₴": ["UAH"],
    "zł": ["PLN"],
    "Kč": ["CZK"],
    "Ft": ["HUF"],
    "lei": ["RON"],
    "лв": ["BGN"],
    "lv": ["BGN"],
    "د.إ": ["AED"],
    "﷼": ["SAR"],
    "₪": ["ILS"],
    "₺": ["TRY"],
}

# Checked before "$" and the weak symbols
PRIORITY_SYMBOLS: tuple[str, ...] = (
    "£", "€", "₹", "¥", "₩", "฿", "₱", "₽", "₴", "₪", "₺", "₫", "﷼",
)

# Multi-letter symbols that are unambiguous once matched as whole tokens
MULTI_CHAR_SYMBOLS: tuple[str, ...] = (
    "R$", "Rp", "RM", "zł", "Kč", "Ft", "lei", "лв", "د.إ",
)

ZERO_DECIMAL_CURRENCIES: frozenset[str] = frozenset(
    code for code, info in CURRENCIES.items() if info.decimals == 0
)

# ──────────────────────────────────────────────────────────────────────
# TLD → currency (longest suffix wins)
# ──────────────────────────────────────────────────────────────────────

DOMAIN_CURRENCY: dict[str, str] = {
    ".com": "USD", ".us": "USD",
    ".ca": "CAD", ".mx": "MXN", ".com.mx": "MXN",
    ".com.br": "BRL", ".br": "BRL",
    ".co.uk": "GBP", ".uk": "GBP",
    ".de": "EUR", ".fr": "EUR", ".es": "EUR", ".it": "EUR", ".nl": "EUR",
    ".be": "EUR", ".at": "EUR", ".pt": "EUR", ".ie": "EUR", ".fi": "EUR",
    ".gr": "EUR", ".ee": "EUR", ".lv": "EUR", ".lt": "EUR", ".sk": "EUR",
    ".si": "EUR", ".cy": "EUR", ".mt": "EUR", ".lu": "EUR",
    ".ch": "CHF",
    ".se": "SEK", ".no": "NOK", ".dk": "DKK",
    ".pl": "PLN", ".cz": "CZK", ".hu": "HUF", ".ro": "RON", ".bg": "BGN",
    ".co.jp": "JPY", ".jp": "JPY",
    ".cn": "CNY", ".com.cn": "CNY",
    ".kr": "KRW", ".co.kr": "KRW",
    ".in": "INR",
    ".com.au": "AUD", ".au": "AUD",
    ".co.nz": "NZD", ".nz": "NZD",
    ".sg": "SGD", ".com.sg": "SGD",
    ".hk": "HKD", ".com.hk": "HKD",
    ".th": "THB", ".co.th": "THB",
    ".ph": "PHP", ".com.ph": "PHP",
    ".id": "IDR", ".co.id": "IDR",
    ".my": "MYR", ".com.my": "MYR",
    ".vn": "VND", ".com.vn": "VND",
    ".ru": "RUB", ".ua": "UAH",
    ".ae": "AED", ".sa": "SAR", ".il": "ILS",
    ".za": "ZAR", ".co.za": "ZAR",
    ".eg": "EGP", ".tr": "TRY", ".com.tr": "TRY",
}

# ──────────────────────────────────────────────────────────────────────
# Locale → currency
# ──────────────────────────────────────────────────────────────────────

LOCALE_CURRENCY: dict[str, str] = {
    "en-US": "USD", "en-CA": "CAD", "fr-CA": "CAD", "es-MX": "MXN",
    "pt-BR": "BRL", "en-GB": "GBP",
    "de-DE": "EUR", "fr-FR": "EUR", "es-ES": "EUR", "it-IT": "EUR",
    "nl-NL": "EUR", "nl-BE": "EUR", "fr-BE": "EUR", "de-AT": "EUR",
    "pt-PT": "EUR", "en-IE": "EUR", "fi-FI": "EUR", "el-GR": "EUR",
    "et-EE": "EUR", "lv-LV": "EUR", "lt-LT": "EUR", "sk-SK": "EUR",
    "sl-SI": "EUR", "el-CY": "EUR", "tr-CY": "EUR", "mt-MT": "EUR",
    "lb-LU": "EUR", "de-LU": "EUR", "fr-LU": "EUR",
    "bg-BG": "BGN",
    "de-CH": "CHF", "fr-CH": "CHF", "it-CH": "CHF",
    "sv-SE": "SEK", "nb-NO": "NOK", "da-DK": "DKK",
    "pl-PL": "PLN", "cs-CZ": "CZK", "hu-HU": "HUF", "ro-RO": "RON",
    "ja-JP": "JPY", "zh-CN": "CNY", "ko-KR": "KRW",
    "hi-IN": "INR", "en-IN": "INR",
    "en-AU": "AUD", "en-NZ": "NZD", "en-SG": "SGD",
    "zh-HK": "HKD", "en-HK": "HKD",
    "th-TH": "THB", "fil-PH": "PHP", "en-PH": "PHP",
    "id-ID": "IDR", "ms-MY": "MYR", "vi-VN": "VND",
    "ru-RU": "RUB", "uk-UA": "UAH",
    "ar-AE": "AED", "ar-SA": "SAR", "he-IL": "ILS", "ar-IL": "ILS",
    "en-ZA": "ZAR", "ar-EG": "EGP", "tr-TR": "TRY",
}

# ──────────────────────────────────────────────────────────────────────
# Locale → number format
# ──────────────────────────────────────────────────────────────────────

_DOT_DECIMAL = NumberFormat(decimal=".", thousands=",")
_COMMA_DECIMAL = NumberFormat(decimal=",", thousands=".")
_SPACE_GROUPED = NumberFormat(decimal=",", thousands=" ")

NUMBER_FORMATS: dict[str, NumberFormat] = {
    **{
        loc: _DOT_DECIMAL
        for loc in (
            "en-US", "en-GB", "en-AU", "en-NZ", "en-CA", "en-IN", "en-SG",
            "en-HK", "en-PH", "en-ZA", "ja-JP", "zh-CN", "ko-KR", "th-TH",
            "ms-MY", "ar-AE", "ar-SA", "ar-EG", "he-IL",
        )
    },
    **{
        loc: _COMMA_DECIMAL
        for loc in (
            "de-DE", "de-AT", "de-CH", "nl-NL", "nl-BE", "es-ES", "es-MX",
            "pt-PT", "pt-BR", "it-IT", "pl-PL", "cs-CZ", "hu-HU", "ro-RO",
            "tr-TR", "ru-RU", "uk-UA", "id-ID", "sl-SI", "de-LU", "vi-VN",
            "el-GR",
        )
    },
    **{
        loc: _SPACE_GROUPED
        for loc in (
            "fr-FR", "fr-BE", "fr-CH", "fr-CA", "sv-SE", "nb-NO", "da-DK",
            "fi-FI", "et-EE", "lv-LV", "lt-LT", "sk-SK", "bg-BG", "mt-MT",
            "lb-LU", "fr-LU",
        )
    },
}

# Currency → most likely locale, used when neither page nor domain says
CURRENCY_LOCALE: dict[str, str] = {
    "USD": "en-US", "CAD": "en-CA", "GBP": "en-GB", "EUR": "de-DE",
    "JPY": "ja-JP", "CNY": "zh-CN", "KRW": "ko-KR", "INR": "en-IN",
    "AUD": "en-AU", "NZD": "en-NZ", "SGD": "en-SG", "HKD": "en-HK",
    "MXN": "es-MX", "BRL": "pt-BR", "SEK": "sv-SE", "NOK": "nb-NO",
    "DKK": "da-DK", "PLN": "pl-PL", "RUB": "ru-RU", "TRY": "tr-TR",
}


def is_known_currency(code: str | None) -> bool:
    """True for a 3-letter ISO code present in ``CURRENCIES``."""
    return bool(code) and len(code) == 3 and code.upper() in CURRENCIES


def price_scale(code: str | None) -> int:
    """Sanity-ceiling multiplier for ``code``; 1 for unknown codes."""
    if not is_known_currency(code):
        return 1
    return CURRENCIES[code.upper()].price_scale


def currency_for_domain(domain: str | None) -> str | None:
    """Currency implied by the longest matching TLD suffix of ``domain``."""
    if not domain:
        return None
    host = domain.lower()
    matches = [tld for tld in DOMAIN_CURRENCY if host.endswith(tld)]
    if not matches:
        return None
    return DOMAIN_CURRENCY[max(matches, key=len)]


def currency_for_locale(locale: str | None) -> str | None:
    if not locale:
        return None
    return LOCALE_CURRENCY.get(normalize_locale(locale))


def normalize_locale(locale: str) -> str:
    """``en_gb`` / ``EN-gb`` → ``en-GB``."""
    parts = locale.replace("_", "-").split("-")
    if len(parts) >= 2:
        return f"{parts[0].lower()}-{parts[1].upper()}"
    return parts[0].lower()
