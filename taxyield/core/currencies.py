from __future__ import annotations

DEFAULT_CURRENCY = "USD"

CURRENCY_BY_JURISDICTION: dict[str, str] = {
    "us": "USD",
    "ca": "CAD",
    "uk": "GBP",
    "de": "EUR",
    "fr": "EUR",
    "es": "EUR",
    "it": "EUR",
    "pt": "EUR",
    "nl": "EUR",
    "be": "EUR",
    "pl": "PLN",
    "cz": "CZK",
    "dk": "DKK",
    "ch": "CHF",
    "au": "AUD",
    "jp": "JPY",
    "in": "INR",
    "cn": "CNY",
    "ae": "AED",
    "sg": "SGD",
    "sa": "SAR",
}


def currency_for(jurisdiction: str) -> str:
    return CURRENCY_BY_JURISDICTION.get(jurisdiction.lower(), DEFAULT_CURRENCY)


__all__ = ["CURRENCY_BY_JURISDICTION", "DEFAULT_CURRENCY", "currency_for"]
