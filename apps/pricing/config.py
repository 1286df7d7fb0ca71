"""
Regional pricing configuration.

Static currency tables live here; deployment-tunable values (exchange rates,
fallback country, multiplier) can be overridden through ``settings.PRICING``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from django.conf import settings

from apps.common.constants import BASE_CURRENCY, FALLBACK_CURRENCY, HOME_COUNTRY, INTERNATIONAL_MULTIPLIER

SUPPORTED_CURRENCIES: tuple[str, ...] = ("INR", "USD", "EUR", "GBP", "AED", "CAD", "AUD", "SGD")

# Fixed conversion rates, 1 INR -> target currency
FX_RATES_FROM_BASE: dict[str, Decimal] = {
    "INR": Decimal("1"),
    "USD": Decimal("0.012"),
    "EUR": Decimal("0.011"),
    "GBP": Decimal("0.0095"),
    "AED": Decimal("0.044"),
    "CAD": Decimal("0.016"),
    "AUD": Decimal("0.019"),
    "SGD": Decimal("0.016"),
}

COUNTRY_TO_CURRENCY: dict[str, str] = {
    "IN": "INR",
    "US": "USD",
    "GB": "GBP",
    "AE": "AED",
    "DE": "EUR",
    "FR": "EUR",
    "IT": "EUR",
    "ES": "EUR",
    "NL": "EUR",
    "IE": "EUR",
    "PT": "EUR",
    "BE": "EUR",
    "CA": "CAD",
    "AU": "AUD",
    "SG": "SGD",
}

CURRENCY_SYMBOL: dict[str, str] = {
    "INR": "₹",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "AED": "AED",
    "CAD": "C$",
    "AUD": "A$",
    "SGD": "S$",
}

CURRENCY_LOCALE: dict[str, str] = {
    "INR": "en-IN",
    "USD": "en-US",
    "EUR": "de-DE",
    "GBP": "en-GB",
    "AED": "en-AE",
    "CAD": "en-CA",
    "AUD": "en-AU",
    "SGD": "en-SG",
}

DEFAULT_LOCALE = "en-US"


@dataclass(frozen=True)
class PricingConfig:
    """Resolved pricing configuration for the running deployment"""

    base_currency: str
    home_country: str
    fallback_country: str
    fallback_currency: str
    international_multiplier: Decimal
    supported_currencies: tuple[str, ...]
    fx_rates: dict[str, Decimal]

    def is_supported(self, currency: str) -> bool:
        return currency in self.supported_currencies


def get_pricing_config() -> PricingConfig:
    """Merge ``settings.PRICING`` over the module defaults."""
    overrides: dict[str, Any] = getattr(settings, "PRICING", {}) or {}

    fx_rates = dict(FX_RATES_FROM_BASE)
    for code, rate in (overrides.get("FX_RATES") or {}).items():
        fx_rates[str(code).upper()] = Decimal(str(rate))

    fallback_country = str(overrides.get("FALLBACK_COUNTRY") or HOME_COUNTRY).strip().upper()

    return PricingConfig(
        base_currency=overrides.get("BASE_CURRENCY", BASE_CURRENCY),
        home_country=overrides.get("HOME_COUNTRY", HOME_COUNTRY),
        fallback_country=fallback_country,
        fallback_currency=overrides.get("FALLBACK_CURRENCY", FALLBACK_CURRENCY),
        international_multiplier=Decimal(str(overrides.get("INTERNATIONAL_MULTIPLIER", INTERNATIONAL_MULTIPLIER))),
        supported_currencies=tuple(overrides.get("SUPPORTED_CURRENCIES", SUPPORTED_CURRENCIES)),
        fx_rates=fx_rates,
    )
