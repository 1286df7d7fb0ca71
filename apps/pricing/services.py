"""
Regional pricing services for the Worksheet Store.
Converts base (INR) catalog prices into the visitor's market price: tier multiplier,
fixed-rate conversion and psychological rounding.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING, Any

from apps.common.constants import (
    FOREIGN_CHARM_ENDING,
    FOREIGN_CURRENCY_MIN_AMOUNT,
    FOREIGN_SMALL_AMOUNT_THRESHOLD,
    HOME_CURRENCY_MIN_AMOUNT,
    TIER_DOMESTIC,
    TIER_INTERNATIONAL,
)

from .config import COUNTRY_TO_CURRENCY, CURRENCY_LOCALE, CURRENCY_SYMBOL, DEFAULT_LOCALE, get_pricing_config

if TYPE_CHECKING:
    from django.http import HttpRequest

logger = logging.getLogger(__name__)

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")

# Checked in order; set by the CDN in front of the app
TRUSTED_COUNTRY_HEADERS: tuple[str, ...] = ("CF-IPCountry", "X-Vercel-IP-Country", "CloudFront-Viewer-Country")
CURRENCY_COOKIE_NAME = "ds_currency"

ZERO = Decimal("0")
WHOLE = Decimal("1")
CENTS = Decimal("0.01")
TEN = Decimal("10")


# ===============================================================================
# Data Classes
# ===============================================================================


@dataclass(frozen=True)
class PriceQuote:
    """Price of one unit in the visitor's market"""

    amount: Decimal
    currency: str
    symbol: str
    locale: str
    tier: str
    country_code: str
    base_price_inr: Decimal
    tiered_price_inr: Decimal

    def as_dict(self) -> dict[str, Any]:
        return {
            "amount": self.amount,
            "currency": self.currency,
            "symbol": self.symbol,
            "locale": self.locale,
            "tier": self.tier,
            "country_code": self.country_code,
            "base_price_inr": self.base_price_inr,
            "tiered_price_inr": self.tiered_price_inr,
        }


@dataclass(frozen=True)
class PricingContext:
    """Market detected for a request"""

    country_code: str
    auto_currency: str
    currency: str
    source: str  # "ip" or "override"


# ===============================================================================
# Normalization helpers
# ===============================================================================


def to_decimal(value: Any) -> Decimal:
    """Coerce user/DB input to Decimal; garbage becomes zero."""
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value if value is not None else 0).strip() or "0")
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def normalize_country_code(value: Any) -> str:
    normalized = str(value or "").strip().upper()
    return normalized if COUNTRY_CODE_PATTERN.match(normalized) else ""


def normalize_currency(value: Any) -> str:
    """Uppercase a currency code; unsupported codes fall back silently."""
    config = get_pricing_config()
    normalized = str(value or "").strip().upper()
    return normalized if config.is_supported(normalized) else config.fallback_currency


def quantize_for_currency(amount: Decimal, currency: str) -> Decimal:
    """Home currency is whole units, everything else two decimals."""
    exponent = WHOLE if currency == get_pricing_config().base_currency else CENTS
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def get_supported_currencies() -> tuple[str, ...]:
    return get_pricing_config().supported_currencies


def get_currency_for_country(country_code: str) -> str:
    return COUNTRY_TO_CURRENCY.get(normalize_country_code(country_code), get_pricing_config().fallback_currency)


def get_default_currency(country_code: str) -> str:
    config = get_pricing_config()
    if country_code == config.home_country:
        return config.base_currency
    return get_currency_for_country(country_code)


# ===============================================================================
# Conversion and rounding
# ===============================================================================


def convert_from_base(amount_inr: Any, currency: str) -> Decimal:
    """Convert a base-currency amount using the fixed exchange rates."""
    amount = to_decimal(amount_inr)
    if amount <= 0:
        return ZERO

    config = get_pricing_config()
    normalized = normalize_currency(currency)
    rate = config.fx_rates.get(normalized) or config.fx_rates[config.fallback_currency]
    return amount * rate


def round_psychological(amount: Decimal, currency: str) -> Decimal:
    """
    Snap a converted price to a charm ending.

    Home currency: nearest ten minus one (499, 1999), never below 1.
    Other currencies: ``floor + .49``; amounts under 1.5 keep their cents with a .99 floor.
    """
    if not amount.is_finite() or amount <= 0:
        return ZERO

    if currency == get_pricing_config().base_currency:
        tens = (amount / TEN).quantize(WHOLE, rounding=ROUND_HALF_UP)
        return max(HOME_CURRENCY_MIN_AMOUNT, tens * TEN - WHOLE)

    if amount < FOREIGN_SMALL_AMOUNT_THRESHOLD:
        return max(FOREIGN_CURRENCY_MIN_AMOUNT, amount.quantize(CENTS, rounding=ROUND_HALF_UP))

    return amount.to_integral_value(rounding=ROUND_FLOOR) + FOREIGN_CHARM_ENDING


def calculate_price(base_price_inr: Any, country_code: str | None = None, currency_override: str | None = None) -> PriceQuote:
    """
    Price a base-currency amount for a market.

    Unknown countries fall back to the configured fallback country and unsupported
    currency overrides fall back to the fallback currency. A non-positive base
    price yields a zero amount.
    """
    config = get_pricing_config()
    base_price = to_decimal(base_price_inr)
    country = normalize_country_code(country_code) or normalize_country_code(config.fallback_country) or config.home_country

    is_domestic = country == config.home_country
    tier = TIER_DOMESTIC if is_domestic else TIER_INTERNATIONAL
    currency = normalize_currency(currency_override) if currency_override else get_default_currency(country)

    multiplier = WHOLE if is_domestic else config.international_multiplier
    tiered_price = base_price * multiplier

    converted = tiered_price if currency == config.base_currency else convert_from_base(tiered_price, currency)
    rounded = round_psychological(converted, currency)

    return PriceQuote(
        amount=quantize_for_currency(rounded, currency),
        currency=currency,
        symbol=CURRENCY_SYMBOL.get(currency, currency),
        locale=CURRENCY_LOCALE.get(currency, DEFAULT_LOCALE),
        tier=tier,
        country_code=country,
        base_price_inr=base_price.quantize(WHOLE, rounding=ROUND_HALF_UP),
        tiered_price_inr=tiered_price.quantize(WHOLE, rounding=ROUND_HALF_UP),
    )


def format_price(amount: Any, currency: str) -> str:
    """Human readable price, e.g. ``₹499`` or ``$24.49``."""
    normalized = normalize_currency(currency)
    value = quantize_for_currency(to_decimal(amount), normalized)
    symbol = CURRENCY_SYMBOL.get(normalized, normalized)
    separator = " " if symbol.isalpha() else ""
    digits = f"{value:,.0f}" if normalized == get_pricing_config().base_currency else f"{value:,.2f}"
    return f"{symbol}{separator}{digits}"


# ===============================================================================
# Request context
# ===============================================================================


def detect_country_from_request(request: HttpRequest) -> str:
    """Country from trusted CDN headers, else the configured fallback country."""
    for header in TRUSTED_COUNTRY_HEADERS:
        value = normalize_country_code(request.headers.get(header))
        if value:
            return value

    config = get_pricing_config()
    return normalize_country_code(config.fallback_country) or config.home_country


def get_currency_override_from_request(request: HttpRequest) -> str:
    """
    Explicit currency choice: ``?currency=`` wins over the ``ds_currency`` cookie.
    Returns an empty string when the visitor has not chosen one.
    """
    query_currency = str(request.GET.get("currency") or "").strip()
    if query_currency:
        return normalize_currency(query_currency)

    cookie_currency = str(request.COOKIES.get(CURRENCY_COOKIE_NAME) or "").strip()
    if not cookie_currency:
        return ""
    return normalize_currency(cookie_currency)


def get_pricing_context(request: HttpRequest) -> PricingContext:
    country_code = detect_country_from_request(request)
    override = get_currency_override_from_request(request)
    auto_currency = get_default_currency(country_code)
    return PricingContext(
        country_code=country_code,
        auto_currency=auto_currency,
        currency=override or auto_currency,
        source="override" if override else "ip",
    )
