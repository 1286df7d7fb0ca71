"""
Launch offer: multi-buy discount applied per unit before coupons.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from apps.common.constants import LAUNCH_CHARM_MIN_AMOUNT, LAUNCH_MULTI_ITEM_RATE, LAUNCH_SINGLE_ITEM_RATE

from .config import get_pricing_config
from .services import CENTS, WHOLE, ZERO, to_decimal

TENTH = Decimal("0.1")


def _normalize_currency(currency: Any) -> str:
    return str(currency or "").strip().upper() or get_pricing_config().base_currency


def get_launch_discount_rate(total_quantity: Any) -> Decimal:
    """0 items -> 0%, 1 item -> 10%, 2 or more -> 20%."""
    quantity = max(ZERO, to_decimal(total_quantity))
    if quantity >= 2:
        return LAUNCH_MULTI_ITEM_RATE
    if quantity >= 1:
        return LAUNCH_SINGLE_ITEM_RATE
    return ZERO


def get_discounted_unit_price(base_price: Any, currency: str, total_quantity: Any) -> Decimal:
    """
    Apply the launch rate to one unit price and re-round it.

    Home currency snaps to whole units; other currencies snap to a ``.X9``
    ending with a 0.09 floor.
    """
    amount = to_decimal(base_price)
    if amount <= 0:
        return ZERO

    rate = get_launch_discount_rate(total_quantity)
    if rate <= 0:
        return amount

    discounted = amount * (WHOLE - rate)
    if _normalize_currency(currency) == get_pricing_config().base_currency:
        return max(ZERO, discounted.quantize(WHOLE, rounding=ROUND_HALF_UP))

    snapped = ((discounted + CENTS) / TENTH).quantize(WHOLE, rounding=ROUND_HALF_UP) * TENTH - CENTS
    return max(LAUNCH_CHARM_MIN_AMOUNT, snapped).quantize(CENTS, rounding=ROUND_HALF_UP)


def has_display_price_change(base_value: Any, discounted_value: Any, currency: str) -> bool:
    """Whether a strike-through price would actually look different."""
    exponent = WHOLE if _normalize_currency(currency) == get_pricing_config().base_currency else CENTS
    before = to_decimal(base_value).quantize(exponent, rounding=ROUND_HALF_UP)
    after = to_decimal(discounted_value).quantize(exponent, rounding=ROUND_HALF_UP)
    return before != after
