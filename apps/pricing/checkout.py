"""
Checkout pricing aggregator.

Turns raw cart lines into a single-currency order total: regional price per item,
launch discount per unit, then a sum. Coupons are applied afterwards by
apps.coupons against ``CheckoutPricing.total_amount``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.conf import settings

from apps.common.constants import MAX_ITEMS_PER_ORDER, MAX_QUANTITY_PER_ITEM
from apps.common.types import Ok, Result, ServiceError, service_error
from apps.products.services import ProductService

from .launch_offer import get_discounted_unit_price, get_launch_discount_rate
from .services import (
    ZERO,
    calculate_price,
    detect_country_from_request,
    get_currency_override_from_request,
    to_decimal,
)

if TYPE_CHECKING:
    from django.http import HttpRequest

logger = logging.getLogger(__name__)


# ===============================================================================
# Data Classes
# ===============================================================================


@dataclass(frozen=True)
class CheckoutItem:
    product_id: str
    quantity: int


@dataclass(frozen=True)
class PricedItem:
    product_id: str
    quantity: int
    unit_amount: Decimal
    currency: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_amount": self.unit_amount,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class CheckoutPricing:
    """Server-side price of a cart, before coupons"""

    country_code: str
    order_currency: str
    launch_discount_rate: Decimal
    total_item_quantity: int
    subtotal_amount: Decimal
    total_amount: Decimal
    valid_items: list[PricedItem] = field(default_factory=list)

    @property
    def discounted_unit_amounts(self) -> list[Decimal]:
        return [
            get_discounted_unit_price(item.unit_amount, self.order_currency, self.total_item_quantity)
            for item in self.valid_items
        ]

    @property
    def highest_unit_amount(self) -> Decimal:
        """Highest discounted unit price; the base for single-item coupons."""
        return max(self.discounted_unit_amounts, default=ZERO)

    def as_dict(self) -> dict[str, Any]:
        return {
            "country_code": self.country_code,
            "order_currency": self.order_currency,
            "launch_discount_rate": self.launch_discount_rate,
            "total_item_quantity": self.total_item_quantity,
            "subtotal_amount": self.subtotal_amount,
            "total_amount": self.total_amount,
            "valid_items": [item.as_dict() for item in self.valid_items],
        }


# ===============================================================================
# Item normalization
# ===============================================================================


def _checkout_limit(name: str, default: int) -> int:
    return int((getattr(settings, "CHECKOUT", {}) or {}).get(name, default))


def normalize_checkout_items(raw_items: Any) -> list[CheckoutItem]:
    """
    Keep lines with a product id and a quantity in ``1..MAX_QUANTITY_PER_ITEM``,
    capped at ``MAX_ITEMS_PER_ORDER`` lines. Invalid lines are dropped, not rejected.
    """
    if not isinstance(raw_items, list | tuple):
        return []

    max_quantity = _checkout_limit("MAX_QUANTITY_PER_ITEM", MAX_QUANTITY_PER_ITEM)
    max_items = _checkout_limit("MAX_ITEMS_PER_ORDER", MAX_ITEMS_PER_ORDER)

    items: list[CheckoutItem] = []
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        product_id = str(raw.get("product_id") or raw.get("productId") or "").strip()
        quantity = to_decimal(raw.get("quantity"))
        if not product_id or quantity <= 0 or quantity > max_quantity or quantity != quantity.to_integral_value():
            continue
        items.append(CheckoutItem(product_id=product_id, quantity=int(quantity)))

    return items[:max_items]


# ===============================================================================
# Aggregation
# ===============================================================================


def compute_checkout_pricing(
    items: Any,
    request: HttpRequest | None = None,
    currency_override: str | None = None,
    country_code: str | None = None,
) -> Result[CheckoutPricing, ServiceError]:
    """
    Price a cart for the requesting visitor.

    An explicit ``currency_override`` (request body) wins over the query/cookie
    override. ``country_code`` is only used when no request is available.
    """
    requested = normalize_checkout_items(items)
    if not requested:
        return service_error(400, "No valid items provided for checkout.", "no_valid_items")

    if request is not None:
        country_code = detect_country_from_request(request)
        override = str(currency_override or "").strip().upper() or get_currency_override_from_request(request)
    else:
        override = str(currency_override or "").strip().upper()

    base_prices = ProductService.get_base_prices([item.product_id for item in requested])

    priced: list[PricedItem] = []
    resolved_country = country_code or ""
    for item in requested:
        base_price = base_prices.get(item.product_id)
        if base_price is None or base_price <= 0:
            continue
        quote = calculate_price(base_price, country_code, override or None)
        resolved_country = quote.country_code
        priced.append(
            PricedItem(
                product_id=item.product_id,
                quantity=item.quantity,
                unit_amount=quote.amount,
                currency=quote.currency,
            )
        )

    if not priced:
        return service_error(400, "Could not compute prices for checkout items.", "no_priced_items")

    order_currency = priced[0].currency
    if any(item.currency != order_currency for item in priced):
        return service_error(400, "Mixed checkout currencies detected. Refresh and try again.", "mixed_currencies")

    total_quantity = sum(item.quantity for item in priced)
    subtotal = sum((item.unit_amount * item.quantity for item in priced), ZERO)
    total = sum(
        (get_discounted_unit_price(item.unit_amount, order_currency, total_quantity) * item.quantity for item in priced),
        ZERO,
    )

    if total <= 0:
        return service_error(400, "Invalid checkout total.", "invalid_total")

    pricing = CheckoutPricing(
        country_code=resolved_country,
        order_currency=order_currency,
        launch_discount_rate=get_launch_discount_rate(total_quantity),
        total_item_quantity=total_quantity,
        subtotal_amount=subtotal,
        total_amount=total,
        valid_items=priced,
    )
    logger.debug(f"🛒 [Checkout] Priced {len(priced)} item(s): {total} {order_currency}")
    return Ok(pricing)


__all__ = [
    "CheckoutItem",
    "CheckoutPricing",
    "PricedItem",
    "compute_checkout_pricing",
    "normalize_checkout_items",
]
