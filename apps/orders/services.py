"""
Order fulfillment services for the Worksheet Store.
Records purchases for a confirmed payment, issues the download token and
records the coupon usage. Free orders (coupon brings the total to zero) are
completed here without a payment gateway.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from django.db import transaction

from apps.common.constants import FREE_ORDER_PREFIX
from apps.common.types import Ok, Result, ServiceError, service_error
from apps.coupons.codes import normalize_coupon_code, normalize_coupon_email
from apps.coupons.services import CouponService, CouponSummary
from apps.pricing.checkout import compute_checkout_pricing, normalize_checkout_items
from apps.pricing.services import ZERO, to_decimal
from apps.products.services import ProductService

from .models import Purchase, build_purchase_id
from .tokens import DownloadTokenStore

if TYPE_CHECKING:
    from django.http import HttpRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FulfillmentResult:
    token: str
    payment_id: str
    primary_product_id: str
    product_ids: list[str] = field(default_factory=list)
    coupon_usage_tracked: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "token": self.token,
            "payment_id": self.payment_id,
            "primary_product_id": self.primary_product_id,
            "product_ids": self.product_ids,
            "coupon_usage_tracked": self.coupon_usage_tracked,
        }


def build_free_order_id() -> str:
    """``free_<epoch millis>_<8 hex>``"""
    return f"{FREE_ORDER_PREFIX}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}"


class PurchaseFulfillmentService:
    """Turns a paid (or free) cart into purchases and a download grant"""

    token_store_class = DownloadTokenStore

    @classmethod
    def fulfill_purchase_order(  # noqa: PLR0913
        cls,
        email: Any,
        items: list[Any],
        order_currency: str,
        order_amount: Any,
        payment_id: Any,
        applied_coupon: CouponSummary | None = None,
        order_id: Any = None,
        user_id: Any = None,
        payment_method: str = "gateway",
    ) -> Result[FulfillmentResult, ServiceError]:
        normalized_email = normalize_coupon_email(email)
        if not normalized_email:
            return service_error(400, "Email is required", "email_required")

        normalized_payment_id = str(payment_id or "").strip()
        if not normalized_payment_id:
            return service_error(400, "paymentId is required", "payment_id_required")

        normalized_order_id = str(order_id or "").strip() or normalized_payment_id
        normalized_user_id = str(user_id or "").strip() or None
        currency = str(order_currency or "").strip().upper()
        amount = to_decimal(order_amount)

        requested = normalize_checkout_items([item.as_dict() if hasattr(item, "as_dict") else item for item in items])
        storage_keys = ProductService.get_storage_keys([item.product_id for item in requested])

        quantities: dict[str, int] = {}
        for item in requested:
            if item.product_id in storage_keys:
                quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity

        files = [storage_keys[product_id] for product_id in quantities if storage_keys[product_id]]
        if not files:
            return service_error(400, "No downloadable files found for items", "no_downloadable_files")

        with transaction.atomic():
            for product_id, quantity in quantities.items():
                Purchase.objects.update_or_create(
                    pk=build_purchase_id(normalized_payment_id, product_id),
                    defaults={
                        "email": normalized_email,
                        "user_id": normalized_user_id,
                        "product_id": product_id,
                        "quantity": quantity,
                        "payment_id": normalized_payment_id,
                        "order_id": normalized_order_id,
                        "payment_method": payment_method,
                        "order_currency": currency,
                        "order_amount": amount,
                        "coupon_code": applied_coupon.code if applied_coupon else None,
                        "coupon_id": applied_coupon.id if applied_coupon else None,
                        "coupon_discount_amount": applied_coupon.discount_amount if applied_coupon else ZERO,
                    },
                )

        token = cls.token_store_class().issue(files)

        coupon_usage_tracked = False
        if applied_coupon is not None and applied_coupon.id and applied_coupon.code:
            usage = CouponService.consume_coupon_usage(
                coupon_id=applied_coupon.id,
                code=applied_coupon.code,
                payment_id=normalized_payment_id,
                email=normalized_email,
                user_id=normalized_user_id,
                order_id=normalized_order_id,
                order_amount=amount,
                discount_amount=applied_coupon.discount_amount,
                currency=currency,
                item_quantity_used=1,
            )
            coupon_usage_tracked = usage.ok
            if not usage.ok and not usage.skipped:
                logger.warning(
                    f"⚠️ [Fulfillment] Coupon usage tracking failed for {normalized_payment_id}: {usage.reason}"
                )

        product_ids = list(quantities)
        logger.info(f"📦 [Fulfillment] {normalized_payment_id}: {len(product_ids)} product(s) for {normalized_email}")
        return Ok(
            FulfillmentResult(
                token=token,
                payment_id=normalized_payment_id,
                primary_product_id=product_ids[0],
                product_ids=product_ids,
                coupon_usage_tracked=coupon_usage_tracked,
            )
        )

    @classmethod
    def complete_free_order(  # noqa: PLR0913
        cls,
        email: Any,
        items: Any,
        request: HttpRequest | None = None,
        coupon_code: Any = None,
        user_id: Any = None,
        currency_override: str | None = None,
    ) -> Result[FulfillmentResult, ServiceError]:
        """
        Fulfill a cart whose total is zero after the coupon, skipping the payment gateway.
        The cart and coupon are re-priced server side.
        """
        normalized_email = normalize_coupon_email(email)
        if not normalized_email:
            return service_error(400, "Email is required", "email_required")
        normalized_user_id = str(user_id or "").strip() or None

        pricing_result = compute_checkout_pricing(items, request=request, currency_override=currency_override)
        if pricing_result.is_err():
            return pricing_result
        pricing = pricing_result.unwrap()

        applied_coupon: CouponSummary | None = None
        final_amount: Decimal = pricing.total_amount
        code = normalize_coupon_code(coupon_code)
        if code:
            coupon_result = CouponService.validate_coupon_for_checkout(
                code,
                pricing.total_amount,
                pricing.order_currency,
                email=normalized_email,
                user_id=normalized_user_id,
                pricing=pricing,
                allow_zero_final=True,
            )
            if coupon_result.is_err():
                return coupon_result
            applied_coupon = coupon_result.unwrap().summary
            final_amount = applied_coupon.final_amount

        if final_amount > 0:
            return service_error(400, "This order is not free. Use regular payment checkout.", "order_not_free")

        free_order_id = build_free_order_id()
        return cls.fulfill_purchase_order(
            email=normalized_email,
            items=pricing.valid_items,
            order_currency=pricing.order_currency,
            order_amount=final_amount,
            payment_id=free_order_id,
            applied_coupon=applied_coupon,
            order_id=free_order_id,
            user_id=normalized_user_id,
            payment_method="free_coupon",
        )
