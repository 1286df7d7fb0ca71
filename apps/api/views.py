"""
API Views for the Worksheet Store
DRF views for pricing context, coupon checkout, free orders and coupon admin.
Prices are always recomputed server side from the cart; client totals are never trusted.
"""

import logging
from typing import Any

from django_ratelimit.decorators import ratelimit
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.throttling import AnonRateThrottle

from apps.common.types import ServiceError
from apps.coupons.services import CouponAdminService, CouponService
from apps.orders.services import PurchaseFulfillmentService
from apps.pricing.checkout import compute_checkout_pricing
from apps.pricing.services import get_pricing_context, get_supported_currencies

from .admin_auth import AdminUser, require_admin_authentication
from .serializers import (
    AdminCouponCreateSerializer,
    AdminCouponListQuerySerializer,
    AdminCouponStatusSerializer,
    CartInputSerializer,
    CouponApplyInputSerializer,
    FreeOrderInputSerializer,
)

logger = logging.getLogger(__name__)


# 🔒 SECURITY: Throttle classes for store endpoints
class PricingContextThrottle(AnonRateThrottle):
    scope = "pricing_context"


class CouponApplyThrottle(AnonRateThrottle):
    """Coupon code guessing protection"""

    scope = "coupon_apply"


class CouponListThrottle(AnonRateThrottle):
    scope = "coupon_list"


class FreeOrderThrottle(AnonRateThrottle):
    scope = "free_order"


class AdminThrottle(AnonRateThrottle):
    scope = "store_admin"


def _error_response(error: ServiceError) -> Response:
    return Response(error.as_dict(), status=error.status)


def _invalid_input(serializer: Any) -> Response:
    return Response({"error": "Invalid input", "details": serializer.errors}, status=status.HTTP_400_BAD_REQUEST)


def _rate_limited() -> Response:
    return Response({"error": "Too many requests. Please try again later."}, status=status.HTTP_429_TOO_MANY_REQUESTS)


# ===============================================================================
# PRICING
# ===============================================================================


@api_view(["GET"])
@permission_classes([AllowAny])
@throttle_classes([PricingContextThrottle])
def pricing_context(request: Request) -> Response:
    """Detected country and the currency the visitor will be charged in."""
    try:
        context = get_pricing_context(request)
    except Exception as e:
        logger.exception(f"🔥 [Pricing API] Context detection failed: {e}")
        return Response({"error": "Failed to detect pricing context"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(
        {
            "country_code": context.country_code,
            "auto_currency": context.auto_currency,
            "currency": context.currency,
            "source": context.source,
            "supported_currencies": list(get_supported_currencies()),
        }
    )


# ===============================================================================
# CHECKOUT COUPONS
# ===============================================================================


@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([CouponApplyThrottle])
@ratelimit(key="ip", rate="30/m", method="POST", block=False)
def apply_coupon(request: Request) -> Response:
    """
    Price the cart and check a coupon against it.
    Fully free results are allowed here; the client then uses the free-order endpoint.
    """
    if getattr(request, "limited", False):
        return _rate_limited()

    serializer = CouponApplyInputSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)
    data = serializer.validated_data

    try:
        pricing_result = compute_checkout_pricing(
            data["items"], request=request, currency_override=data.get("currency_override")
        )
        if pricing_result.is_err():
            return _error_response(pricing_result.unwrap_err())
        pricing = pricing_result.unwrap()

        coupon_result = CouponService.validate_coupon_for_checkout(
            data["code"],
            pricing.total_amount,
            pricing.order_currency,
            email=data.get("email"),
            user_id=data.get("user_id"),
            pricing=pricing,
            allow_zero_final=True,
        )
    except Exception as e:
        logger.exception(f"🔥 [Coupons API] Coupon apply failed: {e}")
        return Response({"error": "Failed to apply coupon"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if coupon_result.is_err():
        return _error_response(coupon_result.unwrap_err())

    summary = coupon_result.unwrap().summary
    return Response(
        {
            "ok": True,
            "coupon": summary.as_dict(),
            "pricing": {
                "order_amount": pricing.total_amount,
                "final_amount": summary.final_amount,
                "currency": pricing.order_currency,
            },
        }
    )


@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([CouponListThrottle])
def available_coupons(request: Request) -> Response:
    """Coupons the shopper can pick for the current cart."""
    serializer = CartInputSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)
    data = serializer.validated_data

    try:
        pricing_result = compute_checkout_pricing(
            data["items"], request=request, currency_override=data.get("currency_override")
        )
        if pricing_result.is_err():
            return _error_response(pricing_result.unwrap_err())
        pricing = pricing_result.unwrap()

        coupons = CouponService.list_checkout_visible_coupons(
            pricing.total_amount,
            pricing.order_currency,
            email=data.get("email"),
            user_id=data.get("user_id"),
            pricing=pricing,
        )
    except Exception as e:
        logger.exception(f"🔥 [Coupons API] Available coupons failed: {e}")
        return Response({"error": "Failed to load available coupons"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(
        {
            "ok": True,
            "coupons": coupons,
            "pricing": {"order_amount": pricing.total_amount, "currency": pricing.order_currency},
        }
    )


@api_view(["POST"])
@permission_classes([AllowAny])
@throttle_classes([FreeOrderThrottle])
@ratelimit(key="ip", rate="10/m", method="POST", block=False)
def complete_free_order(request: Request) -> Response:
    """Fulfill a cart whose coupon brings the total to zero."""
    if getattr(request, "limited", False):
        return _rate_limited()

    serializer = FreeOrderInputSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)
    data = serializer.validated_data

    try:
        result = PurchaseFulfillmentService.complete_free_order(
            email=data.get("email"),
            items=data["items"],
            request=request,
            coupon_code=data.get("coupon_code"),
            user_id=data.get("user_id"),
            currency_override=data.get("currency_override"),
        )
    except Exception as e:
        logger.exception(f"🔥 [Checkout API] Free checkout failed: {e}")
        return Response({"error": "Failed to complete free checkout"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if result.is_err():
        return _error_response(result.unwrap_err())

    return Response({"success": True, "free_order": True, **result.unwrap().as_dict()})


# ===============================================================================
# COUPON ADMIN
# ===============================================================================


@api_view(["GET", "POST", "PATCH"])
@permission_classes([AllowAny])
@throttle_classes([AdminThrottle])
@require_admin_authentication
def admin_coupons(request: Request, admin: AdminUser) -> Response:
    """
    GET: list coupons with filters and stats.
    POST: create (or recreate) a coupon.
    PATCH: disable / enable / enable_new_campaign by ``coupon_id``.
    """
    if request.method == "GET":
        query = AdminCouponListQuerySerializer(data=request.query_params)
        params = query.validated_data if query.is_valid() else {}
        try:
            listing = CouponAdminService.list_coupons(
                status=params.get("status", "all"),
                scope=params.get("scope", "all"),
                search=params.get("search", ""),
                limit=params.get("limit", ""),
            )
        except Exception as e:
            logger.exception(f"🔥 [Admin API] Coupon list failed: {e}")
            return Response({"error": "Failed to load coupons"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        return Response({"ok": True, "coupons": listing.coupons, "stats": listing.stats})

    if request.method == "POST":
        serializer = AdminCouponCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return _invalid_input(serializer)
        try:
            result = CouponAdminService.create_coupon(dict(serializer.validated_data), admin.email)
        except Exception as e:
            logger.exception(f"🔥 [Admin API] Coupon creation failed: {e}")
            return Response({"error": "Failed to create coupon"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        if result.is_err():
            return _error_response(result.unwrap_err())
        created = result.unwrap()
        return Response(
            {"ok": True, "coupon": created.coupon.as_dict(), "recreated": created.recreated},
            status=status.HTTP_201_CREATED,
        )

    serializer = AdminCouponStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)
    coupon_id = serializer.validated_data.get("coupon_id", "").strip()
    if not coupon_id:
        return Response({"error": "couponId is required"}, status=status.HTTP_400_BAD_REQUEST)
    return _set_coupon_status(coupon_id, serializer.validated_data.get("action"), admin)


@api_view(["GET", "PATCH"])
@permission_classes([AllowAny])
@throttle_classes([AdminThrottle])
@require_admin_authentication
def admin_coupon_detail(request: Request, admin: AdminUser, coupon_id: str) -> Response:
    """GET: coupon, usage history and totals. PATCH: enable / disable."""
    if request.method == "GET":
        try:
            result = CouponAdminService.get_coupon_detail(coupon_id, request.query_params.get("limit"))
        except Exception as e:
            logger.exception(f"🔥 [Admin API] Coupon detail failed: {e}")
            return Response({"error": "Failed to load coupon"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
        if result.is_err():
            return _error_response(result.unwrap_err())
        return Response({"ok": True, **result.unwrap()})

    serializer = AdminCouponStatusSerializer(data=request.data)
    if not serializer.is_valid():
        return _invalid_input(serializer)
    return _set_coupon_status(coupon_id, serializer.validated_data.get("action"), admin)


def _set_coupon_status(coupon_id: str, action: str | None, admin: AdminUser) -> Response:
    try:
        result = CouponAdminService.set_coupon_status(coupon_id, action, admin.email)
    except Exception as e:
        logger.exception(f"🔥 [Admin API] Coupon status update failed: {e}")
        return Response({"error": "Failed to update coupon status"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
    if result.is_err():
        return _error_response(result.unwrap_err())
    return Response({"ok": True, "coupon": result.unwrap().as_dict()})
