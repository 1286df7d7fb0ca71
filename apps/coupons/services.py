"""
Coupon services for the Worksheet Store.
Business logic for coupon eligibility, discount summaries, atomic usage recording
and admin management.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any, assert_never

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import F, Q
from django.utils import timezone

from apps.common.constants import (
    ADMIN_COUPON_LIST_DEFAULT,
    ADMIN_COUPON_LIST_MAX,
    ADMIN_COUPON_LIST_MIN,
    BASE_CURRENCY,
    COUPON_DESCRIPTION_MAX_LENGTH,
    COUPON_USAGE_LIST_DEFAULT,
    COUPON_USAGE_LIST_MAX,
    COUPON_USAGE_LIST_MIN,
    MAX_SCANNED_COUPONS,
    MAX_VISIBLE_COUPONS,
)
from apps.common.logging import StructuredLogAdapter
from apps.common.types import Ok, Result, ServiceError, service_error
from apps.pricing.services import ZERO, to_decimal

from .codes import (
    compute_coupon_discount,
    generate_coupon_code,
    is_valid_coupon_code,
    normalize_boolean,
    normalize_coupon_code,
    normalize_coupon_email,
    normalize_discount_type,
    normalize_discount_value,
    normalize_visibility_scope,
    parse_date_input,
    parse_min_order_amount,
    parse_optional_limit,
    resolve_per_user_mode,
    resolve_total_usage_limit,
)
from .models import (
    Coupon,
    CouponUsage,
    DiscountType,
    PerUserMode,
    RuntimeStatus,
    VisibilityScope,
    build_usage_id,
)

if TYPE_CHECKING:
    from apps.pricing.checkout import CheckoutPricing

logger = logging.getLogger(__name__)

AUTO_CODE_PREFIX = "DS"
USAGE_STATUS_APPLIED = "applied"

STATUS_MESSAGES: dict[RuntimeStatus, str] = {
    RuntimeStatus.DISABLED: "This coupon is disabled",
    RuntimeStatus.EXPIRED: "This coupon has expired",
    RuntimeStatus.SCHEDULED: "This coupon is not active yet",
}

ADMIN_ACTIONS = ("disable", "enable", "enable_new_campaign")
STATUS_FILTERS = ("all", "active", "disabled", "expired", "scheduled")
SCOPE_FILTERS = ("all", "public", "user_specific", "hidden")


# ===============================================================================
# Data Classes for Results
# ===============================================================================


@dataclass(frozen=True)
class UsageStats:
    """Per-user usage of one coupon since its last usage reset"""

    usage_count: int = 0
    order_count: int = 0
    item_count: int = 0


@dataclass(frozen=True)
class CouponSummary:
    """What checkout needs to know about an applicable coupon"""

    id: str
    code: str
    discount_type: str
    discount_value: Decimal
    free_item_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal
    order_amount: Decimal
    min_order_amount: Decimal | None
    first_purchase_only: bool
    per_user_mode: str | None
    discount_scope: str
    currency: str

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "code": self.code,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "free_item_amount": self.free_item_amount,
            "discount_amount": self.discount_amount,
            "final_amount": self.final_amount,
            "order_amount": self.order_amount,
            "min_order_amount": self.min_order_amount,
            "first_purchase_only": self.first_purchase_only,
            "per_user_mode": self.per_user_mode,
            "discount_scope": self.discount_scope,
            "currency": self.currency,
        }


@dataclass(frozen=True)
class CouponValidation:
    coupon: Coupon
    summary: CouponSummary


@dataclass(frozen=True)
class ConsumeResult:
    """
    Outcome of recording a coupon usage.

    Attributes:
        ok: Usage is recorded (now or previously).
        already_applied: A usage for this payment already existed.
        skipped: Required identifiers were missing; nothing was attempted.
        reason: Machine-readable failure reason.
            Codes: missing_fields, coupon_not_found, coupon_code_mismatch,
            coupon_disabled, coupon_expired, coupon_scheduled, email_mismatch,
            total_limit_reached, transaction_failed
    """

    ok: bool
    already_applied: bool = False
    skipped: bool = False
    reason: str = ""


@dataclass(frozen=True)
class CreatedCoupon:
    coupon: Coupon
    recreated: bool


@dataclass(frozen=True)
class CouponListing:
    coupons: list[dict[str, Any]]
    stats: dict[str, int]


# ===============================================================================
# Helpers
# ===============================================================================


def get_single_item_amount(pricing: CheckoutPricing | None) -> Decimal:
    """Highest launch-discounted unit price in the cart, zero without a cart."""
    if pricing is None:
        return ZERO
    return pricing.highest_unit_amount


def _normalize_currency(currency: Any) -> str:
    return str(currency or BASE_CURRENCY).strip().upper() or BASE_CURRENCY


def _coupon_limit(name: str, default: int) -> int:
    return int((getattr(settings, "COUPONS", {}) or {}).get(name, default))


def _bounded_limit(value: Any, default: int, minimum: int, maximum: int) -> int:
    try:
        parsed = int(str(value if value is not None else default).strip())
    except ValueError:
        return default
    return min(max(parsed, minimum), maximum)


def _discount_inputs(coupon: Coupon, pricing: CheckoutPricing | None) -> tuple[Decimal, Decimal | None]:
    """free_item amount and scoped base for a coupon against a cart."""
    free_item_amount = get_single_item_amount(pricing) if coupon.discount_type == DiscountType.FREE_ITEM else ZERO
    discount_base = get_single_item_amount(pricing) if coupon.is_single_item_scope else None
    return free_item_amount, discount_base


def _per_user_limit_error(coupon: Coupon, stats: UsageStats) -> str | None:
    limit = coupon.per_user_limit
    if limit is None:
        return None

    mode = coupon.per_user_mode_enum
    match mode:
        case PerUserMode.ONE_ITEM:
            if stats.item_count >= limit:
                return "Per-user item limit reached for this coupon"
        case PerUserMode.ONE_ORDER | PerUserMode.MULTIPLE:
            if stats.order_count >= limit:
                return "Per-user order limit reached for this coupon"
        case PerUserMode.UNLIMITED:
            if stats.usage_count >= limit:
                return "Per-user usage limit reached for this coupon"
        case _:
            assert_never(mode)
    return None


# ===============================================================================
# Coupon Service
# ===============================================================================


class CouponService:
    """
    Service for checkout-facing coupon logic.
    Validation never raises: failures come back as ``Err(ServiceError)``.
    """

    @staticmethod
    def get_coupon_by_code(code: Any) -> Coupon | None:
        """Active row first; otherwise the most recently touched inactive one."""
        normalized = normalize_coupon_code(code)
        if not normalized:
            return None
        return Coupon.objects.filter(code=normalized).order_by("-is_active", "-updated_at").first()

    @staticmethod
    def get_coupon_by_id(coupon_id: Any) -> Coupon | None:
        normalized = str(coupon_id or "").strip()
        if not normalized:
            return None
        try:
            return Coupon.objects.filter(pk=normalized).first()
        except ValidationError:
            # Not a UUID
            return None

    @staticmethod
    def get_user_usage_stats(coupon: Coupon, email: Any) -> UsageStats:
        """
        Count applied usages by ``email`` since ``coupon.usage_reset_at``.
        Orders are distinct order ids (payment id when no order id was recorded).
        """
        normalized_email = normalize_coupon_email(email)
        if not normalized_email:
            return UsageStats()

        usages = CouponUsage.objects.filter(coupon=coupon, email=normalized_email, status=USAGE_STATUS_APPLIED)
        if coupon.usage_reset_at:
            usages = usages.filter(used_at__gte=coupon.usage_reset_at)

        usage_count = 0
        item_count = 0
        order_keys: set[str] = set()
        for order_id, payment_id, item_quantity in usages.values_list("order_id", "payment_id", "item_quantity_used"):
            usage_count += 1
            item_count += max(0, item_quantity if item_quantity is not None else 1)
            order_key = str(order_id or payment_id or "").strip()
            if order_key:
                order_keys.add(order_key)

        return UsageStats(usage_count=usage_count, order_count=len(order_keys), item_count=item_count)

    @staticmethod
    def has_prior_purchases(email: str | None, user_id: str | None) -> bool:
        from apps.orders.models import Purchase  # noqa: PLC0415

        filters = Q()
        if email:
            filters |= Q(email=email)
        if user_id:
            filters |= Q(user_id=user_id)
        if not filters:
            return False
        return Purchase.objects.filter(filters).exists()

    @classmethod
    def validate_coupon_for_checkout(  # noqa: PLR0911, PLR0913
        cls,
        code: Any,
        order_amount: Any,
        currency: str | None,
        email: Any = None,
        user_id: Any = None,
        pricing: CheckoutPricing | None = None,
        allow_zero_final: bool = False,
    ) -> Result[CouponValidation, ServiceError]:
        """
        Check a coupon against a priced cart.

        Checks run in a fixed order and the first failure is returned: existence,
        runtime status, email scope, total usage, minimum order, per-user limit,
        first purchase, non-zero discount, non-free final amount.
        """
        coupon = cls.get_coupon_by_code(code)
        if coupon is None:
            return service_error(404, "Coupon not found", "coupon_not_found")

        status = coupon.runtime_status()
        if status is not RuntimeStatus.ACTIVE:
            return service_error(400, STATUS_MESSAGES.get(status, "Coupon is not active"), f"coupon_{status}")

        normalized_email = normalize_coupon_email(email)
        if not coupon.permits_email(normalized_email):
            return service_error(403, "This coupon is restricted to another email", "email_mismatch")

        if coupon.is_exhausted:
            return service_error(400, "Coupon usage limit reached", "total_limit_reached")

        amount = to_decimal(order_amount)
        if coupon.min_order_amount is not None and amount < coupon.min_order_amount:
            return service_error(
                400, f"Minimum order amount for this coupon is {coupon.min_order_amount}", "min_order_not_met"
            )

        if coupon.per_user_limit is not None:
            if not normalized_email:
                return service_error(400, "Email required for this coupon", "email_required")
            limit_error = _per_user_limit_error(coupon, cls.get_user_usage_stats(coupon, normalized_email))
            if limit_error:
                return service_error(400, limit_error, "per_user_limit_reached")

        normalized_user_id = str(user_id or "").strip() or None
        if coupon.first_purchase_only:
            if not normalized_email and not normalized_user_id:
                return service_error(
                    400, "Login or email is required for first-purchase coupon", "identity_required"
                )
            if cls.has_prior_purchases(normalized_email, normalized_user_id):
                return service_error(400, "This coupon is valid only for first purchase", "not_first_purchase")

        free_item_amount, discount_base = _discount_inputs(coupon, pricing)
        discount = compute_coupon_discount(
            coupon.discount_type, coupon.discount_value, amount, currency, free_item_amount, discount_base
        )
        if discount.discount_amount <= 0:
            return service_error(400, "Coupon discount is not applicable", "discount_not_applicable")
        if not allow_zero_final and discount.final_amount <= 0:
            return service_error(
                400,
                "This coupon makes the order fully free. Free checkout is not enabled yet.",
                "zero_final_amount",
            )

        summary = CouponSummary(
            id=str(coupon.id),
            code=coupon.code,
            discount_type=coupon.discount_type,
            discount_value=coupon.discount_value,
            free_item_amount=free_item_amount,
            discount_amount=discount.discount_amount,
            final_amount=discount.final_amount,
            order_amount=amount,
            min_order_amount=coupon.min_order_amount,
            first_purchase_only=coupon.first_purchase_only,
            per_user_mode=coupon.per_user_mode or None,
            discount_scope="single_highest_item" if coupon.is_single_item_scope else "order_total",
            currency=_normalize_currency(currency),
        )
        logger.debug(f"🎟️ [Coupons] {coupon.code} valid: -{discount.discount_amount} {summary.currency}")
        return Ok(CouponValidation(coupon=coupon, summary=summary))

    @classmethod
    def list_checkout_visible_coupons(
        cls,
        order_amount: Any,
        currency: str | None,
        email: Any = None,
        user_id: Any = None,
        pricing: CheckoutPricing | None = None,
    ) -> list[dict[str, Any]]:
        """
        Coupons a shopper may pick at checkout, best discount first.
        Hidden coupons never appear; user_specific ones only for their own email.
        """
        normalized_email = normalize_coupon_email(email)
        normalized_user_id = str(user_id or "").strip() or None
        amount = to_decimal(order_amount)
        normalized_currency = _normalize_currency(currency)

        scope = Q(visibility_scope=VisibilityScope.PUBLIC)
        if normalized_email:
            scope |= Q(visibility_scope=VisibilityScope.USER_SPECIFIC, user_email__iexact=normalized_email)

        now = timezone.now()
        candidates = [
            coupon
            for coupon in Coupon.objects.filter(scope, is_active=True).order_by("-created_at")
            if coupon.runtime_status(now) is RuntimeStatus.ACTIVE
        ][: _coupon_limit("MAX_SCANNED_COUPONS", MAX_SCANNED_COUPONS)]

        results: list[dict[str, Any]] = []
        prior_purchase: bool | None = None
        for coupon in candidates:
            if coupon.is_exhausted:
                continue
            if coupon.min_order_amount is not None and amount < coupon.min_order_amount:
                continue

            if coupon.per_user_limit is not None:
                if not normalized_email:
                    continue
                if _per_user_limit_error(coupon, cls.get_user_usage_stats(coupon, normalized_email)):
                    continue

            if coupon.first_purchase_only:
                if not normalized_email and not normalized_user_id:
                    continue
                if prior_purchase is None:
                    prior_purchase = cls.has_prior_purchases(normalized_email, normalized_user_id)
                if prior_purchase:
                    continue

            free_item_amount, discount_base = _discount_inputs(coupon, pricing)
            discount = compute_coupon_discount(
                coupon.discount_type, coupon.discount_value, amount, normalized_currency, free_item_amount, discount_base
            )
            if discount.discount_amount <= 0:
                continue

            results.append(
                {
                    "id": str(coupon.id),
                    "code": coupon.code,
                    "description": coupon.description,
                    "discount_type": coupon.discount_type,
                    "discount_value": coupon.discount_value,
                    "free_item_amount": free_item_amount,
                    "discount_amount": discount.discount_amount,
                    "final_amount": discount.final_amount,
                    "currency": normalized_currency,
                    "expires_at": coupon.expiry_date,
                    "per_user_limit": coupon.per_user_limit,
                    "total_usage_limit": coupon.total_usage_limit,
                    "used_count": coupon.used_count,
                    "per_user_mode": coupon.per_user_mode or None,
                    "min_order_amount": coupon.min_order_amount,
                    "first_purchase_only": coupon.first_purchase_only,
                    "visibility_scope": coupon.visibility_scope,
                    "user_email": coupon.user_email,
                    "discount_scope": "single_highest_item" if coupon.is_single_item_scope else "order_total",
                }
            )

        results.sort(key=lambda row: row["discount_amount"], reverse=True)
        return results[: _coupon_limit("MAX_VISIBLE_COUPONS", MAX_VISIBLE_COUPONS)]

    @staticmethod
    def consume_coupon_usage(  # noqa: PLR0911, PLR0913
        coupon_id: Any,
        code: Any,
        payment_id: Any,
        email: Any = None,
        user_id: Any = None,
        order_id: Any = None,
        order_amount: Any = 0,
        discount_amount: Any = 0,
        currency: str | None = None,
        item_quantity_used: int = 1,
    ) -> ConsumeResult:
        """
        Record that a confirmed payment used a coupon, exactly once.

        The coupon row is locked (SELECT FOR UPDATE) while status, email scope and
        the total usage limit are re-checked, so concurrent confirmations cannot
        push ``used_count`` past the limit. A second call for the same payment is
        a successful no-op.
        """
        normalized_coupon_id = str(coupon_id or "").strip()
        normalized_code = normalize_coupon_code(code)
        normalized_payment_id = str(payment_id or "").strip()
        if not normalized_coupon_id or not normalized_code or not normalized_payment_id:
            return ConsumeResult(ok=False, skipped=True, reason="missing_fields")

        # Canonical form so one payment maps to one usage key
        try:
            normalized_coupon_id = str(uuid.UUID(normalized_coupon_id))
        except ValueError:
            return ConsumeResult(ok=False, reason="coupon_not_found")

        usage_id = build_usage_id(normalized_payment_id, normalized_coupon_id)
        normalized_email = normalize_coupon_email(email)
        log = StructuredLogAdapter(logger, {"coupon_id": normalized_coupon_id, "payment_id": normalized_payment_id})

        try:
            with transaction.atomic():
                if CouponUsage.objects.filter(pk=usage_id).exists():
                    return ConsumeResult(ok=True, already_applied=True)

                try:
                    coupon = Coupon.objects.select_for_update().get(pk=normalized_coupon_id)
                except (Coupon.DoesNotExist, ValidationError):
                    return ConsumeResult(ok=False, reason="coupon_not_found")

                # Another confirmation may have committed while we waited for the lock
                if CouponUsage.objects.filter(pk=usage_id).exists():
                    return ConsumeResult(ok=True, already_applied=True)

                if coupon.code != normalized_code:
                    return ConsumeResult(ok=False, reason="coupon_code_mismatch")

                status = coupon.runtime_status()
                if status is not RuntimeStatus.ACTIVE:
                    return ConsumeResult(ok=False, reason=f"coupon_{status}")

                if not coupon.permits_email(normalized_email):
                    return ConsumeResult(ok=False, reason="email_mismatch")

                if coupon.is_exhausted:
                    return ConsumeResult(ok=False, reason="total_limit_reached")

                now = timezone.now()
                Coupon.objects.filter(pk=coupon.pk).update(used_count=F("used_count") + 1, updated_at=now)
                CouponUsage.objects.create(
                    id=usage_id,
                    coupon=coupon,
                    code=coupon.code,
                    email=normalized_email,
                    user_id=str(user_id or "").strip() or None,
                    payment_id=normalized_payment_id,
                    order_id=str(order_id or "").strip() or None,
                    order_amount=to_decimal(order_amount),
                    discount_amount=to_decimal(discount_amount),
                    currency=_normalize_currency(currency),
                    item_quantity_used=max(1, int(item_quantity_used or 1)),
                    status=USAGE_STATUS_APPLIED,
                    used_at=now,
                )
        except IntegrityError:
            if CouponUsage.objects.filter(pk=usage_id).exists():
                return ConsumeResult(ok=True, already_applied=True)
            log.exception(f"🔥 [Coupons] Usage write rejected for {normalized_code}")
            return ConsumeResult(ok=False, reason="transaction_failed")
        except DatabaseError:
            log.exception(f"🔥 [Coupons] Usage transaction failed for {normalized_code}")
            return ConsumeResult(ok=False, reason="transaction_failed")

        log.info(f"✅ [Coupons] Recorded usage of {normalized_code}")
        return ConsumeResult(ok=True)

    @staticmethod
    def list_coupon_usages(coupon_id: Any, limit: Any = COUPON_USAGE_LIST_DEFAULT) -> list[dict[str, Any]]:
        """Most recent usages first; ``limit`` is clamped to 20..1200."""
        normalized = str(coupon_id or "").strip()
        if not normalized:
            return []
        bounded = _bounded_limit(limit, COUPON_USAGE_LIST_DEFAULT, COUPON_USAGE_LIST_MIN, COUPON_USAGE_LIST_MAX)
        try:
            usages = list(CouponUsage.objects.filter(coupon_id=normalized).order_by("-used_at")[:bounded])
        except ValidationError:
            return []
        return [usage.as_dict() for usage in usages]


# ===============================================================================
# Coupon Admin Service
# ===============================================================================


class CouponAdminService:
    """Coupon management for store admins"""

    @staticmethod
    def sanitize_payload(payload: dict[str, Any]) -> dict[str, Any]:
        """Normalize raw admin input into model field values."""
        requested_code = normalize_coupon_code(payload.get("code"))
        auto_generate = normalize_boolean(payload.get("auto_generate"), False)
        code = requested_code or (generate_coupon_code(payload.get("prefix") or AUTO_CODE_PREFIX) if auto_generate else "")

        discount_type = normalize_discount_type(payload.get("discount_type"))
        per_user_mode, per_user_limit = resolve_per_user_mode(
            payload.get("per_user_mode"), parse_optional_limit(payload.get("per_user_limit"))
        )
        visibility_scope = normalize_visibility_scope(payload.get("visibility_scope"), VisibilityScope.HIDDEN)

        return {
            "code": code,
            "description": str(payload.get("description") or "").strip()[:COUPON_DESCRIPTION_MAX_LENGTH],
            "discount_type": discount_type.value,
            "discount_value": normalize_discount_value(discount_type, payload.get("discount_value")),
            "is_active": normalize_boolean(payload.get("is_active"), True),
            "total_usage_limit": resolve_total_usage_limit(
                payload.get("total_usage_mode"), payload.get("total_usage_limit")
            ),
            "per_user_limit": per_user_limit,
            "per_user_mode": per_user_mode.value,
            "min_order_amount": parse_min_order_amount(payload.get("min_order_amount")),
            "first_purchase_only": normalize_boolean(payload.get("first_purchase_only"), False),
            "visibility_scope": visibility_scope.value,
            "user_email": (
                normalize_coupon_email(payload.get("user_email"))
                if visibility_scope is VisibilityScope.USER_SPECIFIC
                else None
            ),
            "start_date": parse_date_input(payload.get("start_date")),
            "expiry_date": parse_date_input(payload.get("expiry_date")),
        }

    @classmethod
    def create_coupon(cls, payload: dict[str, Any], admin_email: str | None) -> Result[CreatedCoupon, ServiceError]:
        """
        Create a coupon, or recreate the most recent inactive coupon with the same code.
        An active coupon with the same code is a conflict.
        """
        fields = cls.sanitize_payload(payload)

        if not is_valid_coupon_code(fields["code"]):
            return service_error(400, "Coupon code must be 4-24 chars (A-Z, 0-9, -)", "invalid_code")
        if fields["discount_type"] != DiscountType.FREE_ITEM and fields["discount_value"] <= 0:
            return service_error(400, "Discount value must be greater than zero", "invalid_discount_value")
        if fields["visibility_scope"] == VisibilityScope.USER_SPECIFIC and not fields["user_email"]:
            return service_error(400, "User email is required for user-specific coupon", "user_email_required")
        if fields["start_date"] and fields["expiry_date"] and fields["start_date"] > fields["expiry_date"]:
            return service_error(400, "Start date must be before expiry date", "invalid_schedule")

        now = timezone.now()
        fields.update(
            used_count=0,
            usage_reset_at=None,
            usage_reset_by=None,
            usage_reset_reason=None,
            created_at=now,
            created_by=normalize_coupon_email(admin_email),
            disabled_at=None,
            disabled_by=None,
        )

        try:
            with transaction.atomic():
                duplicates = list(Coupon.objects.select_for_update().filter(code=fields["code"]))
                if any(row.is_active for row in duplicates):
                    return service_error(
                        409,
                        "Coupon code already exists and is active. Disable it first to recreate.",
                        "duplicate_active_code",
                    )

                target = max(duplicates, key=lambda row: row.updated_at or row.created_at, default=None)
                if target is not None:
                    for name, value in fields.items():
                        setattr(target, name, value)
                    target.save()
                    coupon, recreated = target, True
                else:
                    coupon, recreated = Coupon.objects.create(**fields), False
        except IntegrityError:
            return service_error(
                409, "Coupon code already exists and is active. Disable it first to recreate.", "duplicate_active_code"
            )

        logger.info(f"🎟️ [Coupons] {'Recreated' if recreated else 'Created'} coupon {coupon.code} by {admin_email}")
        return Ok(CreatedCoupon(coupon=coupon, recreated=recreated))

    @staticmethod
    def list_coupons(
        status: Any = "all", scope: Any = "all", search: Any = "", limit: Any = ADMIN_COUPON_LIST_DEFAULT
    ) -> CouponListing:
        """Newest coupons first, filtered by runtime status, scope and free-text search."""
        status_filter = str(status or "all").strip().lower()
        status_filter = status_filter if status_filter in STATUS_FILTERS else "all"
        scope_filter = str(scope or "all").strip().lower()
        scope_filter = scope_filter if scope_filter in SCOPE_FILTERS else "all"
        query = str(search or "").strip().lower()
        bounded = _bounded_limit(limit, ADMIN_COUPON_LIST_DEFAULT, ADMIN_COUPON_LIST_MIN, ADMIN_COUPON_LIST_MAX)

        now = timezone.now()
        rows: list[dict[str, Any]] = []
        stats = dict.fromkeys(
            ("total", "active", "disabled", "expired", "scheduled", "public", "user_specific", "hidden"), 0
        )

        for coupon in Coupon.objects.order_by("-created_at")[:bounded]:
            runtime_status = coupon.runtime_status(now)
            if status_filter != "all" and runtime_status != status_filter:
                continue
            if scope_filter != "all" and coupon.visibility_scope != scope_filter:
                continue
            if query:
                haystack = " ".join(
                    str(value or "").lower()
                    for value in (
                        coupon.code,
                        coupon.description,
                        coupon.discount_type,
                        coupon.visibility_scope,
                        coupon.user_email,
                        runtime_status,
                    )
                )
                if query not in haystack:
                    continue

            rows.append(coupon.as_dict())
            stats["total"] += 1
            stats[runtime_status.value] += 1
            stats[coupon.visibility_scope if coupon.visibility_scope in stats else "public"] += 1

        return CouponListing(coupons=rows, stats=stats)

    @staticmethod
    def get_coupon_detail(coupon_id: Any, limit: Any = None) -> Result[dict[str, Any], ServiceError]:
        coupon = CouponService.get_coupon_by_id(coupon_id)
        if coupon is None:
            return service_error(404, "Coupon not found", "coupon_not_found")

        usages = CouponService.list_coupon_usages(coupon.id, limit if limit is not None else COUPON_USAGE_LIST_DEFAULT)
        return Ok(
            {
                "coupon": coupon.as_dict(),
                "usages": usages,
                "summary": {
                    "total_usages": len(usages),
                    "total_discount_given": sum((to_decimal(row["discount_amount"]) for row in usages), ZERO),
                },
            }
        )

    @staticmethod
    def set_coupon_status(coupon_id: Any, action: Any, admin_email: str | None) -> Result[Coupon, ServiceError]:
        """
        ``disable``, ``enable`` or ``enable_new_campaign``.
        A new campaign re-enables the coupon and restarts both the total and per-user counters.
        """
        normalized_action = str(action or "disable").strip().lower()
        if normalized_action not in ADMIN_ACTIONS:
            return service_error(400, "Invalid action", "invalid_action")

        coupon = CouponService.get_coupon_by_id(coupon_id)
        if coupon is None:
            return service_error(404, "Coupon not found", "coupon_not_found")

        now = timezone.now()
        admin = normalize_coupon_email(admin_email)
        if normalized_action == "enable_new_campaign":
            coupon.is_active = True
            coupon.used_count = 0
            coupon.disabled_at = None
            coupon.disabled_by = None
            coupon.usage_reset_at = now
            coupon.usage_reset_by = admin
            coupon.usage_reset_reason = "enable_new_campaign"
        else:
            coupon.is_active = normalized_action == "enable"
            coupon.disabled_at = None if coupon.is_active else now
            coupon.disabled_by = None if coupon.is_active else admin

        try:
            with transaction.atomic():
                coupon.save()
        except IntegrityError:
            return service_error(
                409, "Another active coupon already uses this code. Disable it first.", "duplicate_active_code"
            )

        logger.info(f"🎟️ [Coupons] {normalized_action} {coupon.code} by {admin}")
        return Ok(coupon)
