"""
Coupon models for the Worksheet Store.

- Coupon: admin-defined discount code with usage caps, per-user limits,
  scheduling window and visibility scope
- CouponUsage: one immutable row per (payment, coupon), written at payment confirmation

Coupons are never physically deleted: they are disabled, re-enabled or reset for a
new campaign.
"""

from __future__ import annotations

import logging
import uuid
from enum import StrEnum
from typing import Any, ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


# ===============================================================================
# Enumerations
# ===============================================================================


class DiscountType(StrEnum):
    PERCENTAGE = "percentage"
    FLAT = "flat"
    FREE_ITEM = "free_item"


class PerUserMode(StrEnum):
    """How the per-user limit is counted"""

    ONE_ITEM = "one_item"  # limit counts items, discount scoped to the highest item
    ONE_ORDER = "one_order"  # limit counts distinct orders
    MULTIPLE = "multiple"  # limit counts distinct orders
    UNLIMITED = "unlimited"  # limit (if any) counts raw usages


class VisibilityScope(StrEnum):
    PUBLIC = "public"
    USER_SPECIFIC = "user_specific"
    HIDDEN = "hidden"


class RuntimeStatus(StrEnum):
    ACTIVE = "active"
    DISABLED = "disabled"
    EXPIRED = "expired"
    SCHEDULED = "scheduled"


def _choices(enum: type[StrEnum]) -> tuple[tuple[str, Any], ...]:
    return tuple((member.value, _(member.value.replace("_", " ").title())) for member in enum)


# ===============================================================================
# Coupon
# ===============================================================================


class Coupon(models.Model):
    """
    Discount code created by store admins.
    ``used_count`` only grows through CouponService.consume_coupon_usage (or is reset
    by an admin starting a new campaign).
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    code = models.CharField(max_length=24, db_index=True, help_text=_("Normalized uppercase code (A-Z, 0-9, -)"))
    description = models.CharField(max_length=240, blank=True, help_text=_("Shown to customers at checkout"))

    # Discount
    DISCOUNT_TYPES: ClassVar[tuple[tuple[str, Any], ...]] = _choices(DiscountType)
    discount_type = models.CharField(max_length=20, choices=DISCOUNT_TYPES, default=DiscountType.PERCENTAGE)
    discount_value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=0,
        validators=[MinValueValidator(0)],
        help_text=_("Percent (0-100) or flat amount in order currency; ignored for free_item"),
    )

    is_active = models.BooleanField(default=True)

    # Limits
    total_usage_limit = models.PositiveIntegerField(null=True, blank=True, help_text=_("Empty means unlimited"))
    PER_USER_MODES: ClassVar[tuple[tuple[str, Any], ...]] = _choices(PerUserMode)
    per_user_limit = models.PositiveIntegerField(null=True, blank=True, help_text=_("Empty means unlimited"))
    per_user_mode = models.CharField(max_length=20, choices=PER_USER_MODES, default=PerUserMode.UNLIMITED)
    min_order_amount = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    first_purchase_only = models.BooleanField(default=False)

    # Visibility
    VISIBILITY_SCOPES: ClassVar[tuple[tuple[str, Any], ...]] = _choices(VisibilityScope)
    visibility_scope = models.CharField(max_length=20, choices=VISIBILITY_SCOPES, default=VisibilityScope.HIDDEN)
    user_email = models.EmailField(null=True, blank=True, help_text=_("Bound customer for user_specific coupons"))

    # Scheduling
    start_date = models.DateTimeField(null=True, blank=True)
    expiry_date = models.DateTimeField(null=True, blank=True)

    used_count = models.PositiveIntegerField(default=0)

    # Audit
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)
    created_by = models.EmailField(null=True, blank=True)
    disabled_at = models.DateTimeField(null=True, blank=True)
    disabled_by = models.EmailField(null=True, blank=True)
    usage_reset_at = models.DateTimeField(
        null=True, blank=True, help_text=_("Per-user usage before this instant is ignored")
    )
    usage_reset_by = models.EmailField(null=True, blank=True)
    usage_reset_reason = models.CharField(max_length=64, null=True, blank=True)

    class Meta:
        db_table = "coupons"
        verbose_name = _("Coupon")
        verbose_name_plural = _("Coupons")
        ordering: ClassVar[tuple[str, ...]] = ("-created_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["is_active", "visibility_scope"], name="coupons_active_scope_idx"),
            models.Index(fields=["user_email"], name="coupons_user_email_idx"),
        )
        constraints: ClassVar[tuple[models.BaseConstraint, ...]] = (
            models.UniqueConstraint(
                fields=["code"],
                condition=Q(is_active=True),
                name="unique_active_coupon_code",
            ),
            models.CheckConstraint(
                condition=Q(total_usage_limit__isnull=True) | Q(used_count__lte=models.F("total_usage_limit")),
                name="coupon_used_count_within_limit",
            ),
        )

    def __str__(self) -> str:
        return self.code

    @property
    def per_user_mode_enum(self) -> PerUserMode:
        try:
            return PerUserMode(self.per_user_mode)
        except ValueError:
            return PerUserMode.UNLIMITED if self.per_user_limit is None else PerUserMode.MULTIPLE

    @property
    def is_single_item_scope(self) -> bool:
        return self.per_user_mode_enum is PerUserMode.ONE_ITEM

    @property
    def is_exhausted(self) -> bool:
        return self.total_usage_limit is not None and self.used_count >= self.total_usage_limit

    def runtime_status(self, now: Any = None) -> RuntimeStatus:
        """Computed state; precedence disabled, scheduled, expired, active."""
        now = now or timezone.now()
        if not self.is_active:
            return RuntimeStatus.DISABLED
        if self.start_date and self.start_date > now:
            return RuntimeStatus.SCHEDULED
        if self.expiry_date and self.expiry_date < now:
            return RuntimeStatus.EXPIRED
        return RuntimeStatus.ACTIVE

    def permits_email(self, email: str | None) -> bool:
        """user_specific coupons are bound to one customer email."""
        if self.visibility_scope != VisibilityScope.USER_SPECIFIC or not self.user_email:
            return True
        return email == self.user_email.lower()

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "code": self.code,
            "description": self.description,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "is_active": self.is_active,
            "total_usage_limit": self.total_usage_limit,
            "per_user_limit": self.per_user_limit,
            "per_user_mode": self.per_user_mode,
            "min_order_amount": self.min_order_amount,
            "first_purchase_only": self.first_purchase_only,
            "used_count": self.used_count,
            "visibility_scope": self.visibility_scope,
            "user_email": self.user_email,
            "start_date": self.start_date,
            "expiry_date": self.expiry_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "created_by": self.created_by,
            "disabled_at": self.disabled_at,
            "disabled_by": self.disabled_by,
            "usage_reset_at": self.usage_reset_at,
            "usage_reset_by": self.usage_reset_by,
            "usage_reset_reason": self.usage_reset_reason,
            "runtime_status": self.runtime_status().value,
        }


# ===============================================================================
# Coupon Usage
# ===============================================================================


def build_usage_id(payment_id: str, coupon_id: Any) -> str:
    """Deterministic key so one payment can only ever use a coupon once."""
    return f"{str(payment_id).strip()}_{coupon_id}"


class CouponUsage(models.Model):
    """Record of a coupon applied to a confirmed payment. Never mutated."""

    id = models.CharField(primary_key=True, max_length=255, help_text=_("'<payment_id>_<coupon_id>'"))
    coupon = models.ForeignKey(Coupon, on_delete=models.PROTECT, related_name="usages")
    code = models.CharField(max_length=24)

    email = models.EmailField(null=True, blank=True)
    user_id = models.CharField(max_length=128, null=True, blank=True)
    payment_id = models.CharField(max_length=128)
    order_id = models.CharField(max_length=128, null=True, blank=True)

    order_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default="INR")
    item_quantity_used = models.PositiveIntegerField(default=1)

    STATUS_CHOICES: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("applied", _("Applied")),
        ("reversed", _("Reversed")),
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="applied")
    used_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "coupon_usages"
        verbose_name = _("Coupon Usage")
        verbose_name_plural = _("Coupon Usages")
        ordering: ClassVar[tuple[str, ...]] = ("-used_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["coupon", "email", "status"], name="coupon_usage_user_idx"),
            models.Index(fields=["coupon", "-used_at"], name="coupon_usage_recent_idx"),
        )

    def __str__(self) -> str:
        return f"{self.code} on {self.payment_id}"

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "coupon_id": str(self.coupon_id),
            "code": self.code,
            "email": self.email,
            "user_id": self.user_id,
            "payment_id": self.payment_id,
            "order_id": self.order_id,
            "order_amount": self.order_amount,
            "discount_amount": self.discount_amount,
            "currency": self.currency,
            "item_quantity_used": self.item_quantity_used,
            "status": self.status,
            "used_at": self.used_at,
        }
