"""
Order models for the Worksheet Store.
A Purchase is one product bought in one payment; a cart with three products
paid once produces three rows sharing the payment id.
"""

from __future__ import annotations

from typing import Any, ClassVar

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _


def build_purchase_id(payment_id: str, product_id: str) -> str:
    return f"{payment_id}_{product_id}"


class Purchase(models.Model):
    """Fulfilled purchase of a single product"""

    id = models.CharField(primary_key=True, max_length=255, help_text=_("'<payment_id>_<product_id>'"))

    email = models.EmailField(db_index=True)
    user_id = models.CharField(max_length=128, null=True, blank=True, db_index=True)
    product_id = models.CharField(max_length=120)
    quantity = models.PositiveIntegerField(default=1)

    payment_id = models.CharField(max_length=128)
    order_id = models.CharField(max_length=128)
    PAYMENT_METHODS: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("gateway", _("Payment Gateway")),
        ("free_coupon", _("Free with Coupon")),
    )
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHODS, default="gateway")

    order_currency = models.CharField(max_length=3)
    order_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    coupon_code = models.CharField(max_length=24, null=True, blank=True)
    coupon_id = models.CharField(max_length=64, null=True, blank=True)
    coupon_discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    purchased_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = "purchases"
        verbose_name = _("Purchase")
        verbose_name_plural = _("Purchases")
        ordering: ClassVar[tuple[str, ...]] = ("-purchased_at",)
        indexes: ClassVar[tuple[models.Index, ...]] = (models.Index(fields=["payment_id"], name="purchases_payment_idx"),)

    def __str__(self) -> str:
        return f"{self.product_id} for {self.email} ({self.payment_id})"
