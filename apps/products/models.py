"""
Product Catalog models for the Worksheet Store
Master catalog of printable worksheets and workbooks. Prices are stored once, in the
base currency (INR); regional prices are derived at request time by apps.pricing.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, ClassVar

from django.core.validators import MinValueValidator
from django.db import models
from django.utils.translation import gettext_lazy as _

logger = logging.getLogger(__name__)


class Product(models.Model):
    """
    A purchasable worksheet pack.
    The primary key is the public catalog id used by carts and download links.
    """

    id = models.CharField(primary_key=True, max_length=120, help_text=_("Catalog id, e.g. 'class-3-maths-workbook'"))

    # Basic Information
    title = models.CharField(max_length=200, help_text=_("Display name for customers"))
    description = models.TextField(blank=True)

    SUBJECTS: ClassVar[tuple[tuple[str, Any], ...]] = (
        ("maths", _("Maths")),
        ("english", _("English")),
        ("science", _("Science")),
        ("evs", _("EVS")),
        ("exams", _("Exam Practice")),
        ("other", _("Other")),
    )
    subject = models.CharField(max_length=20, choices=SUBJECTS, default="other")
    class_level = models.CharField(max_length=20, blank=True, help_text=_("Class/grade label, e.g. 'class-3'"))

    # Pricing (base currency)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text=_("Base price in INR before regional tiering"),
    )

    # Delivery
    storage_key = models.CharField(max_length=255, blank=True, help_text=_("Object store key of the downloadable file"))

    # Status and availability
    is_active = models.BooleanField(default=True, help_text=_("Whether product is available for purchase"))
    sort_order = models.PositiveIntegerField(default=0)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        verbose_name = _("Product")
        verbose_name_plural = _("Products")
        ordering: ClassVar[tuple[str, ...]] = ("sort_order", "title")
        indexes: ClassVar[tuple[models.Index, ...]] = (
            models.Index(fields=["subject", "is_active"], name="products_subject_active_idx"),
            models.Index(fields=["class_level"], name="products_class_level_idx"),
        )

    def __str__(self) -> str:
        return f"{self.id} - {self.title}"
