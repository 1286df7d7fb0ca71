"""
Product catalog lookups used by checkout and fulfillment.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from .models import Product

logger = logging.getLogger(__name__)


class ProductService:
    """Read-only access to the worksheet catalog"""

    @staticmethod
    def get_base_price(product_id: str) -> Decimal | None:
        """Base (INR) price of an active product, or None when unknown."""
        normalized = str(product_id or "").strip()
        if not normalized:
            return None
        price = Product.objects.filter(pk=normalized, is_active=True).values_list("price", flat=True).first()
        if price is None:
            logger.debug("🔍 [Catalog] Unknown or inactive product %s", normalized)
        return price

    @staticmethod
    def get_base_prices(product_ids: list[str]) -> dict[str, Decimal]:
        """Batch variant of get_base_price keyed by product id."""
        ids = {str(pid).strip() for pid in product_ids if str(pid or "").strip()}
        if not ids:
            return {}
        rows = Product.objects.filter(pk__in=ids, is_active=True).values_list("id", "price")
        return dict(rows)

    @staticmethod
    def get_storage_keys(product_ids: list[str]) -> dict[str, str]:
        """Downloadable file key per known product; empty string when a product has no file yet."""
        rows = Product.objects.filter(pk__in=product_ids).values_list("id", "storage_key")
        return {product_id: (storage_key or "").strip() for product_id, storage_key in rows}
