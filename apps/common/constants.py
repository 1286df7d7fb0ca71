"""
Worksheet Store Constants

Centralized constants for pricing, checkout and coupon rules that span multiple apps.
This file serves as the single source of truth for business limits; deployment-specific
values (exchange rates, admin allowlists) live in Django settings.
"""

from decimal import Decimal
from typing import Final

# ===============================================================================
# PRICING 💱
# ===============================================================================

HOME_COUNTRY: Final[str] = "IN"                     # Domestic pricing market
BASE_CURRENCY: Final[str] = "INR"                   # Catalog prices are stored in INR
FALLBACK_CURRENCY: Final[str] = "USD"               # Unmapped countries / bad overrides
INTERNATIONAL_MULTIPLIER: Final[Decimal] = Decimal("4")

TIER_DOMESTIC: Final[str] = "domestic"
TIER_INTERNATIONAL: Final[str] = "international"

# Psychological rounding floors
HOME_CURRENCY_MIN_AMOUNT: Final[Decimal] = Decimal("1")
FOREIGN_CURRENCY_MIN_AMOUNT: Final[Decimal] = Decimal("0.99")
FOREIGN_SMALL_AMOUNT_THRESHOLD: Final[Decimal] = Decimal("1.5")
FOREIGN_CHARM_ENDING: Final[Decimal] = Decimal("0.49")

# ===============================================================================
# LAUNCH OFFER 🚀
# ===============================================================================

LAUNCH_SINGLE_ITEM_RATE: Final[Decimal] = Decimal("0.10")   # 1 item in cart
LAUNCH_MULTI_ITEM_RATE: Final[Decimal] = Decimal("0.20")    # 2+ items in cart
LAUNCH_CHARM_MIN_AMOUNT: Final[Decimal] = Decimal("0.09")

# ===============================================================================
# CHECKOUT 🛒
# ===============================================================================

MAX_QUANTITY_PER_ITEM: Final[int] = 20
MAX_ITEMS_PER_ORDER: Final[int] = 25

# ===============================================================================
# COUPONS 🎟️
# ===============================================================================

COUPON_CODE_MIN_LENGTH: Final[int] = 4
COUPON_CODE_MAX_LENGTH: Final[int] = 24
COUPON_GENERATED_MIN_LENGTH: Final[int] = 6
COUPON_GENERATED_MAX_LENGTH: Final[int] = 18
COUPON_GENERATED_DEFAULT_LENGTH: Final[int] = 10
COUPON_DESCRIPTION_MAX_LENGTH: Final[int] = 240

MAX_VISIBLE_COUPONS: Final[int] = 20                # Returned to checkout
MAX_SCANNED_COUPONS: Final[int] = 120               # Considered per listing
MAX_PERCENTAGE_DISCOUNT: Final[Decimal] = Decimal("100")

ADMIN_COUPON_LIST_DEFAULT: Final[int] = 300
ADMIN_COUPON_LIST_MIN: Final[int] = 25
ADMIN_COUPON_LIST_MAX: Final[int] = 1000
COUPON_USAGE_LIST_DEFAULT: Final[int] = 300
COUPON_USAGE_LIST_MIN: Final[int] = 20
COUPON_USAGE_LIST_MAX: Final[int] = 1200

# ===============================================================================
# FULFILLMENT 📦
# ===============================================================================

DOWNLOAD_TOKEN_TTL_SECONDS: Final[int] = 15 * 60    # Download links expire after 15 minutes
FREE_ORDER_PREFIX: Final[str] = "free"
