"""
Coupon code utilities and discount arithmetic.
Pure functions: no database access, safe to use from any layer.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.common.constants import (
    BASE_CURRENCY,
    COUPON_CODE_MAX_LENGTH,
    COUPON_CODE_MIN_LENGTH,
    COUPON_GENERATED_DEFAULT_LENGTH,
    COUPON_GENERATED_MAX_LENGTH,
    COUPON_GENERATED_MIN_LENGTH,
    MAX_PERCENTAGE_DISCOUNT,
)
from apps.pricing.services import to_decimal

from .models import DiscountType, PerUserMode, VisibilityScope

# No 0/O/1/I to keep codes readable when printed on worksheets
COUPON_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
DEFAULT_PREFIXES: tuple[str, ...] = ("STUDENT", "WELCOME", "CLASS", "LEARN", "SAVE", "DEAR")
GENERATED_SUFFIX_LENGTH = 4
MIN_RANDOM_LENGTH = 3

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^A-Z0-9-]")
_VALID_CODE = re.compile(rf"^[A-Z0-9-]{{{COUPON_CODE_MIN_LENGTH},{COUPON_CODE_MAX_LENGTH}}}$")

TRUTHY = frozenset({"true", "1", "yes", "on"})
FALSY = frozenset({"false", "0", "no", "off"})

ZERO = Decimal("0")
CENTS = Decimal("0.01")
WHOLE = Decimal("1")


# ===============================================================================
# Codes
# ===============================================================================


def normalize_coupon_code(value: Any) -> str:
    """Trim, uppercase, drop whitespace and anything outside ``[A-Z0-9-]``."""
    code = _WHITESPACE.sub("", str(value or "").strip().upper())
    return _DISALLOWED.sub("", code)


def is_valid_coupon_code(value: Any) -> bool:
    return bool(_VALID_CODE.match(normalize_coupon_code(value)))


def _random_chars(length: int) -> str:
    return "".join(secrets.choice(COUPON_ALPHABET) for _ in range(length))


def generate_coupon_code(prefix: str = "", total_length: int | None = None) -> str:
    """
    Build ``PREFIX-RANDOM`` with the total length clamped to 6..18.

    A prefix too long to leave room for randomness is truncated and given a
    4 character suffix instead.
    """
    clean_prefix = normalize_coupon_code(prefix).replace("-", "") or secrets.choice(DEFAULT_PREFIXES)
    requested = int(total_length or COUPON_GENERATED_DEFAULT_LENGTH)
    bounded = min(max(requested, COUPON_GENERATED_MIN_LENGTH), COUPON_GENERATED_MAX_LENGTH)

    if len(clean_prefix) >= bounded - 1:
        truncated = clean_prefix[: bounded - GENERATED_SUFFIX_LENGTH]
        return normalize_coupon_code(f"{truncated}-{_random_chars(GENERATED_SUFFIX_LENGTH)}")

    random_length = max(MIN_RANDOM_LENGTH, bounded - len(clean_prefix))
    return normalize_coupon_code(f"{clean_prefix}-{_random_chars(random_length)}")


# ===============================================================================
# Input parsers
# ===============================================================================


def normalize_discount_type(value: Any) -> DiscountType:
    """Unknown types default to percentage."""
    raw = str(value or "").strip().lower()
    if raw == DiscountType.FREE_ITEM:
        return DiscountType.FREE_ITEM
    return DiscountType.FLAT if raw == DiscountType.FLAT else DiscountType.PERCENTAGE


def normalize_coupon_email(value: Any) -> str | None:
    email = str(value or "").strip().lower()
    return email or None


def normalize_boolean(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    lowered = str(value).strip().lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    return default


def parse_optional_limit(value: Any) -> int | None:
    """Positive integer limit; blank, ``unlimited`` and non-positive values mean no limit."""
    if value is None or value == "":
        return None
    raw = str(value).strip().lower()
    if raw == "unlimited":
        return None
    match = re.match(r"^[+-]?\d+", raw)
    if not match:
        return None
    parsed = int(match.group(0))
    return parsed if parsed > 0 else None


def parse_date_input(value: Any) -> datetime | None:
    """ISO date or datetime; naive values are taken in the current timezone."""
    if isinstance(value, datetime):
        parsed: datetime | None = value
    else:
        raw = str(value or "").strip()
        if not raw:
            return None
        try:
            parsed = parse_datetime(raw)
            if parsed is None:
                day = parse_date(raw)
                parsed = datetime(day.year, day.month, day.day) if day else None
        except ValueError:
            return None
    if parsed is None:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


def parse_min_order_amount(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    amount = to_decimal(value)
    if amount <= 0:
        return None
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def normalize_discount_value(discount_type: DiscountType, value: Any) -> Decimal:
    """Two decimals, percentages capped at 100, free_item always zero."""
    if discount_type is DiscountType.FREE_ITEM:
        return ZERO
    amount = to_decimal(value)
    if amount <= 0:
        return ZERO
    amount = amount.quantize(CENTS, rounding=ROUND_HALF_UP)
    if discount_type is DiscountType.PERCENTAGE:
        return min(MAX_PERCENTAGE_DISCOUNT, amount)
    return amount


def normalize_visibility_scope(value: Any, fallback: VisibilityScope = VisibilityScope.HIDDEN) -> VisibilityScope:
    try:
        return VisibilityScope(str(value or "").strip().lower())
    except ValueError:
        return fallback


def resolve_per_user_mode(value: Any, per_user_limit: int | None) -> tuple[PerUserMode, int | None]:
    """
    Resolve the per-user mode and the limit it implies.
    one_item and one_order force a limit of 1; unlimited clears it; an unknown
    mode is inferred from whether a limit is set.
    """
    try:
        mode = PerUserMode(str(value or "").strip().lower())
    except ValueError:
        return (PerUserMode.UNLIMITED if per_user_limit is None else PerUserMode.MULTIPLE), per_user_limit

    match mode:
        case PerUserMode.ONE_ITEM | PerUserMode.ONE_ORDER:
            return mode, 1
        case PerUserMode.UNLIMITED:
            return mode, None
        case PerUserMode.MULTIPLE:
            return mode, per_user_limit


def resolve_total_usage_limit(mode: Any, limit: Any) -> int | None:
    raw_mode = str(mode or "").strip().lower()
    if raw_mode == "one":
        return 1
    if raw_mode == "unlimited":
        return None
    return parse_optional_limit(limit)


# ===============================================================================
# Discount arithmetic
# ===============================================================================


@dataclass(frozen=True)
class CouponDiscount:
    discount_amount: Decimal
    final_amount: Decimal


def round_currency_amount(amount: Any, currency: str | None) -> Decimal:
    """Home currency to whole units, others to cents; non-positive becomes zero."""
    value = to_decimal(amount)
    if value <= 0:
        return ZERO
    is_home = str(currency or BASE_CURRENCY).strip().upper() == BASE_CURRENCY
    return value.quantize(WHOLE if is_home else CENTS, rounding=ROUND_HALF_UP)


def compute_coupon_discount(
    discount_type: Any,
    discount_value: Any,
    order_amount: Any,
    currency: str | None,
    free_item_amount: Any = 0,
    discount_base_amount: Any = None,
) -> CouponDiscount:
    """
    Discount for an order.

    percentage and flat work on the scoped base (the whole order, or a smaller
    ``discount_base_amount`` such as the single highest item); free_item takes
    ``free_item_amount``. The discount never exceeds the scoped base.
    """
    order = to_decimal(order_amount)
    if order <= 0:
        return CouponDiscount(discount_amount=ZERO, final_amount=ZERO)

    kind = normalize_discount_type(discount_type)
    value = to_decimal(discount_value)
    scoped_base = to_decimal(discount_base_amount)
    effective_base = min(order, scoped_base) if scoped_base > 0 else order

    match kind:
        case DiscountType.FREE_ITEM:
            computed = to_decimal(free_item_amount)
        case DiscountType.PERCENTAGE:
            if value <= 0:
                return CouponDiscount(discount_amount=ZERO, final_amount=order)
            computed = effective_base * min(MAX_PERCENTAGE_DISCOUNT, value) / MAX_PERCENTAGE_DISCOUNT
        case DiscountType.FLAT:
            if value <= 0:
                return CouponDiscount(discount_amount=ZERO, final_amount=order)
            computed = value

    discount = round_currency_amount(min(effective_base, computed), currency)
    final = round_currency_amount(max(ZERO, order - discount), currency)
    return CouponDiscount(discount_amount=discount, final_amount=final)
