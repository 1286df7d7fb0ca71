"""
API Serializers for the Worksheet Store
Input validation for checkout, coupon and admin endpoints. Business normalization
(quantities, codes, limits) happens in the services; these only check shape.
"""

from rest_framework import serializers


class CartInputSerializer(serializers.Serializer):
    """Cart lines plus buyer identity, shared by the checkout endpoints"""

    items = serializers.ListField(child=serializers.DictField(), allow_empty=True, default=list)
    email = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=254)
    user_id = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=128)
    currency_override = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=8)


class CouponApplyInputSerializer(CartInputSerializer):
    code = serializers.CharField(max_length=64, allow_blank=True)


class FreeOrderInputSerializer(CartInputSerializer):
    coupon_code = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class AdminCouponCreateSerializer(serializers.Serializer):
    """Raw admin payload; limits accept numbers or 'unlimited'"""

    code = serializers.CharField(required=False, allow_blank=True, max_length=64)
    auto_generate = serializers.BooleanField(required=False)
    prefix = serializers.CharField(required=False, allow_blank=True, max_length=18)
    description = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    discount_type = serializers.CharField(required=False, allow_blank=True, max_length=20)
    discount_value = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    is_active = serializers.BooleanField(required=False)
    total_usage_mode = serializers.CharField(required=False, allow_blank=True, max_length=20)
    total_usage_limit = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    per_user_mode = serializers.CharField(required=False, allow_blank=True, max_length=20)
    per_user_limit = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    min_order_amount = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=32)
    first_purchase_only = serializers.BooleanField(required=False)
    visibility_scope = serializers.CharField(required=False, allow_blank=True, max_length=20)
    user_email = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=254)
    start_date = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)
    expiry_date = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=64)


class AdminCouponStatusSerializer(serializers.Serializer):
    coupon_id = serializers.CharField(required=False, allow_blank=True, max_length=64)
    action = serializers.CharField(required=False, allow_blank=True, default="disable", max_length=32)


class AdminCouponListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False, default="all")
    scope = serializers.CharField(required=False, default="all")
    search = serializers.CharField(required=False, allow_blank=True, default="")
    limit = serializers.CharField(required=False, allow_blank=True, default="")
