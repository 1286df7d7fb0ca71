"""
Store API URL Configuration
"""

from django.urls import path

from . import views

app_name = "api"

urlpatterns = [
    path("pricing/context/", views.pricing_context, name="pricing-context"),
    path("coupons/apply/", views.apply_coupon, name="coupon-apply"),
    path("coupons/available/", views.available_coupons, name="coupon-available"),
    path("checkout/complete-free-order/", views.complete_free_order, name="complete-free-order"),
    path("admin/coupons/", views.admin_coupons, name="admin-coupons"),
    path("admin/coupons/<str:coupon_id>/", views.admin_coupon_detail, name="admin-coupon-detail"),
]
