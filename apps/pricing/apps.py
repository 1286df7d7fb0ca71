"""
Django app configuration for Pricing app
"""

from django.apps import AppConfig


class PricingAppConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.pricing"
    verbose_name = "Regional Pricing"
