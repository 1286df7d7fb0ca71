# ===============================================================================
# PYTEST CONFIGURATION FOR THE WORKSHEET STORE
# ===============================================================================
"""
Global test configuration for the Worksheet Store.

Test Structure:
- tests/ mirrors apps/ structure for app-specific tests
- Naming convention: test_{app}_{feature}.py

Test Discovery:
- Run specific app tests: pytest tests/coupons/
- Run all tests: pytest tests/
"""

import os

import django


def pytest_configure():
    """Configure Django settings for pytest"""
    os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.test')

    django.setup()

# ===============================================================================
# PYTEST FIXTURES
# ===============================================================================

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from django.core.cache import cache  # noqa: E402

from apps.coupons.models import Coupon  # noqa: E402
from apps.products.models import Product  # noqa: E402


@pytest.fixture(autouse=True)
def clear_cache():
    """Throttle counters and download tokens must not leak between tests"""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def worksheet(db):
    """Single INR 499 worksheet pack"""
    return Product.objects.create(
        id='class-3-maths',
        title='Class 3 Maths Workbook',
        subject='maths',
        class_level='class-3',
        price=Decimal('499'),
        storage_key='worksheets/class-3-maths.pdf',
    )


@pytest.fixture
def second_worksheet(db):
    return Product.objects.create(
        id='class-3-english',
        title='Class 3 English Workbook',
        subject='english',
        class_level='class-3',
        price=Decimal('199'),
        storage_key='worksheets/class-3-english.pdf',
    )


@pytest.fixture
def public_coupon(db):
    """20% off, public, unlimited"""
    return Coupon.objects.create(
        code='SAVE20',
        description='20% off everything',
        discount_type='percentage',
        discount_value=Decimal('20'),
        visibility_scope='public',
    )
