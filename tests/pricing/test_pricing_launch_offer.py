"""
Tests for the launch offer multi-buy discount
"""

from decimal import Decimal

import pytest

from apps.pricing.launch_offer import (
    get_discounted_unit_price,
    get_launch_discount_rate,
    has_display_price_change,
)
from apps.pricing.services import calculate_price


@pytest.mark.parametrize(
    ('quantity', 'rate'),
    [(0, '0'), (1, '0.10'), (2, '0.20'), (7, '0.20'), (-3, '0'), ('junk', '0')],
)
def test_launch_rate_tiers(quantity, rate):
    assert get_launch_discount_rate(quantity) == Decimal(rate)


def test_home_currency_rounds_to_whole_units():
    assert get_discounted_unit_price(Decimal('499'), 'INR', 1) == Decimal('449')
    assert get_discounted_unit_price(Decimal('499'), 'INR', 2) == Decimal('399')
    assert get_discounted_unit_price(Decimal('199'), 'INR', 3) == Decimal('159')


def test_foreign_currency_snaps_to_x9_ending():
    assert get_discounted_unit_price(Decimal('24.49'), 'USD', 1) == Decimal('22.09')
    assert get_discounted_unit_price(Decimal('24.49'), 'USD', 2) == Decimal('19.59')
    assert get_discounted_unit_price(Decimal('0.99'), 'USD', 2) == Decimal('0.79')


def test_foreign_currency_floor():
    assert get_discounted_unit_price(Decimal('0.01'), 'USD', 2) == Decimal('0.09')


def test_no_discount_without_items():
    assert get_discounted_unit_price(Decimal('24.49'), 'USD', 0) == Decimal('24.49')
    assert get_discounted_unit_price(Decimal('0'), 'USD', 2) == Decimal('0')


def test_discounted_price_never_exceeds_market_price():
    """Every catalog-like price, in every currency, for both discount tiers"""
    for base in range(49, 5000, 50):
        for country in ('IN', 'US', 'GB', 'DE', 'AE', 'AU'):
            quote = calculate_price(base, country)
            for quantity in (1, 2):
                discounted = get_discounted_unit_price(quote.amount, quote.currency, quantity)
                assert discounted <= quote.amount, (base, country, quantity)


def test_display_price_change():
    assert has_display_price_change('499', '449', 'INR') is True
    assert has_display_price_change('10', '10.4', 'INR') is False
    assert has_display_price_change('1.49', '1.49', 'USD') is False
