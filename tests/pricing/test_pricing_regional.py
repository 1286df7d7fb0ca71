"""
Tests for regional pricing: tiering, conversion, psychological rounding and
request market detection.
"""

from decimal import Decimal

import pytest
from django.test import RequestFactory, SimpleTestCase, override_settings

from apps.pricing.config import get_pricing_config
from apps.pricing.services import (
    calculate_price,
    detect_country_from_request,
    format_price,
    get_currency_for_country,
    get_pricing_context,
    round_psychological,
    to_decimal,
)


class CalculatePriceTestCase(SimpleTestCase):
    """Base INR prices turned into market prices"""

    def test_domestic_price_keeps_charm_ending(self):
        quote = calculate_price(Decimal('499'), 'IN')

        self.assertEqual(quote.amount, Decimal('499'))
        self.assertEqual(quote.currency, 'INR')
        self.assertEqual(quote.tier, 'domestic')
        self.assertEqual(quote.symbol, '₹')
        self.assertEqual(quote.tiered_price_inr, Decimal('499'))

    def test_international_price_is_tiered_and_converted(self):
        """500 INR for a US visitor: 2000 INR tiered, 24 USD, charm rounded to 24.49"""
        quote = calculate_price(500, 'US')

        self.assertEqual(quote.tier, 'international')
        self.assertEqual(quote.tiered_price_inr, Decimal('2000'))
        self.assertEqual(quote.currency, 'USD')
        self.assertEqual(quote.amount, Decimal('24.49'))
        self.assertEqual(quote.locale, 'en-US')

    def test_eurozone_country_prices_in_euro(self):
        quote = calculate_price(500, 'de')

        self.assertEqual(quote.country_code, 'DE')
        self.assertEqual(quote.currency, 'EUR')
        self.assertEqual(quote.amount, Decimal('22.49'))

    def test_currency_override_keeps_international_tier(self):
        quote = calculate_price(500, 'US', 'inr')

        self.assertEqual(quote.currency, 'INR')
        self.assertEqual(quote.tier, 'international')
        self.assertEqual(quote.amount, Decimal('1999'))

    def test_unsupported_override_falls_back_to_usd(self):
        quote = calculate_price(499, 'IN', 'XYZ')

        self.assertEqual(quote.currency, 'USD')
        self.assertEqual(quote.tier, 'domestic')
        self.assertEqual(quote.amount, Decimal('5.49'))

    def test_unmapped_country_uses_fallback_currency(self):
        quote = calculate_price(500, 'ZZ')

        self.assertEqual(quote.country_code, 'ZZ')
        self.assertEqual(quote.tier, 'international')
        self.assertEqual(quote.currency, 'USD')

    def test_missing_country_uses_fallback_country(self):
        quote = calculate_price(199, None)

        self.assertEqual(quote.country_code, 'IN')
        self.assertEqual(quote.amount, Decimal('199'))

    def test_invalid_base_price_yields_zero(self):
        for value in (0, -10, 'abc', None):
            with self.subTest(value=value):
                self.assertEqual(calculate_price(value, 'US').amount, Decimal('0'))

    @override_settings(PRICING={'INTERNATIONAL_MULTIPLIER': '2', 'FALLBACK_COUNTRY': 'IN'})
    def test_multiplier_is_configurable(self):
        self.assertEqual(get_pricing_config().international_multiplier, Decimal('2'))
        self.assertEqual(calculate_price(500, 'US').tiered_price_inr, Decimal('1000'))


class PsychologicalRoundingTestCase(SimpleTestCase):

    def test_home_currency_rounds_to_ten_minus_one(self):
        cases = [
            (Decimal('499'), Decimal('499')),
            (Decimal('500'), Decimal('499')),
            (Decimal('1996'), Decimal('1999')),
            (Decimal('194'), Decimal('189')),
            (Decimal('3'), Decimal('1')),  # floor of 1
        ]
        for amount, expected in cases:
            with self.subTest(amount=amount):
                self.assertEqual(round_psychological(amount, 'INR'), expected)

    def test_foreign_currency_floors_to_49(self):
        self.assertEqual(round_psychological(Decimal('23.952'), 'USD'), Decimal('23.49'))
        self.assertEqual(round_psychological(Decimal('7.01'), 'EUR'), Decimal('7.49'))

    def test_small_foreign_amounts_keep_cents_with_floor(self):
        self.assertEqual(round_psychological(Decimal('1.44'), 'USD'), Decimal('1.44'))
        self.assertEqual(round_psychological(Decimal('0.48'), 'USD'), Decimal('0.99'))

    def test_non_positive_amounts_round_to_zero(self):
        self.assertEqual(round_psychological(Decimal('0'), 'USD'), Decimal('0'))
        self.assertEqual(round_psychological(Decimal('-5'), 'INR'), Decimal('0'))


class MarketDetectionTestCase(SimpleTestCase):

    def setUp(self):
        self.factory = RequestFactory()

    def test_cdn_header_sets_country(self):
        request = self.factory.get('/', HTTP_CF_IPCOUNTRY='gb')

        context = get_pricing_context(request)

        self.assertEqual(context.country_code, 'GB')
        self.assertEqual(context.auto_currency, 'GBP')
        self.assertEqual(context.currency, 'GBP')
        self.assertEqual(context.source, 'ip')

    def test_secondary_cdn_header(self):
        request = self.factory.get('/', HTTP_X_VERCEL_IP_COUNTRY='AU')
        self.assertEqual(detect_country_from_request(request), 'AU')

    def test_garbage_header_falls_back(self):
        request = self.factory.get('/', HTTP_CF_IPCOUNTRY='XX1')
        self.assertEqual(detect_country_from_request(request), 'IN')

    def test_query_override_beats_cookie(self):
        request = self.factory.get('/?currency=eur', HTTP_CF_IPCOUNTRY='US')
        request.COOKIES['ds_currency'] = 'GBP'

        context = get_pricing_context(request)

        self.assertEqual(context.auto_currency, 'USD')
        self.assertEqual(context.currency, 'EUR')
        self.assertEqual(context.source, 'override')

    def test_cookie_override(self):
        request = self.factory.get('/', HTTP_CF_IPCOUNTRY='US')
        request.COOKIES['ds_currency'] = 'gbp'

        self.assertEqual(get_pricing_context(request).currency, 'GBP')


def test_fallback_country_from_settings():
    request = RequestFactory().get('/')

    with override_settings(PRICING={'FALLBACK_COUNTRY': 'us'}):
        assert detect_country_from_request(request) == 'US'
        assert get_pricing_context(request).currency == 'USD'


def test_shell_environment_does_not_override_settings(monkeypatch):
    monkeypatch.setenv('PRICING_FALLBACK_COUNTRY', 'US')

    assert detect_country_from_request(RequestFactory().get('/')) == 'IN'


@pytest.mark.parametrize(
    ('amount', 'currency', 'expected'),
    [
        (499, 'INR', '₹499'),
        (1999, 'INR', '₹1,999'),
        (Decimal('24.49'), 'USD', '$24.49'),
        (5, 'AED', 'AED 5.00'),
    ],
)
def test_format_price(amount, currency, expected):
    assert format_price(amount, currency) == expected


def test_country_currency_lookup():
    assert get_currency_for_country('fr') == 'EUR'
    assert get_currency_for_country('BR') == 'USD'


def test_to_decimal_tolerates_garbage():
    assert to_decimal('12.5') == Decimal('12.5')
    assert to_decimal('') == Decimal('0')
    assert to_decimal('nan') == Decimal('0')
    assert to_decimal(None) == Decimal('0')
