"""
Tests for checkout coupon validation and the checkout coupon list
"""

from datetime import timedelta
from decimal import Decimal

from django.test import TestCase, override_settings
from django.utils import timezone

from apps.coupons.models import Coupon, CouponUsage, RuntimeStatus, build_usage_id
from apps.coupons.services import CouponService, UsageStats
from apps.orders.models import Purchase
from apps.pricing.checkout import CheckoutPricing, PricedItem


def make_coupon(**overrides):
    fields = {
        'code': 'SAVE20',
        'discount_type': 'percentage',
        'discount_value': Decimal('20'),
        'visibility_scope': 'public',
    }
    fields.update(overrides)
    return Coupon.objects.create(**fields)


def record_usage(coupon, payment_id, email='buyer@example.com', items=1, order_id=None, used_at=None):
    return CouponUsage.objects.create(
        id=build_usage_id(payment_id, coupon.id),
        coupon=coupon,
        code=coupon.code,
        email=email,
        payment_id=payment_id,
        order_id=order_id,
        item_quantity_used=items,
        used_at=used_at or timezone.now(),
    )


def two_item_cart():
    """INR cart: 499 + 199 with the 20% launch rate, 558 total"""
    return CheckoutPricing(
        country_code='IN',
        order_currency='INR',
        launch_discount_rate=Decimal('0.20'),
        total_item_quantity=2,
        subtotal_amount=Decimal('698'),
        total_amount=Decimal('558'),
        valid_items=[
            PricedItem('maths', 1, Decimal('499'), 'INR'),
            PricedItem('english', 1, Decimal('199'), 'INR'),
        ],
    )


class RuntimeStatusTestCase(TestCase):

    def test_status_precedence(self):
        now = timezone.now()
        cases = [
            ({'is_active': False, 'start_date': now + timedelta(days=1)}, RuntimeStatus.DISABLED),
            ({'start_date': now + timedelta(days=1), 'expiry_date': now - timedelta(days=1)}, RuntimeStatus.SCHEDULED),
            ({'expiry_date': now - timedelta(seconds=1)}, RuntimeStatus.EXPIRED),
            ({'start_date': now - timedelta(days=1), 'expiry_date': now + timedelta(days=1)}, RuntimeStatus.ACTIVE),
            ({}, RuntimeStatus.ACTIVE),
        ]
        for fields, expected in cases:
            with self.subTest(expected=expected):
                self.assertIs(Coupon(code='X', **fields).runtime_status(now), expected)


class ValidateCouponForCheckoutTestCase(TestCase):
    """Each eligibility check fails with its own message"""

    def assertRejected(self, result, status, message):
        self.assertTrue(result.is_err(), result)
        error = result.unwrap_err()
        self.assertEqual(error.status, status)
        self.assertEqual(error.message, message)

    def test_percentage_coupon(self):
        make_coupon()

        result = CouponService.validate_coupon_for_checkout('save20', Decimal('1000'), 'INR')

        summary = result.unwrap().summary
        self.assertEqual(summary.code, 'SAVE20')
        self.assertEqual(summary.discount_amount, Decimal('200'))
        self.assertEqual(summary.final_amount, Decimal('800'))
        self.assertEqual(summary.discount_scope, 'order_total')
        self.assertEqual(summary.currency, 'INR')

    def test_unknown_code(self):
        self.assertRejected(CouponService.validate_coupon_for_checkout('NOPE', 500, 'INR'), 404, 'Coupon not found')

    def test_disabled_coupon(self):
        make_coupon(is_active=False)
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'), 400, 'This coupon is disabled'
        )

    def test_expired_coupon(self):
        make_coupon(expiry_date=timezone.now() - timedelta(days=1))
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'), 400, 'This coupon has expired'
        )

    def test_scheduled_coupon(self):
        make_coupon(start_date=timezone.now() + timedelta(days=1))
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'), 400, 'This coupon is not active yet'
        )

    def test_active_row_wins_over_disabled_duplicate(self):
        make_coupon(is_active=False, discount_value=Decimal('50'))
        make_coupon(discount_value=Decimal('10'))

        summary = CouponService.validate_coupon_for_checkout('SAVE20', 1000, 'INR').unwrap().summary

        self.assertEqual(summary.discount_amount, Decimal('100'))

    def test_user_specific_coupon_requires_matching_email(self):
        make_coupon(visibility_scope='user_specific', user_email='friend@example.com')

        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='other@example.com'),
            403,
            'This coupon is restricted to another email',
        )
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'),
            403,
            'This coupon is restricted to another email',
        )
        self.assertTrue(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email=' Friend@Example.com ').is_ok()
        )

    def test_total_usage_exhausted(self):
        make_coupon(total_usage_limit=1, used_count=1)
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'), 400, 'Coupon usage limit reached'
        )

    def test_minimum_order(self):
        make_coupon(min_order_amount=Decimal('500'))
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 449, 'INR'),
            400,
            'Minimum order amount for this coupon is 500.00',
        )

    def test_per_user_item_limit(self):
        coupon = make_coupon(per_user_mode='one_item', per_user_limit=1)
        record_usage(coupon, 'pay_1')

        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 558, 'INR', email='buyer@example.com'),
            400,
            'Per-user item limit reached for this coupon',
        )

    def test_per_user_order_limit_counts_distinct_orders(self):
        coupon = make_coupon(per_user_mode='multiple', per_user_limit=2)
        record_usage(coupon, 'pay_1', order_id='order_1')
        record_usage(coupon, 'pay_2', order_id='order_1')

        self.assertTrue(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='buyer@example.com').is_ok()
        )

        record_usage(coupon, 'pay_3', order_id='order_2')
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='buyer@example.com'),
            400,
            'Per-user order limit reached for this coupon',
        )

    def test_per_user_usage_limit_in_unlimited_mode(self):
        coupon = make_coupon(per_user_mode='unlimited', per_user_limit=1)
        record_usage(coupon, 'pay_1')

        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='buyer@example.com'),
            400,
            'Per-user usage limit reached for this coupon',
        )

    def test_per_user_limit_needs_email(self):
        make_coupon(per_user_mode='one_order', per_user_limit=1)
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'), 400, 'Email required for this coupon'
        )

    def test_usage_before_reset_is_ignored(self):
        coupon = make_coupon(per_user_mode='one_order', per_user_limit=1)
        record_usage(coupon, 'pay_1', used_at=timezone.now() - timedelta(days=2))
        coupon.usage_reset_at = timezone.now() - timedelta(days=1)
        coupon.save()

        self.assertTrue(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='buyer@example.com').is_ok()
        )

    def test_first_purchase_only(self):
        make_coupon(first_purchase_only=True)

        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'),
            400,
            'Login or email is required for first-purchase coupon',
        )
        self.assertTrue(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='new@example.com').is_ok()
        )

        Purchase.objects.create(
            id='pay_0_maths', email='old@example.com', product_id='maths', payment_id='pay_0', order_id='pay_0',
            order_currency='INR', order_amount=Decimal('449'),
        )
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='old@example.com'),
            400,
            'This coupon is valid only for first purchase',
        )

    def test_prior_purchase_by_user_id(self):
        make_coupon(first_purchase_only=True)
        Purchase.objects.create(
            id='pay_0_maths', email='old@example.com', user_id='uid-1', product_id='maths', payment_id='pay_0',
            order_id='pay_0', order_currency='INR',
        )

        self.assertTrue(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR', email='new@example.com',
                                                       user_id='uid-1').is_err()
        )

    def test_zero_discount_is_rejected(self):
        make_coupon(discount_type='free_item', discount_value=Decimal('0'))

        # free_item without a cart has nothing to discount
        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 500, 'INR'),
            400,
            'Coupon discount is not applicable',
        )

    def test_fully_free_order_needs_opt_in(self):
        make_coupon(discount_type='flat', discount_value=Decimal('1000'))

        self.assertRejected(
            CouponService.validate_coupon_for_checkout('SAVE20', 449, 'INR'),
            400,
            'This coupon makes the order fully free. Free checkout is not enabled yet.',
        )

        summary = CouponService.validate_coupon_for_checkout('SAVE20', 449, 'INR', allow_zero_final=True).unwrap().summary
        self.assertEqual(summary.discount_amount, Decimal('449'))
        self.assertEqual(summary.final_amount, Decimal('0'))

    def test_single_item_scope_discounts_highest_item(self):
        make_coupon(discount_value=Decimal('50'), per_user_mode='one_item', per_user_limit=1)

        summary = CouponService.validate_coupon_for_checkout(
            'SAVE20', Decimal('558'), 'INR', email='buyer@example.com', pricing=two_item_cart()
        ).unwrap().summary

        self.assertEqual(summary.discount_scope, 'single_highest_item')
        self.assertEqual(summary.discount_amount, Decimal('200'))  # 50% of 399, rounded
        self.assertEqual(summary.final_amount, Decimal('358'))

    def test_free_item_coupon_uses_highest_item(self):
        make_coupon(discount_type='free_item', discount_value=Decimal('0'))

        summary = CouponService.validate_coupon_for_checkout(
            'SAVE20', Decimal('558'), 'INR', pricing=two_item_cart()
        ).unwrap().summary

        self.assertEqual(summary.free_item_amount, Decimal('399'))
        self.assertEqual(summary.final_amount, Decimal('159'))


class UsageStatsTestCase(TestCase):

    def test_counts_usages_orders_and_items(self):
        coupon = make_coupon()
        record_usage(coupon, 'pay_1', items=2, order_id='order_1')
        record_usage(coupon, 'pay_2', items=1, order_id='order_1')
        record_usage(coupon, 'pay_3', items=1)
        record_usage(coupon, 'pay_4', email='someone@example.com')

        stats = CouponService.get_user_usage_stats(coupon, 'BUYER@example.com')

        self.assertEqual(stats, UsageStats(usage_count=3, order_count=2, item_count=4))

    def test_no_email_means_no_usage(self):
        self.assertEqual(CouponService.get_user_usage_stats(make_coupon(), ''), UsageStats())


class CheckoutVisibleCouponsTestCase(TestCase):

    def test_lists_only_applicable_coupons_best_first(self):
        make_coupon(code='SAVE20')
        make_coupon(code='FLAT100', discount_type='flat', discount_value=Decimal('100'))
        make_coupon(code='SECRET', visibility_scope='hidden')
        make_coupon(code='MINE', visibility_scope='user_specific', user_email='buyer@example.com')
        make_coupon(code='THEIRS', visibility_scope='user_specific', user_email='other@example.com')
        make_coupon(code='USEDUP', total_usage_limit=5, used_count=5)
        make_coupon(code='BIGSPEND', min_order_amount=Decimal('5000'))
        make_coupon(code='OFF', is_active=False)
        make_coupon(code='LATER', start_date=timezone.now() + timedelta(days=3))

        coupons = CouponService.list_checkout_visible_coupons(Decimal('1000'), 'INR', email='buyer@example.com')

        self.assertEqual({row['code'] for row in coupons}, {'SAVE20', 'FLAT100', 'MINE'})
        self.assertEqual([row['discount_amount'] for row in coupons], [Decimal('200'), Decimal('200'), Decimal('100')])
        self.assertEqual(coupons[-1]['code'], 'FLAT100')

    def test_anonymous_shopper_sees_public_only(self):
        make_coupon(code='SAVE20')
        make_coupon(code='MINE', visibility_scope='user_specific', user_email='buyer@example.com')
        make_coupon(code='ONCE', per_user_mode='one_order', per_user_limit=1)

        coupons = CouponService.list_checkout_visible_coupons(Decimal('1000'), 'INR')

        self.assertEqual([row['code'] for row in coupons], ['SAVE20'])

    def test_first_purchase_coupon_hidden_from_returning_buyer(self):
        make_coupon(code='WELCOME', first_purchase_only=True)
        Purchase.objects.create(
            id='pay_0_maths', email='buyer@example.com', product_id='maths', payment_id='pay_0', order_id='pay_0',
            order_currency='INR',
        )

        self.assertEqual(CouponService.list_checkout_visible_coupons(1000, 'INR', email='buyer@example.com'), [])
        self.assertEqual(len(CouponService.list_checkout_visible_coupons(1000, 'INR', email='new@example.com')), 1)

    @override_settings(COUPONS={'MAX_VISIBLE_COUPONS': 2, 'MAX_SCANNED_COUPONS': 120})
    def test_visible_list_is_capped(self):
        for index in range(4):
            make_coupon(code=f'SAVE{index}X', discount_value=Decimal(10 + index))

        coupons = CouponService.list_checkout_visible_coupons(1000, 'INR')

        self.assertEqual([row['code'] for row in coupons], ['SAVE3X', 'SAVE2X'])
