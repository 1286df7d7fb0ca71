# ===============================================================================
# COUPON USAGE CONSUMPTION TESTS
# ===============================================================================
"""
Tests for recording coupon usage at payment confirmation: idempotency per payment,
total limit enforcement and the usage listing.
"""

import contextlib
import threading
from decimal import Decimal

from django.db import connection
from django.test import TestCase, TransactionTestCase

from apps.coupons.models import Coupon, CouponUsage
from apps.coupons.services import CouponService


def make_coupon(**overrides):
    fields = {
        'code': 'SAVE20',
        'discount_type': 'percentage',
        'discount_value': Decimal('20'),
        'visibility_scope': 'public',
    }
    fields.update(overrides)
    return Coupon.objects.create(**fields)


def consume(coupon, payment_id, **kwargs):
    kwargs.setdefault('email', 'buyer@example.com')
    kwargs.setdefault('order_amount', Decimal('449'))
    kwargs.setdefault('discount_amount', Decimal('90'))
    kwargs.setdefault('currency', 'INR')
    return CouponService.consume_coupon_usage(
        coupon_id=str(coupon.id), code=coupon.code, payment_id=payment_id, **kwargs
    )


class ConsumeCouponUsageTestCase(TestCase):

    def test_records_usage_and_increments_counter(self):
        coupon = make_coupon()

        result = consume(coupon, 'pay_1', order_id='order_1', user_id='uid-1')

        self.assertTrue(result.ok)
        self.assertFalse(result.already_applied)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

        usage = CouponUsage.objects.get()
        self.assertEqual(usage.id, f'pay_1_{coupon.id}')
        self.assertEqual(usage.email, 'buyer@example.com')
        self.assertEqual(usage.order_id, 'order_1')
        self.assertEqual(usage.discount_amount, Decimal('90'))
        self.assertEqual(usage.status, 'applied')

    def test_same_payment_is_recorded_once(self):
        coupon = make_coupon()

        first = consume(coupon, 'pay_1')
        second = consume(coupon, 'pay_1')

        self.assertTrue(first.ok)
        self.assertTrue(second.ok)
        self.assertTrue(second.already_applied)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)
        self.assertEqual(CouponUsage.objects.count(), 1)

    def test_total_limit_is_enforced(self):
        coupon = make_coupon(total_usage_limit=2)

        results = [consume(coupon, f'pay_{index}') for index in range(3)]

        self.assertEqual([result.ok for result in results], [True, True, False])
        self.assertEqual(results[2].reason, 'total_limit_reached')
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 2)

    def test_missing_identifiers_are_skipped(self):
        coupon = make_coupon()

        result = CouponService.consume_coupon_usage(coupon_id=str(coupon.id), code=coupon.code, payment_id='  ')

        self.assertFalse(result.ok)
        self.assertTrue(result.skipped)
        self.assertEqual(result.reason, 'missing_fields')

    def test_rejections(self):
        coupon = make_coupon()
        disabled = make_coupon(code='OLD', is_active=False)
        bound = make_coupon(code='MINE', visibility_scope='user_specific', user_email='friend@example.com')

        cases = [
            (CouponService.consume_coupon_usage(coupon_id='not-a-uuid', code='SAVE20', payment_id='p1'),
             'coupon_not_found'),
            (CouponService.consume_coupon_usage(coupon_id=str(coupon.id), code='OTHER', payment_id='p2'),
             'coupon_code_mismatch'),
            (consume(disabled, 'p3'), 'coupon_disabled'),
            (consume(bound, 'p4'), 'email_mismatch'),
        ]
        for result, reason in cases:
            with self.subTest(reason=reason):
                self.assertFalse(result.ok)
                self.assertEqual(result.reason, reason)

        self.assertEqual(CouponUsage.objects.count(), 0)

    def test_coupon_id_letter_case_maps_to_one_usage(self):
        coupon = make_coupon()

        first = CouponService.consume_coupon_usage(coupon_id=str(coupon.id), code='SAVE20', payment_id='pay_1')
        second = CouponService.consume_coupon_usage(
            coupon_id=str(coupon.id).upper(), code='SAVE20', payment_id='pay_1'
        )

        self.assertTrue(first.ok)
        self.assertTrue(second.already_applied)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)
        self.assertEqual(CouponUsage.objects.get().id, f'pay_1_{coupon.id}')

    def test_item_quantity_is_at_least_one(self):
        coupon = make_coupon()
        consume(coupon, 'pay_1', item_quantity_used=0)
        self.assertEqual(CouponUsage.objects.get().item_quantity_used, 1)


class ListCouponUsagesTestCase(TestCase):

    def test_most_recent_first_and_bounded(self):
        coupon = make_coupon()
        for index in range(25):
            consume(coupon, f'pay_{index:02d}')

        usages = CouponService.list_coupon_usages(coupon.id, limit=5)

        # Lower bound is 20
        self.assertEqual(len(usages), 20)
        self.assertEqual(usages[0]['payment_id'], 'pay_24')
        self.assertEqual(len(CouponService.list_coupon_usages(coupon.id)), 25)

    def test_unknown_coupon(self):
        self.assertEqual(CouponService.list_coupon_usages('not-a-uuid'), [])
        self.assertEqual(CouponService.list_coupon_usages(''), [])


class ConcurrentConsumeTestCase(TransactionTestCase):
    """
    Webhook and client callback confirming the same payment at the same time.

    SQLite admits one writer at a time, so there the calls are serialized; run with
    TEST_USE_POSTGRES=true to contend on real row locks.
    """

    def _run_concurrently(self, calls):
        barrier = threading.Barrier(len(calls))
        results = [None] * len(calls)
        writer_lock = threading.Lock() if connection.vendor == 'sqlite' else contextlib.nullcontext()

        def worker(index, call):
            try:
                barrier.wait()
                with writer_lock:
                    results[index] = call()
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(index, call)) for index, call in enumerate(calls)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return results

    def test_duplicate_confirmations_record_once(self):
        coupon = make_coupon()

        results = self._run_concurrently([lambda: consume(coupon, 'pay_1')] * 2)

        self.assertTrue(all(result.ok for result in results))
        self.assertEqual(sum(result.already_applied for result in results), 1)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 1)

    def test_limit_holds_under_contention(self):
        coupon = make_coupon(total_usage_limit=3)

        results = self._run_concurrently(
            [lambda index=index: consume(coupon, f'pay_{index}') for index in range(8)]
        )

        self.assertEqual(sum(result.ok for result in results), 3)
        coupon.refresh_from_db()
        self.assertEqual(coupon.used_count, 3)
        self.assertEqual(CouponUsage.objects.count(), 3)
