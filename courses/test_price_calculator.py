from decimal import Decimal

from django.test import SimpleTestCase

from backend.exceptions import ValidationError
from .price_calculator import (
    calculate_full_access_price,
    calculate_price_per_session,
    calculate_window_price,
    round_half_up,
)


class PricePerSessionTestCase(SimpleTestCase):

    def test_even_split(self):
        self.assertEqual(calculate_price_per_session(1000, 8), 125)

    def test_rounds_half_up(self):
        # 1000 / 16 = 62.5
        self.assertEqual(calculate_price_per_session(1000, 16), 63)
        self.assertEqual(round_half_up(Decimal('2.5')), 3)
        self.assertEqual(round_half_up(Decimal('2.49')), 2)

    def test_rounds_down_below_half(self):
        self.assertEqual(calculate_price_per_session(100, 3), 33)

    def test_template_discounts_apply_to_rounded_per_session_price(self):
        self.assertEqual(calculate_price_per_session(1000, 8, 'late_join'), 106)  # 125 * 0.85 = 106.25
        self.assertEqual(calculate_price_per_session(1000, 8, 'sample'), 88)  # 125 * 0.70 = 87.5
        self.assertEqual(calculate_price_per_session(1000, 8, 'intensive'), 113)  # 125 * 0.90 = 112.5

    def test_accepts_decimal_course_price(self):
        self.assertEqual(calculate_price_per_session(Decimal('999.99'), 4), 250)

    def test_unknown_template_rejected(self):
        with self.assertRaises(ValidationError):
            calculate_price_per_session(1000, 8, 'weekend')

    def test_missing_price_is_an_error_not_zero(self):
        with self.assertRaises(ValidationError):
            calculate_price_per_session(None, 8)

    def test_no_sessions_rejected(self):
        with self.assertRaises(ValidationError):
            calculate_price_per_session(1000, 0)

    def test_negative_price_rejected(self):
        with self.assertRaises(ValidationError):
            calculate_price_per_session(-10, 4)


class WindowPriceTestCase(SimpleTestCase):

    def test_four_of_eight_sessions(self):
        pricing = calculate_window_price(1000, 8, 4)
        self.assertEqual(pricing['price_per_session'], 125)
        self.assertEqual(pricing['session_count'], 4)
        self.assertEqual(pricing['calculated_price'], 500)
        self.assertIsNone(pricing['template'])

    def test_rounds_before_multiplying(self):
        # 100 / 3 rounds to 33 first, so three sessions cost 99 and not 100
        self.assertEqual(calculate_window_price(100, 3, 3)['calculated_price'], 99)

    def test_late_join_window(self):
        pricing = calculate_window_price(1000, 8, 6, 'late_join')
        self.assertEqual(pricing['price_per_session'], 106)
        self.assertEqual(pricing['calculated_price'], 636)

    def test_empty_window_rejected(self):
        with self.assertRaises(ValidationError):
            calculate_window_price(1000, 8, 0)

    def test_window_larger_than_course_rejected(self):
        with self.assertRaises(ValidationError):
            calculate_window_price(1000, 8, 9)

    def test_full_access_price_is_exact(self):
        self.assertEqual(calculate_full_access_price(Decimal('1000.50')), Decimal('1000.50'))
