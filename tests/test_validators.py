"""
Tests for the form validation predicates and business-key generator.
Run from project root: python -m pytest tests/test_validators.py -v
"""
import math
import re
import unittest

from utils.identifiers import generate_id
from utils.validators import (
    to_cents,
    validate_application_id,
    validate_loan_amount,
    validate_name,
    validate_payment_amount,
)


class TestValidateName(unittest.TestCase):
    def test_trimmed_length(self):
        self.assertFalse(validate_name(" a "))
        self.assertTrue(validate_name("Al"))
        self.assertTrue(validate_name("  Jane Doe  "))

    def test_empty_and_missing(self):
        self.assertFalse(validate_name(""))
        self.assertFalse(validate_name("   "))
        self.assertFalse(validate_name(None))


class TestValidateLoanAmount(unittest.TestCase):
    def test_boundaries(self):
        self.assertFalse(validate_loan_amount(99.99))
        self.assertTrue(validate_loan_amount(100))
        self.assertTrue(validate_loan_amount(100_000))
        self.assertFalse(validate_loan_amount(100_000.01))

    def test_not_a_number(self):
        self.assertFalse(validate_loan_amount(math.nan))
        self.assertFalse(validate_loan_amount("abc"))
        self.assertFalse(validate_loan_amount(None))

    def test_numeric_strings_from_forms(self):
        self.assertTrue(validate_loan_amount("2500"))
        self.assertFalse(validate_loan_amount("50"))


class TestValidatePaymentAmount(unittest.TestCase):
    def test_positive_only(self):
        self.assertTrue(validate_payment_amount(0.01))
        self.assertFalse(validate_payment_amount(0))
        self.assertFalse(validate_payment_amount(-5))

    def test_not_a_number(self):
        self.assertFalse(validate_payment_amount(math.nan))
        self.assertFalse(validate_payment_amount(""))


class TestValidateApplicationId(unittest.TestCase):
    def test_presence(self):
        self.assertTrue(validate_application_id("APP-ABC123"))
        self.assertFalse(validate_application_id(""))
        self.assertFalse(validate_application_id(None))


class TestGenerateId(unittest.TestCase):
    def test_format(self):
        """1000 generated ids all match PREFIX-XXXXXX."""
        pattern = re.compile(r"^APP-[A-Z0-9]{6}$")
        for _ in range(1000):
            self.assertRegex(generate_id("APP"), pattern)

    def test_payment_prefix(self):
        self.assertRegex(generate_id("PAY"), r"^PAY-[A-Z0-9]{6}$")


class TestToCents(unittest.TestCase):
    def test_rounds_half_up(self):
        self.assertEqual(to_cents(12.345), 12.35)
        self.assertEqual(to_cents("0.004"), 0.0)
        self.assertEqual(to_cents(0.005), 0.01)
        self.assertEqual(to_cents(100), 100.0)

    def test_non_numbers(self):
        self.assertIsNone(to_cents(None))
        self.assertIsNone(to_cents("abc"))
        self.assertIsNone(to_cents(True))
        self.assertTrue(math.isinf(to_cents(float("inf"))))


if __name__ == "__main__":
    unittest.main()
