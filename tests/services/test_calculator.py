"""
Unit tests for the payment calculator: pure arithmetic, no DB.
"""
import re
from datetime import datetime

import pytest

from kost.services.calculator import (
    PaymentStatus,
    calculate_payment,
    classify,
    generate_receipt_number,
)

NOW = datetime(2024, 3, 15, 10, 30, 45)


# ── calculate_payment scenarios ──────────────────────────────────────────────

class TestCalculatePayment:
    def test_pays_off_rent_and_arrears(self):
        r = calculate_payment(500000, 1000000, 0, 1500000, now=NOW)
        assert r.total_due == 1500000
        assert r.remaining_balance == 0
        assert r.status is PaymentStatus.PAID_IN_FULL

    def test_discount_then_under_payment(self):
        r = calculate_payment(500000, 0, 100000, 300000, now=NOW)
        assert r.total_after_discount == 400000
        assert r.remaining_balance == 100000
        assert r.status is PaymentStatus.UNDER_PAID

    def test_over_payment_is_negative_remainder(self):
        r = calculate_payment(500000, 0, 0, 550000, now=NOW)
        assert r.remaining_balance == -50000
        assert r.status is PaymentStatus.OVER_PAID

    def test_discount_larger_than_due_is_not_floored(self):
        r = calculate_payment(100000, 0, 150000, 0, now=NOW)
        assert r.total_after_discount == -50000
        assert r.status is PaymentStatus.OVER_PAID

    def test_remaining_balance_identity(self):
        cases = [
            (0, 0, 0, 0),
            (500000, 250000, 50000, 100000),
            (750000, 0, 0, 1000000),
            (1, 2, 3, 4),
        ]
        for rent, prev, disc, paid in cases:
            r = calculate_payment(rent, prev, disc, paid, now=NOW)
            assert r.remaining_balance == rent + prev - disc - paid
            assert r.status is classify(r.remaining_balance)

    def test_identical_inputs_give_identical_figures(self):
        a = calculate_payment(500000, 200000, 10000, 300000)
        b = calculate_payment(500000, 200000, 10000, 300000)
        assert (a.total_due, a.total_after_discount, a.remaining_balance, a.status) == (
            b.total_due, b.total_after_discount, b.remaining_balance, b.status
        )

    def test_payment_date_is_call_date(self):
        r = calculate_payment(500000, 0, 0, 500000, now=NOW)
        assert r.payment_date == NOW.date()

    def test_negative_input_rejected(self):
        with pytest.raises(ValueError, match="payment_amount"):
            calculate_payment(500000, 0, 0, -1, now=NOW)


# ── classify ─────────────────────────────────────────────────────────────────

class TestClassify:
    def test_zero_is_paid_in_full(self):
        assert classify(0) is PaymentStatus.PAID_IN_FULL

    def test_positive_is_under_paid(self):
        assert classify(1) is PaymentStatus.UNDER_PAID

    def test_negative_is_over_paid(self):
        assert classify(-1) is PaymentStatus.OVER_PAID

    def test_status_values(self):
        assert PaymentStatus.UNDER_PAID.value == "under_paid"


# ── receipt numbers ──────────────────────────────────────────────────────────

class TestReceiptNumber:
    def test_layout(self):
        number = generate_receipt_number(NOW, "AW")
        assert number.startswith("AW240315")
        assert re.fullmatch(r"AW240315\d{4}", number)

    def test_disambiguator_is_last_four_millis(self):
        millis = str(int(NOW.timestamp() * 1000))[-4:]
        assert generate_receipt_number(NOW, "AW").endswith(millis)

    def test_custom_prefix(self):
        assert generate_receipt_number(NOW, "KOS").startswith("KOS240315")

    def test_default_prefix_from_settings(self):
        r = calculate_payment(500000, 0, 0, 500000, now=NOW)
        assert r.receipt_number.startswith("AW240315")
