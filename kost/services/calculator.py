"""
Payment calculator: reconciles one payment event against what is owed.

    total_due            = rent_amount + previous_balance
    total_after_discount = total_due - discount_amount      (not floored)
    remaining_balance    = total_after_discount - payment_amount

The status is the sign of ``remaining_balance``.  Apart from reading the
clock for the receipt number and payment date, everything here is pure.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime

from kost.core.config import settings


class PaymentStatus(str, enum.Enum):
    PAID_IN_FULL = "paid_in_full"
    UNDER_PAID = "under_paid"
    OVER_PAID = "over_paid"


class PaymentMethod(str, enum.Enum):
    CASH = "cash"
    TRANSFER = "transfer"
    E_WALLET = "e-wallet"


@dataclass(frozen=True)
class PaymentResult:
    total_due: int
    total_after_discount: int
    remaining_balance: int
    status: PaymentStatus
    receipt_number: str
    payment_date: date


def classify(remaining_balance: int) -> PaymentStatus:
    if remaining_balance > 0:
        return PaymentStatus.UNDER_PAID
    if remaining_balance < 0:
        return PaymentStatus.OVER_PAID
    return PaymentStatus.PAID_IN_FULL


def generate_receipt_number(now: datetime | None = None, prefix: str | None = None) -> str:
    """
    ``{prefix}{YY}{MM}{DD}{nnnn}`` where ``nnnn`` is the last four digits of the
    epoch-millisecond timestamp.  Unique in practice, not under rapid concurrent
    calls; the unique index on payments.receipt_number catches collisions.
    """
    now = now or datetime.now()
    prefix = settings.receipt_prefix if prefix is None else prefix
    millis = str(int(now.timestamp() * 1000))[-4:]
    return f"{prefix}{now:%y%m%d}{millis}"


def calculate_payment(
    rent_amount: int,
    previous_balance: int,
    discount_amount: int,
    payment_amount: int,
    *,
    now: datetime | None = None,
    prefix: str | None = None,
) -> PaymentResult:
    for name, value in (
        ("rent_amount", rent_amount),
        ("previous_balance", previous_balance),
        ("discount_amount", discount_amount),
        ("payment_amount", payment_amount),
    ):
        if value < 0:
            raise ValueError(f"{name} must not be negative (got {value})")

    now = now or datetime.now()
    total_due = rent_amount + previous_balance
    total_after_discount = total_due - discount_amount
    remaining_balance = total_after_discount - payment_amount

    return PaymentResult(
        total_due=total_due,
        total_after_discount=total_after_discount,
        remaining_balance=remaining_balance,
        status=classify(remaining_balance),
        receipt_number=generate_receipt_number(now, prefix),
        payment_date=now.date(),
    )
