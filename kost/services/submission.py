"""
Payment submission: validate, reconcile, persist, refresh the cached balance.

Order of operations:

  1. check_required_fields()        no I/O; PaymentValidationError on bad input
     previous balance (optional)    recomputed under the in-flight guard
     validate_payment_form()        discount against the fresh total
  2. calculate_payment()            pure
  3. INSERT payments (savepoint)    PersistenceError aborts, nothing stored
  4. update_tenant_balance()        best effort; failure becomes a warning

A ``SubmissionGuard`` rejects a second submit for the same key while the
first is still running, so two under-paid payments cannot both be computed
against the same stale previous balance.
"""

import logging
import uuid
from collections.abc import Hashable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.errors import (
    PaymentValidationError,
    SubmissionInProgressError,
    translate_persistence_error,
)
from kost.models.payment import Payment
from kost.models.tenant import Tenant
from kost.services.balance import BalanceStrategy
from kost.services.calculator import PaymentMethod, PaymentResult, calculate_payment
from kost.services.formatting import month_name

logger = logging.getLogger(__name__)

_VALID_METHODS = {m.value for m in PaymentMethod}

BALANCE_STALE_WARNING = (
    "Pembayaran tersimpan, tetapi ringkasan saldo penghuni belum diperbarui"
)


@dataclass
class PaymentDraft:
    """Everything the form has collected for one payment."""
    tenant: Tenant | None
    period_month: int
    period_year: int
    rent_amount: int
    previous_balance: int = 0
    payment_amount: int = 0
    discount_amount: int = 0
    payment_method: str | None = None
    notes: str | None = None


@dataclass
class SubmissionOutcome:
    payment: Payment
    result: PaymentResult
    warnings: list[str] = field(default_factory=list)


class SubmissionGuard:
    """In-flight registry: one running submission per key."""

    def __init__(self) -> None:
        self._in_flight: set[Hashable] = set()

    def busy(self, key: Hashable) -> bool:
        return key in self._in_flight

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        if key in self._in_flight:
            raise SubmissionInProgressError("Pembayaran sedang diproses, harap tunggu")
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)


# Process-wide guard used by the HTTP layer, keyed by tenant id
default_guard = SubmissionGuard()


def check_required_fields(tenant_selected: bool, payment_amount: int | None, payment_method: str | None) -> None:
    """The checks that need no database: run these before loading anything."""
    if not tenant_selected:
        raise PaymentValidationError("Pilih penghuni terlebih dahulu")
    if not payment_amount or payment_amount <= 0:
        raise PaymentValidationError("Masukkan jumlah pembayaran yang valid")
    if not payment_method:
        raise PaymentValidationError("Pilih metode pembayaran")
    if payment_method not in _VALID_METHODS:
        raise PaymentValidationError(f"Metode pembayaran tidak dikenal: {payment_method}")


def validate_payment_form(draft: PaymentDraft) -> None:
    check_required_fields(draft.tenant is not None, draft.payment_amount, draft.payment_method)
    if draft.discount_amount < 0:
        raise PaymentValidationError("Diskon tidak boleh negatif")
    if draft.discount_amount > draft.rent_amount + draft.previous_balance:
        raise PaymentValidationError("Diskon melebihi total tagihan")


def build_payment_record(draft: PaymentDraft, result: PaymentResult) -> Payment:
    notes = (draft.notes or "").strip()
    if not notes:
        notes = f"Pembayaran sewa bulan {month_name(draft.period_month)} {draft.period_year}"
    return Payment(
        tenant_id=draft.tenant.id,
        receipt_number=result.receipt_number,
        payment_date=result.payment_date,
        period_month=draft.period_month,
        period_year=draft.period_year,
        rent_amount=draft.rent_amount,
        previous_balance=draft.previous_balance or 0,
        payment_amount=draft.payment_amount,
        discount_amount=draft.discount_amount or 0,
        remaining_balance=result.remaining_balance,
        payment_status=result.status.value,
        payment_method=draft.payment_method,
        notes=notes,
    )


async def refresh_tenant_balance(db: AsyncSession, tenant_id: uuid.UUID) -> bool:
    """Ask the database to rebuild tenant_balances for one tenant. Returns False on failure."""
    try:
        async with db.begin_nested():
            await db.execute(select(func.update_tenant_balance(tenant_id)))
    except SQLAlchemyError as exc:
        logger.warning("update_tenant_balance failed for tenant %s: %s", tenant_id, exc)
        return False
    return True


class PaymentSubmitter:
    def __init__(self, db: AsyncSession, guard: SubmissionGuard | None = None):
        self.db = db
        self.guard = guard or default_guard

    async def submit(
        self,
        draft: PaymentDraft,
        key: Hashable | None = None,
        balance: BalanceStrategy | None = None,
    ) -> SubmissionOutcome:
        """Record one payment.

        With ``balance`` given, the previous balance is recomputed while the
        guard is held, so no concurrent submit can make it stale.
        """
        check_required_fields(draft.tenant is not None, draft.payment_amount, draft.payment_method)
        tenant = draft.tenant

        with self.guard.hold(key if key is not None else tenant.id):
            if balance is not None:
                draft.previous_balance = await balance.outstanding(tenant)
            validate_payment_form(draft)

            result = calculate_payment(
                draft.rent_amount,
                draft.previous_balance,
                draft.discount_amount,
                draft.payment_amount,
            )
            payment = build_payment_record(draft, result)

            try:
                async with self.db.begin_nested():
                    self.db.add(payment)
                    await self.db.flush()
            except SQLAlchemyError as exc:
                logger.error(
                    "Payment insert failed for tenant %s (receipt %s): %s",
                    tenant.id, result.receipt_number, exc,
                )
                raise translate_persistence_error(exc) from exc

            await self.db.refresh(payment)
            logger.info(
                "Payment %s recorded for tenant %s: paid %d, remaining %d (%s)",
                payment.receipt_number, tenant.id, payment.payment_amount,
                payment.remaining_balance, payment.payment_status,
            )

            outcome = SubmissionOutcome(payment=payment, result=result)
            if not await refresh_tenant_balance(self.db, tenant.id):
                outcome.warnings.append(BALANCE_STALE_WARNING)
            return outcome
