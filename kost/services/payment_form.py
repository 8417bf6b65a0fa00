"""
Server-side payment form state.

Holds what an operator has entered so far and keeps the calculation preview
current.  The previous balance is fetched fresh, never cached, every time the
tenant or the period changes.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from kost.core.config import settings
from kost.core.errors import SubmissionInProgressError
from kost.models.tenant import Tenant
from kost.services.balance import BalanceStrategy
from kost.services.calculator import PaymentResult, calculate_payment
from kost.services.submission import PaymentDraft, PaymentSubmitter, SubmissionOutcome

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = {"payment_amount", "discount_amount", "payment_method", "notes", "rent_amount"}


@dataclass
class PaymentForm:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    tenant: Tenant | None = None
    period_month: int = field(default_factory=lambda: date.today().month)
    period_year: int = field(default_factory=lambda: date.today().year)
    rent_amount: int = field(default_factory=lambda: settings.default_monthly_rent)
    previous_balance: int = 0
    payment_amount: int = 0
    discount_amount: int = 0
    payment_method: str | None = "cash"
    notes: str | None = None
    result: PaymentResult | None = None
    submitting: bool = False
    touched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    async def select_tenant(self, tenant: Tenant, balance: BalanceStrategy) -> None:
        self.tenant = tenant
        self.rent_amount = tenant.monthly_rent
        await self.refresh_balance(balance)

    async def set_period(self, month: int, year: int, balance: BalanceStrategy) -> None:
        if not 1 <= month <= 12:
            raise ValueError(f"month out of range: {month}")
        self.period_month = month
        self.period_year = year
        if self.tenant is not None:
            await self.refresh_balance(balance)
        else:
            self.recalculate()

    async def refresh_balance(self, balance: BalanceStrategy) -> None:
        self.previous_balance = await balance.outstanding(self.tenant)
        logger.debug("Form %s: previous balance %d", self.id, self.previous_balance)
        self.recalculate()

    def update(self, **fields) -> None:
        unknown = set(fields) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"not editable: {', '.join(sorted(unknown))}")
        for name, value in fields.items():
            setattr(self, name, value)
        self.recalculate()

    def recalculate(self) -> PaymentResult:
        self.result = calculate_payment(
            max(self.rent_amount, 0),
            max(self.previous_balance, 0),
            max(self.discount_amount, 0),
            max(self.payment_amount, 0),
        )
        return self.result

    def draft(self) -> PaymentDraft:
        return PaymentDraft(
            tenant=self.tenant,
            period_month=self.period_month,
            period_year=self.period_year,
            rent_amount=self.rent_amount,
            previous_balance=self.previous_balance,
            payment_amount=self.payment_amount,
            discount_amount=self.discount_amount,
            payment_method=self.payment_method,
            notes=self.notes,
        )

    async def submit(
        self, submitter: PaymentSubmitter, balance: BalanceStrategy | None = None
    ) -> SubmissionOutcome:
        if self.submitting:
            raise SubmissionInProgressError("Pembayaran sedang diproses, harap tunggu")
        self.submitting = True
        try:
            outcome = await submitter.submit(self.draft(), balance=balance)
        finally:
            self.submitting = False
        self.reset()
        return outcome

    def reset(self) -> None:
        today = date.today()
        self.tenant = None
        self.period_month = today.month
        self.period_year = today.year
        self.rent_amount = settings.default_monthly_rent
        self.previous_balance = 0
        self.payment_amount = 0
        self.discount_amount = 0
        self.payment_method = "cash"
        self.notes = None
        self.result = None


class FormRegistry:
    """Open forms by id, kept in process memory.

    A form untouched for longer than ``ttl`` is evicted on the next open/get,
    unless it is in the middle of a submit.
    """

    def __init__(self, ttl: timedelta | None = None) -> None:
        self.ttl = ttl or timedelta(minutes=settings.payment_form_ttl_minutes)
        self._forms: dict[uuid.UUID, PaymentForm] = {}

    def __len__(self) -> int:
        return len(self._forms)

    def open(self, now: datetime | None = None) -> PaymentForm:
        now = now or datetime.now(timezone.utc)
        self.evict_stale(now)
        form = PaymentForm(touched_at=now)
        self._forms[form.id] = form
        return form

    def get(self, form_id: uuid.UUID, now: datetime | None = None) -> PaymentForm | None:
        now = now or datetime.now(timezone.utc)
        self.evict_stale(now)
        form = self._forms.get(form_id)
        if form is not None:
            form.touched_at = now
        return form

    def close(self, form_id: uuid.UUID) -> None:
        self._forms.pop(form_id, None)

    def evict_stale(self, now: datetime) -> int:
        stale = [
            form_id
            for form_id, form in self._forms.items()
            if not form.submitting and now - form.touched_at > self.ttl
        ]
        for form_id in stale:
            del self._forms[form_id]
        if stale:
            logger.info("Evicted %d idle payment forms", len(stale))
        return len(stale)


form_registry = FormRegistry()
