import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.config import settings
from kost.core.database import flush_or_raise, get_db
from kost.core.deps import get_balance_calculator, get_notifier, get_submitter
from kost.models.payment import Payment
from kost.models.tenant import Tenant
from kost.routers.tenants import get_tenant_or_404
from kost.schemas.payment import (
    PaymentCalculationRequest,
    PaymentCalculationResponse,
    PaymentCorrection,
    PaymentResponse,
    PaymentSubmit,
    PaymentSubmitResponse,
    ReceiptResponse,
)
from kost.services.balance import FallbackBalanceCalculator
from kost.services.calculator import PaymentResult, calculate_payment
from kost.services.formatting import (
    format_currency,
    format_date,
    month_name,
    number_to_words,
    status_label,
)
from kost.services.messaging import WhatsAppNotifier
from kost.services.submission import (
    PaymentDraft,
    PaymentSubmitter,
    SubmissionOutcome,
    check_required_fields,
)

router = APIRouter(tags=["payments"])


def calculation_response(result: PaymentResult) -> PaymentCalculationResponse:
    return PaymentCalculationResponse(
        total_due=result.total_due,
        total_after_discount=result.total_after_discount,
        remaining_balance=result.remaining_balance,
        status=result.status.value,
        receipt_number=result.receipt_number,
        payment_date=result.payment_date,
    )


def queue_confirmation(
    background: BackgroundTasks,
    notifier: WhatsAppNotifier,
    tenant: Tenant,
    outcome: SubmissionOutcome,
) -> None:
    """Send the WhatsApp confirmation after the response; failures only log."""
    background.add_task(
        notifier.send_payment_confirmation,
        tenant,
        outcome.payment.period_month,
        outcome.payment.period_year,
        outcome.payment.payment_amount,
        outcome.result,
    )


async def _get_payment(payment_id: uuid.UUID, db: AsyncSession) -> Payment:
    payment = await db.get(Payment, payment_id)
    if not payment:
        raise HTTPException(status_code=404, detail="Payment not found")
    return payment


@router.post("/payments/calculate", response_model=PaymentCalculationResponse)
async def preview_calculation(payload: PaymentCalculationRequest):
    result = calculate_payment(
        payload.rent_amount,
        payload.previous_balance,
        payload.discount_amount,
        payload.payment_amount,
    )
    return calculation_response(result)


@router.get("/payments/", response_model=list[PaymentResponse])
async def list_payments(
    tenant_id: uuid.UUID | None = None,
    period_month: int | None = None,
    period_year: int | None = None,
    db: AsyncSession = Depends(get_db),
):
    query = select(Payment).order_by(Payment.payment_date.desc())
    if tenant_id:
        query = query.where(Payment.tenant_id == tenant_id)
    if period_month:
        query = query.where(Payment.period_month == period_month)
    if period_year:
        query = query.where(Payment.period_year == period_year)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/payments/", response_model=PaymentSubmitResponse, status_code=201)
async def submit_payment(
    payload: PaymentSubmit,
    background: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    balance: FallbackBalanceCalculator = Depends(get_balance_calculator),
    submitter: PaymentSubmitter = Depends(get_submitter),
    notifier: WhatsAppNotifier = Depends(get_notifier),
):
    """Record a payment; the previous balance is recomputed here, not taken from the client."""
    check_required_fields(payload.tenant_id is not None, payload.payment_amount, payload.payment_method)
    tenant = await get_tenant_or_404(payload.tenant_id, db)
    draft = PaymentDraft(
        tenant=tenant,
        period_month=payload.period_month,
        period_year=payload.period_year,
        rent_amount=tenant.monthly_rent,
        payment_amount=payload.payment_amount,
        discount_amount=payload.discount_amount,
        payment_method=payload.payment_method,
        notes=payload.notes,
    )
    outcome = await submitter.submit(draft, balance=balance)
    queue_confirmation(background, notifier, tenant, outcome)
    return PaymentSubmitResponse(
        payment=PaymentResponse.model_validate(outcome.payment),
        warnings=outcome.warnings,
    )


@router.get("/payments/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await _get_payment(payment_id, db)


@router.patch("/payments/{payment_id}", response_model=PaymentResponse)
async def correct_payment(
    payment_id: uuid.UUID,
    payload: PaymentCorrection,
    db: AsyncSession = Depends(get_db),
):
    """Operator correction of amount, discount or notes.

    remaining_balance and payment_status keep their recorded values.
    """
    payment = await _get_payment(payment_id, db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(payment, field, value)
    await flush_or_raise(db)
    await db.refresh(payment)
    return payment


@router.delete("/payments/{payment_id}", status_code=204)
async def delete_payment(payment_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    payment = await _get_payment(payment_id, db)
    await db.delete(payment)


@router.get("/payments/{payment_id}/receipt", response_model=ReceiptResponse)
async def payment_receipt(payment_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    payment = await _get_payment(payment_id, db)
    tenant = await get_tenant_or_404(payment.tenant_id, db)
    total_after_discount = payment.rent_amount + payment.previous_balance - payment.discount_amount
    return ReceiptResponse(
        business_name=settings.business_name,
        receipt_number=payment.receipt_number,
        payment_date=format_date(payment.payment_date),
        tenant_name=tenant.name,
        room_number=tenant.room_number,
        period=f"{month_name(payment.period_month)} {payment.period_year}",
        rent_amount=format_currency(payment.rent_amount),
        previous_balance=format_currency(payment.previous_balance),
        discount_amount=format_currency(payment.discount_amount),
        total_after_discount=format_currency(total_after_discount),
        payment_amount=format_currency(payment.payment_amount),
        payment_amount_words=number_to_words(payment.payment_amount),
        remaining_balance=format_currency(payment.remaining_balance),
        status=status_label(payment.payment_status),
        payment_method=payment.payment_method,
        notes=payment.notes,
    )
