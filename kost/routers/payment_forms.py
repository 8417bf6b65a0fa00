"""
Payment form endpoints: the state a payment UI drives step by step.

    POST   /payment-forms/                 open a form
    PUT    /payment-forms/{id}/tenant      select tenant → balance refetched
    PUT    /payment-forms/{id}/period      change period → balance refetched
    PATCH  /payment-forms/{id}             amounts, method, notes → recalculated
    POST   /payment-forms/{id}/submit      record the payment, form resets
    DELETE /payment-forms/{id}             discard
"""

import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.database import get_db
from kost.core.deps import get_balance_calculator, get_notifier, get_submitter
from kost.routers.payments import calculation_response, queue_confirmation
from kost.routers.tenants import get_tenant_or_404
from kost.schemas.payment import (
    PaymentCalculationResponse,
    PaymentResponse,
    PaymentSubmitResponse,
)
from kost.services.balance import FallbackBalanceCalculator
from kost.services.messaging import WhatsAppNotifier
from kost.services.payment_form import PaymentForm, form_registry
from kost.services.submission import PaymentSubmitter

router = APIRouter(tags=["payment-forms"])


class TenantSelection(BaseModel):
    tenant_id: uuid.UUID


class PeriodSelection(BaseModel):
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)


class FormFields(BaseModel):
    payment_amount: int | None = Field(default=None, ge=0)
    discount_amount: int | None = Field(default=None, ge=0)
    payment_method: str | None = None
    notes: str | None = None


class PaymentFormResponse(BaseModel):
    id: uuid.UUID
    tenant_id: uuid.UUID | None
    tenant_name: str | None
    room_number: str | None
    period_month: int
    period_year: int
    rent_amount: int
    previous_balance: int
    payment_amount: int
    discount_amount: int
    payment_method: str | None
    notes: str | None
    calculation: PaymentCalculationResponse | None
    submitting: bool


def _response(form: PaymentForm) -> PaymentFormResponse:
    tenant = form.tenant
    return PaymentFormResponse(
        id=form.id,
        tenant_id=tenant.id if tenant else None,
        tenant_name=tenant.name if tenant else None,
        room_number=tenant.room_number if tenant else None,
        period_month=form.period_month,
        period_year=form.period_year,
        rent_amount=form.rent_amount,
        previous_balance=form.previous_balance,
        payment_amount=form.payment_amount,
        discount_amount=form.discount_amount,
        payment_method=form.payment_method,
        notes=form.notes,
        calculation=calculation_response(form.result) if form.result else None,
        submitting=form.submitting,
    )


def _get_form(form_id: uuid.UUID) -> PaymentForm:
    form = form_registry.get(form_id)
    if form is None:
        raise HTTPException(status_code=404, detail="Payment form not found")
    return form


@router.post("/payment-forms/", response_model=PaymentFormResponse, status_code=201)
async def open_form():
    form = form_registry.open()
    form.recalculate()
    return _response(form)


@router.get("/payment-forms/{form_id}", response_model=PaymentFormResponse)
async def get_form(form_id: uuid.UUID):
    return _response(_get_form(form_id))


@router.put("/payment-forms/{form_id}/tenant", response_model=PaymentFormResponse)
async def select_tenant(
    form_id: uuid.UUID,
    payload: TenantSelection,
    db: AsyncSession = Depends(get_db),
    balance: FallbackBalanceCalculator = Depends(get_balance_calculator),
):
    form = _get_form(form_id)
    tenant = await get_tenant_or_404(payload.tenant_id, db)
    await form.select_tenant(tenant, balance)
    return _response(form)


@router.put("/payment-forms/{form_id}/period", response_model=PaymentFormResponse)
async def set_period(
    form_id: uuid.UUID,
    payload: PeriodSelection,
    balance: FallbackBalanceCalculator = Depends(get_balance_calculator),
):
    form = _get_form(form_id)
    await form.set_period(payload.month, payload.year, balance)
    return _response(form)


@router.patch("/payment-forms/{form_id}", response_model=PaymentFormResponse)
async def update_form(form_id: uuid.UUID, payload: FormFields):
    form = _get_form(form_id)
    form.update(**payload.model_dump(exclude_unset=True, exclude_none=True))
    return _response(form)


@router.post("/payment-forms/{form_id}/submit", response_model=PaymentSubmitResponse, status_code=201)
async def submit_form(
    form_id: uuid.UUID,
    background: BackgroundTasks,
    balance: FallbackBalanceCalculator = Depends(get_balance_calculator),
    submitter: PaymentSubmitter = Depends(get_submitter),
    notifier: WhatsAppNotifier = Depends(get_notifier),
):
    form = _get_form(form_id)
    tenant = form.tenant
    outcome = await form.submit(submitter, balance)
    queue_confirmation(background, notifier, tenant, outcome)
    return PaymentSubmitResponse(
        payment=PaymentResponse.model_validate(outcome.payment),
        warnings=outcome.warnings,
    )


@router.delete("/payment-forms/{form_id}", status_code=204)
async def close_form(form_id: uuid.UUID):
    _get_form(form_id)
    form_registry.close(form_id)
