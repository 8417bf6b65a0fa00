import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# ─── Calculation preview ─────────────────────────────────────────────────────

class PaymentCalculationRequest(BaseModel):
    rent_amount: int = Field(ge=0)
    previous_balance: int = Field(default=0, ge=0)
    discount_amount: int = Field(default=0, ge=0)
    payment_amount: int = Field(default=0, ge=0)


class PaymentCalculationResponse(BaseModel):
    total_due: int
    total_after_discount: int
    remaining_balance: int
    status: str
    receipt_number: str
    payment_date: date


# ─── Payment ─────────────────────────────────────────────────────────────────

class PaymentSubmit(BaseModel):
    """What the payment form sends. Amount checks happen in the submission service."""
    tenant_id: uuid.UUID | None = None
    period_month: int = Field(ge=1, le=12)
    period_year: int = Field(ge=2000, le=2100)
    payment_amount: int = 0
    discount_amount: int = Field(default=0, ge=0)
    payment_method: str | None = None  # cash | transfer | e-wallet
    notes: str | None = None


class PaymentCorrection(BaseModel):
    """Operator correction; stored values are not recomputed."""
    payment_amount: int | None = Field(default=None, gt=0)
    discount_amount: int | None = Field(default=None, ge=0)
    notes: str | None = None

    @field_validator("payment_amount", "discount_amount", mode="before")
    @classmethod
    def _not_null(cls, v):
        # Omit a field to leave it unchanged; null would clear a NOT NULL column
        if v is None:
            raise ValueError("must not be null")
        return v


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    tenant_id: uuid.UUID
    receipt_number: str
    payment_date: date
    period_month: int
    period_year: int
    rent_amount: int
    previous_balance: int
    payment_amount: int
    discount_amount: int
    remaining_balance: int
    payment_status: str
    payment_method: str
    notes: str | None
    created_at: datetime | None = None


class PaymentSubmitResponse(BaseModel):
    payment: PaymentResponse
    warnings: list[str] = []


class ReceiptResponse(BaseModel):
    business_name: str
    receipt_number: str
    payment_date: str
    tenant_name: str
    room_number: str
    period: str
    rent_amount: str
    previous_balance: str
    discount_amount: str
    total_after_discount: str
    payment_amount: str
    payment_amount_words: str
    remaining_balance: str
    status: str
    payment_method: str
    notes: str | None
