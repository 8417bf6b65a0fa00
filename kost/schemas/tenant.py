import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TenantCreate(BaseModel):
    name: str
    room_number: str
    phone: str | None = None
    email: str | None = None
    checkin_date: date
    monthly_rent: int = Field(gt=0)


class TenantUpdate(BaseModel):
    name: str | None = None
    room_number: str | None = None
    phone: str | None = None
    email: str | None = None
    checkin_date: date | None = None
    monthly_rent: int | None = Field(default=None, gt=0)

    @field_validator("name", "room_number", "checkin_date", "monthly_rent", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class TenantResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    room_number: str
    phone: str | None
    email: str | None
    checkin_date: date
    monthly_rent: int
    created_at: datetime


class TenantBalanceResponse(BaseModel):
    tenant_id: uuid.UUID
    outstanding_balance: int
    as_of: date
