import uuid
from datetime import date as date_type, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ExpenseCategory = Literal[
    "listrik", "air", "internet", "kebersihan", "perbaikan", "gaji", "lainnya"
]


class ExpenseCreate(BaseModel):
    date: date_type
    category: ExpenseCategory
    description: str
    amount: int = Field(gt=0)
    notes: str | None = None


class ExpenseUpdate(BaseModel):
    date: date_type | None = None
    category: ExpenseCategory | None = None
    description: str | None = None
    amount: int | None = Field(default=None, gt=0)
    notes: str | None = None

    @field_validator("date", "category", "description", "amount", mode="before")
    @classmethod
    def _not_null(cls, v):
        if v is None:
            raise ValueError("must not be null")
        return v


class ExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    date: date_type
    category: str
    description: str
    amount: int
    notes: str | None
    created_at: datetime
