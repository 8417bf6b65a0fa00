import uuid
from datetime import date

from pydantic import BaseModel

from kost.schemas.payment import PaymentResponse


class MonthlySummary(BaseModel):
    total_payments: int
    total_outstanding: int
    total_discount: int
    total_transactions: int


class MonthlyReportResponse(BaseModel):
    period_month: int
    period_year: int
    summary: MonthlySummary
    payments: list[PaymentResponse]


class MonthRow(BaseModel):
    month: int
    label: str
    income: int
    expense: int
    profit: int


class CategoryTotal(BaseModel):
    category: str
    amount: int


class FinancialReportResponse(BaseModel):
    year: int
    months: list[MonthRow]
    expenses_by_category: list[CategoryTotal]
    total_income: int
    total_expense: int
    net_profit: int


class ArrearsRow(BaseModel):
    tenant_id: uuid.UUID
    name: str
    room_number: str
    phone: str | None
    total_arrears: int
    months_in_arrears: int
    last_payment_date: date | None


class ArrearsReportResponse(BaseModel):
    as_of: date
    tenants: list[ArrearsRow]
    total_arrears: int
