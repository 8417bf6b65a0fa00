"""
Reporting: monthly collections, yearly income vs expenses, tenant arrears.

The ``build_*`` functions are pure and take already-loaded rows; the
``load_*`` coroutines fetch those rows with an AsyncSession.  Income is
attributed to a payment's period (period_month/period_year), expenses to
their date.
"""

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date

from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from kost.models.expense import Expense
from kost.models.payment import Payment
from kost.models.tenant import Tenant
from kost.schemas.payment import PaymentResponse
from kost.schemas.report import (
    ArrearsReportResponse,
    ArrearsRow,
    CategoryTotal,
    FinancialReportResponse,
    MonthlyReportResponse,
    MonthlySummary,
    MonthRow,
)
from kost.services.balance import compute_outstanding
from kost.services.formatting import MONTH_NAMES


# ─── Monthly ────────────────────────────────────────────────────────────────────

def summarize_month(payments: Iterable[Payment]) -> MonthlySummary:
    payments = list(payments)
    return MonthlySummary(
        total_payments=sum(p.payment_amount for p in payments),
        # Only under-payments count as still outstanding
        total_outstanding=sum(max(p.remaining_balance, 0) for p in payments),
        total_discount=sum(p.discount_amount for p in payments),
        total_transactions=len(payments),
    )


async def load_monthly_report(db: AsyncSession, month: int, year: int) -> MonthlyReportResponse:
    result = await db.execute(
        select(Payment)
        .where(Payment.period_month == month, Payment.period_year == year)
        .order_by(Payment.payment_date.desc())
    )
    payments = result.scalars().all()
    return MonthlyReportResponse(
        period_month=month,
        period_year=year,
        summary=summarize_month(payments),
        payments=[PaymentResponse.model_validate(p) for p in payments],
    )


# ─── Financial (yearly) ─────────────────────────────────────────────────────────

def build_financial_report(
    year: int,
    payments: Iterable[Payment],
    expenses: Iterable[Expense],
) -> FinancialReportResponse:
    income = [0] * 12
    spent = [0] * 12
    by_category: dict[str, int] = defaultdict(int)

    for p in payments:
        if p.period_year == year and 1 <= p.period_month <= 12:
            income[p.period_month - 1] += p.payment_amount

    for e in expenses:
        if e.date.year != year:
            continue
        spent[e.date.month - 1] += e.amount
        by_category[e.category] += e.amount

    months = [
        MonthRow(
            month=i + 1,
            label=MONTH_NAMES[i][:3],
            income=income[i],
            expense=spent[i],
            profit=income[i] - spent[i],
        )
        for i in range(12)
    ]
    categories = sorted(
        (CategoryTotal(category=c, amount=a) for c, a in by_category.items()),
        key=lambda c: c.amount,
        reverse=True,
    )
    total_income = sum(income)
    total_expense = sum(spent)
    return FinancialReportResponse(
        year=year,
        months=months,
        expenses_by_category=categories,
        total_income=total_income,
        total_expense=total_expense,
        net_profit=total_income - total_expense,
    )


async def load_financial_report(db: AsyncSession, year: int) -> FinancialReportResponse:
    payments = (
        await db.execute(select(Payment).where(Payment.period_year == year))
    ).scalars().all()
    expenses = (
        await db.execute(select(Expense).where(extract("year", Expense.date) == year))
    ).scalars().all()
    return build_financial_report(year, payments, expenses)


# ─── Arrears ────────────────────────────────────────────────────────────────────

def build_arrears_report(
    tenants: Sequence[Tenant],
    payments: Iterable[Payment],
    as_of: date,
) -> ArrearsReportResponse:
    by_tenant: dict = defaultdict(list)
    for p in payments:
        by_tenant[p.tenant_id].append(p)

    rows: list[ArrearsRow] = []
    for tenant in tenants:
        history = by_tenant.get(tenant.id, [])
        arrears = compute_outstanding(
            tenant.checkin_date,
            tenant.monthly_rent,
            (p.payment_amount for p in history),
            as_of,
        )
        if arrears <= 0:
            continue
        last_paid = max((p.payment_date for p in history), default=None)
        rows.append(ArrearsRow(
            tenant_id=tenant.id,
            name=tenant.name,
            room_number=tenant.room_number,
            phone=tenant.phone,
            total_arrears=arrears,
            months_in_arrears=math.ceil(arrears / tenant.monthly_rent) if tenant.monthly_rent else 0,
            last_payment_date=last_paid,
        ))

    rows.sort(key=lambda r: r.total_arrears, reverse=True)
    return ArrearsReportResponse(
        as_of=as_of,
        tenants=rows,
        total_arrears=sum(r.total_arrears for r in rows),
    )


async def load_arrears_report(db: AsyncSession, as_of: date) -> ArrearsReportResponse:
    tenants = (
        await db.execute(select(Tenant).order_by(Tenant.room_number))
    ).scalars().all()
    payments = (
        await db.execute(select(Payment).where(Payment.payment_date <= as_of))
    ).scalars().all()
    return build_arrears_report(tenants, payments, as_of)
