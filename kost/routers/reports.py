from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.database import get_db
from kost.schemas.report import (
    ArrearsReportResponse,
    FinancialReportResponse,
    MonthlyReportResponse,
)
from kost.services.reports import (
    load_arrears_report,
    load_financial_report,
    load_monthly_report,
)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/monthly", response_model=MonthlyReportResponse)
async def monthly_report(
    month: int = Query(ge=1, le=12),
    year: int = Query(ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
):
    return await load_monthly_report(db, month, year)


@router.get("/financial", response_model=FinancialReportResponse)
async def financial_report(
    year: int = Query(ge=2000, le=2100),
    db: AsyncSession = Depends(get_db),
):
    return await load_financial_report(db, year)


@router.get("/arrears", response_model=ArrearsReportResponse)
async def arrears_report(
    as_of: date | None = None,
    db: AsyncSession = Depends(get_db),
):
    return await load_arrears_report(db, as_of or date.today())
