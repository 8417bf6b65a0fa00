import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import extract, select
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.database import flush_or_raise, get_db
from kost.models.expense import Expense
from kost.schemas.expense import ExpenseCreate, ExpenseResponse, ExpenseUpdate

router = APIRouter(tags=["expenses"])


async def _get_expense(expense_id: uuid.UUID, db: AsyncSession) -> Expense:
    expense = await db.get(Expense, expense_id)
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


@router.get("/expenses/", response_model=list[ExpenseResponse])
async def list_expenses(
    year: int | None = None,
    month: int | None = None,
    category: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    query = select(Expense).order_by(Expense.date.desc())
    if year:
        query = query.where(extract("year", Expense.date) == year)
    if month:
        query = query.where(extract("month", Expense.date) == month)
    if category:
        query = query.where(Expense.category == category)
    result = await db.execute(query)
    return result.scalars().all()


@router.post("/expenses/", response_model=ExpenseResponse, status_code=201)
async def create_expense(payload: ExpenseCreate, db: AsyncSession = Depends(get_db)):
    expense = Expense(**payload.model_dump())
    db.add(expense)
    await flush_or_raise(db)
    await db.refresh(expense)
    return expense


@router.patch("/expenses/{expense_id}", response_model=ExpenseResponse)
async def update_expense(
    expense_id: uuid.UUID,
    payload: ExpenseUpdate,
    db: AsyncSession = Depends(get_db),
):
    expense = await _get_expense(expense_id, db)
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(expense, field, value)
    await flush_or_raise(db)
    await db.refresh(expense)
    return expense


@router.delete("/expenses/{expense_id}", status_code=204)
async def delete_expense(expense_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    expense = await _get_expense(expense_id, db)
    await db.delete(expense)
