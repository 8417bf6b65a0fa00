import uuid
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.database import flush_or_raise, get_db
from kost.core.deps import get_balance_calculator
from kost.models.tenant import Tenant
from kost.schemas.tenant import (
    TenantBalanceResponse,
    TenantCreate,
    TenantResponse,
    TenantUpdate,
)
from kost.services.balance import FallbackBalanceCalculator

router = APIRouter(tags=["tenants"])


async def get_tenant_or_404(tenant_id: uuid.UUID, db: AsyncSession) -> Tenant:
    tenant = await db.get(Tenant, tenant_id)
    if not tenant:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return tenant


@router.get("/tenants/", response_model=list[TenantResponse])
async def list_tenants(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Tenant).order_by(Tenant.room_number))
    return result.scalars().all()


@router.get("/tenants/{tenant_id}", response_model=TenantResponse)
async def get_tenant(tenant_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    return await get_tenant_or_404(tenant_id, db)


@router.post("/tenants/", response_model=TenantResponse, status_code=201)
async def create_tenant(payload: TenantCreate, db: AsyncSession = Depends(get_db)):
    tenant = Tenant(**payload.model_dump())
    db.add(tenant)
    await flush_or_raise(db)
    await db.refresh(tenant)
    return tenant


@router.patch("/tenants/{tenant_id}", response_model=TenantResponse)
async def update_tenant(
    tenant_id: uuid.UUID,
    payload: TenantUpdate,
    db: AsyncSession = Depends(get_db),
):
    tenant = await get_tenant_or_404(tenant_id, db)
    # monthly_rent is not historized: a change re-prices all elapsed months
    for field, value in payload.model_dump(exclude_unset=True).items():
        setattr(tenant, field, value)
    await flush_or_raise(db)
    await db.refresh(tenant)
    return tenant


@router.delete("/tenants/{tenant_id}", status_code=204)
async def delete_tenant(tenant_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    tenant = await get_tenant_or_404(tenant_id, db)
    await db.delete(tenant)


@router.get("/tenants/{tenant_id}/balance", response_model=TenantBalanceResponse)
async def tenant_balance(
    tenant_id: uuid.UUID,
    as_of: date | None = None,
    db: AsyncSession = Depends(get_db),
    balance: FallbackBalanceCalculator = Depends(get_balance_calculator),
):
    """Outstanding balance recomputed now; never read from tenant_balances."""
    tenant = await get_tenant_or_404(tenant_id, db)
    outstanding = await balance.outstanding(tenant, as_of)
    return TenantBalanceResponse(
        tenant_id=tenant.id,
        outstanding_balance=outstanding,
        as_of=as_of or date.today(),
    )
