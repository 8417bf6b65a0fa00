from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.config import settings
from kost.core.database import get_db

router = APIRouter(tags=["health"])

_BALANCE_FUNCTIONS = text(
    "SELECT to_regprocedure('calculate_outstanding_balance(uuid)') IS NOT NULL, "
    "to_regprocedure('update_tenant_balance(uuid)') IS NOT NULL"
)


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/health/db")
async def health_db(db: AsyncSession = Depends(get_db)):
    """Database reachable, and whether the balance functions are installed.

    Without them payments still record (local balance, stale summary), so
    the status is "degraded" rather than an error.
    """
    calculate, refresh = (await db.execute(_BALANCE_FUNCTIONS)).one()
    degraded = not refresh or (settings.use_remote_balance and not calculate)
    return {
        "status": "degraded" if degraded else "ok",
        "database": "connected",
        "balance_functions": {
            "calculate_outstanding_balance": bool(calculate),
            "update_tenant_balance": bool(refresh),
        },
        "remote_balance": settings.use_remote_balance,
    }
