"""
Outstanding balance (arrears) for a tenant as of the active system month.

    months_elapsed = (Y - checkin_Y) * 12 + (M - checkin_M) + 1     floored at 0
    outstanding    = max(monthly_rent * months_elapsed - sum(payment_amount), 0)

The check-in month counts, so a tenant who moved in this month already owes
one month.  Payments are a running total, not matched to their period.
Rent is not historized: editing ``Tenant.monthly_rent`` re-prices every
elapsed month, past ones included.

Two interchangeable strategies produce this figure:

  RemoteBalanceStrategy  the ``calculate_outstanding_balance`` database function
  LocalBalanceStrategy   the same arithmetic over the tenant's payment rows

``FallbackBalanceCalculator`` asks the first and drops to the second when the
database function is unavailable.
"""

import logging
import uuid
from collections.abc import Iterable
from datetime import date
from typing import Protocol

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.config import settings
from kost.core.errors import BalanceUnavailableError
from kost.models.payment import Payment
from kost.models.tenant import Tenant

logger = logging.getLogger(__name__)


# ─── Pure arithmetic ────────────────────────────────────────────────────────────

def months_elapsed(checkin_date: date, as_of: date) -> int:
    """Calendar months from the check-in month through ``as_of``'s month, inclusive."""
    months = (as_of.year - checkin_date.year) * 12 + (as_of.month - checkin_date.month) + 1
    return max(months, 0)


def compute_outstanding(
    checkin_date: date,
    monthly_rent: int,
    payment_amounts: Iterable[int],
    as_of: date,
) -> int:
    months = months_elapsed(checkin_date, as_of)
    if months < 1:
        return 0
    should_have_paid = monthly_rent * months
    total_paid = sum(amount or 0 for amount in payment_amounts)
    return max(should_have_paid - total_paid, 0)


# ─── Strategies ─────────────────────────────────────────────────────────────────

class BalanceStrategy(Protocol):
    async def outstanding(self, tenant: Tenant, as_of: date | None = None) -> int: ...


class RemoteBalanceStrategy:
    """Delegates to the database function; the function always uses the server date."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def outstanding(self, tenant: Tenant, as_of: date | None = None) -> int:
        try:
            # Savepoint so a failing call does not poison the outer transaction
            async with self.db.begin_nested():
                result = await self.db.execute(
                    select(func.calculate_outstanding_balance(tenant.id))
                )
                value = result.scalar()
        except SQLAlchemyError as exc:
            raise BalanceUnavailableError(
                f"calculate_outstanding_balance failed for tenant {tenant.id}: {exc}"
            ) from exc
        return int(value or 0)


class LocalBalanceStrategy:
    """Recomputes from first principles over every payment row of the tenant."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def payment_amounts(self, tenant_id: uuid.UUID) -> list[int]:
        result = await self.db.execute(
            select(Payment.payment_amount)
            .where(Payment.tenant_id == tenant_id)
            .order_by(Payment.payment_date)
        )
        return list(result.scalars().all())

    async def outstanding(self, tenant: Tenant, as_of: date | None = None) -> int:
        amounts = await self.payment_amounts(tenant.id)
        balance = compute_outstanding(
            tenant.checkin_date,
            tenant.monthly_rent,
            amounts,
            as_of or date.today(),
        )
        logger.debug(
            "Local balance for tenant %s: %d payments, outstanding %d",
            tenant.id, len(amounts), balance,
        )
        return balance


class FallbackBalanceCalculator:
    """Primary strategy first; on BalanceUnavailableError, the fallback answers."""

    def __init__(self, primary: BalanceStrategy | None, fallback: BalanceStrategy):
        self.primary = primary
        self.fallback = fallback

    async def outstanding(self, tenant: Tenant, as_of: date | None = None) -> int:
        # The database function only knows "today"
        historical = as_of is not None and as_of != date.today()
        if self.primary is not None and not historical:
            try:
                return await self.primary.outstanding(tenant, as_of)
            except BalanceUnavailableError as exc:
                logger.warning("Remote balance unavailable, recomputing locally: %s", exc.message)
        return await self.fallback.outstanding(tenant, as_of)


def build_balance_calculator(db: AsyncSession) -> FallbackBalanceCalculator:
    primary = RemoteBalanceStrategy(db) if settings.use_remote_balance else None
    return FallbackBalanceCalculator(primary, LocalBalanceStrategy(db))
