from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from kost.core.database import get_db
from kost.services.balance import FallbackBalanceCalculator, build_balance_calculator
from kost.services.messaging import WhatsAppNotifier
from kost.services.submission import PaymentSubmitter


def get_balance_calculator(db: AsyncSession = Depends(get_db)) -> FallbackBalanceCalculator:
    return build_balance_calculator(db)


def get_submitter(db: AsyncSession = Depends(get_db)) -> PaymentSubmitter:
    return PaymentSubmitter(db)


def get_notifier(request: Request) -> WhatsAppNotifier:
    """Notifier built once at startup from the app's WhatsApp settings."""
    return request.app.state.notifier
