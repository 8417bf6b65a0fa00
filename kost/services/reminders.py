"""
Scheduled WhatsApp reminders.

Synchronous (Celery) and using a fresh sync SQLAlchemy session per run.

  send_arrears_reminders  every tenant whose outstanding balance is positive
  send_billing_reminders  tenants whose monthly due date is
                            ``reminder_days_before`` days away

A tenant's due day is the day-of-month of their check-in date, clamped to
the length of the month.
"""

import calendar
import logging
from collections import defaultdict
from datetime import date, timedelta

from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from kost.core.config import settings
from kost.models.payment import Payment
from kost.models.tenant import Tenant
from kost.services.balance import compute_outstanding
from kost.services.messaging import WhatsAppNotifier, default_whatsapp_settings
from kost.worker import celery_app

logger = logging.getLogger(__name__)

_engine = create_engine(settings.database_url_sync, pool_pre_ping=True)


def due_date_in_month(checkin_date: date, year: int, month: int) -> date:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(checkin_date.day, last_day))


def is_billing_day(checkin_date: date, today: date, days_before: int) -> bool:
    """True when the next due date falls exactly ``days_before`` days after today."""
    target = today + timedelta(days=days_before)
    if target < checkin_date:
        return False
    return due_date_in_month(checkin_date, target.year, target.month) == target


def _arrears_by_tenant(db: Session, today: date) -> list[tuple[Tenant, int]]:
    tenants = db.execute(select(Tenant).order_by(Tenant.room_number)).scalars().all()
    paid: dict = defaultdict(list)
    for tenant_id, amount in db.execute(select(Payment.tenant_id, Payment.payment_amount)).all():
        paid[tenant_id].append(amount)
    return [
        (t, compute_outstanding(t.checkin_date, t.monthly_rent, paid.get(t.id, []), today))
        for t in tenants
    ]


@celery_app.task(name="kost.services.reminders.send_arrears_reminders")
def send_arrears_reminders():
    """Daily: remind every tenant in arrears."""
    notifier = WhatsAppNotifier(default_whatsapp_settings())
    if not notifier.settings.auto_reminder_arrears:
        logger.info("Arrears reminders disabled")
        return 0

    today = date.today()
    sent = 0
    with Session(_engine) as db:
        for tenant, arrears in _arrears_by_tenant(db, today):
            if arrears > 0 and notifier.send_arrears_reminder(tenant, arrears):
                sent += 1

    logger.info("Arrears reminders done: %d sent", sent)
    return sent


@celery_app.task(name="kost.services.reminders.send_billing_reminders")
def send_billing_reminders():
    """Daily: remind tenants whose rent falls due in ``reminder_days_before`` days."""
    notifier = WhatsAppNotifier(default_whatsapp_settings())
    if not notifier.settings.auto_billing:
        logger.info("Billing reminders disabled")
        return 0

    today = date.today()
    days_before = notifier.settings.reminder_days_before
    due_month = (today + timedelta(days=days_before)).month
    sent = 0
    with Session(_engine) as db:
        tenants = db.execute(select(Tenant)).scalars().all()
        for tenant in tenants:
            if not is_billing_day(tenant.checkin_date, today, days_before):
                continue
            if notifier.send_billing_reminder(tenant, tenant.monthly_rent, due_month):
                sent += 1

    logger.info("Billing reminders done: %d sent", sent)
    return sent
