from celery import Celery
from celery.schedules import crontab

from kost.core.config import settings

celery_app = Celery(
    "kost",
    broker=settings.redis_url,
    backend=settings.redis_url,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

# ─── Scheduled tasks ──────────────────────────
celery_app.conf.beat_schedule = {
    "send-arrears-reminders-daily": {
        "task": "kost.services.reminders.send_arrears_reminders",
        "schedule": crontab(hour=settings.reminder_hour_utc, minute=0),
    },
    "send-billing-reminders-daily": {
        "task": "kost.services.reminders.send_billing_reminders",
        "schedule": crontab(hour=settings.reminder_hour_utc, minute=5),
    },
}

# autodiscover_tasks() only looks for a "tasks.py" file, which we don't use.
celery_app.conf.include = [
    "kost.services.reminders",
]
