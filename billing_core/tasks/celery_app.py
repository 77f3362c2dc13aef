"""Celery application bootstrap and periodic schedule for the billing jobs."""

from __future__ import annotations

from celery import Celery
from celery.schedules import crontab

from billing_core.core.config import get_config

config = get_config()

celery_app = Celery(
    "billing_core",
    broker=config.CELERY_BROKER_URL,
    backend=config.CELERY_RESULT_BACKEND,
    include=["billing_core.tasks.billing_tasks"],
)
celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Jobs are idempotent, so a redelivered message after a worker crash is harmless.
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "generate-due-invoices-daily": {
        "task": "billing.generate_due_invoices",
        "schedule": crontab(hour=config.BILLING_JOB_HOUR, minute=0),
    },
    "sweep-overdue-invoices-daily": {
        "task": "billing.sweep_overdue",
        "schedule": crontab(hour=config.BILLING_JOB_HOUR, minute=15),
    },
}
if config.DELINQUENT_SUSPENSION_GRACE_DAYS > 0:
    celery_app.conf.beat_schedule["suspend-delinquent-daily"] = {
        "task": "billing.suspend_delinquent",
        "schedule": crontab(hour=config.BILLING_JOB_HOUR, minute=30),
    }

if config.ENV == "test":
    celery_app.conf.task_always_eager = True
