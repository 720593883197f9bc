"""Celery application configuration and beat schedule."""

from celery import Celery
from celery.schedules import crontab

from app.config import get_settings

settings = get_settings()

celery_app = Celery(
    "placement",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "app.tasks.mail_tasks",
        "app.tasks.maintenance_tasks",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    task_track_started=True,
    task_time_limit=120,
    task_soft_time_limit=90,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "purge-orphaned-applications": {
        "task": "app.tasks.maintenance_tasks.purge_orphaned_applications",
        "schedule": crontab(minute=0, hour=3),
    },
    "purge-expired-reset-tokens": {
        "task": "app.tasks.maintenance_tasks.purge_expired_reset_tokens",
        "schedule": crontab(minute=0, hour="*/6"),
    },
}
