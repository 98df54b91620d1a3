"""Celery application configuration."""

from celery import Celery

from kickbot.core.config import settings

celery_app = Celery(
    "kickbot",
    broker=settings.CELERY_BROKER_URL or settings.REDIS_URL,
    backend=settings.CELERY_RESULT_BACKEND or settings.REDIS_URL,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
)

celery_app.conf.beat_schedule = {
    "purge-expired-permits": {
        "task": "moderation.purge_expired_permits",
        "schedule": float(settings.PERMIT_SWEEP_INTERVAL_SECONDS),
    },
}

celery_app.autodiscover_tasks(["kickbot.modules.moderation"])
