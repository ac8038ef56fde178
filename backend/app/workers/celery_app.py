"""Celery app for out-of-band notification work.

Deadline sweeps are not scheduled here: they run in the API process under
the scheduler's single-flight lock (app.services.scheduler).
"""
from celery import Celery

from app.core.config import settings

celery_app = Celery(
    "ops_worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.workers.notification_tasks",
    ],
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
    broker_connection_retry_on_startup=True,
)
