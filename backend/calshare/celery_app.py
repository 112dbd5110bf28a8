"""Celery application configuration."""

from __future__ import annotations

import logging

from celery import Celery

from calshare.core.config import settings

logger = logging.getLogger(__name__)

celery_app = Celery(
    "calshare",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["calshare.tasks.notifications"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    # Publishing must fail fast when the broker is down; dispatch is best-effort
    broker_transport_options={"max_retries": 1},
    task_publish_retry=False,
    task_acks_late=True,  # Acknowledge tasks after execution
    task_reject_on_worker_lost=True,  # Re-queue tasks if worker dies
    task_default_retry_delay=60,
    task_max_retries=5,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=500,
)

logger.info(f"Celery app configured with broker: {settings.CELERY_BROKER_URL}")
