"""Celery application for background work (progress recompute, embedding sync, CV analysis)."""

from __future__ import annotations

import logging

from celery import Celery

from hirelane.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

celery_app = Celery(
    "hirelane",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["hirelane.core.handlers"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=3600,
    worker_prefetch_multiplier=1,
    task_time_limit=settings.task_time_limit_sec,
    task_soft_time_limit=settings.task_soft_time_limit_sec,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    broker_transport_options={"visibility_timeout": settings.task_visibility_timeout_sec},
    beat_schedule={
        "requeue-stale-tasks": {
            "task": "tasks.requeue_stale",
            "schedule": float(settings.task_visibility_timeout_sec),
        },
    },
)

logger.debug("Celery configured broker=%s", settings.celery_broker_url)
