"""Celery tasks for the background work enqueued by the services."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from hirelane.core.candidates import CVAnalyzer
from hirelane.core.celery_app import celery_app
from hirelane.core.job_progress import JobProgressAggregator
from hirelane.core.runtime import get_task_queue
from hirelane.core.tasks import (
    ANALYZE_CV,
    MIGRATE_VECTORS,
    RECOMPUTE_JOB_PROGRESS,
    REMOVE_VECTORS,
    REQUEUE_STALE,
    SYNC_VECTORS,
    TrackedTask,
)
from hirelane.search.vector_sync import VectorSync

logger = logging.getLogger(__name__)


def _recompute(session: Session, payload: dict[str, Any]) -> None:
    JobProgressAggregator(session).recompute(int(payload["job_id"]))


def _sync(session: Session, payload: dict[str, Any]) -> None:
    VectorSync(session).sync(payload["table_name"], int(payload["document_id"]))


def _remove(session: Session, payload: dict[str, Any]) -> None:
    VectorSync(session).remove(payload["table_name"], payload["document_id"])


def _migrate(session: Session, payload: dict[str, Any]) -> None:
    result = VectorSync(session).migrate_all()
    if not result["success"]:
        logger.warning("Vector migration finished with failures: %s", result)


def _analyze(session: Session, payload: dict[str, Any]) -> None:
    CVAnalyzer(session).analyze(int(payload["file_id"]), str(payload["analysis_id"]))


@celery_app.task(bind=True, base=TrackedTask, name=RECOMPUTE_JOB_PROGRESS)
def recompute_job_progress(self, task_id: int) -> str:
    return self.run_tracked(task_id, _recompute)


@celery_app.task(bind=True, base=TrackedTask, name=SYNC_VECTORS)
def sync_vectors(self, task_id: int) -> str:
    return self.run_tracked(task_id, _sync)


@celery_app.task(bind=True, base=TrackedTask, name=REMOVE_VECTORS)
def remove_vectors(self, task_id: int) -> str:
    return self.run_tracked(task_id, _remove)


@celery_app.task(bind=True, base=TrackedTask, name=MIGRATE_VECTORS)
def migrate_vectors(self, task_id: int) -> str:
    return self.run_tracked(task_id, _migrate)


@celery_app.task(bind=True, base=TrackedTask, name=ANALYZE_CV)
def analyze_cv(self, task_id: int) -> str:
    return self.run_tracked(task_id, _analyze)


@celery_app.task(name=REQUEUE_STALE)
def requeue_stale_tasks() -> int:
    return get_task_queue().requeue_stale()
