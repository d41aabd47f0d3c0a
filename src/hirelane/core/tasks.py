from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import timedelta
from typing import Any

from celery import Task
from kombu.exceptions import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from hirelane.config import Settings, get_settings
from hirelane.core.celery_app import celery_app
from hirelane.db.base import utcnow
from hirelane.db.repositories import Repository

logger = logging.getLogger(__name__)

RECOMPUTE_JOB_PROGRESS = "job_progress.recompute"
SYNC_VECTORS = "vectors.sync"
REMOVE_VECTORS = "vectors.remove"
MIGRATE_VECTORS = "vectors.migrate_all"
ANALYZE_CV = "cv.analyze"
REQUEUE_STALE = "tasks.requeue_stale"

TaskHandler = Callable[[Session, dict[str, Any]], Any]


class TaskQueue:
    """Background work executed by Celery and tracked in ``background_tasks``.

    Every enqueue writes a ledger row first. The row carries the dedupe key
    (a pending row with the same key absorbs later enqueues, so bursts of the
    same work collapse into one run that reads the latest state), the attempt
    count and the last error. With dispatch enabled the row id is sent to the
    broker; otherwise ``run_pending`` executes due rows in-process through the
    same Celery tasks.

    Failures are retried by Celery with exponential backoff until
    ``max_attempts``, after which the row is parked as ``dead``. A ``running``
    row whose claim is older than the visibility timeout belongs to a lost
    worker and is picked up again.
    """

    def __init__(self, session_factory: sessionmaker | Callable[[], Session], settings: Settings | None = None):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    def enqueue(
        self,
        name: str,
        payload: dict[str, Any] | None = None,
        *,
        dedupe_key: str | None = None,
        delay_sec: float = 0.0,
    ) -> int:
        with self.session_factory() as session:
            repo = Repository(session)
            if dedupe_key:
                existing = repo.find_pending_task(dedupe_key)
                if existing:
                    logger.debug("Coalesced task name=%s dedupe_key=%s into id=%s", name, dedupe_key, existing.id)
                    return existing.id

            task = repo.create_task(
                name=name,
                payload_json=payload or {},
                dedupe_key=dedupe_key,
                max_attempts=self.settings.task_max_attempts,
                run_after=utcnow() + timedelta(seconds=delay_sec),
            )
            task_id = task.id

        if self.settings.celery_dispatch_enabled:
            self.dispatch(task_id, name, delay_sec=delay_sec)
        return task_id

    def dispatch(self, task_id: int, name: str, *, delay_sec: float = 0.0) -> bool:
        celery_task = celery_app.tasks.get(name)
        if celery_task is None:
            self._dead_letter_unknown(task_id, name)
            return False
        try:
            celery_task.apply_async(args=[task_id], countdown=delay_sec or None)
        except OperationalError:
            # the row stays pending; requeue_stale or ``hirelane worker --once`` picks it up
            logger.exception("Broker unavailable, task id=%s name=%s left pending", task_id, name)
            return False
        return True

    def requeue_stale(self) -> int:
        """Re-send rows that were never delivered or whose worker was lost."""
        stale_before = utcnow() - timedelta(seconds=self.settings.task_visibility_timeout_sec)
        with self.session_factory() as session:
            due = [
                (task.id, task.name)
                for task in Repository(session).due_tasks(stale_before=stale_before, pending_before=stale_before)
            ]
        sent = sum(1 for task_id, name in due if self.dispatch(task_id, name))
        if sent:
            logger.info("Requeued %s stale tasks", sent)
        return sent

    def backoff_seconds(self, attempts: int) -> float:
        delay = self.settings.task_backoff_base_sec * (2 ** max(attempts - 1, 0))
        return min(delay, self.settings.task_backoff_max_sec)

    def run_pending(self, limit: int | None = None) -> int:
        stale_before = utcnow() - timedelta(seconds=self.settings.task_visibility_timeout_sec)
        with self.session_factory() as session:
            due = [
                (task.id, task.name)
                for task in Repository(session).due_tasks(stale_before=stale_before, limit=limit)
            ]

        for task_id, name in due:
            celery_task = celery_app.tasks.get(name)
            if celery_task is None:
                self._dead_letter_unknown(task_id, name)
                continue
            celery_task.apply(args=[task_id], retries=0)
        return len(due)

    def drain(self, max_rounds: int = 20) -> int:
        total = 0
        for _ in range(max_rounds):
            processed = self.run_pending()
            if processed == 0:
                break
            total += processed
        return total

    def execute(self, celery_task: Task, task_id: int, handler: TaskHandler) -> str:
        """Run ``handler`` for ledger row ``task_id`` inside a bound Celery task."""
        with self.session_factory() as session:
            repo = Repository(session)
            task = repo.claim_task(task_id)
            if task is None:
                logger.debug("Task id=%s already finished, skipping delivery", task_id)
                return "skipped"

            name = task.name
            attempts = task.attempts
            max_attempts = task.max_attempts
            payload = dict(task.payload_json or {})
            if attempts > max_attempts:
                logger.error("Task dead-lettered after lost workers id=%s name=%s", task_id, name)
                repo.fail_task(task_id, error="worker lost too many times", retry_in_sec=None)
                return "dead"

            try:
                handler(session, payload)
            except Exception as exc:
                session.rollback()
                if attempts >= max_attempts:
                    logger.exception("Task dead-lettered id=%s name=%s attempts=%s", task_id, name, attempts)
                    repo.fail_task(task_id, error=str(exc), retry_in_sec=None)
                    raise

                retry_in = self.backoff_seconds(attempts)
                logger.warning(
                    "Task failed id=%s name=%s attempt=%s retry_in=%.1fs error=%s",
                    task_id,
                    name,
                    attempts,
                    retry_in,
                    exc,
                )
                repo.fail_task(task_id, error=str(exc), retry_in_sec=retry_in)
                raise celery_task.retry(exc=exc, countdown=retry_in, max_retries=max_attempts)

            repo.finish_task(task_id)
            return "done"

    def _dead_letter_unknown(self, task_id: int, name: str) -> None:
        logger.error("No handler registered for task id=%s name=%s", task_id, name)
        with self.session_factory() as session:
            Repository(session).fail_task(task_id, error=f"no handler registered for {name}", retry_in_sec=None)


class TrackedTask(Task):
    """Base for hirelane Celery tasks; the only argument is the ledger row id."""

    def run_tracked(self, task_id: int, handler: TaskHandler) -> str:
        # runtime imports the services, which import this module
        from hirelane.core.runtime import get_task_queue

        return get_task_queue().execute(self, task_id, handler)

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error("Celery task %s failed name=%s args=%s: %s", task_id, self.name, args, exc)

    def on_retry(self, exc, task_id, args, kwargs, einfo):
        logger.info("Celery task %s retrying name=%s args=%s", task_id, self.name, args)


def schedule_job_progress(queue: TaskQueue, job_id: int) -> int:
    return queue.enqueue(RECOMPUTE_JOB_PROGRESS, {"job_id": job_id}, dedupe_key=f"job_progress:{job_id}")


def schedule_vector_sync(queue: TaskQueue, table_name: str, document_id: int) -> int:
    return queue.enqueue(
        SYNC_VECTORS,
        {"table_name": table_name, "document_id": document_id},
        dedupe_key=f"vectors.sync:{table_name}:{document_id}",
    )


def schedule_vector_removal(queue: TaskQueue, table_name: str, document_id: int) -> int:
    return queue.enqueue(
        REMOVE_VECTORS,
        {"table_name": table_name, "document_id": document_id},
        dedupe_key=f"vectors.remove:{table_name}:{document_id}",
    )
