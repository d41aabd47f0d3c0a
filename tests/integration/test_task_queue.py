from __future__ import annotations

from datetime import timedelta

import pytest
from kombu.exceptions import OperationalError

from hirelane.config import Settings
from hirelane.core.celery_app import celery_app
from hirelane.core.runtime import get_task_queue
from hirelane.core.tasks import (
    ANALYZE_CV,
    MIGRATE_VECTORS,
    RECOMPUTE_JOB_PROGRESS,
    REMOVE_VECTORS,
    SYNC_VECTORS,
    TaskQueue,
    TrackedTask,
    schedule_job_progress,
)
from hirelane.db.base import utcnow
from hirelane.db.models import BackgroundTask
from hirelane.db.repositories import Repository
from hirelane.db.session import SessionLocal

CALLS: dict[str, list[dict]] = {}


def _record(name: str, payload: dict) -> int:
    CALLS.setdefault(name, []).append(payload)
    return len(CALLS[name])


def _always_fails(session, payload):
    _record("flaky", payload)
    raise RuntimeError("embedding service down")


def _fails_once(session, payload):
    if _record("recovers", payload) == 1:
        raise RuntimeError("transient")


@celery_app.task(bind=True, base=TrackedTask, name="tests.record")
def record_task(self, task_id: int) -> str:
    return self.run_tracked(task_id, lambda session, payload: _record("record", payload))


@celery_app.task(bind=True, base=TrackedTask, name="tests.flaky")
def flaky_task(self, task_id: int) -> str:
    return self.run_tracked(task_id, _always_fails)


@celery_app.task(bind=True, base=TrackedTask, name="tests.recovers")
def recovering_task(self, task_id: int) -> str:
    return self.run_tracked(task_id, _fails_once)


@pytest.fixture(autouse=True)
def clear_calls():
    CALLS.clear()
    get_task_queue()
    yield
    CALLS.clear()


def _queue(**overrides) -> TaskQueue:
    settings = Settings(task_max_attempts=3, task_backoff_base_sec=0.0, **overrides)
    return TaskQueue(SessionLocal, settings)


def _task(task_id: int) -> BackgroundTask:
    with SessionLocal() as session:
        task = Repository(session).get_task(task_id)
        session.expunge(task)
        return task


def _backdate(task_id: int, **fields: timedelta) -> None:
    with SessionLocal() as session:
        task = session.get(BackgroundTask, task_id)
        for column, age in fields.items():
            setattr(task, column, utcnow() - age)
        session.commit()


def test_background_operations_are_celery_tasks() -> None:
    for name in (RECOMPUTE_JOB_PROGRESS, SYNC_VECTORS, REMOVE_VECTORS, MIGRATE_VECTORS, ANALYZE_CV):
        assert isinstance(celery_app.tasks[name], TrackedTask)
    assert celery_app.conf.task_acks_late is True
    assert celery_app.conf.task_reject_on_worker_lost is True


def test_pending_dedupe_key_coalesces_enqueues() -> None:
    queue = _queue()
    first = schedule_job_progress(queue, 7)
    second = schedule_job_progress(queue, 7)
    other = schedule_job_progress(queue, 8)

    assert first == second
    assert other != first


def test_successful_task_marks_row_done_and_frees_dedupe_key() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.record", {"value": 1}, dedupe_key="record:1")

    assert queue.drain() == 1
    assert CALLS["record"] == [{"value": 1}]
    assert _task(task_id).status == "done"
    assert queue.enqueue("tests.record", {"value": 2}, dedupe_key="record:1") != task_id


def test_failures_retry_then_dead_letter() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.flaky")
    queue.drain()

    task = _task(task_id)
    assert len(CALLS["flaky"]) == 3
    assert task.status == "dead"
    assert task.attempts == 3
    assert task.last_error == "embedding service down"
    assert task.finished_at is not None


def test_task_recovering_on_retry_completes() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.recovers")
    queue.drain()

    assert len(CALLS["recovers"]) == 2
    task = _task(task_id)
    assert task.status == "done"
    assert task.attempts == 2


def test_unknown_task_name_is_dead_lettered() -> None:
    queue = _queue()
    task_id = queue.enqueue("nobody.handles.this")

    assert queue.run_pending() == 1
    task = _task(task_id)
    assert task.status == "dead"
    assert "no handler registered" in task.last_error


def test_delayed_tasks_wait_for_run_after() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.record", delay_sec=3600)

    assert queue.run_pending() == 0
    assert _task(task_id).status == "pending"


def test_backoff_grows_and_is_capped() -> None:
    queue = TaskQueue(SessionLocal, Settings(task_backoff_base_sec=2.0, task_backoff_max_sec=10.0))

    assert queue.backoff_seconds(1) == 2.0
    assert queue.backoff_seconds(2) == 4.0
    assert queue.backoff_seconds(3) == 8.0
    assert queue.backoff_seconds(4) == 10.0


def test_claim_lost_with_its_worker_is_picked_up_after_visibility_timeout() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.record", {"value": 1})
    with SessionLocal() as session:
        Repository(session).claim_task(task_id)

    assert queue.drain() == 0
    assert _task(task_id).status == "running"

    _backdate(task_id, claimed_at=timedelta(hours=1))

    assert queue.drain() == 1
    task = _task(task_id)
    assert task.status == "done"
    assert task.attempts == 2
    assert CALLS["record"] == [{"value": 1}]


def test_repeatedly_lost_task_is_dead_lettered() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.record")
    with SessionLocal() as session:
        repo = Repository(session)
        for _ in range(3):
            repo.claim_task(task_id)
    _backdate(task_id, claimed_at=timedelta(hours=1))

    queue.drain()

    task = _task(task_id)
    assert task.status == "dead"
    assert task.last_error == "worker lost too many times"
    assert "record" not in CALLS


def test_finished_task_ignores_duplicate_delivery() -> None:
    queue = _queue()
    task_id = queue.enqueue("tests.record")
    queue.drain()

    assert record_task.apply(args=[task_id], retries=0).get() == "skipped"
    assert len(CALLS["record"]) == 1


def test_dispatch_sends_row_id_to_broker_once_per_dedupe_key(monkeypatch: pytest.MonkeyPatch) -> None:
    sent: list[dict] = []
    monkeypatch.setattr(celery_app.tasks[RECOMPUTE_JOB_PROGRESS], "apply_async", lambda **kwargs: sent.append(kwargs))
    queue = _queue(celery_dispatch_enabled=True)

    first = schedule_job_progress(queue, 3)
    schedule_job_progress(queue, 3)

    assert sent == [{"args": [first], "countdown": None}]


def test_broker_outage_leaves_row_pending_for_requeue(monkeypatch: pytest.MonkeyPatch) -> None:
    task = celery_app.tasks[RECOMPUTE_JOB_PROGRESS]

    def broker_down(**kwargs):
        raise OperationalError("connection refused")

    monkeypatch.setattr(task, "apply_async", broker_down)
    queue = _queue(celery_dispatch_enabled=True)
    task_id = schedule_job_progress(queue, 4)
    assert _task(task_id).status == "pending"

    sent: list[dict] = []
    monkeypatch.setattr(task, "apply_async", lambda **kwargs: sent.append(kwargs))
    assert queue.requeue_stale() == 0

    _backdate(task_id, run_after=timedelta(hours=1))
    assert queue.requeue_stale() == 1
    assert sent == [{"args": [task_id], "countdown": None}]
