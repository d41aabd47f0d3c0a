from __future__ import annotations

from hirelane.core.events import EventBus
from hirelane.core.tasks import TaskQueue

_EVENT_BUS: EventBus | None = None
_TASK_QUEUE: TaskQueue | None = None


def get_event_bus() -> EventBus:
    global _EVENT_BUS
    if _EVENT_BUS is None:
        _EVENT_BUS = EventBus()
    return _EVENT_BUS


def get_task_queue() -> TaskQueue:
    global _TASK_QUEUE
    if _TASK_QUEUE is None:
        # registers the Celery tasks; handlers import the services, which import this module
        import hirelane.core.handlers  # noqa: F401
        from hirelane.db.session import SessionLocal

        _TASK_QUEUE = TaskQueue(SessionLocal)
    return _TASK_QUEUE


def reset_runtime() -> None:
    global _EVENT_BUS, _TASK_QUEUE
    _EVENT_BUS = None
    _TASK_QUEUE = None
