from __future__ import annotations

import asyncio
import threading
from collections import defaultdict
from collections.abc import AsyncIterator
from typing import Any

_Subscriber = tuple[asyncio.AbstractEventLoop, "asyncio.Queue[dict[str, Any]]"]


class EventBus:
    """Fan-out of job events to websocket subscribers.

    ``publish`` is synchronous and thread-safe so task handlers running on the
    worker thread can notify subscribers living on the server's event loop.
    """

    def __init__(self) -> None:
        self._subscribers: dict[int, list[_Subscriber]] = defaultdict(list)
        self._lock = threading.Lock()

    def publish(self, job_id: int, event: dict[str, Any]) -> int:
        with self._lock:
            targets = list(self._subscribers.get(job_id, []))

        delivered = 0
        for loop, queue in targets:
            if loop.is_closed():
                continue
            loop.call_soon_threadsafe(queue.put_nowait, event)
            delivered += 1
        return delivered

    def subscriber_count(self, job_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(job_id, []))

    async def subscribe(self, job_id: int) -> AsyncIterator[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        entry = (asyncio.get_running_loop(), queue)
        with self._lock:
            self._subscribers[job_id].append(entry)

        try:
            while True:
                event = await queue.get()
                yield event
        finally:
            with self._lock:
                if entry in self._subscribers.get(job_id, []):
                    self._subscribers[job_id].remove(entry)
