from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

logger = logging.getLogger(__name__)


class DetachedTasks:
    """Best-effort side channel: tasks nobody awaits on the critical path.

    Failures are logged and dropped. ``drain()`` exists for shutdown and tests.
    """

    def __init__(self, name: str) -> None:
        self._name = name
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._pending)

    def spawn(self, coro: Coroutine[Any, Any, Any], label: str) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            logger.warning("[%s] no running event loop, dropped %s", self._name, label)
            return None
        task = loop.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(lambda t: self._finished(t, label))
        return task

    def _finished(self, task: asyncio.Task, label: str) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning("[%s] %s failed: %s", self._name, label, exc)

    async def drain(self) -> None:
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
