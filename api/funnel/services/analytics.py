"""Respondent-side analytics queue.

Events are buffered and flushed as one batch after a quiet period. Terminal
events (completion, retake, drop-off) flush immediately so they are not lost
when the respondent leaves. Delivery is best-effort: a sink failure is logged
and the batch dropped.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from ..config import ANALYTICS_FLUSH_DELAY_SECONDS
from .background import DetachedTasks

logger = logging.getLogger(__name__)

SURVEY_START = "survey_start"
STEP_VIEWED = "step_viewed"
STEP_ANSWERED = "step_answered"
STEP_BACK = "step_back"
SURVEY_COMPLETED = "survey_completed"
SURVEY_RETAKE = "survey_retake"
RESULTS_VIEWED = "results_viewed"
DROP_OFF = "drop_off"

TRACKED_EVENTS = {
    SURVEY_START,
    STEP_VIEWED,
    STEP_ANSWERED,
    STEP_BACK,
    SURVEY_COMPLETED,
    SURVEY_RETAKE,
    RESULTS_VIEWED,
    DROP_OFF,
}
EAGER_EVENTS = {SURVEY_COMPLETED, SURVEY_RETAKE, DROP_OFF}

Sink = Callable[[list[dict[str, Any]]], "Awaitable[Any] | Any"]


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalyticsTracker:
    def __init__(self, sink: Sink, flush_delay: float = ANALYTICS_FLUSH_DELAY_SECONDS) -> None:
        self._sink = sink
        self._flush_delay = max(0.0, float(flush_delay))
        self._queue: list[dict[str, Any]] = []
        self._timer: asyncio.TimerHandle | None = None
        self._tasks = DetachedTasks("analytics")
        self._closed = False

    @property
    def pending(self) -> list[dict[str, Any]]:
        return list(self._queue)

    def track(
        self,
        event: str,
        *,
        session_id: str | None = None,
        step: int | None = None,
        question_id: str | None = None,
        value: Any = None,
        meta: dict[str, Any] | None = None,
    ) -> None:
        if event not in TRACKED_EVENTS:
            logger.debug("[analytics] ignoring unknown event %s", event)
            return
        if self._closed:
            return
        self._queue.append(
            {
                "event": event,
                "sessionId": session_id,
                "step": step,
                "questionId": question_id,
                "value": value,
                "meta": dict(meta or {}),
                "timestamp": _now_iso(),
            }
        )
        if event in EAGER_EVENTS:
            self.flush()
        else:
            self._schedule_flush()

    def _schedule_flush(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Without a loop the queue waits for the next eager event or close().
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._flush_delay, self.flush)

    def flush(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if not self._queue:
            return
        batch = self._queue
        self._queue = []
        try:
            result = self._sink(batch)
        except Exception:
            logger.warning("[analytics] sink failed, dropped %s events", len(batch), exc_info=True)
            return
        if inspect.isawaitable(result):
            self._tasks.spawn(_await(result), "flush")

    def visibility_hidden(self) -> None:
        self.flush()

    async def aclose(self) -> None:
        self.flush()
        self._closed = True
        await self._tasks.drain()

    def survey_start(self, session_id: str) -> None:
        self.track(SURVEY_START, session_id=session_id, step=0)

    def survey_completed(self, session_id: str, archetype_id: str) -> None:
        self.track(SURVEY_COMPLETED, session_id=session_id, value=archetype_id)

    def survey_retake(self, session_id: str | None, previous_archetype: str | None) -> None:
        self.track(SURVEY_RETAKE, session_id=session_id, value=previous_archetype)

    def results_viewed(self, session_id: str, archetype_id: str) -> None:
        self.track(RESULTS_VIEWED, session_id=session_id, value=archetype_id)

    def drop_off(self, session_id: str, step: int, question_id: str | None = None) -> None:
        self.track(DROP_OFF, session_id=session_id, step=step, question_id=question_id)


async def _await(awaitable: Awaitable[Any]) -> Any:
    return await awaitable
