"""Respondent-side session lifecycle.

The local cache is always written first; the remote store is the source of
truth when reachable. Progress writes to the remote store are detached so a
slow or failing backend never blocks the respondent. A retake bumps an epoch
counter and any in-flight response tagged with an older epoch is discarded.
"""
from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..archetypes import Archetype, archetype_payload
from ..errors import SessionNotFound, StoreUnavailable
from .background import DetachedTasks
from .enrichment import parse_ai_summary
from .local_cache import ANSWERS_KEY, SESSION_CACHE_KEYS, SESSION_KEY, STEP_KEY, USER_INFO_KEY
from .state_machine import SessionState, transition_session_state

logger = logging.getLogger(__name__)

LOCAL_ID_PREFIX = "local_"
_BASE36 = string.digits + string.ascii_lowercase

PHASE_WELCOME = "welcome"
PHASE_USER_INFO = "user-info"
PHASE_SURVEY = "survey"
PHASE_RESULTS = "results"


def generate_local_session_id() -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(8))
    return f"{LOCAL_ID_PREFIX}{int(time.time() * 1000)}_{suffix}"


def is_local_session_id(session_id: str | None) -> bool:
    return bool(session_id) and str(session_id).startswith(LOCAL_ID_PREFIX)


@dataclass
class SessionData:
    session_id: str
    name: str | None = None
    email: str | None = None
    current_step: int = 0
    answers: dict[str, Any] = field(default_factory=dict)
    is_completed: bool = False
    promo_code: str | None = None
    archetype_result: str | None = None
    ai_summary: dict[str, Any] | None = None
    certificate_url: str | None = None

    @classmethod
    def from_remote(cls, payload: dict[str, Any]) -> "SessionData":
        answers = payload.get("answers")
        return cls(
            session_id=str(payload["session_id"]),
            name=payload.get("name") or None,
            email=payload.get("email") or None,
            current_step=int(payload.get("current_step") or 0),
            answers=dict(answers) if isinstance(answers, dict) else {},
            is_completed=bool(payload.get("is_completed")),
            promo_code=payload.get("promo_code") or None,
            archetype_result=payload.get("archetype_result") or None,
            ai_summary=parse_ai_summary(payload.get("ai_summary")),
            certificate_url=payload.get("certificate_url") or None,
        )


class SessionStore(Protocol):
    async def create_session(self, referrer_id: str | None = None) -> dict[str, Any]: ...

    async def get_session(self, session_id: str) -> dict[str, Any]: ...

    async def update_answers(self, session_id: str, answers: dict[str, Any], step: int) -> Any: ...

    async def update_user_info(self, session_id: str, name: str, email: str | None = None) -> Any: ...

    async def complete_session(
        self, session_id: str, archetype_id: str, archetype_data: dict[str, Any], is_retake: bool = False
    ) -> dict[str, Any]: ...

    async def generate_results(self, session_id: str) -> dict[str, Any]: ...


class SessionManager:
    def __init__(self, store: SessionStore, cache, *, referrer_id: str | None = None, tracker=None) -> None:
        self.store = store
        self.cache = cache
        self.referrer_id = referrer_id
        self.tracker = tracker
        self.state = SessionState.UNINITIALIZED
        self.session: SessionData | None = None
        self._epoch = 0
        self._init_task: asyncio.Future | None = None
        self._complete_task: asyncio.Future | None = None
        self._next_completion_is_retake = False
        self._background = DetachedTasks("session")

    @property
    def session_id(self) -> str | None:
        return self.session.session_id if self.session else None

    @property
    def epoch(self) -> int:
        return self._epoch

    def _transition(self, event: str) -> None:
        new_state = transition_session_state(self.state, event)
        if new_state != self.state:
            logger.debug("[session] %s -> %s on %s", self.state.value, new_state.value, event)
        self.state = new_state

    async def initialize(self) -> SessionData | None:
        """Restore or create the session. Concurrent callers share one attempt."""
        if self._init_task is None:
            self._init_task = asyncio.ensure_future(self._initialize(self._epoch))
        await asyncio.shield(self._init_task)
        return self.session

    async def _initialize(self, epoch: int) -> None:
        self._transition("start")
        existing_id = self.cache.get(SESSION_KEY)
        session: SessionData | None = None

        if existing_id:
            try:
                session = SessionData.from_remote(await self.store.get_session(existing_id))
            except SessionNotFound:
                logger.info("[session] session_id=%s not found remotely, restoring from cache", existing_id)
            except StoreUnavailable as exc:
                logger.warning("[session] store unavailable during restore of session_id=%s: %s", existing_id, exc)
            if session is None:
                session = self._session_from_cache(str(existing_id))
        else:
            session_id: str | None = None
            try:
                created = await self.store.create_session(self.referrer_id)
                session_id = str(created.get("session_id") or "") or None
            except StoreUnavailable as exc:
                logger.warning("[session] store unavailable, using local session: %s", exc)
            if not session_id:
                session_id = generate_local_session_id()
            session = SessionData(session_id=session_id)

        if epoch != self._epoch:
            logger.info("[session] discarding initialization from stale epoch=%s", epoch)
            return

        self.session = session
        self._mirror_to_cache(session)
        if session.is_completed and session.archetype_result:
            self._transition("restored_completed")
        else:
            self._transition("restored")

    def _session_from_cache(self, session_id: str) -> SessionData:
        answers = self.cache.get(ANSWERS_KEY)
        user_info = self.cache.get(USER_INFO_KEY)
        user_info = user_info if isinstance(user_info, dict) else {}
        try:
            step = int(self.cache.get(STEP_KEY) or 0)
        except (TypeError, ValueError):
            step = 0
        # A cache-only restore never claims completion.
        return SessionData(
            session_id=session_id,
            name=user_info.get("name") or None,
            email=user_info.get("email") or None,
            current_step=step,
            answers=dict(answers) if isinstance(answers, dict) else {},
            is_completed=False,
        )

    def _mirror_to_cache(self, session: SessionData) -> None:
        self.cache.set(SESSION_KEY, session.session_id)
        self.cache.set(ANSWERS_KEY, dict(session.answers))
        self.cache.set(STEP_KEY, session.current_step)
        if session.name:
            self.cache.set(USER_INFO_KEY, {"name": session.name, "email": session.email})

    def resume_phase(self) -> str:
        s = self.session
        if s is None:
            return PHASE_WELCOME
        if s.is_completed and s.archetype_result:
            return PHASE_RESULTS
        has_progress = bool(s.answers) and s.current_step > 0
        if has_progress and s.name:
            return PHASE_SURVEY
        if has_progress:
            return PHASE_USER_INFO
        return PHASE_WELCOME

    def save_progress(self, answers: dict[str, Any], step: int) -> None:
        s = self.session
        if s is None:
            logger.debug("[session] save_progress before initialization ignored")
            return
        if s.is_completed:
            return
        s.answers = dict(answers)
        s.current_step = int(step)
        self.cache.set(ANSWERS_KEY, dict(answers))
        self.cache.set(STEP_KEY, int(step))
        self._background.spawn(self.store.update_answers(s.session_id, dict(answers), int(step)), "update_answers")

    def save_user_info(self, name: str, email: str | None = None) -> None:
        s = self.session
        if s is None:
            logger.debug("[session] save_user_info before initialization ignored")
            return
        s.name = name
        s.email = email or None
        self.cache.set(USER_INFO_KEY, {"name": name, "email": s.email})
        self._background.spawn(self.store.update_user_info(s.session_id, name, s.email), "update_user_info")

    async def complete_survey(self, archetype: Archetype) -> str | None:
        """Record completion once; returns the promo code when the store issued one."""
        if self.session is None:
            return None
        if self.session.is_completed:
            return self.session.promo_code
        if self._complete_task is None:
            self._complete_task = asyncio.ensure_future(self._complete(archetype, self._epoch))
        return await asyncio.shield(self._complete_task)

    async def _complete(self, archetype: Archetype, epoch: int) -> str | None:
        session = self.session
        self._transition("complete")
        is_retake = self._next_completion_is_retake
        promo_code: str | None = None
        archetype_id = archetype.id
        try:
            payload = await self.store.complete_session(
                session.session_id, archetype.id, archetype_payload(archetype), is_retake=is_retake
            )
            promo_code = payload.get("promo_code") or None
            remote = payload.get("session") if isinstance(payload.get("session"), dict) else {}
            archetype_id = remote.get("archetype_result") or archetype.id
        except (StoreUnavailable, SessionNotFound) as exc:
            logger.warning("[session] completion not recorded remotely for session_id=%s: %s", session.session_id, exc)

        if epoch != self._epoch or self.session is not session:
            logger.info("[session] discarding completion from stale epoch=%s", epoch)
            return None

        session.is_completed = True
        session.archetype_result = session.archetype_result or archetype_id
        session.promo_code = session.promo_code or promo_code
        self._next_completion_is_retake = False
        self._transition("completed")
        if self.tracker is not None:
            self.tracker.survey_completed(session.session_id, session.archetype_result)
        return session.promo_code

    async def generate_results(self) -> dict[str, Any] | None:
        s = self.session
        if s is None or not s.is_completed:
            return None
        if s.ai_summary and s.certificate_url:
            return {"ai_summary": s.ai_summary, "certificate_url": s.certificate_url}

        epoch = self._epoch
        try:
            payload = await self.store.generate_results(s.session_id)
        except (StoreUnavailable, SessionNotFound) as exc:
            logger.warning("[session] enrichment failed for session_id=%s: %s", s.session_id, exc)
            return None

        if epoch != self._epoch or self.session is not s:
            logger.info("[session] discarding enrichment for session_id=%s after retake", s.session_id)
            return None

        s.ai_summary = parse_ai_summary(payload.get("ai_summary")) or s.ai_summary
        s.certificate_url = payload.get("certificate_url") or s.certificate_url
        return {"ai_summary": s.ai_summary, "certificate_url": s.certificate_url}

    def retake(self) -> None:
        previous = self.session
        self._transition("retake")
        for key in SESSION_CACHE_KEYS:
            self.cache.remove(key)
        self._epoch += 1
        self.session = None
        self._init_task = None
        self._complete_task = None
        self._next_completion_is_retake = bool(previous and previous.is_completed)
        self._transition("reset")
        if self.tracker is not None:
            self.tracker.survey_retake(
                previous.session_id if previous else None,
                previous.archetype_result if previous else None,
            )

    async def drain(self) -> None:
        await self._background.drain()
