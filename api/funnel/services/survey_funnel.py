from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..archetypes import Archetype, classify_archetype, get_archetype
from ..survey_loader import Question
from .cta import personalized_cta_for_answers
from .flow import COMPLETED, AdvanceResult, QuestionFlow
from .session_lifecycle import SessionManager

logger = logging.getLogger(__name__)


@dataclass
class CompletionOutcome:
    archetype: Archetype
    promo_code: str | None
    cta: str


class SurveyFunnel:
    """Drives one respondent through welcome, questions, completion and results.

    Completion is awaited before anything else happens; enrichment is started
    afterwards in the background and its result lands on ``results``.
    """

    def __init__(self, manager: SessionManager, questions: list[Question], *, tracker=None) -> None:
        self.manager = manager
        self.questions = list(questions)
        self.tracker = tracker
        self.flow: QuestionFlow | None = None
        self.outcome: CompletionOutcome | None = None
        self.results: dict[str, Any] | None = None
        self._enrichment_task: asyncio.Task | None = None

    async def start(self) -> str:
        session = await self.manager.initialize()
        phase = self.manager.resume_phase()
        if session is None:
            return phase
        if session.is_completed and session.archetype_result:
            archetype = get_archetype(session.archetype_result) or classify_archetype(session.answers)
            self.outcome = CompletionOutcome(
                archetype=archetype,
                promo_code=session.promo_code,
                cta=personalized_cta_for_answers(archetype.id, session.answers),
            )
            if session.ai_summary:
                self.results = {"ai_summary": session.ai_summary, "certificate_url": session.certificate_url}
            else:
                self._enrichment_task = asyncio.ensure_future(self.load_results())
            return phase
        self.flow = self._build_flow()
        return phase

    def _build_flow(self) -> QuestionFlow:
        s = self.manager.session
        return QuestionFlow(
            self.questions,
            answers=s.answers if s else None,
            current_step=s.current_step if s else 0,
            on_progress=self.manager.save_progress,
            tracker=self.tracker,
            session_id=s.session_id if s else None,
        )

    def submit_user_info(self, name: str, email: str | None = None) -> None:
        self.manager.save_user_info(name.strip(), (email or "").strip() or None)
        if self.tracker is not None and self.manager.session_id:
            self.tracker.survey_start(self.manager.session_id)

    async def advance(self) -> AdvanceResult:
        if self.flow is None:
            raise RuntimeError("survey has not been started")
        result = self.flow.advance()
        if result.status == COMPLETED and self.outcome is None:
            await self.complete(self.flow.answers)
        return result

    async def complete(self, answers: dict[str, Any]) -> CompletionOutcome:
        archetype = classify_archetype(answers)
        promo_code = await self.manager.complete_survey(archetype)
        session = self.manager.session
        if session is not None and session.archetype_result:
            archetype = get_archetype(session.archetype_result) or archetype
        self.outcome = CompletionOutcome(
            archetype=archetype,
            promo_code=promo_code,
            cta=personalized_cta_for_answers(archetype.id, answers),
        )
        self._enrichment_task = asyncio.ensure_future(self.load_results())
        return self.outcome

    async def load_results(self) -> dict[str, Any] | None:
        results = await self.manager.generate_results()
        if results is not None:
            self.results = results
        return results

    async def wait_for_results(self) -> dict[str, Any] | None:
        if self._enrichment_task is not None:
            await self._enrichment_task
        return self.results

    def view_results(self) -> None:
        if self.tracker is not None and self.outcome is not None and self.manager.session_id:
            self.tracker.results_viewed(self.manager.session_id, self.outcome.archetype.id)

    def abandon(self) -> None:
        if self.tracker is None or self.flow is None or self.outcome is not None or not self.manager.session_id:
            return
        self.tracker.drop_off(self.manager.session_id, self.flow.current_step, self.flow.current_question.id)

    def retake(self) -> None:
        if self._enrichment_task is not None and not self._enrichment_task.done():
            self._enrichment_task.cancel()
        self._enrichment_task = None
        self.manager.retake()
        self.flow = None
        self.outcome = None
        self.results = None
