from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from ..errors import AnswerValidationError
from ..survey_loader import Question
from .rules import skip_target

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
MISSING_ANSWER_MESSAGE = "Please answer this question to continue"
MISSING_OTHER_MESSAGE = "Please explain your answer"

ADVANCED = "advanced"
COMPLETED = "completed"
INVALID = "invalid"


def email_key(question_id: str) -> str:
    return f"{question_id}_email"


def other_key(question_id: str) -> str:
    return f"{question_id}_other"


def is_valid_email(value: str) -> bool:
    v = str(value or "").strip()
    return len(v) <= 254 and bool(EMAIL_RE.fullmatch(v))


def needs_email(question: Question, answers: dict[str, Any]) -> bool:
    if question.type != "email-conditional":
        return False
    option = question.option(answers.get(question.id))
    return bool(option and option.requires_email)


def needs_other_text(question: Question, answers: dict[str, Any]) -> bool:
    if question.type == "multi":
        return False
    option = question.option(answers.get(question.id))
    return bool(option and option.requires_text)


def has_sufficient_answer(question: Question, answers: dict[str, Any], email: str = "", other_text: str = "") -> bool:
    answer = answers.get(question.id)
    if question.type == "multi":
        return isinstance(answer, list) and len(answer) > 0
    if not answer:
        return False
    if needs_email(question, answers):
        return is_valid_email(email)
    if needs_other_text(question, answers):
        return bool(str(other_text or "").strip())
    return True


def _index_of(questions: list[Question], question_id: str) -> int | None:
    for idx, q in enumerate(questions):
        if q.id == question_id:
            return idx
    return None


def next_step_index(questions: list[Question], step: int, answers: dict[str, Any]) -> int:
    question = questions[step]
    target = skip_target(question.id, list(question.rules), answers)
    if target:
        target_idx = _index_of(questions, target)
        if target_idx is not None and target_idx > step:
            return target_idx
    return step + 1


def previous_step_index(questions: list[Question], step: int, answers: dict[str, Any]) -> int:
    # Inverse of a branch override: land back on the question that made the jump.
    for origin_idx, question in enumerate(questions[:step]):
        target = skip_target(question.id, list(question.rules), answers)
        if target and _index_of(questions, target) == step and next_step_index(questions, origin_idx, answers) == step:
            return origin_idx
    return max(step - 1, 0)


@dataclass
class AdvanceResult:
    status: str
    step: int
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != INVALID


class QuestionFlow:
    """Navigation state over an ordered question catalog.

    Progress is handed to ``on_progress(answers, step)`` after every successful
    move; that callback is best-effort and its failures never block navigation.
    ``on_complete(answers)`` fires once when the last question is answered.
    """

    def __init__(
        self,
        questions: list[Question],
        answers: dict[str, Any] | None = None,
        current_step: int = 0,
        *,
        on_progress: Callable[[dict[str, Any], int], Any] | None = None,
        on_complete: Callable[[dict[str, Any]], Any] | None = None,
        tracker=None,
        session_id: str | None = None,
    ) -> None:
        if not questions:
            raise ValueError("QuestionFlow needs at least one question")
        self.questions = list(questions)
        self.answers: dict[str, Any] = dict(answers or {})
        self.current_step = min(max(int(current_step or 0), 0), len(self.questions) - 1)
        self.direction = 1
        self.email = ""
        self.other_text = ""
        self.error: str | None = None
        self.completed = False
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._tracker = tracker
        self._session_id = session_id
        self._enter_step()

    @property
    def current_question(self) -> Question:
        return self.questions[self.current_step]

    @property
    def is_last_step(self) -> bool:
        return self.current_step == len(self.questions) - 1

    @property
    def needs_email(self) -> bool:
        return needs_email(self.current_question, self.answers)

    @property
    def needs_other_text(self) -> bool:
        return needs_other_text(self.current_question, self.answers)

    def has_sufficient_answer(self) -> bool:
        return has_sufficient_answer(self.current_question, self.answers, self.email, self.other_text)

    def _enter_step(self) -> None:
        question = self.current_question
        self.email = ""
        self.other_text = ""
        if question.type == "email-conditional":
            self.email = str(self.answers.get(email_key(question.id)) or "")
        if self.needs_other_text:
            self.other_text = str(self.answers.get(other_key(question.id)) or "")
        self._track("step_viewed")

    def _track(self, event: str, value: str | None = None) -> None:
        if self._tracker is None or not self._session_id:
            return
        self._tracker.track(event, session_id=self._session_id, step=self.current_step, question_id=self.current_question.id, value=value)

    def _persist(self, step: int) -> None:
        if self._on_progress is None:
            return
        try:
            self._on_progress(dict(self.answers), step)
        except Exception:
            logger.warning("[flow] progress persist failed at step=%s", step, exc_info=True)

    def select(self, value: str) -> bool:
        question = self.current_question
        option = question.option(value)
        if option is None:
            logger.debug("[flow] ignoring unknown option %r for %s", value, question.id)
            return False

        if question.type == "multi":
            current = list(self.answers.get(question.id) or [])
            if value in current:
                current.remove(value)
            elif question.max_selections is not None and len(current) >= question.max_selections:
                return False
            else:
                current.append(value)
            self.answers[question.id] = current
        else:
            self.answers[question.id] = value
            if question.type == "email-conditional" and not option.requires_email:
                self.email = ""
                self.error = None
            if not option.requires_text:
                self.other_text = ""

        self._track("step_answered", value=value)
        return True

    def set_email(self, email: str) -> None:
        self.email = str(email or "")
        self.error = None

    def set_other_text(self, text: str) -> None:
        self.other_text = str(text or "")

    def advance(self) -> AdvanceResult:
        if self.completed:
            return AdvanceResult(status=COMPLETED, step=self.current_step)

        question = self.current_question
        if not self.has_sufficient_answer():
            if self.needs_email:
                self.error = INVALID_EMAIL_MESSAGE
            elif self.needs_other_text:
                self.error = MISSING_OTHER_MESSAGE
            else:
                self.error = MISSING_ANSWER_MESSAGE
            return AdvanceResult(status=INVALID, step=self.current_step, error=self.error)

        self.error = None
        if self.needs_email:
            self.answers[email_key(question.id)] = self.email.strip()
        if self.needs_other_text:
            self.answers[other_key(question.id)] = self.other_text.strip()

        if self.is_last_step:
            self._persist(self.current_step)
            self.completed = True
            if self._on_complete is not None:
                self._on_complete(dict(self.answers))
            return AdvanceResult(status=COMPLETED, step=self.current_step)

        next_step = next_step_index(self.questions, self.current_step, self.answers)
        self._persist(next_step)
        self.direction = 1
        self.current_step = next_step
        self._enter_step()
        return AdvanceResult(status=ADVANCED, step=next_step)

    def retreat(self) -> bool:
        if self.current_step == 0 or self.completed:
            return False
        self._track("step_back")
        prev_step = previous_step_index(self.questions, self.current_step, self.answers)
        self.error = None
        self.direction = -1
        self.current_step = prev_step
        self._persist(prev_step)
        self._enter_step()
        return True


def validate_answer_payload(questions: list[Question], answers: dict[str, Any]) -> None:
    """Reject answers that name unknown questions or options.

    Sidecar keys (``<id>_email``, ``<id>_other``) are accepted for known
    questions. Answers for skipped questions are allowed to linger.
    """
    by_id = {q.id: q for q in questions}
    sidecars = {email_key(q.id) for q in questions} | {other_key(q.id) for q in questions}
    for key, value in (answers or {}).items():
        if key in sidecars:
            if value is not None and not isinstance(value, str):
                raise AnswerValidationError(f"{key} must be text", question_id=key.rsplit("_", 1)[0])
            continue
        question = by_id.get(key)
        if question is None:
            raise AnswerValidationError(f"Unknown question: {key}", question_id=key)
        values = value if question.type == "multi" else [value]
        if question.type == "multi":
            if not isinstance(value, list):
                raise AnswerValidationError("Expected a list of selections", question_id=key)
            if question.max_selections is not None and len(value) > question.max_selections:
                raise AnswerValidationError(f"Select up to {question.max_selections} options", question_id=key)
        for v in values:
            if question.option(v) is None:
                raise AnswerValidationError(f"Invalid option for {key}: {v}", question_id=key)
