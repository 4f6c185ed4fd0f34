import pytest

from funnel.errors import AnswerValidationError
from funnel.services.flow import (
    ADVANCED,
    COMPLETED,
    INVALID,
    INVALID_EMAIL_MESSAGE,
    MISSING_ANSWER_MESSAGE,
    MISSING_OTHER_MESSAGE,
    QuestionFlow,
    next_step_index,
    previous_step_index,
    validate_answer_payload,
)
from funnel.survey_loader import get_questions

CONSIDERING = 1
URGENCY = 2
BARRIER = 4
INCOME_GOAL = 5
SUPPORT = 6
EARLY_ACCESS = 8
LAST = 14


class FakeTracker:
    def __init__(self):
        self.events = []

    def track(self, event, **kwargs):
        self.events.append((event, kwargs))


def _flow(**kwargs):
    return QuestionFlow(get_questions(), **kwargs)


def test_not_pursuing_skips_to_income_goal_and_back_returns_to_origin():
    progress = []
    flow = _flow(current_step=CONSIDERING, on_progress=lambda answers, step: progress.append(step))
    assert flow.select("not_pursuing") is True
    result = flow.advance()
    assert result.status == ADVANCED
    assert flow.current_step == INCOME_GOAL
    assert flow.retreat() is True
    assert flow.current_step == CONSIDERING
    assert progress == [INCOME_GOAL, CONSIDERING]


def test_other_branch_values_advance_sequentially():
    flow = _flow(current_step=CONSIDERING)
    flow.select("actively_exploring")
    flow.advance()
    assert flow.current_step == URGENCY


def test_back_from_income_goal_without_skip_goes_to_previous_question():
    questions = get_questions()
    answers = {"considering_business": "actively_exploring"}
    assert previous_step_index(questions, INCOME_GOAL, answers) == BARRIER
    assert next_step_index(questions, CONSIDERING, {"considering_business": "not_pursuing"}) == INCOME_GOAL


def test_retreat_is_noop_at_first_step():
    flow = _flow()
    assert flow.retreat() is False
    assert flow.current_step == 0


def test_advance_without_answer_is_rejected():
    flow = _flow()
    result = flow.advance()
    assert result.status == INVALID
    assert result.error == MISSING_ANSWER_MESSAGE
    assert flow.current_step == 0


def test_multi_select_caps_at_max_and_toggles():
    flow = _flow(current_step=SUPPORT)
    for value in ("ai_matching", "mentorship", "peer_community"):
        assert flow.select(value) is True
    assert flow.select("funding_guidance") is False
    assert flow.answers["support_types"] == ["ai_matching", "mentorship", "peer_community"]
    flow.select("mentorship")
    assert flow.answers["support_types"] == ["ai_matching", "peer_community"]


def test_empty_multi_selection_is_insufficient():
    flow = _flow(current_step=SUPPORT)
    flow.select("mentorship")
    flow.select("mentorship")
    assert flow.has_sufficient_answer() is False


def test_email_option_requires_valid_email_and_stores_sidecar():
    flow = _flow(current_step=EARLY_ACCESS)
    flow.select("yes_apply")
    assert flow.needs_email is True
    assert flow.advance().error == INVALID_EMAIL_MESSAGE
    flow.set_email("not-an-email")
    assert flow.advance().status == INVALID
    flow.set_email("  founder@example.com ")
    assert flow.advance().status == ADVANCED
    assert flow.answers["early_access_email"] == "founder@example.com"


def test_switching_to_no_email_option_clears_pending_email_only():
    flow = _flow(current_step=EARLY_ACCESS, answers={"early_access": "yes_apply", "early_access_email": "a@b.co"})
    assert flow.email == "a@b.co"
    flow.select("no_thanks")
    assert flow.email == ""
    assert flow.advance().status == ADVANCED
    assert flow.answers["early_access_email"] == "a@b.co"


def test_other_option_requires_free_text():
    flow = _flow()
    flow.select("other")
    assert flow.advance().error == MISSING_OTHER_MESSAGE
    flow.set_other_text("  Gig work ")
    assert flow.advance().status == ADVANCED
    assert flow.answers["employment_status_other"] == "Gig work"


def test_unknown_option_is_ignored():
    flow = _flow()
    assert flow.select("astronaut") is False
    assert "employment_status" not in flow.answers


def test_progress_failures_never_block_navigation():
    def broken(answers, step):
        raise RuntimeError("backend down")

    flow = _flow(on_progress=broken)
    flow.select("contracted")
    assert flow.advance().status == ADVANCED
    assert flow.current_step == 1


def test_last_step_persists_current_index_then_completes_once():
    progress = []
    completions = []
    flow = _flow(
        current_step=LAST,
        on_progress=lambda answers, step: progress.append(step),
        on_complete=completions.append,
    )
    flow.select("prefer_not")
    assert flow.advance().status == COMPLETED
    assert flow.advance().status == COMPLETED
    assert progress == [LAST]
    assert len(completions) == 1
    assert completions[0]["prior_income"] == "prefer_not"
    assert flow.retreat() is False


def test_navigation_emits_step_events():
    tracker = FakeTracker()
    flow = _flow(tracker=tracker, session_id="s1")
    flow.select("contracted")
    flow.advance()
    flow.retreat()
    names = [e for e, _ in tracker.events]
    assert names == ["step_viewed", "step_answered", "step_viewed", "step_back", "step_viewed"]
    assert tracker.events[1][1]["value"] == "contracted"


def test_answer_payload_validation():
    questions = get_questions()
    validate_answer_payload(
        questions,
        {"employment_status": "other", "employment_status_other": "x", "support_types": ["mentorship"], "early_access_email": "a@b.co"},
    )
    with pytest.raises(AnswerValidationError):
        validate_answer_payload(questions, {"favorite_color": "blue"})
    with pytest.raises(AnswerValidationError):
        validate_answer_payload(questions, {"employment_status": "astronaut"})
    with pytest.raises(AnswerValidationError) as exc:
        validate_answer_payload(questions, {"support_types": ["ai_matching", "mentorship", "peer_community", "funding_guidance"]})
    assert exc.value.question_id == "support_types"
