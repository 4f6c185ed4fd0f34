import pytest

from funnel.services.survey_validation import validate_question_catalog
from funnel.survey_loader import InvalidQuestionCatalog, get_questions, get_survey_definition, parse_questions


def _catalog(*questions):
    return {"survey": {"slug": "t", "version": 1}, "questions": list(questions)}


def _q(qid, qtype="single", rules=None, **extra):
    q = {"id": qid, "type": qtype, "text": qid, "options": [{"value": "a", "label": "A"}, {"value": "b", "label": "B"}]}
    if rules:
        q["rules"] = rules
    q.update(extra)
    return q


def test_shipped_catalog_is_valid():
    assert validate_question_catalog(get_survey_definition()) == []
    questions = get_questions()
    assert len(questions) == 15
    assert questions[1].id == "considering_business"
    assert questions[1].rules[0]["target"] == "income_goal"
    early_access = next(q for q in questions if q.id == "early_access")
    assert early_access.option("no_thanks").requires_email is False
    assert early_access.option("yes_apply").requires_email is True


def test_duplicate_ids_and_unknown_type_are_reported():
    errors = validate_question_catalog(_catalog(_q("x"), _q("x"), _q("y", qtype="slider")))
    codes = {e["code"] for e in errors}
    assert "duplicate_question_id" in codes
    assert "invalid_question_type" in codes


def test_multi_requires_max_selections():
    errors = validate_question_catalog(_catalog(_q("m", qtype="multi")))
    assert [e["code"] for e in errors] == ["invalid_max_selections"]


def test_skip_targets_must_exist_and_point_forward():
    backwards = _catalog(_q("a"), _q("b"), _q("c", rules=[{"type": "skip_to", "operator": "eq", "trigger_value": "a", "target": "a"}]))
    adjacent = _catalog(_q("a", rules=[{"type": "skip_to", "operator": "eq", "trigger_value": "a", "target": "b"}]), _q("b"))
    missing = _catalog(_q("a", rules=[{"type": "skip_to", "operator": "eq", "trigger_value": "a", "target": "zzz"}]))
    assert validate_question_catalog(backwards)[0]["code"] == "non_forward_skip"
    assert validate_question_catalog(adjacent)[0]["code"] == "non_forward_skip"
    assert validate_question_catalog(missing)[0]["code"] == "unknown_skip_target"


def test_parse_questions_raises_on_invalid_catalog():
    with pytest.raises(InvalidQuestionCatalog) as exc:
        parse_questions({"questions": []})
    assert exc.value.errors[0]["code"] == "invalid_schema"
