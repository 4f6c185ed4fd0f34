from __future__ import annotations

from typing import Any

from .rules import VALID_OPERATORS

VALID_QUESTION_TYPES = {"single", "multi", "dropdown", "email-conditional"}
VALID_RULE_TYPES = {"skip_to"}


def validate_question_catalog(definition: dict[str, Any]) -> list[dict[str, Any]]:
    errors: list[dict[str, Any]] = []

    questions = definition.get("questions") if isinstance(definition, dict) else None
    if not isinstance(questions, list) or not questions:
        return [{"code": "invalid_schema", "path": "questions", "message": "questions must be a non-empty array"}]

    positions: dict[str, int] = {}
    for idx, question in enumerate(questions):
        path = f"questions[{idx}]"
        if not isinstance(question, dict):
            errors.append({"code": "invalid_question", "path": path, "message": "question must be an object"})
            continue
        qid = question.get("id")
        if not isinstance(qid, str) or not qid.strip():
            errors.append({"code": "missing_question_id", "path": f"{path}.id", "message": "question id is required"})
            continue
        if qid in positions:
            errors.append({"code": "duplicate_question_id", "path": f"{path}.id", "message": f"duplicate question id '{qid}'"})
            continue
        positions[qid] = idx

    for idx, question in enumerate(questions):
        if not isinstance(question, dict) or not isinstance(question.get("id"), str):
            continue
        path = f"questions[{idx}]"
        qid = question["id"]

        qtype = question.get("type")
        if qtype not in VALID_QUESTION_TYPES:
            errors.append({"code": "invalid_question_type", "path": f"{path}.type", "message": f"unsupported question type '{qtype}'"})

        options = question.get("options")
        if not isinstance(options, list) or not options:
            errors.append({"code": "missing_options", "path": f"{path}.options", "message": "options must be a non-empty array"})
            options = []
        seen_values: set[str] = set()
        for o_idx, option in enumerate(options):
            value = option.get("value") if isinstance(option, dict) else None
            if not isinstance(value, str) or not value:
                errors.append({"code": "invalid_option", "path": f"{path}.options[{o_idx}]", "message": "option value is required"})
                continue
            if value in seen_values:
                errors.append({"code": "duplicate_option", "path": f"{path}.options[{o_idx}]", "message": f"duplicate option value '{value}'"})
            seen_values.add(value)

        if qtype == "multi":
            max_sel = question.get("max_selections")
            if not isinstance(max_sel, int) or max_sel < 1:
                errors.append({"code": "invalid_max_selections", "path": f"{path}.max_selections", "message": "multi questions need max_selections >= 1"})

        for r_idx, rule in enumerate(question.get("rules") or []):
            rule_path = f"{path}.rules[{r_idx}]"
            if rule.get("type") not in VALID_RULE_TYPES:
                errors.append({"code": "invalid_rule_type", "path": rule_path, "message": f"unsupported rule type '{rule.get('type')}'"})
                continue
            if rule.get("operator", "eq") not in VALID_OPERATORS:
                errors.append({"code": "invalid_operator", "path": rule_path, "message": f"unsupported operator '{rule.get('operator')}'"})
            target = rule.get("target")
            if target not in positions:
                errors.append({"code": "unknown_skip_target", "path": rule_path, "message": f"skip target '{target}' does not exist"})
            elif positions[target] <= positions[qid] + 1:
                errors.append({"code": "non_forward_skip", "path": rule_path, "message": f"skip target '{target}' must come after the next question"})

    return errors
