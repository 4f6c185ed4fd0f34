from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any

from .config import QUESTIONS_PATH
from .services.survey_validation import validate_question_catalog


@dataclass(frozen=True)
class Option:
    value: str
    label: str
    requires_email: bool = False
    requires_text: bool = False


@dataclass(frozen=True)
class Question:
    id: str
    type: str
    text: str
    options: tuple[Option, ...]
    section: str = ""
    max_selections: int | None = None
    rules: tuple[dict[str, Any], ...] = field(default_factory=tuple)

    def option(self, value: Any) -> Option | None:
        for opt in self.options:
            if opt.value == value:
                return opt
        return None


class InvalidQuestionCatalog(ValueError):
    def __init__(self, errors: list[dict[str, Any]]) -> None:
        super().__init__(f"Invalid question catalog: {errors[0]['message']}" if errors else "Invalid question catalog")
        self.errors = errors


@lru_cache(maxsize=1)
def get_file_survey_definition() -> dict[str, Any]:
    with QUESTIONS_PATH.open("r", encoding="utf-8") as f:
        return json.load(f)


def parse_questions(definition: dict[str, Any]) -> list[Question]:
    errors = validate_question_catalog(definition)
    if errors:
        raise InvalidQuestionCatalog(errors)

    out: list[Question] = []
    for q in definition["questions"]:
        out.append(
            Question(
                id=q["id"],
                type=q["type"],
                text=str(q.get("text") or ""),
                section=str(q.get("section") or ""),
                max_selections=q.get("max_selections"),
                options=tuple(
                    Option(
                        value=o["value"],
                        label=str(o.get("label") or o["value"]),
                        requires_email=bool(o.get("requires_email")),
                        requires_text=bool(o.get("requires_text")),
                    )
                    for o in q["options"]
                ),
                rules=tuple(q.get("rules") or ()),
            )
        )
    return out


def get_survey_definition() -> dict[str, Any]:
    return get_file_survey_definition()


def get_questions() -> list[Question]:
    return parse_questions(get_file_survey_definition())


def get_question_map() -> dict[str, Question]:
    return {q.id: q for q in get_questions()}
