from typing import Any
from pydantic import BaseModel, Field


class AISummary(BaseModel):
    headline: str
    summary: str
    strengths: list[str] = Field(default_factory=list)
    nextSteps: list[str] = Field(default_factory=list)
    encouragement: str = ""


class CreateSessionRequest(BaseModel):
    referrer_id: str | None = None


class SaveAnswersRequest(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)
    step: int = 0


class UserInfoRequest(BaseModel):
    name: str = ""
    email: str | None = None


class CompleteRequest(BaseModel):
    archetype_id: str
    archetype_data: dict[str, Any] = Field(default_factory=dict)
    is_retake: bool = False
