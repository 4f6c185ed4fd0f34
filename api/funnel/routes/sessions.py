import logging
import secrets
from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException, Request

from .. import repo
from ..archetypes import archetype_payload, get_archetype
from ..deps import require_session
from ..errors import AnswerValidationError
from ..http_helpers import client_ip, user_agent, validate_user_info
from ..schemas import CompleteRequest, CreateSessionRequest, SaveAnswersRequest, UserInfoRequest
from ..services.flow import validate_answer_payload
from ..services.promo import issue_promo_code
from ..services.webhook import build_completion_payload, send_completion_webhook
from ..survey_loader import get_questions

logger = logging.getLogger(__name__)

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def sessions_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "sessions"}


def new_session_id() -> str:
    # 24 url-safe characters.
    return secrets.token_urlsafe(18)


@router.post("/sessions", status_code=201)
def create_session(request: Request, payload: CreateSessionRequest | None = None) -> dict[str, Any]:
    referrer_id = (payload.referrer_id if payload else None) or None
    return repo.create_session(
        session_id=new_session_id(),
        referrer_id=referrer_id,
        ip_address=client_ip(request),
        user_agent=user_agent(request),
    )


@router.get("/sessions/{session_id}")
def get_session(session_id: str) -> dict[str, Any]:
    return require_session(session_id)


@router.put("/sessions/{session_id}/answers")
def save_answers(session_id: str, payload: SaveAnswersRequest) -> dict[str, Any]:
    questions = get_questions()
    if payload.step < 0 or payload.step >= len(questions):
        raise HTTPException(status_code=400, detail=f"step must be between 0 and {len(questions) - 1}")
    try:
        validate_answer_payload(questions, payload.answers)
    except AnswerValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.message)
    row = repo.update_answers(session_id, payload.answers, payload.step)
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    return row


@router.patch("/sessions/{session_id}/user-info")
def save_user_info(session_id: str, payload: UserInfoRequest) -> dict[str, Any]:
    name, email = validate_user_info(payload.name, payload.email)
    row = repo.update_user_info(session_id, name, email)
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    return row


@router.post("/sessions/{session_id}/complete")
def complete_session(session_id: str, payload: CompleteRequest, background_tasks: BackgroundTasks) -> dict[str, Any]:
    archetype = get_archetype(payload.archetype_id)
    if archetype is None:
        raise HTTPException(status_code=400, detail=f"Unknown archetype: {payload.archetype_id}")

    session = require_session(session_id)
    if session.get("is_completed"):
        logger.info("[complete] session_id=%s already completed, returning original result", session_id)
        return {"success": True, "promo_code": session.get("promo_code"), "session": session}

    archetype_data = payload.archetype_data or archetype_payload(archetype)
    promo_code = issue_promo_code(session_id, payload.is_retake, referrer_id=session.get("referrer_id"))
    row = repo.complete_session(session_id, archetype.id, archetype_data, promo_code)
    if not row:
        raise HTTPException(status_code=404, detail="Session not found")
    if row.get("promo_code") != promo_code:
        # Lost a race with a concurrent completion; the stored code stands.
        logger.warning("[complete] session_id=%s completed concurrently, promo %s unused", session_id, promo_code)
        return {"success": True, "promo_code": row.get("promo_code"), "session": row}

    background_tasks.add_task(
        send_completion_webhook,
        build_completion_payload(row, archetype.id, promo_code, payload.is_retake),
    )
    return {"success": True, "promo_code": promo_code, "session": row}
