import json
from typing import Any

from sqlalchemy import text

from .database import SessionLocal
from .services.events import log_product_event

_RETURNING = """
    RETURNING session_id, name, email, current_step, answers, is_completed, completed_at,
              archetype_result, archetype_data, promo_code, ai_summary, certificate_url,
              referrer_id, created_at, updated_at
"""


def _row(row) -> dict[str, Any] | None:
    return dict(row) if row else None


def create_session(
    session_id: str,
    referrer_id: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict[str, Any]:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                INSERT INTO survey_sessions (session_id, ip_address, user_agent, referrer_id, answers, current_step)
                VALUES (:session_id, :ip_address, :user_agent, :referrer_id, CAST('{}' AS jsonb), 0)
                """
                + _RETURNING
            ),
            {
                "session_id": session_id,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "referrer_id": referrer_id,
            },
        ).mappings().first()
        log_product_event(db, event="session_created", session_id=session_id, meta={"referrer_id": referrer_id})
        db.commit()
    return dict(row)


def get_session(session_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                SELECT session_id, name, email, current_step, answers, is_completed, completed_at,
                       archetype_result, archetype_data, promo_code, ai_summary, certificate_url,
                       referrer_id, created_at, updated_at
                FROM survey_sessions
                WHERE session_id = :session_id
                """
            ),
            {"session_id": session_id},
        ).mappings().first()
    return _row(row)


def update_answers(session_id: str, answers: dict[str, Any], step: int) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                UPDATE survey_sessions
                SET answers = CAST(:answers AS jsonb), current_step = :step, updated_at = NOW()
                WHERE session_id = :session_id
                """
                + _RETURNING
            ),
            {"session_id": session_id, "answers": json.dumps(answers or {}), "step": int(step or 0)},
        ).mappings().first()
        db.commit()
    return _row(row)


def update_user_info(session_id: str, name: str, email: str | None = None) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                UPDATE survey_sessions
                SET name = :name, email = :email, updated_at = NOW()
                WHERE session_id = :session_id
                """
                + _RETURNING
            ),
            {"session_id": session_id, "name": name, "email": email},
        ).mappings().first()
        db.commit()
    return _row(row)


def complete_session(
    session_id: str,
    archetype_id: str,
    archetype_data: dict[str, Any],
    promo_code: str,
) -> dict[str, Any] | None:
    """Mark a session completed. Archetype and promo code are write-once.

    A session that is already completed is returned unchanged, so callers can
    tell whether ``promo_code`` was adopted by comparing it with the row.
    """
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                UPDATE survey_sessions
                SET archetype_result = :archetype_result,
                    archetype_data = CAST(:archetype_data AS jsonb),
                    promo_code = :promo_code,
                    is_completed = TRUE,
                    completed_at = NOW(),
                    updated_at = NOW()
                WHERE session_id = :session_id
                  AND is_completed = FALSE
                """
                + _RETURNING
            ),
            {
                "session_id": session_id,
                "archetype_result": archetype_id,
                "archetype_data": json.dumps(archetype_data or {}),
                "promo_code": promo_code,
            },
        ).mappings().first()
        if row:
            log_product_event(db, event="session_completed", session_id=session_id, meta={"archetype": archetype_id})
        db.commit()
    if row:
        return dict(row)
    return get_session(session_id)


def create_promo_code(
    code: str,
    session_id: str,
    points_value: int,
    is_retake: bool = False,
    referrer_id: str | None = None,
) -> dict[str, Any]:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                INSERT INTO promo_codes (code, session_id, points_value, is_retake, referrer_id)
                VALUES (:code, :session_id, :points_value, :is_retake, :referrer_id)
                RETURNING code, session_id, points_value, is_retake, referrer_id, created_at
                """
            ),
            {
                "code": code,
                "session_id": session_id,
                "points_value": points_value,
                "is_retake": is_retake,
                "referrer_id": referrer_id,
            },
        ).mappings().first()
        db.commit()
    return dict(row)


def update_enrichment(
    session_id: str,
    ai_summary: dict[str, Any] | None = None,
    certificate_url: str | None = None,
) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                UPDATE survey_sessions
                SET ai_summary = COALESCE(CAST(:ai_summary AS jsonb), ai_summary),
                    certificate_url = COALESCE(:certificate_url, certificate_url),
                    updated_at = NOW()
                WHERE session_id = :session_id
                """
                + _RETURNING
            ),
            {
                "session_id": session_id,
                "ai_summary": json.dumps(ai_summary) if ai_summary is not None else None,
                "certificate_url": certificate_url,
            },
        ).mappings().first()
        db.commit()
    return _row(row)
