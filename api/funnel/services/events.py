import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

logger = logging.getLogger(__name__)

MAX_EVENT_NAME_LENGTH = 64
MAX_VALUE_LENGTH = 2000

_INSERT_EVENT = text(
    """
    INSERT INTO survey_events (event, session_id, step, question_id, value, meta, event_timestamp)
    VALUES (
      :event,
      NULLIF(:session_id, ''),
      :step,
      NULLIF(:question_id, ''),
      NULLIF(:value, ''),
      CAST(:meta AS jsonb),
      CAST(:event_timestamp AS timestamptz)
    )
    """
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _coerce_step(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _coerce_timestamp(value: Any) -> str:
    raw = str(value or "").strip()
    if not raw:
        return _now_iso()
    try:
        return datetime.fromisoformat(raw.replace("Z", "+00:00")).isoformat()
    except ValueError:
        return _now_iso()


def normalize_client_event(evt: Any) -> dict[str, Any] | None:
    if not isinstance(evt, dict):
        return None
    event = str(evt.get("event") or "unknown").strip()[:MAX_EVENT_NAME_LENGTH] or "unknown"
    meta = evt.get("meta") if isinstance(evt.get("meta"), dict) else {}
    value = evt.get("value")
    return {
        "event": event,
        "session_id": str(evt.get("sessionId") or "")[:128],
        "step": _coerce_step(evt.get("step")),
        "question_id": str(evt.get("questionId") or "")[:64],
        "value": str(value)[:MAX_VALUE_LENGTH] if value is not None else "",
        "meta": json.dumps(meta, default=str),
        "event_timestamp": _coerce_timestamp(evt.get("timestamp")),
    }


def log_survey_events(db, events: list[Any]) -> int:
    """Insert a client batch in order; malformed entries are skipped, not rejected."""
    inserted = 0
    for evt in events or []:
        params = normalize_client_event(evt)
        if params is None:
            logger.debug("[analytics] skipping malformed event %r", evt)
            continue
        db.execute(_INSERT_EVENT, params)
        inserted += 1
    return inserted


def log_product_event(
    db,
    *,
    event: str,
    session_id: str | None = None,
    meta: dict[str, Any] | None = None,
) -> None:
    db.execute(
        _INSERT_EVENT,
        {
            "event": event,
            "session_id": session_id or "",
            "step": None,
            "question_id": "",
            "value": "",
            "meta": json.dumps(meta or {}, default=str),
            "event_timestamp": _now_iso(),
        },
    )
