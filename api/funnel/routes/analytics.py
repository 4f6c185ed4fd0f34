import logging
from typing import Any

from fastapi import APIRouter, Body

from ..database import SessionLocal
from ..services.events import log_survey_events

logger = logging.getLogger(__name__)

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def analytics_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "analytics"}


@router.post("/analytics/events")
def ingest_events(payload: Any = Body(default=None)) -> dict[str, Any]:
    events = payload.get("events") if isinstance(payload, dict) else None
    if not isinstance(events, list) or not events:
        return {"ok": True, "inserted": 0}
    with SessionLocal() as db:
        inserted = log_survey_events(db, events)
        db.commit()
    if inserted < len(events):
        logger.info("[analytics] skipped %s malformed events", len(events) - inserted)
    return {"ok": True, "inserted": inserted}
