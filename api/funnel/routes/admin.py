from datetime import date, timedelta
from typing import Any

from fastapi import APIRouter, Header, HTTPException
from fastapi.encoders import jsonable_encoder

from ..config import ADMIN_TOKEN
from ..database import SessionLocal
from ..deps import validate_admin_token
from ..services.metrics import metrics_funnel_summary

router = APIRouter()
scaffold_router = APIRouter()

DEFAULT_WINDOW_DAYS = 30


@scaffold_router.get("/health")
def admin_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "admin"}


def _parse_date(value: str | None, field: str) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"{field} must be YYYY-MM-DD")


@router.get("/admin/metrics/funnel")
def admin_funnel_metrics(
    date_from: str | None = None,
    date_to: str | None = None,
    x_admin_token: str | None = Header(default=None),
) -> dict[str, Any]:
    validate_admin_token(x_admin_token, ADMIN_TOKEN)
    end = _parse_date(date_to, "date_to") or date.today()
    start = _parse_date(date_from, "date_from") or end - timedelta(days=DEFAULT_WINDOW_DAYS)
    if start > end:
        raise HTTPException(status_code=400, detail="date_from must be on or before date_to")
    with SessionLocal() as db:
        summary = metrics_funnel_summary(db, date_from=start, date_to=end)
    return jsonable_encoder(summary)
