import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from ..config import WEBHOOK_SECRET, WEBHOOK_TIMEOUT_SECONDS, WEBHOOK_URL

logger = logging.getLogger(__name__)


def build_completion_payload(session: dict[str, Any], archetype_id: str, promo_code: str | None, is_retake: bool) -> dict[str, Any]:
    return {
        "event": "survey.retake_completed" if is_retake else "survey.completed",
        "sessionId": session.get("session_id"),
        "archetypeResult": archetype_id,
        "promoCode": promo_code,
        "name": session.get("name"),
        "email": session.get("email"),
        "completedAt": datetime.now(timezone.utc).isoformat(),
    }


def send_completion_webhook(payload: dict[str, Any], url: str | None = None, secret: str | None = None) -> bool:
    """One-shot notification; failures are logged and never retried."""
    target = WEBHOOK_URL if url is None else url
    if not target:
        return False
    token = WEBHOOK_SECRET if secret is None else secret
    headers = {"Content-Type": "application/json"}
    if token:
        headers["X-Webhook-Secret"] = token
    try:
        resp = httpx.post(target, json=payload, headers=headers, timeout=WEBHOOK_TIMEOUT_SECONDS)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("[webhook] Failed to fire for session_id=%s: %s", payload.get("sessionId"), exc)
        return False
    return True
