"""Post-completion enrichment: personalized narrative plus certificate.

Both generators are optional collaborators. A narrative failure degrades to a
deterministic archetype-derived summary, a certificate failure degrades to no
certificate, and a failed write-back never discards results already computed.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable

from ..archetypes import get_archetype
from ..config import DEFAULT_RESPONDENT_NAME
from ..errors import EnrichmentNotReady
from ..schemas import AISummary

logger = logging.getLogger(__name__)

FALLBACK_STRENGTHS = [
    "Self-awareness about your career direction",
    "Willingness to explore entrepreneurship",
    "Commitment to professional growth",
]


def _as_dict(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value.strip():
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            return {}
        return parsed if isinstance(parsed, dict) else {}
    return {}


def parse_ai_summary(value: Any) -> dict[str, Any] | None:
    data = _as_dict(value)
    if not data:
        return None
    try:
        return AISummary.model_validate(data).model_dump()
    except ValueError:
        return None


def fallback_summary(archetype_id: str, archetype_name: str | None = None, archetype_headline: str | None = None) -> dict[str, Any]:
    archetype = get_archetype(archetype_id)
    name = archetype_name or (archetype.name if archetype else "") or "an entrepreneur"
    headline = archetype_headline if archetype_headline is not None else (archetype.headline if archetype else "")
    closing_step = archetype.cta if archetype else "Start small: test one idea this week"
    return AISummary(
        headline=f"Your path as {name}",
        summary=(
            f"Based on your survey responses, you've been classified as {name}. {headline} "
            "Your unique combination of experience and motivation positions you well for the next phase of your journey."
        ).replace("  ", " "),
        strengths=list(FALLBACK_STRENGTHS),
        nextSteps=[
            "Review your archetype profile and identify resonating themes",
            "Explore resources tailored to your archetype",
            "Connect with others on a similar journey",
            closing_step,
        ],
        encouragement=(
            "Every successful founder started exactly where you are now. Your willingness to take this survey "
            "shows the kind of initiative that builds real businesses."
        ),
    ).model_dump()


def generate_results(
    session: dict[str, Any],
    *,
    narrative,
    certificate,
    persist: Callable[[str, dict[str, Any] | None, str | None], Any] | None = None,
) -> dict[str, Any]:
    session_id = str(session.get("session_id") or "")
    archetype_id = str(session.get("archetype_result") or "")
    if not session.get("is_completed") or not archetype_id:
        raise EnrichmentNotReady("Survey not completed yet")

    cached_summary = parse_ai_summary(session.get("ai_summary"))
    if cached_summary and session.get("certificate_url"):
        return {"cached": True, "ai_summary": cached_summary, "certificate_url": session["certificate_url"]}

    archetype_data = _as_dict(session.get("archetype_data"))
    answers = _as_dict(session.get("answers"))
    archetype = get_archetype(archetype_id)
    archetype_name = str(archetype_data.get("name") or (archetype.name if archetype else archetype_id))
    archetype_headline = str(archetype_data.get("headline") or (archetype.headline if archetype else ""))
    archetype_emoji = str(archetype_data.get("emoji") or (archetype.emoji if archetype else "🏆"))
    user_name = str(session.get("name") or "").strip() or DEFAULT_RESPONDENT_NAME

    if cached_summary:
        ai_summary = cached_summary
    else:
        try:
            ai_summary = narrative.generate(
                name=user_name,
                archetype_id=archetype_id,
                archetype_name=archetype_name,
                archetype_headline=archetype_headline,
                answers=answers,
            ).model_dump()
        except Exception as exc:
            logger.warning("[enrichment] narrative failed for session_id=%s: %s", session_id, exc)
            ai_summary = fallback_summary(archetype_id, archetype_name, archetype_headline)

    certificate_url = session.get("certificate_url") or None
    if not certificate_url:
        try:
            certificate_url = certificate.render(
                name=user_name,
                archetype_name=archetype_name,
                emoji=archetype_emoji,
                headline=archetype_headline,
                completed_date=session.get("completed_at"),
            )
        except Exception as exc:
            logger.warning("[enrichment] certificate failed for session_id=%s: %s", session_id, exc)
            certificate_url = None

    if persist is not None:
        try:
            persist(session_id, ai_summary, certificate_url)
        except Exception as exc:
            logger.warning("[enrichment] persist failed for session_id=%s: %s", session_id, exc)

    return {"cached": False, "ai_summary": ai_summary, "certificate_url": certificate_url}
