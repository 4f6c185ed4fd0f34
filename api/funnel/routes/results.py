from typing import Any

from fastapi import APIRouter, HTTPException

from .. import repo
from ..deps import require_session
from ..errors import EnrichmentNotReady
from ..services.certificate import CloudinaryCertificateRenderer
from ..services.enrichment import generate_results
from ..services.narrative import OpenAINarrativeGenerator

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def results_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "results"}


def get_narrative_generator() -> OpenAINarrativeGenerator:
    return OpenAINarrativeGenerator()


def get_certificate_renderer() -> CloudinaryCertificateRenderer:
    return CloudinaryCertificateRenderer()


def _persist(session_id: str, ai_summary: dict[str, Any] | None, certificate_url: str | None) -> None:
    repo.update_enrichment(session_id, ai_summary=ai_summary, certificate_url=certificate_url)


@router.post("/sessions/{session_id}/results")
def session_results(session_id: str) -> dict[str, Any]:
    session = require_session(session_id)
    try:
        result = generate_results(
            session,
            narrative=get_narrative_generator(),
            certificate=get_certificate_renderer(),
            persist=_persist,
        )
    except EnrichmentNotReady as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return {"success": True, **result}
