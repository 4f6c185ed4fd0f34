from typing import Any

from fastapi import APIRouter

from ..archetypes import ARCHETYPES, archetype_to_dict
from ..survey_loader import get_survey_definition

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def catalog_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "catalog"}


@router.get("/survey/active")
def active_survey() -> dict[str, Any]:
    return get_survey_definition()


@router.get("/archetypes")
def list_archetypes() -> dict[str, Any]:
    return {"archetypes": [archetype_to_dict(a) for a in ARCHETYPES]}
