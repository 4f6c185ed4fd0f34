from fastapi import APIRouter, FastAPI

from .admin import router as admin_router, scaffold_router as admin_scaffold_router
from .analytics import router as analytics_router, scaffold_router as analytics_scaffold_router
from .catalog import router as catalog_router, scaffold_router as catalog_scaffold_router
from .results import router as results_router, scaffold_router as results_scaffold_router
from .sessions import router as sessions_router, scaffold_router as sessions_scaffold_router


def include_modular_routers(app: FastAPI) -> None:
    app.include_router(catalog_router, tags=["survey"])
    app.include_router(sessions_router, tags=["sessions"])
    app.include_router(results_router, tags=["results"])
    app.include_router(analytics_router, tags=["analytics"])
    app.include_router(admin_router, tags=["admin"])

    app.include_router(catalog_scaffold_router, prefix="/_scaffold/catalog", tags=["scaffold-catalog"])
    app.include_router(sessions_scaffold_router, prefix="/_scaffold/sessions", tags=["scaffold-sessions"])
    app.include_router(results_scaffold_router, prefix="/_scaffold/results", tags=["scaffold-results"])
    app.include_router(analytics_scaffold_router, prefix="/_scaffold/analytics", tags=["scaffold-analytics"])
    app.include_router(admin_scaffold_router, prefix="/_scaffold/admin", tags=["scaffold-admin"])


__all__ = ["include_modular_routers", "APIRouter"]
