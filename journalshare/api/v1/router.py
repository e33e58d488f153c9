"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from journalshare.api.v1.dependencies.
"""

from fastapi import APIRouter

from journalshare.api.v1.endpoints import entries, health, journals, sharing, triggers

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(journals.router, prefix="/journals", tags=["journals"])
api_router.include_router(sharing.router, prefix="/journals", tags=["sharing"])
api_router.include_router(entries.router, prefix="/journals", tags=["entries"])
api_router.include_router(triggers.router, prefix="/triggers", tags=["triggers"])
