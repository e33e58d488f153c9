"""Health check endpoint. No store access; used for liveness probes."""

from fastapi import APIRouter

from journalshare.core.config import get_settings
from journalshare.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse(store=get_settings().database_backend)
