"""
Health API endpoints
"""

from fastapi import APIRouter

from ...core.setting import get_settings
from ...schemas.order import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check reporting the deployed version."""
    return HealthResponse(status="ok", version=get_settings().APP_VERSION)
