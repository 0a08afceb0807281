"""
Health check route.

Public. Load balancers and the web client's status page poll it; it does
not touch Supabase, so it stays green while the database is degraded.
"""

from fastapi import APIRouter

from bodywork.config import settings
from bodywork.schemas.health import HealthResponse
from bodywork.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Public liveness check. Reports the service name and environment.",
    status_code=200,
)
async def health_check() -> HealthResponse:
    logger.debug("Health check")
    return HealthResponse(status="ok", environment=settings.ENVIRONMENT)
