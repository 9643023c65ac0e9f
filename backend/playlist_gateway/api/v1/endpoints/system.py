"""
System health check endpoint.
Liveness probe for load balancers and container orchestrators.
"""

from fastapi import APIRouter

from playlist_gateway.core.config import settings
from playlist_gateway.schemas.schemas import HealthResponse

router = APIRouter()


@router.get(
    "/health",
    summary="Basic health check (no auth required)",
    response_model=HealthResponse,
)
async def health_check() -> HealthResponse:
    """Liveness probe; checks no dependencies."""
    return HealthResponse(status="healthy", version=settings.APP_VERSION)
