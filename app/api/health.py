"""Health check endpoint: static status, unauthenticated, not logged."""

from fastapi import APIRouter

from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def get_health() -> HealthResponse:
    """Used by load balancers and monitoring."""
    return HealthResponse(status="ok")
