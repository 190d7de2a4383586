"""Health check endpoints."""

from fastapi import APIRouter

from rewards_api.core.config import settings
from rewards_api.core.deps import SessionStoreDep
from rewards_api.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(store: SessionStoreDep) -> HealthResponse:
    """
    Health check endpoint.

    Checks the session backend and returns service status.
    """
    status = "healthy"
    checks: dict[str, str] = {}

    try:
        await store.ping()
        checks["session_store"] = f"healthy ({store.name})"
    except Exception as e:
        status = "unhealthy"
        checks["session_store"] = f"unhealthy: {str(e)}"

    return HealthResponse(
        status=status,
        version=settings.version,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}
