"""Health check endpoints."""

from fastapi import APIRouter, Request

from src.config import get_settings
from src.core.database import AsyncCassandraConnection
from src.core.redis import get_redis


router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness() -> dict[str, str]:
    """Liveness probe - checks if the application is running."""
    return {"status": "alive"}


@router.get("/ready")
async def readiness(request: Request) -> dict[str, str | bool]:
    """Readiness probe - ready once the comment service is wired."""
    settings = get_settings()
    service_ready = bool(getattr(request.app.state, "comment_service", None))
    database_connected = (
        AsyncCassandraConnection.is_connected() if settings.uses_cassandra else True
    )
    return {
        "status": "ready" if service_ready and database_connected else "starting",
        "storage_backend": settings.storage_backend,
        "duplicate_check": get_redis() is not None,
        "environment": settings.environment,
        "debug": settings.debug,
    }


@router.get("")
async def health() -> dict[str, str]:
    """General health check endpoint."""
    settings = get_settings()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.app_version,
        "environment": settings.environment,
    }
