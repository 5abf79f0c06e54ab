"""
Health check endpoints.

Provides system health information for monitoring.
"""

from fastapi import APIRouter, HTTPException
import structlog

from discovery import __version__
from discovery.api.dependencies import ControllerDep
from discovery.core.config import settings
from discovery.persistence.database import check_database_health

log = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(controller: ControllerDep):
    """
    Health check endpoint.

    Returns:
        System health status including database connectivity and whether a
        session is listening.
    """
    db_health = await check_database_health()

    overall_status = "healthy" if db_health["status"] == "healthy" else "unhealthy"

    return {
        "status": overall_status,
        "version": __version__,
        "debug": settings.debug,
        "listening": controller.is_listening,
        "components": {"database": db_health},
    }


@router.get("/health/live")
async def liveness():
    """Liveness probe. Returns 200 if the application is running."""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness():
    """Readiness probe. Returns 503 until the database answers."""
    db_health = await check_database_health()

    if db_health["status"] != "healthy":
        raise HTTPException(status_code=503, detail="Database not ready")

    return {"status": "ready"}
