"""Health check endpoints for readiness and liveness."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from openhouse import __version__
from openhouse.services.database import get_database_manager

router = APIRouter(prefix="/v1", tags=["health"])


async def _database_status() -> str:
    db_manager = get_database_manager()
    if db_manager is None:
        return "not_initialized"
    return "healthy" if await db_manager.health_check() else "unhealthy"


@router.get(
    "/readiness",
    summary="Readiness check",
    description="Check if the service is ready to accept requests",
)
async def readiness() -> JSONResponse:
    """Readiness check endpoint.

    Returns 200 when the database is reachable, 503 otherwise.
    """
    checks = {"database": await _database_status()}
    ready = all(value == "healthy" for value in checks.values())

    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "not_ready", "checks": checks},
    )


@router.get(
    "/liveness",
    summary="Liveness check",
    description="Check if the service is alive",
)
async def liveness() -> dict:
    """Liveness check endpoint."""
    return {"status": "alive"}


@router.get(
    "/health",
    summary="General health check",
    description="Health check with per-dependency status",
)
async def health() -> dict:
    """Health check with database status.

    Returns:
        Health status dict; ``degraded`` when any check is not healthy
    """
    db_manager = get_database_manager()
    checks = {
        "database": {
            "status": await _database_status(),
            "type": db_manager.driver if db_manager else None,
        }
    }
    all_healthy = all(check["status"] == "healthy" for check in checks.values())

    return {
        "status": "healthy" if all_healthy else "degraded",
        "version": __version__,
        "service": "openhouse-api",
        "checks": checks,
    }
