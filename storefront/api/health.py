"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from storefront.api.schemas import HealthResponse
from storefront.infrastructure import database
from storefront.infrastructure.config import settings

logger = structlog.get_logger()

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status.
    """
    return HealthResponse(status="ok")


@router.get("/ready")
async def readiness_check() -> JSONResponse:
    """Check if service is ready to accept requests.

    With the SQL store, the database must answer a trivial query.

    Returns:
        Readiness status, 503 when the database is unreachable.
    """
    if settings.store_backend == "sql":
        try:
            await database.ping()
        except Exception as exc:
            logger.warning("Database not reachable", error=str(exc))
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable", "version": settings.api_version},
            )

    return JSONResponse(content={"status": "ready", "version": settings.api_version})
