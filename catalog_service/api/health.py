"""Health check endpoints.

Provides endpoints for monitoring service health and readiness.
"""

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from catalog_service import __version__
from catalog_service.api.responses import EnvelopeResponse, error
from catalog_service.infrastructure.database import Database, get_database

logger = structlog.get_logger()

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str
    service: str
    version: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check service health.

    Returns:
        Health status with service name and version.
    """
    return HealthResponse(status="healthy", service="catalog-service", version=__version__)


@router.get("/ready", response_model=None)
async def readiness_check(
    database: Annotated[Database, Depends(get_database)],
) -> dict[str, str] | EnvelopeResponse:
    """Check if service is ready to accept requests.

    Returns:
        Readiness status, or 503 when the database is unreachable.
    """
    try:
        async with database.read_session() as session:
            await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Readiness check failed", error=str(exc))
        return error(status.HTTP_503_SERVICE_UNAVAILABLE, "NOT_READY", "Database is not reachable")
    return {"status": "ready"}
