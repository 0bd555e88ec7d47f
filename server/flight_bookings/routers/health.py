"""Health and readiness check router."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import ping_db
from ..core.dependencies import DatabaseSession
from ..core.observability import SERVICE_NAME
from ..schemas.health import HealthResponse, HealthStatus, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        service=SERVICE_NAME,
        timestamp=datetime.now(timezone.utc),
        version="1.0.0"
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(db: AsyncSession = DatabaseSession) -> JSONResponse:
    """
    Readiness check endpoint.

    Reports 503 until the booking database answers.
    """
    try:
        await ping_db(db)
        database = "ok"
    except SQLAlchemyError as e:
        logger.warning("Readiness check failed", extra={"error": str(e)})
        database = "unavailable"

    ready = database == "ok"
    response_data = ReadinessResponse(
        status=HealthStatus.READY if ready else HealthStatus.DEGRADED,
        checks={"database": database},
    )
    return JSONResponse(
        status_code=200 if ready else 503,
        content=response_data.model_dump(mode="json")
    )
