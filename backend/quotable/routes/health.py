"""
So Quotable Backend — Health Check Route
=========================================

GET /health for load balancer and Docker probes. Always HTTP 200: a
database failure is reported as status "degraded" with connected=false
so the probe body says what is wrong.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from quotable import __version__
from quotable.clock import utcnow
from quotable.config import settings
from quotable.database import get_db_session
from quotable.models.person import Person
from quotable.schemas.common import DatabaseStatus, EnvironmentInfo, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(db: AsyncSession = Depends(get_db_session)) -> HealthResponse:
    try:
        people_count = await db.scalar(select(func.count()).select_from(Person))
        database = DatabaseStatus(connected=True, people_count=people_count or 0)
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Health check: database unreachable: %s", e)
        await db.rollback()
        database = DatabaseStatus(connected=False)

    return HealthResponse(
        status="ok" if database.connected else "degraded",
        timestamp=utcnow(),
        version=__version__,
        database=database,
        environment=EnvironmentInfo(deployment=settings.deployment),
    )
