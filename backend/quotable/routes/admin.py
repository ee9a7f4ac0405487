"""Admin-only HTTP maintenance. Backfill and promotion are CLI-only (see quotable.cli)."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id
from quotable.schemas.admin import CleanupRequest, CleanupResult
from quotable.schemas.common import ErrorResponse
from quotable.services.admin_service import admin_service

router = APIRouter(prefix="/api/admin", tags=["Admin"])


@router.post(
    "/cleanup-test-users",
    response_model=CleanupResult,
    responses={
        401: {"description": "Not signed in", "model": ErrorResponse},
        403: {"description": "Admin only", "model": ErrorResponse},
    },
    summary="Delete accounts created by test runs",
)
async def cleanup_test_users(
    body: CleanupRequest,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> CleanupResult:
    return await admin_service.cleanup_test_users(
        db, user_id, dry_run=body.dry_run, batch_size=body.batch_size
    )
