"""
Password reset routes.

`/request` answers identically whether or not the email is registered, and
whether or not the hourly cap was hit, so it cannot be used to probe for
accounts.
"""

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.schemas.auth import PasswordResetConfirm, PasswordResetRequest
from quotable.schemas.common import ErrorResponse, MessageResponse, TokenResult
from quotable.services.password_reset_service import password_reset_service

router = APIRouter(prefix="/api/password-reset", tags=["Password Reset"])


@router.post(
    "/request",
    response_model=MessageResponse,
    responses={400: {"description": "Email missing", "model": ErrorResponse}},
    summary="Email a password reset link",
)
async def request_password_reset(
    background_tasks: BackgroundTasks,
    body: PasswordResetRequest,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await password_reset_service.request_password_reset(db, body.email, background_tasks)
    # The emailed token must be stored before the background send runs
    await db.commit()
    return result


@router.post(
    "/confirm",
    response_model=TokenResult,
    summary="Set a new password with a reset token",
    description="Always 200; branch on `success`.",
)
async def confirm_password_reset(
    body: PasswordResetConfirm,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResult:
    return await password_reset_service.reset_password_with_token(
        db, body.token, body.new_password
    )
