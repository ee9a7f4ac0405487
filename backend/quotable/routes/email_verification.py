"""Email verification: send, resend and redeem verification tokens."""

import uuid
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id
from quotable.schemas.auth import VerifyEmailRequest
from quotable.schemas.common import ErrorResponse, MessageResponse, TokenResult
from quotable.services.email_verification_service import email_verification_service

router = APIRouter(prefix="/api/email-verification", tags=["Email Verification"])


@router.post(
    "/send",
    response_model=MessageResponse,
    responses={
        401: {"description": "Not signed in", "model": ErrorResponse},
        404: {"description": "User not found", "model": ErrorResponse},
    },
    summary="Issue a verification token and email it",
)
async def send_verification(
    background_tasks: BackgroundTasks,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await email_verification_service.send_verification_email(db, user_id, background_tasks)
    # Commit first so the background send never mails an unsaved token
    await db.commit()
    return result


@router.post(
    "/resend",
    response_model=MessageResponse,
    responses={
        400: {"description": "Email already verified", "model": ErrorResponse},
        401: {"description": "Not signed in", "model": ErrorResponse},
    },
    summary="Re-issue the verification email",
)
async def resend_verification(
    background_tasks: BackgroundTasks,
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    result = await email_verification_service.send_verification_email(
        db, user_id, background_tasks, resend=True
    )
    await db.commit()
    return result


@router.post(
    "/verify",
    response_model=TokenResult,
    summary="Redeem a verification token",
    description="Always 200; branch on `success`.",
)
async def verify_email(
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResult:
    return await email_verification_service.verify_email(db, body.token)
