"""
So Quotable Backend — Email Verification Token Lifecycle
=========================================================

What:  Issue, re-issue and redeem email verification tokens.

Lifecycle:
    issue    → token stored on the user row with expiry = now + 24h
               (issuing again replaces the token and extends the expiry)
    redeem   → checks, in order:
                 1. token format      → "Invalid verification token"
                 2. token lookup      → "Invalid verification token"
                 3. already verified  → success, "Email already verified"
                 4. expiry            → "Verification token has expired"
               then marks the email verified and clears the token (single use)

Redemption outcomes are TokenResult values, never exceptions.
"""

import logging
import uuid
from datetime import timedelta
from typing import Optional

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import ensure_utc, utcnow
from quotable.config import settings
from quotable.exceptions import NotAuthenticatedError, NotFoundError, ValidationError
from quotable.models.user import User
from quotable.schemas.common import MessageResponse, TokenResult
from quotable.services.email_service import email_service
from quotable.services.tokens import generate_token, is_plausible_token

logger = logging.getLogger(__name__)

INVALID_TOKEN = "Invalid verification token"
EXPIRED_TOKEN = "Verification token has expired"
EMAIL_SENT = "Verification email sent"


class EmailVerificationService:

    async def _load_user(self, db: AsyncSession, user_id: Optional[uuid.UUID]) -> User:
        if user_id is None:
            raise NotAuthenticatedError(message="Not authenticated")
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        return user

    def _issue(self, user: User) -> str:
        now = utcnow()
        token = generate_token()
        user.verification_token = token
        user.token_expiry = now + timedelta(hours=settings.verification_token_ttl_hours)
        user.updated_at = now
        return token

    async def generate_verification_token(
        self, db: AsyncSession, user_id: Optional[uuid.UUID]
    ) -> str:
        """
        Issues a fresh verification token for the signed-in user.

        Raises:
            NotAuthenticatedError: no principal
            NotFoundError: the principal's user row is missing
        """
        user = await self._load_user(db, user_id)
        token = self._issue(user)
        await db.flush()
        logger.info("Issued verification token for user %s", user.id)
        return token

    async def resend_verification_email(
        self, db: AsyncSession, user_id: Optional[uuid.UUID]
    ) -> str:
        """Like generate_verification_token, but refuses already-verified users."""
        user = await self._load_user(db, user_id)
        if user.email_verification_time is not None:
            raise ValidationError(message="Email already verified")
        token = self._issue(user)
        await db.flush()
        logger.info("Re-issued verification token for user %s", user.id)
        return token

    async def send_verification_email(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        background_tasks: BackgroundTasks,
        resend: bool = False,
    ) -> MessageResponse:
        """
        Issues a token and queues the email on `background_tasks`.

        Delivery failures are logged by the email service; the caller only
        learns that the token was issued.
        """
        if resend:
            token = await self.resend_verification_email(db, user_id)
        else:
            token = await self.generate_verification_token(db, user_id)
        user = await self._load_user(db, user_id)
        background_tasks.add_task(
            email_service.deliver, email_service.send_verification_email, user.email, token, user.name
        )
        return MessageResponse(message=EMAIL_SENT)

    async def verify_email(self, db: AsyncSession, token: str) -> TokenResult:
        if not is_plausible_token(token):
            return TokenResult.fail(INVALID_TOKEN)

        result = await db.execute(select(User).where(User.verification_token == token))
        user = result.scalars().first()
        if user is None:
            return TokenResult.fail(INVALID_TOKEN)

        if user.email_verification_time is not None:
            return TokenResult.ok("Email already verified")

        now = utcnow()
        expiry = ensure_utc(user.token_expiry)
        if expiry is None or expiry < now:
            return TokenResult.fail(EXPIRED_TOKEN)

        user.email_verification_time = now
        user.verification_token = None
        user.token_expiry = None
        user.updated_at = now
        await db.flush()

        logger.info("Email verified for user %s", user.id)
        return TokenResult.ok("Email verified successfully")


email_verification_service = EmailVerificationService()
