"""
So Quotable Backend — Password Reset Token Lifecycle
=====================================================

What:  Request a reset link by email, then redeem it to set a new password.
Why:   Account recovery without revealing which emails are registered.

Request (enumeration-safe):
    Every outcome returns the same generic success message: unknown email,
    rate limit hit, or token issued. Delivery is queued on the request's
    BackgroundTasks and runs after the response.

Rate limit (fixed window, stored on the user row):
    count = password_reset_requests (0 when the last issuance is over 1h old)
    count >= 3  → generic success, token NOT rotated, counter untouched
    otherwise   → new token (1h expiry), count + 1, last request = now
    The window restarts only once a request finds it fully elapsed; the
    counter is never decayed gradually.

Redeem (tagged results, first failing check wins):
    format / lookup → "Invalid password reset token"
    expiry          → "Password reset token has expired. ..."
    missing email   → "User email not found"
    password policy → first policy violation
    On success the secret is replaced and the token plus rate-limit state
    are cleared, making the token single-use.
"""

import logging
from datetime import timedelta

from fastapi import BackgroundTasks
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import ensure_utc, utcnow
from quotable.config import settings
from quotable.models.user import AuthAccount, User
from quotable.schemas.common import MessageResponse, TokenResult
from quotable.services.email_service import email_service
from quotable.services.passwords import hash_password
from quotable.services.tokens import generate_token, is_plausible_token
from quotable.validation import normalize_email, validate_password

logger = logging.getLogger(__name__)

GENERIC_REQUEST_MESSAGE = (
    "If an account with that email exists, a password reset email has been sent."
)
INVALID_TOKEN = "Invalid password reset token"
EXPIRED_TOKEN = "Password reset token has expired. Please request a new password reset."
RESET_SUCCESS = "Password reset successfully. You can now sign in with your new password."

RATE_LIMIT_WINDOW = timedelta(hours=1)
PASSWORD_PROVIDER = "password"


class PasswordResetService:

    async def request_password_reset(
        self, db: AsyncSession, email: str, background_tasks: BackgroundTasks
    ) -> MessageResponse:
        generic = MessageResponse(success=True, message=GENERIC_REQUEST_MESSAGE)
        normalized = normalize_email(email)

        result = await db.execute(select(User).where(User.email == normalized))
        user = result.scalars().first()
        if user is None:
            return generic

        now = utcnow()
        request_count = user.password_reset_requests or 0
        last_request = ensure_utc(user.last_password_reset_request)
        if last_request is None or last_request < now - RATE_LIMIT_WINDOW:
            request_count = 0

        if request_count >= settings.password_reset_max_requests:
            logger.warning("Password reset rate limit reached for user %s", user.id)
            return generic

        token = generate_token()
        user.password_reset_token = token
        user.password_reset_expiry = now + timedelta(hours=settings.password_reset_ttl_hours)
        user.password_reset_requests = request_count + 1
        user.last_password_reset_request = now
        user.updated_at = now
        await db.flush()

        background_tasks.add_task(
            email_service.deliver, email_service.send_password_reset_email, normalized, token
        )
        logger.info(
            "Issued password reset token for user %s (request %d in window)",
            user.id,
            request_count + 1,
        )
        return generic

    async def reset_password_with_token(
        self, db: AsyncSession, token: str, new_password: str
    ) -> TokenResult:
        if not is_plausible_token(token):
            return TokenResult.fail(INVALID_TOKEN)

        result = await db.execute(select(User).where(User.password_reset_token == token))
        user = result.scalars().first()
        if user is None:
            return TokenResult.fail(INVALID_TOKEN)

        now = utcnow()
        expiry = ensure_utc(user.password_reset_expiry)
        if expiry is None or expiry < now:
            return TokenResult.fail(EXPIRED_TOKEN)

        if not user.email:
            return TokenResult.fail("User email not found")

        check = validate_password(new_password)
        if not check.valid:
            return TokenResult.fail(check.errors[0])

        result = await db.execute(
            select(AuthAccount).where(
                AuthAccount.user_id == user.id,
                AuthAccount.provider == PASSWORD_PROVIDER,
            )
        )
        account = result.scalars().first()
        if account is None:
            logger.warning("Password reset for user %s without a password account", user.id)
            return TokenResult.fail("Failed to update password")

        account.secret = hash_password(new_password)
        account.failed_sign_in_attempts = 0
        account.last_failed_sign_in = None

        user.password_reset_token = None
        user.password_reset_expiry = None
        user.password_reset_requests = None
        user.last_password_reset_request = None
        user.updated_at = now
        await db.flush()

        logger.info("Password reset completed for user %s", user.id)
        return TokenResult.ok(RESET_SUCCESS, user_id=user.id)


password_reset_service = PasswordResetService()
