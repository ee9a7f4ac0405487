"""
Password Reset Service Tests
=============================

What we test:
    ✅ Unknown emails get the same generic answer and no email
    ✅ A known email gets a token (1h expiry) and a queued background delivery
    ✅ Nothing is sent until the background tasks run
    ✅ More than 3 requests per hour: counter stays at 3, token unchanged
    ✅ The window reopens once an hour has passed
    ✅ Redemption: invalid, expired, weak password, success
    ✅ Tokens are single use; failed sign-in counter is reset
"""

from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import BackgroundTasks

from quotable.clock import ensure_utc, utcnow
from quotable.exceptions import ValidationError
from quotable.models.user import AuthAccount
from quotable.services.password_reset_service import (
    EXPIRED_TOKEN,
    GENERIC_REQUEST_MESSAGE,
    INVALID_TOKEN,
    RESET_SUCCESS,
    PasswordResetService,
)
from quotable.services.passwords import hash_password, verify_password

NEW_PASSWORD = "Brand-New-Pass-99"


async def _with_password_account(db_session, user, password="Old-Password-11!"):
    account = AuthAccount(
        user_id=user.id,
        provider="password",
        provider_account_id=user.email,
        secret=hash_password(password),
        failed_sign_in_attempts=4,
        last_failed_sign_in=utcnow(),
    )
    db_session.add(account)
    await db_session.commit()
    return account


class TestRequestPasswordReset:

    def setup_method(self):
        self.service = PasswordResetService()
        self.background_tasks = BackgroundTasks()

    @pytest.mark.asyncio
    async def test_unknown_email_gets_generic_answer(self, db_session):
        result = await self.service.request_password_reset(
            db_session, "nobody@quotable.dev", self.background_tasks
        )

        assert result.success is True
        assert result.message == GENERIC_REQUEST_MESSAGE
        assert self.background_tasks.tasks == []

    @pytest.mark.asyncio
    async def test_blank_email_rejected(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.request_password_reset(db_session, "  ", self.background_tasks)

    @pytest.mark.asyncio
    async def test_known_email_issues_token(self, make_user, db_session):
        user = await make_user(email="reader@quotable.dev")
        with patch("quotable.services.password_reset_service.email_service") as mock_email:
            result = await self.service.request_password_reset(
                db_session, " Reader@Quotable.dev ", self.background_tasks
            )

        assert result.message == GENERIC_REQUEST_MESSAGE
        assert len(user.password_reset_token) == 64
        assert user.password_reset_requests == 1
        expiry = ensure_utc(user.password_reset_expiry)
        assert expiry <= utcnow() + timedelta(hours=1)
        [task] = self.background_tasks.tasks
        assert task.func is mock_email.deliver
        assert task.args == (
            mock_email.send_password_reset_email, "reader@quotable.dev", user.password_reset_token
        )

    @pytest.mark.asyncio
    async def test_nothing_sent_until_tasks_run(self, make_user, db_session):
        user = await make_user(email="reader@quotable.dev")
        with patch(
            "quotable.services.email_service.EmailService.send_password_reset_email",
            new_callable=AsyncMock,
        ) as mock_send:
            await self.service.request_password_reset(db_session, user.email, self.background_tasks)
            token = user.password_reset_token
            mock_send.assert_not_awaited()

            await self.background_tasks()

        mock_send.assert_awaited_once_with("reader@quotable.dev", token)

    @pytest.mark.asyncio
    async def test_fourth_request_in_hour_is_silently_dropped(self, make_user, db_session):
        user = await make_user()
        with patch("quotable.services.password_reset_service.email_service"):
            for _ in range(3):
                await self.service.request_password_reset(db_session, user.email, self.background_tasks)
            third_token = user.password_reset_token

            result = await self.service.request_password_reset(
                db_session, user.email, self.background_tasks
            )

        assert result.message == GENERIC_REQUEST_MESSAGE
        assert user.password_reset_requests == 3
        assert user.password_reset_token == third_token
        assert len(self.background_tasks.tasks) == 3

    @pytest.mark.asyncio
    async def test_window_reopens_after_an_hour(self, make_user, db_session):
        user = await make_user()
        user.password_reset_requests = 3
        user.last_password_reset_request = utcnow() - timedelta(hours=1, minutes=1)
        await db_session.flush()

        with patch("quotable.services.password_reset_service.email_service"):
            await self.service.request_password_reset(db_session, user.email, self.background_tasks)

        assert user.password_reset_requests == 1
        assert user.password_reset_token is not None


class TestResetPasswordWithToken:

    def setup_method(self):
        self.service = PasswordResetService()

    async def _issue(self, db_session, user):
        with patch("quotable.services.password_reset_service.email_service"):
            await self.service.request_password_reset(db_session, user.email, BackgroundTasks())
        return user.password_reset_token

    @pytest.mark.asyncio
    async def test_successful_reset(self, make_user, db_session):
        user = await make_user()
        account = await _with_password_account(db_session, user)
        token = await self._issue(db_session, user)

        result = await self.service.reset_password_with_token(db_session, token, NEW_PASSWORD)

        assert result.success is True
        assert result.message == RESET_SUCCESS
        assert result.user_id == user.id
        assert verify_password(account.secret, NEW_PASSWORD)
        assert account.failed_sign_in_attempts == 0
        assert user.password_reset_token is None
        assert user.password_reset_requests is None

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, make_user, db_session):
        user = await make_user()
        await _with_password_account(db_session, user)
        token = await self._issue(db_session, user)
        await self.service.reset_password_with_token(db_session, token, NEW_PASSWORD)

        result = await self.service.reset_password_with_token(db_session, token, NEW_PASSWORD)

        assert result.success is False
        assert "Invalid" in result.error

    @pytest.mark.asyncio
    async def test_short_token_rejected(self, db_session):
        result = await self.service.reset_password_with_token(db_session, "abc", NEW_PASSWORD)
        assert result.error == INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_expired_token(self, make_user, db_session):
        user = await make_user()
        await _with_password_account(db_session, user)
        token = await self._issue(db_session, user)
        user.password_reset_expiry = utcnow() - timedelta(seconds=1)
        await db_session.flush()

        result = await self.service.reset_password_with_token(db_session, token, NEW_PASSWORD)

        assert result.error == EXPIRED_TOKEN

    @pytest.mark.asyncio
    async def test_weak_password_keeps_token(self, make_user, db_session):
        user = await make_user()
        await _with_password_account(db_session, user)
        token = await self._issue(db_session, user)

        result = await self.service.reset_password_with_token(db_session, token, "weak")

        assert result.success is False
        assert result.error == "Password must be at least 12 characters long"
        assert user.password_reset_token == token

    @pytest.mark.asyncio
    async def test_user_without_password_account(self, make_user, db_session):
        user = await make_user()
        token = await self._issue(db_session, user)

        result = await self.service.reset_password_with_token(db_session, token, NEW_PASSWORD)

        assert result.success is False
        assert result.error == "Failed to update password"
