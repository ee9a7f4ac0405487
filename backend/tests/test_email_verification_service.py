"""
Email Verification Service Tests
=================================

What we test:
    ✅ Issuing stores a 64-char token with expiry = now + 24h
    ✅ Re-issuing replaces the previous token
    ✅ Resend refuses already-verified users
    ✅ Redemption order: format, lookup, already verified, expiry
    ✅ Successful redemption marks the email verified and clears the token
    ✅ Sending queues delivery as a background task
"""

from datetime import timedelta
from unittest.mock import patch
from uuid import uuid4

import pytest
from fastapi import BackgroundTasks

from quotable.clock import ensure_utc, utcnow
from quotable.exceptions import NotAuthenticatedError, NotFoundError, ValidationError
from quotable.services.email_verification_service import (
    EXPIRED_TOKEN,
    INVALID_TOKEN,
    EmailVerificationService,
)


class TestIssueVerificationToken:

    def setup_method(self):
        self.service = EmailVerificationService()

    @pytest.mark.asyncio
    async def test_issue_sets_token_and_expiry(self, make_user, db_session):
        user = await make_user()
        before = utcnow()

        token = await self.service.generate_verification_token(db_session, user.id)

        assert len(token) == 64
        assert user.verification_token == token
        expiry = ensure_utc(user.token_expiry)
        assert before + timedelta(hours=24) <= expiry <= utcnow() + timedelta(hours=24)

    @pytest.mark.asyncio
    async def test_reissue_replaces_token(self, make_user, db_session):
        user = await make_user()
        first = await self.service.generate_verification_token(db_session, user.id)
        second = await self.service.generate_verification_token(db_session, user.id)

        assert first != second
        assert user.verification_token == second

    @pytest.mark.asyncio
    async def test_requires_principal(self, db_session):
        with pytest.raises(NotAuthenticatedError) as exc_info:
            await self.service.generate_verification_token(db_session, None)
        assert exc_info.value.message == "Not authenticated"

    @pytest.mark.asyncio
    async def test_missing_user(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.generate_verification_token(db_session, uuid4())
        assert exc_info.value.message == "User not found"

    @pytest.mark.asyncio
    async def test_resend_refuses_verified_user(self, make_user, db_session):
        user = await make_user(verified=True)
        with pytest.raises(ValidationError) as exc_info:
            await self.service.resend_verification_email(db_session, user.id)
        assert exc_info.value.message == "Email already verified"
        assert user.verification_token is None


class TestVerifyEmail:

    def setup_method(self):
        self.service = EmailVerificationService()

    @pytest.mark.asyncio
    async def test_round_trip(self, make_user, db_session):
        user = await make_user()
        token = await self.service.generate_verification_token(db_session, user.id)

        result = await self.service.verify_email(db_session, token)

        assert result.success is True
        assert result.message == "Email verified successfully"
        assert user.email_verification_time is not None
        assert user.verification_token is None
        assert user.token_expiry is None

    @pytest.mark.asyncio
    async def test_token_is_single_use(self, make_user, db_session):
        user = await make_user()
        token = await self.service.generate_verification_token(db_session, user.id)
        await self.service.verify_email(db_session, token)

        result = await self.service.verify_email(db_session, token)

        assert result.success is False
        assert result.error == INVALID_TOKEN

    @pytest.mark.asyncio
    @pytest.mark.parametrize("token", ["", "short-token"])
    async def test_malformed_token(self, token, db_session):
        result = await self.service.verify_email(db_session, token)
        assert result.success is False
        assert result.error == INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_unknown_token(self, db_session):
        result = await self.service.verify_email(db_session, "f" * 64)
        assert result.error == INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_expired_token(self, make_user, db_session):
        user = await make_user()
        token = await self.service.generate_verification_token(db_session, user.id)
        user.token_expiry = utcnow() - timedelta(minutes=1)
        await db_session.flush()

        result = await self.service.verify_email(db_session, token)

        assert result.success is False
        assert "expired" in result.error
        assert result.error == EXPIRED_TOKEN
        assert user.email_verification_time is None

    @pytest.mark.asyncio
    async def test_already_verified_is_success_without_changes(self, make_user, db_session):
        user = await make_user()
        token = await self.service.generate_verification_token(db_session, user.id)
        verified_at = utcnow() - timedelta(days=3)
        user.email_verification_time = verified_at
        # Already verified wins over expiry
        user.token_expiry = utcnow() - timedelta(days=1)
        await db_session.flush()

        result = await self.service.verify_email(db_session, token)

        assert result.success is True
        assert "already verified" in result.message
        assert user.verification_token == token
        assert ensure_utc(user.email_verification_time) == verified_at


class TestSendVerificationEmail:

    def setup_method(self):
        self.service = EmailVerificationService()

    @pytest.mark.asyncio
    async def test_queues_delivery(self, make_user, db_session):
        user = await make_user(email="reader@quotable.dev", name="Reader")
        background_tasks = BackgroundTasks()
        with patch("quotable.services.email_verification_service.email_service") as mock_email:
            result = await self.service.send_verification_email(db_session, user.id, background_tasks)

        assert result.message == "Verification email sent"
        [task] = background_tasks.tasks
        assert task.func is mock_email.deliver
        assert task.args == (
            mock_email.send_verification_email, "reader@quotable.dev", user.verification_token, "Reader"
        )
        mock_email.send_verification_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_resend_for_verified_user_queues_nothing(self, make_user, db_session):
        user = await make_user(verified=True)
        background_tasks = BackgroundTasks()
        with pytest.raises(ValidationError):
            await self.service.send_verification_email(
                db_session, user.id, background_tasks, resend=True
            )
        assert background_tasks.tasks == []
