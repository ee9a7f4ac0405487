"""
Email Service Tests
====================

What we test:
    ✅ Test-mode keys log instead of calling Resend
    ✅ Missing configuration raises EmailDeliveryError
    ✅ Live mode posts to Resend with the right payload
    ✅ Resend failures raise; background delivery failures are logged, not raised
"""

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from quotable.exceptions import EmailDeliveryError
from quotable.services.email_service import (
    PASSWORD_RESET_SUBJECT,
    RESEND_API_URL,
    VERIFICATION_SUBJECT,
    EmailService,
)


def _live_settings(mock_settings):
    mock_settings.resend_api_key = "re_live_key"
    mock_settings.site_url = "https://soquotable.example/"
    mock_settings.email_from = "So Quotable <hello@soquotable.example>"
    mock_settings.verification_token_ttl_hours = 24
    mock_settings.password_reset_ttl_hours = 1


class TestEmailService:

    def setup_method(self):
        self.service = EmailService()

    @pytest.mark.parametrize(
        "key, expected",
        [("test-resend-api-key", True), ("test-anything", True), ("re_live_key", False)],
    )
    def test_is_test_mode(self, key, expected):
        assert self.service.is_test_mode(key) is expected

    @pytest.mark.asyncio
    async def test_test_mode_logs_instead_of_sending(self, caplog):
        with patch("quotable.services.email_service.httpx.AsyncClient") as mock_client:
            with caplog.at_level(logging.INFO, logger="quotable.services.email_service"):
                result = await self.service.send_verification_email("ada@quotable.dev", "a" * 64, "Ada")

        assert result["success"] is True
        assert "test mode" in result["message"]
        mock_client.assert_not_called()
        assert "verify-email?token=" + "a" * 64 in caplog.text

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        with patch("quotable.services.email_service.settings") as mock_settings:
            mock_settings.resend_api_key = ""
            mock_settings.site_url = "http://localhost:3000"
            with pytest.raises(EmailDeliveryError) as exc_info:
                await self.service.send_password_reset_email("ada@quotable.dev", "token")
        assert exc_info.value.message == "RESEND_API_KEY is not configured"

    @pytest.mark.asyncio
    async def test_live_send_posts_to_resend(self):
        response = MagicMock(status_code=200)
        response.json.return_value = {"id": "email_123"}
        client = AsyncMock()
        client.post = AsyncMock(return_value=response)

        with patch("quotable.services.email_service.settings") as mock_settings, \
                patch("quotable.services.email_service.httpx.AsyncClient") as mock_client:
            _live_settings(mock_settings)
            mock_client.return_value.__aenter__.return_value = client

            result = await self.service.send_password_reset_email("ada@quotable.dev", "tok")

        assert result["email_id"] == "email_123"
        args, kwargs = client.post.call_args
        assert args[0] == RESEND_API_URL
        assert kwargs["headers"] == {"Authorization": "Bearer re_live_key"}
        payload = kwargs["json"]
        assert payload["to"] == ["ada@quotable.dev"]
        assert payload["subject"] == PASSWORD_RESET_SUBJECT
        assert "https://soquotable.example/reset-password?token=tok" in payload["html"]

    @pytest.mark.asyncio
    async def test_resend_error_raises(self):
        client = AsyncMock()
        client.post = AsyncMock(return_value=MagicMock(status_code=422))

        with patch("quotable.services.email_service.settings") as mock_settings, \
                patch("quotable.services.email_service.httpx.AsyncClient") as mock_client:
            _live_settings(mock_settings)
            mock_client.return_value.__aenter__.return_value = client
            with pytest.raises(EmailDeliveryError) as exc_info:
                await self.service.send_verification_email("ada@quotable.dev", "tok")

        assert "422" in exc_info.value.message
        assert VERIFICATION_SUBJECT == client.post.call_args.kwargs["json"]["subject"]

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        client = AsyncMock()
        client.post = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch("quotable.services.email_service.settings") as mock_settings, \
                patch("quotable.services.email_service.httpx.AsyncClient") as mock_client:
            _live_settings(mock_settings)
            mock_client.return_value.__aenter__.return_value = client
            with pytest.raises(EmailDeliveryError):
                await self.service.send_verification_email("ada@quotable.dev", "tok")

    @pytest.mark.asyncio
    async def test_deliver_passes_arguments_through(self):
        send = AsyncMock(return_value={"success": True})

        await self.service.deliver(send, "ada@quotable.dev", "tok", "Ada")

        send.assert_awaited_once_with("ada@quotable.dev", "tok", "Ada")

    @pytest.mark.asyncio
    async def test_deliver_logs_failure_instead_of_raising(self, caplog):
        send = AsyncMock(side_effect=EmailDeliveryError(message="Resend is down"))

        with caplog.at_level(logging.ERROR, logger="quotable.services.email_service"):
            await self.service.deliver(send, "ada@quotable.dev", "tok")

        assert "Background email delivery failed: Resend is down" in caplog.text
