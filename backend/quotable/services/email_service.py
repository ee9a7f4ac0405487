"""
So Quotable Backend — Transactional Email (Resend)
===================================================

What:  Sends the verification and password reset emails through the Resend
       HTTP API.
How:   One httpx POST per message to https://api.resend.com/emails.
       With a "test-..." API key nothing leaves the process: the message
       (recipient, subject, link) is written to the log instead.

Delivery contract:
    Token issuance never waits on delivery. Services queue `deliver()` on the
    request's BackgroundTasks; routes commit before returning, so the send
    runs after the response and only for tokens that were stored. Failures
    are logged and never re-raised, so a Resend outage cannot change the
    response of an enumeration-safe endpoint. There is no retry.
"""

import html
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from quotable.config import settings
from quotable.exceptions import EmailDeliveryError

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"

VERIFICATION_SUBJECT = "Verify your email address - So Quotable"
PASSWORD_RESET_SUBJECT = "Reset your password - So Quotable"


def _render(heading: str, intro: str, button_label: str, link: str, expiry: str, ignore_hint: str) -> str:
    safe_link = html.escape(link, quote=True)
    year = datetime.now(timezone.utc).year
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>{html.escape(heading)}</title></head>
  <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    <div style="background: #667eea; padding: 30px; text-align: center; border-radius: 10px 10px 0 0;">
      <h1 style="color: white; margin: 0;">So Quotable</h1>
    </div>
    <div style="padding: 40px; border: 1px solid #e0e0e0; border-top: none; border-radius: 0 0 10px 10px;">
      <h2 style="margin-top: 0;">{html.escape(heading)}</h2>
      <p>{html.escape(intro)}</p>
      <p style="text-align: center; margin: 35px 0;">
        <a href="{safe_link}" style="background: #667eea; color: white; padding: 14px 40px; text-decoration: none; border-radius: 5px; font-weight: bold;">{html.escape(button_label)}</a>
      </p>
      <p style="font-size: 14px; color: #777;">This link will expire in <strong>{expiry}</strong>. {html.escape(ignore_hint)}</p>
      <p style="font-size: 14px; color: #777;">If the button doesn't work, copy and paste this link into your browser:<br>
        <a href="{safe_link}">{safe_link}</a></p>
      <p style="font-size: 12px; color: #999; text-align: center;">&copy; {year} So Quotable. All rights reserved.</p>
    </div>
  </body>
</html>"""


class EmailService:
    """Resend client for the two account emails."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    @staticmethod
    def is_test_mode(api_key: str) -> bool:
        return api_key == "test-resend-api-key" or api_key.startswith("test-")

    def _require_config(self) -> None:
        if not settings.resend_api_key:
            raise EmailDeliveryError(message="RESEND_API_KEY is not configured")
        if not settings.site_url:
            raise EmailDeliveryError(message="SITE_URL is not configured")

    def build_link(self, path: str, token: str) -> str:
        return f"{settings.site_url.rstrip('/')}/{path}?token={token}"

    async def send_verification_email(
        self, email: str, token: str, name: Optional[str] = None
    ) -> Dict[str, Any]:
        self._require_config()
        link = self.build_link("verify-email", token)
        body = _render(
            heading=f"Hello {name or 'there'},",
            intro=(
                "Thank you for signing up for So Quotable! To get started, please verify "
                "your email address by clicking the button below:"
            ),
            button_label="Verify Email Address",
            link=link,
            expiry=f"{settings.verification_token_ttl_hours} hours",
            ignore_hint="If you didn't create an account with So Quotable, you can safely ignore this email.",
        )
        return await self._send(email, VERIFICATION_SUBJECT, body, link, kind="Verification")

    async def send_password_reset_email(self, email: str, token: str) -> Dict[str, Any]:
        self._require_config()
        link = self.build_link("reset-password", token)
        body = _render(
            heading="Reset Your Password",
            intro=(
                "We received a request to reset your password. Click the button below "
                "to create a new password:"
            ),
            button_label="Reset Password",
            link=link,
            expiry=f"{settings.password_reset_ttl_hours} hour(s)",
            ignore_hint="If you didn't request a password reset, you can safely ignore this email.",
        )
        return await self._send(email, PASSWORD_RESET_SUBJECT, body, link, kind="Password reset")

    async def _send(
        self, to: str, subject: str, body: str, link: str, kind: str
    ) -> Dict[str, Any]:
        if self.is_test_mode(settings.resend_api_key):
            logger.info("[TEST MODE] %s email to=%s subject=%r link=%s", kind, to, subject, link)
            return {
                "success": True,
                "message": f"{kind} email logged to console (test mode)",
            }

        payload = {
            "from": settings.email_from,
            "to": [to],
            "subject": subject,
            "html": body,
        }
        headers = {"Authorization": f"Bearer {settings.resend_api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(RESEND_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailDeliveryError(
                message=f"Failed to send {kind.lower()} email: {e}",
                context={"error_type": type(e).__name__},
            ) from e

        if response.status_code >= 400:
            raise EmailDeliveryError(
                message=f"Failed to send {kind.lower()} email: Resend returned {response.status_code}",
                context={"status_code": response.status_code},
            )

        email_id = response.json().get("id")
        logger.info("%s email sent to %s (Resend ID: %s)", kind, to, email_id)
        return {
            "success": True,
            "message": f"{kind} email sent successfully",
            "email_id": email_id,
        }

    async def deliver(self, send: Callable[..., Awaitable[Dict[str, Any]]], *args: Any) -> None:
        """Background task entry point: awaits `send(*args)` and logs delivery failures."""
        try:
            await send(*args)
        except EmailDeliveryError as e:
            logger.error("Background email delivery failed: %s", e.message)


email_service = EmailService()
