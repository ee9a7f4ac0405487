"""
So Quotable Backend — Identity Provider Adapter
================================================

What:  Password and Google sign-in, session-backed JWTs, and the mapping
       from external profiles to user rows.
How:   A sign-in opens an AuthSession (24h) and returns a short-lived HS256
       JWT (1h) naming that session in its `sid` claim. The session id is
       the refresh token. Signing out deletes the session, which also
       invalidates every JWT minted for it.

Profile mapping (both providers):
    email  trimmed + lowercased
    name   provided name, else email local part, else "user"
    slug   generate_slug(email)
    role   "user"
Google additionally marks the email verified and stores the picture.

Sign-in throttling:
    At most SIGN_IN_MAX_FAILED_ATTEMPTS failures per account per rolling
    hour. The failure counter lives on the AuthAccount row and is reset by
    a successful sign-in or a password reset.
"""

import logging
import uuid
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import ensure_utc, utcnow
from quotable.config import settings
from quotable.exceptions import (
    ConflictError,
    NotAuthenticatedError,
    RateLimitExceededError,
    ValidationError,
)
from quotable.models.user import ROLE_USER, AuthAccount, AuthSession, User
from quotable.schemas.auth import AuthTokens, CurrentUser
from quotable.services.passwords import hash_password, verify_password
from quotable.validation import generate_slug, normalize_email, require_valid_password

logger = logging.getLogger(__name__)

GOOGLE_TOKENINFO_URL = "https://oauth2.googleapis.com/tokeninfo"
PASSWORD_PROVIDER = "password"
GOOGLE_PROVIDER = "google"
FAILED_SIGN_IN_WINDOW = timedelta(hours=1)
INVALID_CREDENTIALS = "Invalid email or password"


def map_password_profile(email: str, name: Optional[str] = None) -> Dict[str, Any]:
    normalized = normalize_email(email)
    local_part = normalized.split("@")[0]
    return {
        "email": normalized,
        "name": (name or "").strip() or local_part or "user",
        "slug": generate_slug(normalized),
        "role": ROLE_USER,
    }


def map_google_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    mapped = map_password_profile(profile.get("email") or "", profile.get("name"))
    mapped["email_verification_time"] = utcnow()
    mapped["image"] = profile.get("picture")
    return mapped


def after_user_created_or_updated(user: User) -> None:
    """Backfills the default role on rows created without one."""
    if not user.role:
        user.role = ROLE_USER


def create_access_token(user_id: uuid.UUID, session_id: uuid.UUID) -> str:
    now = utcnow()
    payload = {
        "sub": str(user_id),
        "sid": str(session_id),
        "iat": now,
        "exp": now + timedelta(seconds=settings.jwt_ttl_seconds),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as exc:
        raise NotAuthenticatedError(message="Invalid or expired access token") from exc


class IdentityService:
    """Sign-up, sign-in, refresh and sign-out for both providers."""

    def __init__(self, google_timeout: float = 10.0):
        self.google_timeout = google_timeout

    # ── Sessions ──────────────────────────────────────────────────────────

    async def _open_session(self, db: AsyncSession, user: User) -> AuthTokens:
        session = AuthSession(
            id=uuid.uuid4(),
            user_id=user.id,
            expires_at=utcnow() + timedelta(seconds=settings.session_ttl_seconds),
        )
        db.add(session)
        await db.flush()
        return AuthTokens(
            access_token=create_access_token(user.id, session.id),
            refresh_token=str(session.id),
            expires_in=settings.jwt_ttl_seconds,
            user_id=user.id,
        )

    async def _live_session(self, db: AsyncSession, session_id: Any) -> Optional[AuthSession]:
        try:
            sid = session_id if isinstance(session_id, uuid.UUID) else uuid.UUID(str(session_id))
        except ValueError:
            return None
        session = await db.get(AuthSession, sid)
        if session is None:
            return None
        if ensure_utc(session.expires_at) < utcnow():
            return None
        return session

    async def resolve_principal(self, db: AsyncSession, token: str) -> Optional[uuid.UUID]:
        """
        Returns the user id behind a bearer JWT, or None.

        None covers a bad signature, an expired JWT, and a session that has
        expired or been signed out.
        """
        try:
            claims = decode_access_token(token)
        except NotAuthenticatedError:
            return None
        session = await self._live_session(db, claims.get("sid"))
        if session is None or str(session.user_id) != claims.get("sub"):
            return None
        return session.user_id

    async def refresh(self, db: AsyncSession, refresh_token: str) -> AuthTokens:
        session = await self._live_session(db, refresh_token)
        if session is None:
            raise NotAuthenticatedError(message="Session expired. Please sign in again.")
        return AuthTokens(
            access_token=create_access_token(session.user_id, session.id),
            refresh_token=str(session.id),
            expires_in=settings.jwt_ttl_seconds,
            user_id=session.user_id,
        )

    async def sign_out(self, db: AsyncSession, session_id: Any) -> None:
        session = await self._live_session(db, session_id)
        if session is not None:
            await db.delete(session)
            await db.flush()
            logger.info("Signed out session %s", session.id)

    # ── Password provider ─────────────────────────────────────────────────

    async def _find_account(
        self, db: AsyncSession, provider: str, provider_account_id: str
    ) -> Optional[AuthAccount]:
        result = await db.execute(
            select(AuthAccount).where(
                AuthAccount.provider == provider,
                AuthAccount.provider_account_id == provider_account_id,
            )
        )
        return result.scalars().first()

    async def _find_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    async def sign_up(
        self, db: AsyncSession, email: str, password: str, name: Optional[str] = None
    ) -> AuthTokens:
        require_valid_password(password)
        profile = map_password_profile(email, name)

        # An email that already belongs to a user, from any provider, cannot be claimed here
        if await self._find_account(db, PASSWORD_PROVIDER, profile["email"]) is not None:
            raise ConflictError(message="An account with this email already exists")
        if await self._find_user_by_email(db, profile["email"]) is not None:
            raise ConflictError(message="An account with this email already exists")

        user = User(id=uuid.uuid4(), **profile)
        db.add(user)
        after_user_created_or_updated(user)
        await db.flush()

        db.add(
            AuthAccount(
                user_id=user.id,
                provider=PASSWORD_PROVIDER,
                provider_account_id=profile["email"],
                secret=hash_password(password),
            )
        )
        logger.info("Registered password account for user %s", user.id)
        return await self._open_session(db, user)

    async def sign_in(self, db: AsyncSession, email: str, password: str) -> AuthTokens:
        try:
            normalized = normalize_email(email)
        except ValidationError as exc:
            raise NotAuthenticatedError(message=INVALID_CREDENTIALS) from exc

        account = await self._find_account(db, PASSWORD_PROVIDER, normalized)
        if account is None:
            raise NotAuthenticatedError(message=INVALID_CREDENTIALS)

        now = utcnow()
        attempts = account.failed_sign_in_attempts or 0
        last_failure = ensure_utc(account.last_failed_sign_in)
        if last_failure is None or last_failure < now - FAILED_SIGN_IN_WINDOW:
            attempts = 0

        if attempts >= settings.sign_in_max_failed_attempts:
            retry_after = int((last_failure + FAILED_SIGN_IN_WINDOW - now).total_seconds()) + 1
            raise RateLimitExceededError(
                retry_after=retry_after,
                message="Too many failed sign-in attempts. Please try again later.",
            )

        if not verify_password(account.secret, password):
            account.failed_sign_in_attempts = attempts + 1
            account.last_failed_sign_in = now
            # The raise below rolls the request back; keep the failure count
            await db.commit()
            logger.warning("Failed sign-in for account %s (%d in window)", account.id, attempts + 1)
            raise NotAuthenticatedError(message=INVALID_CREDENTIALS)

        account.failed_sign_in_attempts = 0
        account.last_failed_sign_in = None
        user = await db.get(User, account.user_id)
        if user is None:
            raise NotAuthenticatedError(message=INVALID_CREDENTIALS)
        after_user_created_or_updated(user)
        return await self._open_session(db, user)

    # ── Google provider ───────────────────────────────────────────────────

    async def fetch_google_profile(self, id_token: str) -> Dict[str, Any]:
        """Verifies a Google ID token with the tokeninfo endpoint."""
        try:
            async with httpx.AsyncClient(timeout=self.google_timeout) as client:
                response = await client.get(GOOGLE_TOKENINFO_URL, params={"id_token": id_token})
        except httpx.HTTPError as exc:
            logger.error("Google tokeninfo request failed: %s", exc)
            raise NotAuthenticatedError(message="Could not verify Google sign-in") from exc

        if response.status_code != 200:
            raise NotAuthenticatedError(message="Invalid Google token")

        profile = response.json()
        if settings.google_client_id and profile.get("aud") != settings.google_client_id:
            raise NotAuthenticatedError(message="Google token was issued for another client")
        if not profile.get("email") or not profile.get("sub"):
            raise ValidationError(message="Google token missing email", field="id_token")
        return profile

    async def sign_in_with_google(self, db: AsyncSession, id_token: str) -> AuthTokens:
        profile = await self.fetch_google_profile(id_token)
        mapped = map_google_profile(profile)

        account = await self._find_account(db, GOOGLE_PROVIDER, profile["sub"])
        if account is not None:
            user = await db.get(User, account.user_id)
        else:
            user = await self._find_user_by_email(db, mapped["email"])

        if user is None:
            user = User(id=uuid.uuid4(), **mapped)
            db.add(user)
            logger.info("Created user from Google profile %s", mapped["email"])
        else:
            if user.email_verification_time is None:
                user.email_verification_time = mapped["email_verification_time"]
            if not user.image:
                user.image = mapped["image"]
            user.updated_at = utcnow()
        after_user_created_or_updated(user)
        await db.flush()

        if account is None:
            db.add(
                AuthAccount(
                    user_id=user.id,
                    provider=GOOGLE_PROVIDER,
                    provider_account_id=profile["sub"],
                )
            )
        return await self._open_session(db, user)

    # ── Profile ───────────────────────────────────────────────────────────

    async def get_current_user(
        self, db: AsyncSession, user_id: Optional[uuid.UUID]
    ) -> Optional[CurrentUser]:
        if user_id is None:
            return None
        user = await db.get(User, user_id)
        if user is None:
            return None
        return CurrentUser(
            id=user.id,
            name=user.name,
            email=user.email,
            slug=user.slug,
            role=user.role,
            email_verified=user.email_verification_time is not None,
            image=user.image,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


identity_service = IdentityService()
