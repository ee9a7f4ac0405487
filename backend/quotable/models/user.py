"""
So Quotable Backend — Identity Models
======================================

What:  ORM models for users, their sign-in accounts, and live sessions.
Why:   The identity adapter owns these tables; the credential recovery flow
       stores its single-use tokens and rate-limit counters on the user row.

Tables:
    users          one row per person who can sign in
    auth_accounts  one row per (provider, provider_account_id); password
                   accounts hold the hashed secret
    auth_sessions  refresh sessions; every JWT names its session in `sid`
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from quotable.clock import utcnow
from quotable.database import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """
    A registered user.

    Credential recovery state:
        verification_token / token_expiry
            Email verification token, valid 24h, cleared on redemption.
        password_reset_token / password_reset_expiry
            Password reset token, valid 1h, cleared on redemption.
        password_reset_requests / last_password_reset_request
            Fixed-window counter (max 3 per rolling hour). The counter only
            resets when a request finds the window fully elapsed.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    email: Mapped[Optional[str]] = mapped_column(
        String(320),
        nullable=True,
        unique=True,
        comment="Lowercased, trimmed email address",
    )
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    slug: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    image: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        default=ROLE_USER,
        comment="user | admin",
    )

    email_verification_time: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="When the email address was verified; NULL while unverified",
    )

    # ── Email verification token ──────────────────────────────────────────
    verification_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    token_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # ── Password reset token + rate limit ─────────────────────────────────
    password_reset_token: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    password_reset_expiry: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    password_reset_requests: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    last_password_reset_request: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        Index("idx_users_verification_token", "verification_token"),
        Index("idx_users_password_reset_token", "password_reset_token"),
    )

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


class AuthAccount(Base):
    """A sign-in method linked to a user (password or Google)."""

    __tablename__ = "auth_accounts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    provider: Mapped[str] = mapped_column(String(50), nullable=False)
    provider_account_id: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        comment="Email for password accounts, Google subject for OAuth",
    )
    secret: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, comment="werkzeug password hash"
    )

    failed_sign_in_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_failed_sign_in: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (
        UniqueConstraint("provider", "provider_account_id", name="uq_auth_accounts_provider"),
        Index("idx_auth_accounts_user_id", "user_id"),
    )


class AuthSession(Base):
    __tablename__ = "auth_sessions"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("idx_auth_sessions_user_id", "user_id"),)
