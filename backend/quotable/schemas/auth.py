"""
So Quotable Backend — Identity & Credential Recovery Schemas
=============================================================

Request bodies for sign-up/sign-in, email verification and password reset,
plus the token pair and current-user profile returned to clients.

Password strength is NOT validated here: the policy lives in
quotable.validation so sign-up and reset report identical messages
(as 400 or as a tagged TokenResult respectively).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SignUpRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=256)
    name: Optional[str] = Field(default=None, max_length=255)


class SignInRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=256)


class GoogleSignInRequest(BaseModel):
    id_token: str = Field(min_length=1, description="Google ID token from the client SDK")


class RefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, description="Session id issued at sign-in")


class AuthTokens(BaseModel):
    """
    Returned by every successful sign-in.

    access_token   HS256 JWT, valid for JWT_TTL_SECONDS (1 hour)
    refresh_token  session id, valid for SESSION_TTL_SECONDS (24 hours)
    """
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="Access token lifetime in seconds")
    user_id: uuid.UUID


class CurrentUser(BaseModel):
    id: uuid.UUID
    name: Optional[str] = None
    email: Optional[str] = None
    slug: Optional[str] = None
    role: Optional[str] = None
    email_verified: bool
    image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class VerifyEmailRequest(BaseModel):
    # No length constraint: short or blank tokens get a tagged error, not a 422
    token: str = ""


class PasswordResetRequest(BaseModel):
    email: str = ""


class PasswordResetConfirm(BaseModel):
    token: str = ""
    new_password: str = ""
