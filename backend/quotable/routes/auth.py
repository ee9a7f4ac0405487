"""
So Quotable Backend — Authentication Routes
============================================

    POST /api/auth/sign-up    password registration, signs the user in (201)
    POST /api/auth/sign-in    password sign-in
    POST /api/auth/google     Google ID token sign-in (creates or links)
    POST /api/auth/refresh    new access token for a live session
    POST /api/auth/sign-out   ends the session behind the bearer token (204)
    GET  /api/users/me        profile of the caller, null when anonymous
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.routes.deps import get_current_user_id, get_session_id
from quotable.schemas.auth import (
    AuthTokens,
    CurrentUser,
    GoogleSignInRequest,
    RefreshRequest,
    SignInRequest,
    SignUpRequest,
)
from quotable.schemas.common import ErrorResponse
from quotable.services.identity_service import identity_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/auth/sign-up",
    response_model=AuthTokens,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Weak password or malformed email", "model": ErrorResponse},
        409: {"description": "Email already registered", "model": ErrorResponse},
    },
    summary="Register with email and password",
)
async def sign_up(
    body: SignUpRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthTokens:
    return await identity_service.sign_up(db, body.email, body.password, body.name)


@router.post(
    "/auth/sign-in",
    response_model=AuthTokens,
    responses={
        401: {"description": "Invalid email or password", "model": ErrorResponse},
        429: {"description": "Too many failed attempts", "model": ErrorResponse},
    },
    summary="Sign in with email and password",
)
async def sign_in(
    body: SignInRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthTokens:
    return await identity_service.sign_in(db, body.email, body.password)


@router.post(
    "/auth/google",
    response_model=AuthTokens,
    responses={401: {"description": "Google token rejected", "model": ErrorResponse}},
    summary="Sign in with a Google ID token",
)
async def sign_in_with_google(
    body: GoogleSignInRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthTokens:
    return await identity_service.sign_in_with_google(db, body.id_token)


@router.post(
    "/auth/refresh",
    response_model=AuthTokens,
    responses={401: {"description": "Session expired or unknown", "model": ErrorResponse}},
    summary="Exchange a refresh token for a new access token",
)
async def refresh(
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthTokens:
    return await identity_service.refresh(db, body.refresh_token)


@router.post(
    "/auth/sign-out",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="End the current session",
)
async def sign_out(
    session_id: str = Depends(get_session_id),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    await identity_service.sign_out(db, session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/users/me",
    response_model=Optional[CurrentUser],
    summary="Current user profile",
    description="Returns null for anonymous callers instead of an error.",
)
async def current_user(
    user_id: Optional[uuid.UUID] = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[CurrentUser]:
    return await identity_service.get_current_user(db, user_id)
