"""
Request-scoped dependencies shared by the routers.

`get_current_user_id` never raises: anonymous callers get None and the
service layer decides whether that is acceptable (reads are public,
writes call require_auth).
"""

import uuid
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.database import get_db_session
from quotable.exceptions import NotAuthenticatedError
from quotable.services.identity_service import decode_access_token, identity_service

BEARER_PREFIX = "bearer "


def bearer_token(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


async def get_current_user_id(
    token: Optional[str] = Depends(bearer_token),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[uuid.UUID]:
    if token is None:
        return None
    return await identity_service.resolve_principal(db, token)


def get_session_id(token: Optional[str] = Depends(bearer_token)) -> str:
    """Session id (`sid` claim) of the presented access token."""
    if token is None:
        raise NotAuthenticatedError()
    claims = decode_access_token(token)
    return claims.get("sid", "")
