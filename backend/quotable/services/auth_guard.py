"""
So Quotable Backend — Authorization Guard
==========================================

What:  The three checks every mutation consults, in escalating order:
           require_auth            any signed-in principal
           require_owner_or_admin  the resource's creator, or any admin
           require_admin           admins only
How:   The principal id comes from the request (see quotable.routes.deps);
       owner and admin checks additionally load the principal's stored role.

Legacy rows with no `created_by` are treated as admin-only: a non-admin
never matches a missing owner.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from quotable.exceptions import AdminOnlyError, NotAuthenticatedError, NotAuthorizedError
from quotable.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    user_id: uuid.UUID
    is_admin: bool


def require_auth(user_id: Optional[uuid.UUID]) -> uuid.UUID:
    if user_id is None:
        raise NotAuthenticatedError()
    return user_id


async def _load_principal(db: AsyncSession, user_id: Optional[uuid.UUID]) -> User:
    principal_id = require_auth(user_id)
    user = await db.get(User, principal_id)
    if user is None:
        # Token outlived its user (e.g. removed by the cleanup utility)
        raise NotAuthenticatedError()
    return user


async def require_owner_or_admin(
    db: AsyncSession,
    user_id: Optional[uuid.UUID],
    created_by: Optional[uuid.UUID],
) -> AccessGrant:
    """
    Allows the resource owner or any admin.

    Raises:
        NotAuthenticatedError: no principal, or the principal row is gone
        NotAuthorizedError: non-admin and the owner is missing or different
    """
    user = await _load_principal(db, user_id)
    if user.is_admin:
        return AccessGrant(user_id=user.id, is_admin=True)

    if created_by is None or created_by != user.id:
        logger.info("Denied modification by user %s (owner=%s)", user.id, created_by)
        raise NotAuthorizedError()

    return AccessGrant(user_id=user.id, is_admin=False)


async def require_admin(db: AsyncSession, user_id: Optional[uuid.UUID]) -> uuid.UUID:
    user = await _load_principal(db, user_id)
    if not user.is_admin:
        raise AdminOnlyError()
    return user.id
