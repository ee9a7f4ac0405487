"""
So Quotable Backend — Admin Maintenance Utilities
==================================================

What:  One-off data maintenance:
         cleanup_test_users   delete accounts left behind by test runs
         backfill_created_by  give ownerless legacy rows an owner
         promote_to_admin     grant the admin role
Who:   cleanup_test_users is exposed over HTTP (admin only). The other two
       have no HTTP route and run from the `quotable` CLI.
"""

import logging
import re
import uuid
from typing import Dict, List, Optional, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quotable.clock import utcnow
from quotable.exceptions import NotFoundError, ValidationError
from quotable.models.image import GeneratedImage, Image
from quotable.models.person import Person
from quotable.models.quote import Quote
from quotable.models.user import ROLE_ADMIN, AuthAccount, AuthSession, User
from quotable.schemas.admin import BackfillResult, CleanupResult, PromoteResult, TableBackfill
from quotable.services.auth_guard import require_admin

logger = logging.getLogger(__name__)

TEST_EMAIL_PATTERNS = [
    re.compile(r"^(test-\d+|existing-\d+)@example\.com$"),
    re.compile(r"^newuser@example\.com$"),
    re.compile(r"@test\.com$"),
    re.compile(r"(test|auth).*@example\.com$"),
    re.compile(r"test.*@gmail\.com$"),
]

SAMPLE_SIZE = 10

# Tables whose rows carry a nullable created_by owner
OWNED_TABLES = (
    ("people", Person),
    ("quotes", Quote),
    ("images", Image),
    ("generated_images", GeneratedImage),
)


def is_test_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return any(pattern.search(email) for pattern in TEST_EMAIL_PATTERNS)


class AdminService:

    async def _find_test_users(self, db: AsyncSession) -> List[Tuple[uuid.UUID, str]]:
        result = await db.execute(select(User.id, User.email).order_by(User.created_at))
        return [(row.id, row.email) for row in result if is_test_email(row.email)]

    async def cleanup_test_users(
        self,
        db: AsyncSession,
        user_id: Optional[uuid.UUID],
        dry_run: bool = False,
        batch_size: int = 50,
    ) -> CleanupResult:
        """
        Deletes up to `batch_size` test users, auth sessions and accounts first.

        A dry run only reports what would be removed. Run repeatedly to
        drain larger backlogs.
        """
        await require_admin(db, user_id)

        test_users = await self._find_test_users(db)
        batch = test_users[:batch_size]

        if dry_run:
            return CleanupResult(
                dry_run=True,
                total_test_users=len(test_users),
                users_to_delete=len(batch),
                sample_emails=[email for _, email in batch[:SAMPLE_SIZE]],
                message=(
                    f"DRY RUN: Would delete {len(batch)} test users "
                    f"({len(test_users)} total found)"
                ),
            )

        deleted_accounts = 0
        for batch_user_id, _ in batch:
            await db.execute(delete(AuthSession).where(AuthSession.user_id == batch_user_id))
            accounts = await db.execute(
                delete(AuthAccount).where(AuthAccount.user_id == batch_user_id)
            )
            deleted_accounts += accounts.rowcount or 0
            await db.execute(delete(User).where(User.id == batch_user_id))
        await db.flush()

        logger.info("Cleanup removed %d test users, %d auth accounts", len(batch), deleted_accounts)
        return CleanupResult(
            dry_run=False,
            total_test_users=len(test_users),
            deleted_users=len(batch),
            deleted_accounts=deleted_accounts,
            message=f"Deleted {len(batch)} test users and {deleted_accounts} auth accounts",
        )

    async def backfill_created_by(
        self, db: AsyncSession, admin_user_id: uuid.UUID
    ) -> BackfillResult:
        admin = await db.get(User, admin_user_id)
        if admin is None:
            raise NotFoundError(resource="Admin user", resource_id=str(admin_user_id))
        if not admin.is_admin:
            raise ValidationError(message="Provided user is not an admin", field="admin_user_id")

        stats: Dict[str, TableBackfill] = {}
        total_checked = 0
        total_updated = 0
        for table_name, model in OWNED_TABLES:
            checked = await db.scalar(select(func.count()).select_from(model))
            result = await db.execute(
                update(model).where(model.created_by.is_(None)).values(created_by=admin.id)
            )
            updated = result.rowcount or 0
            stats[table_name] = TableBackfill(checked=checked or 0, updated=updated)
            total_checked += checked or 0
            total_updated += updated
        await db.flush()

        logger.info("Backfilled created_by on %d of %d rows", total_updated, total_checked)
        return BackfillResult(
            stats=stats,
            message=f"Backfilled {total_updated} of {total_checked} documents with createdBy field",
        )

    async def promote_to_admin(self, db: AsyncSession, user_id: uuid.UUID) -> PromoteResult:
        user = await db.get(User, user_id)
        if user is None:
            raise NotFoundError(resource="User", resource_id=str(user_id))
        if user.is_admin:
            return PromoteResult(message=f"User {user.email} is already an admin")

        user.role = ROLE_ADMIN
        user.updated_at = utcnow()
        await db.flush()
        logger.info("User %s promoted to admin", user.id)
        return PromoteResult(message=f"User {user.email} promoted to admin")


admin_service = AdminService()
