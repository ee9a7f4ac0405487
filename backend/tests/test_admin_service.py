"""
Admin Maintenance Utility Tests
================================

What we test:
    ✅ Test-email pattern matching
    ✅ Cleanup: admin only, dry run reports without deleting, batches honoured
    ✅ Cleanup removes sessions and auth accounts with the user
    ✅ Backfill assigns ownerless rows to an admin and reports per-table counts
    ✅ Promote is idempotent
"""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from quotable.clock import utcnow
from quotable.exceptions import AdminOnlyError, NotFoundError, ValidationError
from quotable.models.person import Person
from quotable.models.quote import Quote
from quotable.models.user import ROLE_ADMIN, AuthAccount, AuthSession, User
from quotable.services.admin_service import AdminService, is_test_email
from quotable.services.identity_service import identity_service
from quotable.services.passwords import hash_password


@pytest.mark.parametrize(
    "email, expected",
    [
        ("test-1700000000@example.com", True),
        ("existing-42@example.com", True),
        ("newuser@example.com", True),
        ("anyone@test.com", True),
        ("auth-flow-user@example.com", True),
        ("test.account@gmail.com", True),
        ("ada@gmail.com", False),
        ("reader@quotable.dev", False),
        ("", False),
        (None, False),
    ],
)
def test_is_test_email(email, expected):
    assert is_test_email(email) is expected


async def _count(db_session, model):
    return await db_session.scalar(select(func.count()).select_from(model))


class TestCleanupTestUsers:

    def setup_method(self):
        self.service = AdminService()

    @pytest.mark.asyncio
    async def test_requires_admin(self, make_user, db_session):
        user = await make_user()
        with pytest.raises(AdminOnlyError):
            await self.service.cleanup_test_users(db_session, user.id)

    @pytest.mark.asyncio
    async def test_dry_run_deletes_nothing(self, admin_user, make_user, db_session):
        for i in range(3):
            await make_user(email=f"test-{i}@example.com")
        await make_user(email="keeper@quotable.dev")

        result = await self.service.cleanup_test_users(
            db_session, admin_user.id, dry_run=True, batch_size=2
        )

        assert result.dry_run is True
        assert result.total_test_users == 3
        assert result.users_to_delete == 2
        assert result.sample_emails == ["test-0@example.com", "test-1@example.com"]
        assert result.message == "DRY RUN: Would delete 2 test users (3 total found)"
        assert await _count(db_session, User) == 5

    @pytest.mark.asyncio
    async def test_deletes_users_with_accounts_and_sessions(self, admin_user, make_user, db_session):
        doomed = await make_user(email="newuser@example.com")
        keeper = await make_user(email="keeper@quotable.dev")
        for user in (doomed, keeper):
            db_session.add(
                AuthAccount(
                    user_id=user.id,
                    provider="password",
                    provider_account_id=user.email,
                    secret=hash_password("Quotable-Pass-123"),
                    failed_sign_in_attempts=0,
                )
            )
        await db_session.flush()
        await identity_service._open_session(db_session, doomed)

        result = await self.service.cleanup_test_users(db_session, admin_user.id)

        assert result.deleted_users == 1
        assert result.deleted_accounts == 1
        assert result.message == "Deleted 1 test users and 1 auth accounts"
        remaining = (await db_session.execute(select(User.email))).scalars().all()
        assert sorted(remaining) == ["admin@quotable.dev", "keeper@quotable.dev"]
        assert await _count(db_session, AuthAccount) == 1
        assert await _count(db_session, AuthSession) == 0


class TestBackfillCreatedBy:

    def setup_method(self):
        self.service = AdminService()

    async def _legacy_rows(self, db_session, owner):
        now = utcnow()
        legacy = Person(name="Legacy", slug="legacy", created_at=now, updated_at=now)
        owned = Person(name="Owned", slug="owned", created_by=owner.id, created_at=now, updated_at=now)
        db_session.add_all([legacy, owned])
        await db_session.flush()
        db_session.add(Quote(person_id=legacy.id, text="Old words", created_at=now, updated_at=now))
        await db_session.flush()
        return legacy

    @pytest.mark.asyncio
    async def test_assigns_ownerless_rows(self, admin_user, make_user, db_session):
        other = await make_user()
        legacy = await self._legacy_rows(db_session, other)

        result = await self.service.backfill_created_by(db_session, admin_user.id)

        assert result.stats["people"].checked == 2
        assert result.stats["people"].updated == 1
        assert result.stats["quotes"].updated == 1
        assert result.stats["images"].checked == 0
        assert result.message == "Backfilled 2 of 3 documents with createdBy field"

        await db_session.refresh(legacy)
        assert legacy.created_by == admin_user.id

    @pytest.mark.asyncio
    async def test_non_admin_rejected(self, make_user, db_session):
        user = await make_user()
        with pytest.raises(ValidationError) as exc_info:
            await self.service.backfill_created_by(db_session, user.id)
        assert exc_info.value.message == "Provided user is not an admin"

    @pytest.mark.asyncio
    async def test_unknown_admin(self, db_session):
        with pytest.raises(NotFoundError) as exc_info:
            await self.service.backfill_created_by(db_session, uuid4())
        assert exc_info.value.message == "Admin user not found"


class TestPromoteToAdmin:

    def setup_method(self):
        self.service = AdminService()

    @pytest.mark.asyncio
    async def test_promote_then_idempotent(self, make_user, db_session):
        user = await make_user(email="editor@quotable.dev")

        first = await self.service.promote_to_admin(db_session, user.id)
        second = await self.service.promote_to_admin(db_session, user.id)

        assert user.role == ROLE_ADMIN
        assert first.message == "User editor@quotable.dev promoted to admin"
        assert second.message == "User editor@quotable.dev is already an admin"
