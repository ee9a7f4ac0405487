"""
CLI tests using click's CliRunner.

The admin service and database session are mocked; these tests cover
argument parsing, output formatting, commit/rollback and exit codes.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from click.testing import CliRunner

from quotable.cli import cli
from quotable.exceptions import AdminOnlyError, NotFoundError
from quotable.schemas.admin import BackfillResult, CleanupResult, PromoteResult, TableBackfill


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def session():
    session = AsyncMock()
    session.__aenter__.return_value = session
    return session


@pytest.fixture
def patched(session):
    with patch("quotable.cli.async_session_factory", MagicMock(return_value=session)), \
            patch("quotable.cli.dispose_engine", AsyncMock()) as dispose, \
            patch("quotable.cli.admin_service") as service:
        yield service, dispose


class TestPromoteAdmin:

    def test_prints_message_and_commits(self, runner, session, patched):
        service, dispose = patched
        service.promote_to_admin = AsyncMock(
            return_value=PromoteResult(message="User ada@quotable.dev promoted to admin")
        )
        user_id = uuid4()

        result = runner.invoke(cli, ["promote-admin", str(user_id)])

        assert result.exit_code == 0
        assert "User ada@quotable.dev promoted to admin" in result.output
        service.promote_to_admin.assert_awaited_once_with(session, user_id)
        session.commit.assert_awaited_once()
        dispose.assert_awaited_once()

    def test_unknown_user_exits_nonzero(self, runner, session, patched):
        service, _ = patched
        service.promote_to_admin = AsyncMock(side_effect=NotFoundError(resource="User"))

        result = runner.invoke(cli, ["promote-admin", str(uuid4())])

        assert result.exit_code == 1
        assert "Error: User not found" in result.output
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    def test_rejects_malformed_id(self, runner, patched):
        result = runner.invoke(cli, ["promote-admin", "not-a-uuid"])
        assert result.exit_code == 2


class TestBackfillCreatedBy:

    def test_json_output(self, runner, patched):
        service, _ = patched
        service.backfill_created_by = AsyncMock(
            return_value=BackfillResult(
                stats={"people": TableBackfill(checked=4, updated=2)},
                message="Backfilled 2 of 4 documents with createdBy field",
            )
        )

        result = runner.invoke(cli, ["backfill-created-by", str(uuid4()), "--json"])

        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["stats"]["people"] == {"checked": 4, "updated": 2}


class TestCleanupTestUsers:

    def test_dry_run_lists_samples(self, runner, session, patched):
        service, _ = patched
        service.cleanup_test_users = AsyncMock(
            return_value=CleanupResult(
                dry_run=True,
                total_test_users=2,
                users_to_delete=2,
                sample_emails=["test-1@example.com", "newuser@example.com"],
                message="DRY RUN: Would delete 2 test users (2 total found)",
            )
        )
        admin_id = uuid4()

        result = runner.invoke(
            cli, ["cleanup-test-users", "--admin-id", str(admin_id), "--dry-run", "--batch-size", "10"]
        )

        assert result.exit_code == 0
        assert "DRY RUN: Would delete 2 test users" in result.output
        assert "  newuser@example.com" in result.output
        service.cleanup_test_users.assert_awaited_once_with(
            session, admin_id, dry_run=True, batch_size=10
        )

    def test_batch_size_bounds(self, runner, patched):
        result = runner.invoke(
            cli, ["cleanup-test-users", "--admin-id", str(uuid4()), "--batch-size", "501"]
        )
        assert result.exit_code == 2

    def test_non_admin(self, runner, patched):
        service, _ = patched
        service.cleanup_test_users = AsyncMock(side_effect=AdminOnlyError())

        result = runner.invoke(cli, ["cleanup-test-users", "--admin-id", str(uuid4())])

        assert result.exit_code == 1
        assert "This action requires admin privileges" in result.output
