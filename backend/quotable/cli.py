"""CLI entry point for So Quotable maintenance tasks."""

import asyncio
import json
import sys
import uuid
from typing import Any, Awaitable, Callable

import click
from pydantic import BaseModel

from quotable import __version__
from quotable.database import async_session_factory, dispose_engine
from quotable.exceptions import QuotableError
from quotable.services.admin_service import admin_service


def _run(operation: Callable[[Any], Awaitable[BaseModel]]) -> BaseModel:
    """Runs one admin operation in its own session, committing on success."""

    async def runner() -> BaseModel:
        try:
            async with async_session_factory() as session:
                try:
                    result = await operation(session)
                    await session.commit()
                    return result
                except Exception:
                    await session.rollback()
                    raise
        finally:
            await dispose_engine()

    return asyncio.run(runner())


def _echo_result(result: BaseModel, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        click.echo(result.message)


def _fail(error: QuotableError) -> None:
    click.echo(f"Error: {error.message}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
def cli():
    """So Quotable - maintenance commands."""
    pass


@cli.command("promote-admin")
@click.argument("user_id", type=click.UUID)
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
def promote_admin(user_id: uuid.UUID, as_json: bool):
    """Grant the admin role to USER_ID."""
    try:
        result = _run(lambda db: admin_service.promote_to_admin(db, user_id))
    except QuotableError as e:
        _fail(e)
        return
    _echo_result(result, as_json)


@cli.command("backfill-created-by")
@click.argument("admin_user_id", type=click.UUID)
@click.option("--json", "as_json", is_flag=True, help="Print per-table counts as JSON.")
def backfill_created_by(admin_user_id: uuid.UUID, as_json: bool):
    """Assign ownerless people, quotes and images to ADMIN_USER_ID."""
    try:
        result = _run(lambda db: admin_service.backfill_created_by(db, admin_user_id))
    except QuotableError as e:
        _fail(e)
        return
    _echo_result(result, as_json)


@cli.command("cleanup-test-users")
@click.option("--admin-id", type=click.UUID, required=True, help="Admin running the cleanup.")
@click.option("--dry-run", is_flag=True, help="Report matches without deleting.")
@click.option("--batch-size", type=click.IntRange(1, 500), default=50, show_default=True)
@click.option("--json", "as_json", is_flag=True, help="Print the full result as JSON.")
def cleanup_test_users(admin_id: uuid.UUID, dry_run: bool, batch_size: int, as_json: bool):
    """Delete accounts created by test runs."""
    try:
        result = _run(
            lambda db: admin_service.cleanup_test_users(
                db, admin_id, dry_run=dry_run, batch_size=batch_size
            )
        )
    except QuotableError as e:
        _fail(e)
        return
    _echo_result(result, as_json)
    if dry_run and not as_json and result.sample_emails:
        for email in result.sample_emails:
            click.echo(f"  {email}")


if __name__ == "__main__":
    cli()
