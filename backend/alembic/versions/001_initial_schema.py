"""Initial schema: identity, people, quotes and images

Revision ID: 001
Revises: None
Create Date: 2026-10-16 00:00:00.000000+00:00

Foreign keys cascade from parent to child (person → quotes/images,
quote/image → generated_images, user → accounts/sessions). Owner columns
(created_by) are SET NULL so deleting a user keeps their content as
admin-only legacy rows.

Rollback: downgrade() drops every table (destructive).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps(include_updated: bool = True):
    columns = [sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)]
    if include_updated:
        columns.append(sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False))
    return columns


def _owner():
    return sa.Column(
        "created_by",
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("email", sa.String(320), nullable=True, unique=True),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("slug", sa.String(255), nullable=True),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("role", sa.String(20), nullable=True),
        sa.Column("email_verification_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_token", sa.String(128), nullable=True),
        sa.Column("token_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_token", sa.String(128), nullable=True),
        sa.Column("password_reset_expiry", sa.DateTime(timezone=True), nullable=True),
        sa.Column("password_reset_requests", sa.Integer(), nullable=True),
        sa.Column("last_password_reset_request", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index("idx_users_verification_token", "users", ["verification_token"])
    op.create_index("idx_users_password_reset_token", "users", ["password_reset_token"])

    op.create_table(
        "auth_accounts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("provider", sa.String(50), nullable=False),
        sa.Column("provider_account_id", sa.String(320), nullable=False),
        sa.Column("secret", sa.Text(), nullable=True),
        sa.Column("failed_sign_in_attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_failed_sign_in", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(include_updated=False),
        sa.UniqueConstraint("provider", "provider_account_id", name="uq_auth_accounts_provider"),
    )
    op.create_index("idx_auth_accounts_user_id", "auth_accounts", ["user_id"])

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(include_updated=False),
    )
    op.create_index("idx_auth_sessions_user_id", "auth_sessions", ["user_id"])

    op.create_table(
        "people",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("birth_date", sa.String(64), nullable=True),
        sa.Column("death_date", sa.String(64), nullable=True),
        _owner(),
        *_timestamps(),
    )
    op.create_index("idx_people_slug", "people", ["slug"])
    op.create_index("idx_people_created_by", "people", ["created_by"])

    op.create_table(
        "quotes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "person_id", sa.Uuid(), sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("source_url", sa.Text(), nullable=True),
        sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        _owner(),
        *_timestamps(),
    )
    op.create_index("idx_quotes_person_id", "quotes", ["person_id"])
    op.create_index("idx_quotes_created_by", "quotes", ["created_by"])

    op.create_table(
        "images",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "person_id", sa.Uuid(), sa.ForeignKey("people.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("cloudinary_id", sa.String(512), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("width", sa.Integer(), nullable=True),
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("source", sa.Text(), nullable=True),
        sa.Column("license", sa.String(255), nullable=True),
        _owner(),
        *_timestamps(include_updated=False),
    )
    op.create_index("idx_images_person_id", "images", ["person_id"])

    op.create_table(
        "generated_images",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "quote_id", sa.Uuid(), sa.ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column(
            "image_id", sa.Uuid(), sa.ForeignKey("images.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("cloudinary_id", sa.String(512), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("transformation", sa.Text(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        _owner(),
        *_timestamps(include_updated=False),
    )
    op.create_index("idx_generated_images_quote_id", "generated_images", ["quote_id"])
    op.create_index("idx_generated_images_expires_at", "generated_images", ["expires_at"])


def downgrade() -> None:
    op.drop_table("generated_images")
    op.drop_table("images")
    op.drop_table("quotes")
    op.drop_table("people")
    op.drop_table("auth_sessions")
    op.drop_table("auth_accounts")
    op.drop_table("users")
