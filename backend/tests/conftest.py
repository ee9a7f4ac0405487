"""
So Quotable Backend — Test Configuration (conftest.py)
=======================================================

Fixtures:
    mock_db_session  AsyncMock session for pure unit tests
    db_session       real in-memory SQLite database, schema created per test
    make_user        factory for User rows in db_session
    auth_headers     Bearer header for a user, backed by a live AuthSession
    test_client      httpx AsyncClient over ASGITransport, using db_session
"""

import os

# Must run before any quotable import: settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["RESEND_API_KEY"] = "test-resend-api-key"
os.environ["SITE_URL"] = "http://localhost:3000"
os.environ["JWT_SECRET"] = "test-jwt-secret-that-is-long-enough-for-hs256"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["CLOUDINARY_CLOUD_NAME"] = "demo"
os.environ["CLOUDINARY_API_KEY"] = "test-cloudinary-key"
os.environ["CLOUDINARY_API_SECRET"] = "test-cloudinary-secret"

from typing import Optional
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from quotable.clock import utcnow
from quotable.database import Base, get_db_session
from quotable.models import image, person, quote  # noqa: F401
from quotable.models.user import ROLE_ADMIN, ROLE_USER, User
from quotable.services.identity_service import identity_service


@pytest.fixture
def mock_db_session():
    """
    Mock async session. `add` is sync on AsyncSession, so it is a MagicMock.

    Usage:
        mock_db_session.get.return_value = user
        await service.resend_verification_email(mock_db_session, user.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_session():
    """A fresh in-memory database per test; StaticPool keeps one shared connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_user(db_session):
    """Creates a User row. Pass role="admin" for an admin."""

    async def _make_user(
        email: Optional[str] = None,
        role: str = ROLE_USER,
        verified: bool = False,
        name: Optional[str] = None,
    ) -> User:
        email = email or f"user-{uuid4().hex[:8]}@quotable.dev"
        now = utcnow()
        user = User(
            id=uuid4(),
            email=email,
            name=name or email.split("@")[0],
            slug=email.split("@")[0],
            role=role,
            email_verification_time=now if verified else None,
            created_at=now,
            updated_at=now,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make_user


@pytest.fixture
def auth_headers(db_session):
    """Opens a session for `user` and returns its Authorization header."""

    async def _auth_headers(user: User) -> dict:
        tokens = await identity_service._open_session(db_session, user)
        await db_session.commit()
        return {"Authorization": f"Bearer {tokens.access_token}"}

    return _auth_headers


@pytest_asyncio.fixture
async def admin_user(make_user):
    return await make_user(email="admin@quotable.dev", role=ROLE_ADMIN, verified=True)


@pytest_asyncio.fixture
async def test_client(db_session):
    """
    HTTPX AsyncClient talking to the app in-process.

    Every request shares db_session, so rows created by a test are visible
    to the app and vice versa.
    """
    from quotable.main import app

    async def override_db_session():
        try:
            yield db_session
            await db_session.commit()
        except Exception:
            await db_session.rollback()
            raise

    app.dependency_overrides[get_db_session] = override_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
