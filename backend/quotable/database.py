"""
So Quotable Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base, and the
       per-request session dependency.
How:   The dependency commits when the handler returns and rolls back on
       any exception, so each request is one transaction.

Connection pooling (PostgreSQL):
    pool_size / max_overflow come from settings; pool_pre_ping catches stale
    connections after a database restart; connections recycle hourly.
    SQLite (used by the test suite) gets no pool arguments because its
    async driver manages a single connection.
"""

import logging
from typing import Any, AsyncGenerator, Dict

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from quotable.config import settings
from quotable.exceptions import DatabaseError

logger = logging.getLogger(__name__)


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


engine = create_async_engine(settings.database_url, **_engine_options())

# expire_on_commit=False: attributes stay readable after commit, outside the session
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all ORM models; its metadata drives Alembic."""
    pass


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a new session from the factory
    2. Yields it to the route handler
    3. On success: commits the transaction
    4. On error: rolls back; SQLAlchemy errors surface as DatabaseError
    5. Always: closes the session

    Routes that queue background email commit explicitly before returning,
    so delivery never starts for an uncommitted token.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error("Database error, transaction rolled back: %s", e)
            raise DatabaseError(context={"error": type(e).__name__}) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def dispose_engine() -> None:
    """Closes all pooled connections. Called from the lifespan shutdown."""
    await engine.dispose()
