"""Database configuration and session management.

Provides the async SQLAlchemy engine, the session factory and the
unit-of-work boundary used by every mutation.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from catalog_service.infrastructure.config import settings

# SQLite only autoincrements INTEGER PRIMARY KEY columns
IdType = BigInteger().with_variant(Integer(), "sqlite")

# Create async engine
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
)

# Session factory
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# Base class for models
Base = declarative_base()


class Database:
    """Holds the session factory used by request handlers.

    Tests swap the factory for one bound to an in-memory engine.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a transactional session.

        Commits when the block exits normally and rolls back on any
        exception, including cancellation when the deadline expires.

        Yields:
            AsyncSession bound to an open transaction.
        """
        async with asyncio.timeout(self.timeout_seconds):
            async with self.session_factory() as session:
                async with session.begin():
                    yield session

    @asynccontextmanager
    async def read_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Open a session for read-only work under the same deadline."""
        async with asyncio.timeout(self.timeout_seconds):
            async with self.session_factory() as session:
                yield session


_database: Database | None = None


def get_database() -> Database:
    """Get the process-wide database handle."""
    global _database
    if _database is None:
        _database = Database(
            async_session_factory,
            timeout_seconds=settings.request_timeout_seconds,
        )
    return _database

