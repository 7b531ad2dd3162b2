"""
BillSense AI Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, and per-request session dependency.
Why:   Centralizes all database connection logic in one place.
How:   A `Database` object owns the engine and session factory. The
       application factory builds exactly one and stores it in the AppContext;
       `connect()` runs once at startup and is fatal on failure.
Who:   Used by route handlers through `billsense.dependencies.get_db_session`.
When:  Engine is created with the app; sessions are created per-request.

Connection Pooling Strategy:
    pool_size / max_overflow come from settings (PostgreSQL only).
    pool_pre_ping validates connections before use.
    pool_recycle=3600 recycles connections every hour.
    SQLite URLs (used by the test suite) keep SQLAlchemy's default pool.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from billsense.config import Settings
from billsense.exceptions import DatabaseConnectionError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Shares a single metadata object, which Alembic reads for migrations.
    """
    pass


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Builds the async engine; pool sizing only applies to server databases."""
    url = make_url(settings.database_url)
    options = {
        "pool_pre_ping": settings.db_pool_pre_ping,
        "echo": settings.log_level == "DEBUG",
    }
    if url.get_backend_name() != "sqlite":
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_recycle=3600,
        )
    return create_async_engine(url, **options)


class Database:
    """
    Owns the engine and session factory for one application instance.

    Lifecycle:
        connect()  → startup; raises DatabaseConnectionError if unreachable
        session()  → per-request unit of work
        dispose()  → shutdown; closes pooled connections
    """

    def __init__(self, settings: Settings):
        self.engine = create_engine_from_settings(settings)
        # expire_on_commit=False: attributes stay readable after commit
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def connect(self) -> None:
        """
        Verify the database is reachable with a SELECT 1 round-trip.

        Raises:
            DatabaseConnectionError: on any driver or network failure.
        """
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error("Database connection failed: %s", type(e).__name__)
            raise DatabaseConnectionError(
                context={"backend": self.engine.url.get_backend_name(), "error_type": type(e).__name__},
            ) from e
        logger.info(
            "Connected to database (%s)",
            self.engine.url.render_as_string(hide_password=True),
        )

    async def ping(self) -> bool:
        """Lightweight reachability check for the health endpoint."""
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning("Health check: database unreachable: %s", str(e))
            return False

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Provide a session as a unit of work.

        Commits if the block exits normally, rolls back on any exception
        and re-raises so the global handlers can respond.
        """
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def dispose(self) -> None:
        """Gracefully closes all connections in the pool."""
        await self.engine.dispose()
