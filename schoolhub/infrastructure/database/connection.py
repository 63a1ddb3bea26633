# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database connection management using SQLAlchemy async.

This module provides the DatabaseManager, which owns the async engine and
sessionmaker for the relational store. One manager is created per
application (see schoolhub.api.app.lifespan) and handed to request
handlers through FastAPI dependencies; nothing here is a module global.

Uses SQLAlchemy 2.0 async API with the asyncpg driver in production.

Example:
    manager = DatabaseManager(settings)

    async with manager.get_session() as session:
        result = await session.execute(select(School))
        schools = result.scalars().all()

    await manager.close()
"""

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, AsyncIterator, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from schoolhub.infrastructure.database.models.base import Base

if TYPE_CHECKING:
    from schoolhub.core.config.settings import Settings


class DatabaseError(Exception):
    """Base exception for database operations.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class DatabaseManager:
    """Owner of the async engine and session factory.

    Attributes:
        _engine: SQLAlchemy async engine.
        _sessionmaker: Session factory bound to the engine.
    """

    def __init__(self, settings: "Settings", engine: AsyncEngine | None = None) -> None:
        """Initialize the database manager.

        Args:
            settings: Application settings containing database configuration.
            engine: Optional pre-built engine (tests pass an in-memory one).

        Raises:
            DatabaseError: If engine creation fails.
        """
        self._settings = settings
        try:
            self._engine = engine or create_async_engine(
                settings.db.url,
                **self._engine_options(settings),
            )
        except SQLAlchemyError as e:
            raise DatabaseError("Failed to initialize database connection", e) from e

        self._sessionmaker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @staticmethod
    def _engine_options(settings: "Settings") -> dict[str, Any]:
        """Build engine keyword arguments for the configured dialect."""
        options: dict[str, Any] = {"echo": False}
        if not settings.db.is_sqlite:
            options.update(
                pool_size=settings.db.pool_size,
                max_overflow=settings.db.max_overflow,
                pool_pre_ping=True,
                pool_recycle=1800,
            )
        return options

    @property
    def engine(self) -> AsyncEngine:
        """The SQLAlchemy async engine."""
        return self._engine

    @asynccontextmanager
    async def get_session(self) -> AsyncIterator[AsyncSession]:
        """Get an async session for the store.

        The session is committed on success and rolled back on exception.
        Services commit their own units of work; the trailing commit only
        flushes anything a handler left pending.

        Yields:
            AsyncSession for database operations.

        Raises:
            DatabaseError: If a database operation fails.
        """
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                await session.rollback()
                raise DatabaseError("Database operation failed", e) from e
            except Exception:
                await session.rollback()
                raise

    async def create_schema(self) -> None:
        """Create all tables and indexes.

        Only used by tests and the development bootstrap; production schema
        is managed outside this service.
        """
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def check_connection(self) -> bool:
        """Check if the database is reachable.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            return False

    async def close(self) -> None:
        """Dispose of the connection pool."""
        await self._engine.dispose()
