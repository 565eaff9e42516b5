"""
Database Session Management

Async SQLAlchemy engine and sessions, built from an explicit Settings value.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from dochub.api.config import Settings


logger = logging.getLogger(__name__)


class Database:
    """Owns the async engine and session factory for one application."""

    def __init__(self, settings: Settings):
        self._url = settings.DATABASE_URL
        self._echo = settings.DATABASE_ECHO
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker] = None

    @property
    def engine(self) -> AsyncEngine:
        """Get or create the database engine."""
        if self._engine is None:
            logger.info("Creating engine for %s", self._url.split("@")[-1])

            connect_args = {}
            kwargs = {}
            if self._url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
            else:
                kwargs["poolclass"] = NullPool

            self._engine = create_async_engine(
                self._url,
                echo=self._echo,
                connect_args=connect_args,
                **kwargs,
            )

        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker:
        """Get or create the session maker."""
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

        return self._session_maker

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Open a session that is closed on exit."""
        async with self.session_maker() as session:
            yield session

    async def create_all(self) -> None:
        """Create tables if they don't exist. Development and tests only."""
        from dochub.api.db.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Tables created")

    async def dispose(self) -> None:
        """Close database connections."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.info("Database connection closed")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Usage in FastAPI:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    database: Database = request.app.state.database
    async with database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
