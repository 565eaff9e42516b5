"""
DocHub Test Configuration
=========================

Pytest fixtures for DocHub unit tests.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from dochub.api.config import Settings
from dochub.api.db.session import Database


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings pointing at a throwaway SQLite file."""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'dochub.db'}",
        JWT_SECRET_KEY="unit-test-secret-key-that-is-long-enough",
        JWT_ISSUER="dochub-test",
        JWT_AUDIENCE="dochub-test-api",
        ACCESS_TOKEN_EXPIRE_MINUTES=30,
    )


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    """Database with all tables created."""
    database = Database(settings)
    await database.create_all()
    yield database
    await database.dispose()


@pytest_asyncio.fixture
async def db_session(database) -> AsyncGenerator[AsyncSession, None]:
    """Session on the test database."""
    async with database.session() as session:
        yield session
