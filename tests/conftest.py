"""Shared pytest fixtures and configuration.

This module provides common fixtures used across all test types.
"""

import os
import uuid
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Import models to register them with Base.metadata
import openhouse.models  # noqa: F401
from openhouse.models.base import Base
from openhouse.models.profile import ProfileDB
from openhouse.services.change_feed import ChangeFeed


@pytest.fixture
def test_database_url(tmp_path) -> str:
    """Provide test database URL.

    Uses a file-based SQLite database per test, or PostgreSQL if configured.
    """
    db_url = os.getenv("TEST_DATABASE_URL")
    if db_url:
        return db_url
    return f"sqlite+aiosqlite:///{tmp_path}/test_openhouse.db"


@pytest.fixture(scope="function")
async def async_db_session(test_database_url: str) -> AsyncGenerator[AsyncSession, None]:
    """Provide an async database session for testing.

    Creates tables before each test and drops them after.
    """
    engine = create_async_engine(test_database_url, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def change_feed() -> ChangeFeed:
    """Provide an isolated change feed."""
    return ChangeFeed(max_queue_size=10)


@pytest.fixture
def make_profile(async_db_session: AsyncSession):
    """Factory fixture inserting profiles.

    Example:
        alice = await make_profile("alice", has_paid=True)
    """

    async def _make_profile(name: str = "builder", **fields) -> ProfileDB:
        profile = ProfileDB(
            id=fields.pop("id", uuid.uuid4()),
            email=fields.pop("email", f"{name}-{uuid.uuid4().hex[:8]}@example.com"),
            full_name=fields.pop("full_name", name.title()),
            builder_coins=fields.pop("builder_coins", 0),
            has_paid=fields.pop("has_paid", False),
            **fields,
        )
        async_db_session.add(profile)
        await async_db_session.commit()
        return profile

    return _make_profile
