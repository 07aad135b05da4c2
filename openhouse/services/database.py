"""Async database engine, per-request sessions and the process-wide manager."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool

from openhouse.errors import ConfigurationError

logger = structlog.get_logger(__name__)

# Hosted Postgres providers hand out URLs without an async driver
_ASYNC_SCHEMES = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def async_database_url(database_url: str) -> str:
    """Rewrite a plain database URL to use the async driver."""
    for prefix, replacement in _ASYNC_SCHEMES.items():
        if database_url.startswith(prefix):
            return replacement + database_url[len(prefix) :]
    return database_url


class DatabaseManager:
    """Owns the async engine and hands out transactional sessions.

    Each session is committed when its block exits normally and rolled back
    when it raises, so a failed write leaves no partial rows behind.
    """

    def __init__(self, database_url: str, pool_size: int = 20, max_overflow: int = 10):
        """Initialize database manager.

        Args:
            database_url: Connection string; plain ``postgres://`` URLs are accepted
            pool_size: Size of the connection pool (ignored for SQLite)
            max_overflow: Max connections beyond pool_size
        """
        self.database_url = async_database_url(database_url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow

        self._engine = None
        self._session_factory = None

    @property
    def driver(self) -> str:
        """Backend name, e.g. ``postgresql`` or ``sqlite``."""
        return self.database_url.split("://", 1)[0].split("+", 1)[0]

    async def initialize_async(self) -> None:
        """Create the engine and session factory (idempotent)."""
        if self._engine is not None:
            return

        if self.driver == "sqlite":
            self._engine = create_async_engine(self.database_url, poolclass=NullPool)
        else:
            self._engine = create_async_engine(
                self.database_url,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_pre_ping=True,
            )

        self._session_factory = async_sessionmaker(
            bind=self._engine, autoflush=False, expire_on_commit=False
        )
        logger.info("database_initialized", driver=self.driver)

    @asynccontextmanager
    async def get_async_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Transactional session scope.

        Example:
            async with db_manager.get_async_session() as session:
                session.add(ProfileDB(email="a@example.com"))
        """
        if self._session_factory is None:
            raise ConfigurationError("Database not initialized")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def health_check(self) -> bool:
        """Run ``SELECT 1``; False when the database is unreachable."""
        try:
            await self.initialize_async()
            async with self.get_async_session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("database_health_check_failed", error=str(exc))
            return False
        return True

    async def close(self) -> None:
        """Dispose of the engine and its pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None


# Set during application startup
_db_manager: DatabaseManager | None = None


def initialize_database(database_url: str | None = None) -> DatabaseManager:
    """Create the process-wide database manager.

    Args:
        database_url: Connection string (defaults to DATABASE_URL env var)

    Raises:
        ConfigurationError: If no URL is given or configured
    """
    global _db_manager

    database_url = database_url or os.getenv("DATABASE_URL")
    if not database_url:
        raise ConfigurationError("DATABASE_URL is not set")

    _db_manager = DatabaseManager(database_url)
    return _db_manager


def get_database_manager() -> DatabaseManager | None:
    """The process-wide database manager, if one was initialized."""
    return _db_manager


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one transactional session per request.

    Example:
        @router.get("/ideas")
        async def list_ideas(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    if _db_manager is None:
        raise ConfigurationError("Database not initialized")

    async with _db_manager.get_async_session() as session:
        yield session


async def shutdown_database() -> None:
    """Close the process-wide manager (call on application shutdown)."""
    global _db_manager
    if _db_manager is not None:
        await _db_manager.close()
        _db_manager = None
