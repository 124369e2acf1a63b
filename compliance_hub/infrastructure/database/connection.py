"""Async engine and transactional sessions."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from compliance_hub.core.config import Settings, settings as default_settings

from .models import Base

logger = structlog.get_logger(__name__)


def normalize_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


def engine_options(url: str, settings: Settings) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.debug}

    if not url.startswith("sqlite"):
        options.update(
            pool_pre_ping=True,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
    elif ":memory:" in url:
        # An in-memory database only lives as long as its one connection
        options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})

    return options


class DatabaseSessionManager:
    """
    Owns the engine and hands out unit-of-work sessions.

    Repositories only flush; ``session()`` commits when the block exits
    cleanly and rolls back when it raises.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or default_settings
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("DatabaseSessionManager has no engine; call init() or bind() first")
        return self._engine

    def init(self, database_url: str | None = None) -> None:
        url = normalize_database_url(database_url or self._settings.database_url)
        self.bind(create_async_engine(url, **engine_options(url, self._settings)))
        logger.info("database_engine_created", dialect=self.engine.dialect.name)

    def bind(self, engine: AsyncEngine) -> None:
        """Use an existing engine, e.g. one shared by a test suite."""
        self._engine = engine
        self._sessionmaker = async_sessionmaker(engine, expire_on_commit=False, autoflush=False)

    async def create_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_tables_ensured", tables=sorted(Base.metadata.tables))

    async def ping(self) -> None:
        """Round-trip a trivial query. Raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        if self._sessionmaker is None:
            raise RuntimeError("DatabaseSessionManager has no engine; call init() or bind() first")

        async with self._sessionmaker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            await session.commit()
