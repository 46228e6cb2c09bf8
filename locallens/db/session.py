"""
Async engine ownership for the LocalLens tables.

`db_manager` is created at import and initialised by the app lifespan; request
handlers borrow sessions through the `get_session` dependency, while planning
sessions go through `SqlRepository`, which opens one per call.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from locallens.core.settings import Settings
# registers the tables on SQLModel.metadata
from locallens.db import models  # noqa: F401

logger = logging.getLogger(__name__)

# sync URL scheme -> async driver scheme
ASYNC_DRIVERS = {
    "sqlite": "sqlite+aiosqlite",
    "postgresql": "postgresql+asyncpg",
}


def async_database_url(url: str) -> str:
    """sqlite:///x.db -> sqlite+aiosqlite:///x.db; URLs that already name a driver pass through"""
    if not url:
        raise ValueError("DB_URL environment variable is required")
    scheme, sep, rest = url.partition("://")
    if not sep or not scheme:
        raise ValueError("Invalid database URL format")
    return f"{ASYNC_DRIVERS.get(scheme, scheme)}://{rest}"


class DatabaseManager:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.engine: Optional[AsyncEngine] = None
        self.async_session: Optional[async_sessionmaker] = None

    def _engine_options(self, url: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.settings.DB_ECHO, "pool_pre_ping": True}
        # SQLite runs on a single-connection pool, sizing only applies to Postgres
        if url.startswith("postgresql"):
            options.update(
                pool_size=self.settings.DB_POOL_SIZE,
                max_overflow=self.settings.DB_MAX_OVERFLOW,
                pool_timeout=self.settings.DB_POOL_TIMEOUT,
                pool_recycle=self.settings.DB_POOL_RECYCLE,
            )
        return options

    async def initialize(self) -> None:
        url = async_database_url(self.settings.DB_URL)
        try:
            self.engine = create_async_engine(url, **self._engine_options(url))
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise
        self.async_session = async_sessionmaker(self.engine, class_=AsyncSession, expire_on_commit=False)
        logger.info(f"Database engine ready ({self.engine.dialect.name})")

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        if not self.async_session:
            raise RuntimeError("Database manager not initialized")

        session = self.async_session()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def init_db(self) -> None:
        """Create any missing LocalLens tables"""
        if not self.engine:
            raise RuntimeError("Database engine not initialized")
        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(SQLModel.metadata.create_all)
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise
        logger.info(f"Tables ready: {', '.join(sorted(SQLModel.metadata.tables))}")

    async def health_check(self) -> Dict[str, Any]:
        """Round-trips a SELECT 1; reported under `database` by /health"""
        if not self.engine:
            return {"status": "unhealthy", "error": "not initialized"}

        start = time.perf_counter()
        try:
            async with self.get_session() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": "unhealthy", "dialect": self.engine.dialect.name, "error": str(e)}

        return {
            "status": "healthy",
            "dialect": self.engine.dialect.name,
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        }

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.async_session = None


db_manager = DatabaseManager()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the global manager"""
    async with db_manager.get_session() as session:
        yield session
