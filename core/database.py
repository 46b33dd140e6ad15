"""Async SQLAlchemy database handle and session management.

Provides the store connection used by every repository:
- One Database handle per process, opened and closed by the hosting app
- Connection pooling (configurable pool_size/max_overflow)
- FastAPI dependency injection via get_session()
- Automatic session lifecycle (commit on success, rollback on error)
- Bounded store calls via Database.timeout
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from core.config import Settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Database handle
# ---------------------------------------------------------------------------

class Database:
    """Engine + session factory owned by the hosting process.

    Usage::

        db = Database(Settings.from_env())
        await db.init_models()
        async with db.session() as session:
            repo = BookRepository(session, db_id="my-shelf")
        await db.close()
    """

    def __init__(self, settings: Settings):
        self.timeout = settings.store_timeout_seconds
        self.engine: AsyncEngine = create_async_engine(
            settings.database_url, **self._engine_options(settings)
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @staticmethod
    def _engine_options(settings: Settings) -> dict:
        options = {"echo": settings.echo_sql, "pool_pre_ping": True}
        if settings.database_url.startswith("sqlite"):
            # A single shared connection keeps in-memory databases alive
            options["poolclass"] = StaticPool
        else:
            options["pool_size"] = settings.pool_size
            options["max_overflow"] = settings.max_overflow
            options["pool_timeout"] = settings.store_timeout_seconds
        return options

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Yield a session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Round-trip a trivial query; False when the store is unreachable."""
        try:
            async with self.engine.connect() as conn:
                await asyncio.wait_for(conn.execute(text("SELECT 1")), self.timeout)
            return True
        except Exception:
            logger.exception("Store ping failed")
            return False

    async def init_models(self) -> None:
        """Create tables from models (dev/test only)."""
        from core.models.base import Base
        import tracker.models.db_models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Dispose of the connection pool on shutdown."""
        await self.engine.dispose()


# ---------------------------------------------------------------------------
# FastAPI dependencies
# ---------------------------------------------------------------------------

def get_database(request: Request) -> Database:
    """Return the Database handle the app factory attached to app.state."""
    return request.app.state.database


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session with automatic commit/rollback.

    Usage in FastAPI routes::

        @router.get("/items")
        async def list_items(session: AsyncSession = Depends(get_session)):
            ...
    """
    database = get_database(request)
    async with database.session() as session:
        yield session
