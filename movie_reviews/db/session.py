# movie_reviews/db/session.py
from __future__ import annotations

"""
MovieReviews · Database Engine & Session Dependency

- One async engine/session factory shared by the app, Alembic and tests.
- Pool knobs apply to server databases only (SQLite uses its own pool).
"""

from typing import AsyncGenerator, Dict, Any
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from movie_reviews.core.config import settings

logger = logging.getLogger(__name__)

ASYNC_DATABASE_URL: str = settings.ASYNC_DATABASE_URL

# Pool knobs
_POOL_PRE_PING = True
_POOL_RECYCLE = 1800
_POOL_TIMEOUT = 30
_POOL_SIZE = 10
_MAX_OVERFLOW = 20


def _engine_kwargs(url: str) -> Dict[str, Any]:
    if url.startswith("sqlite"):
        return {}
    return {
        "pool_pre_ping": _POOL_PRE_PING,
        "pool_recycle": _POOL_RECYCLE,
        "pool_size": _POOL_SIZE,
        "max_overflow": _MAX_OVERFLOW,
        "pool_timeout": _POOL_TIMEOUT,
    }


# Engines are lazy: no connection is opened until first use.
async_engine: AsyncEngine = create_async_engine(
    ASYNC_DATABASE_URL,
    echo=False,
    **_engine_kwargs(ASYNC_DATABASE_URL),
)

async_session_maker = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that yields an async SQLAlchemy session."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def db_healthcheck() -> bool:
    """Quick SELECT 1 to verify DB connectivity (used by /readyz)."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("DB healthcheck failed")
        return False


__all__ = [
    "ASYNC_DATABASE_URL",
    "async_engine",
    "async_session_maker",
    "get_async_db",
    "db_healthcheck",
]
