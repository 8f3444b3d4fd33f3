"""
Database session configuration.

Async SQLAlchemy engine and the per-request session dependency. PostgreSQL
(asyncpg) in deployments; SQLite (aiosqlite) works for local runs and tests.
"""

from typing import Any, Dict
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from loadmate.app.core.config import settings


def _engine_options(url: str) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.db_echo}
    # SQLite's default pool takes no sizing arguments
    if not url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
        options["pool_pre_ping"] = True
    return options


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.

    One session per request; anything left uncommitted when a handler raises
    is rolled back.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
