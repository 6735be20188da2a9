"""Async SQLAlchemy engine and session factory.

Learn: SQLAlchemy 2.0 async mode — create_async_engine for connection
pooling, AsyncSession for per-request access, handed to routes through
the get_db dependency. Production runs on Postgres via asyncpg; the
same models also run on SQLite (aiosqlite), which the test suite uses.
"""

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from recordgate.config import settings
from recordgate.db.models import Base


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an engine, sizing the pool only for server databases."""
    if url.startswith("sqlite"):
        return create_async_engine(url, echo=echo)
    # Pool: 5 steady connections, up to 20 under load.
    return create_async_engine(url, echo=echo, pool_size=5, max_overflow=15)


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def create_schema(bind: AsyncEngine = engine) -> None:
    """Create all tables that don't exist yet (dev bootstrap and tests)."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncSession:
    """FastAPI dependency — yields a session per request, auto-closes."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
