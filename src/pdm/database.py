"""Connection pool to the OSM database (contributions, badges and imported features)."""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pdm.config import Settings

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


async def init_db(settings: Settings) -> None:
    """Create the engine; the statistics page alone may hold several connections at once."""
    global _engine, _sessions  # noqa: PLW0603
    _engine = create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
    )
    _sessions = async_sessionmaker(_engine, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for callers opening several sessions concurrently."""
    if _sessions is None:
        msg = "Database not initialized. Call init_db() first."
        raise RuntimeError(msg)
    return _sessions


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """One session per request (FastAPI dependency)."""
    async with get_session_factory()() as session:
        yield session
