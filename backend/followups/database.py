"""Database session management for the FastAPI backend."""
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from .config import Settings, get_settings


def build_engine(settings: Settings):
    """Create the async engine with a bounded connection pool."""

    if settings.uses_sqlite:
        # SQLite connections are file handles; pooling limits do not apply.
        return create_async_engine(
            settings.database_url,
            future=True,
            echo=False,
            connect_args={"check_same_thread": False},
        )

    pool_size = min(settings.db_max_idle_conns, settings.db_max_open_conns)
    return create_async_engine(
        settings.database_url,
        future=True,
        echo=False,
        pool_size=pool_size,
        max_overflow=max(settings.db_max_open_conns - pool_size, 0),
        pool_recycle=settings.db_max_idle_time,
        pool_timeout=settings.db_pool_timeout,
        pool_pre_ping=True,
    )


settings = get_settings()
engine = build_engine(settings)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide an async SQLAlchemy session per request."""

    async with AsyncSessionLocal() as session:
        yield session
