"""
Database engine and session management.

One async engine (and connection pool) per process, one session per request.
"""
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ielts_backend.config import settings
from ielts_backend.models.base import Base

engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """
    FastAPI dependency that yields a database session.

    The session is closed when the request finishes; callers commit explicitly.
    """
    async with AsyncSessionLocal() as session:
        yield session


async def init_models():
    """Create all tables that do not exist yet."""
    # Import models so they register with Base.metadata
    from ielts_backend.models import user  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
