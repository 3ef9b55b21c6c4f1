# authflow/app/db/session.py
"""
Async database session management for SQLAlchemy.

The engine and the session factory are built once by the application
lifespan and kept on ``app.state``; request handlers receive a session
through the ``get_db`` dependency.

Production considerations:
- Uses asyncpg for PostgreSQL
- Uses aiosqlite for SQLite (local development and tests)
- Pool settings differ for SQLite (no pooling) vs PostgreSQL
"""
from typing import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool

from authflow.app.core.config import Settings


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """
    Create and configure the async SQLAlchemy engine.

    SQLite:
    - NullPool (SQLite doesn't support connection pooling well)
    - check_same_thread=False for async compatibility

    PostgreSQL:
    - AsyncAdaptedQueuePool with pre-ping and periodic recycling
    """
    if settings.is_sqlite:
        return create_async_engine(
            settings.DATABASE_URL,
            echo=settings.DATABASE_ECHO,
            poolclass=NullPool,
            connect_args={"check_same_thread": False},
        )

    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DATABASE_ECHO,
        poolclass=AsyncAdaptedQueuePool,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_recycle=300,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: model attributes stay readable after commit
    # autoflush=False: writes happen only on explicit flush/commit
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency generator for database sessions.

    Usage in FastAPI endpoints:
        @router.post("/signup")
        async def signup(db: AsyncSession = Depends(get_db)):
            ...

    One session per request, closed after the response is produced.
    Nothing is committed automatically; services commit explicitly.
    """
    session_factory: async_sessionmaker[AsyncSession] = request.app.state.session_factory
    async with session_factory() as session:
        yield session
