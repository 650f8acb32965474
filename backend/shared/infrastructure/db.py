"""
Database configuration and session management.
Uses SQLAlchemy 2.0 asyncio sessions: every store round-trip is awaited.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shared.config.settings import DATABASE_URL, settings


def create_engine_from_url(url: str, **kwargs) -> AsyncEngine:
    """
    Create the async engine for the configured store.

    Pooling is left to SQLAlchemy's defaults for the dialect.
    """
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_recycle", 1800)
    return create_async_engine(url, echo=settings.database_echo, **kwargs)


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Session factory used by the app and by tests.

    expire_on_commit=False keeps committed entities readable after commit
    without an implicit (and, under asyncio, forbidden) lazy refresh.
    """
    return async_sessionmaker(
        bind=bind,
        autoflush=False,
        expire_on_commit=False,
    )


engine = create_engine_from_url(DATABASE_URL)

# Session factory
SessionLocal = create_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency for database sessions.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            return (await db.scalars(select(Item))).all()

    The session is automatically closed after the request completes.
    """
    async with SessionLocal() as db:
        yield db


async def safe_commit(db: AsyncSession) -> None:
    """
    Commit with automatic rollback on failure.

    Raises the original exception after rolling back.
    """
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
