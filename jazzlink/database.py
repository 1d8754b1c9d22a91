"""
Jazzlink – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from jazzlink.config import settings


def make_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Build an async engine with the per-backend connection options."""
    engine_kwargs = {
        "echo": echo,
        "future": True,
    }

    # If using PostgreSQL behind PgBouncer (transaction mode), disable
    # prepared statement caching.
    if "postgresql" in url:
        engine_kwargs["connect_args"] = {"statement_cache_size": 0}
    # SQLite serialises writers with a file lock; wait for it instead of
    # failing fast with "database is locked".
    elif url.startswith("sqlite"):
        engine_kwargs["connect_args"] = {"timeout": settings.DB_BUSY_TIMEOUT}

    return create_async_engine(url, **engine_kwargs)


def make_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ── Engine ──
engine = make_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# ── Session factory ──
async_session = make_session_factory(engine)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async database session, auto-closed on exit."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
