"""
Heritage Numérique Backend — Database Session Management
=========================================================

What:  Async SQLAlchemy engine, session factory, declarative base, and the
       FastAPI session dependency.
How:   Creates an async engine with connection pooling, provides a session
       dependency that commits on success and rolls back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling Strategy:
    pool_size=20:      Persistent connections for normal load
    max_overflow=10:   Temporary connections for traffic spikes (total max = 30)
    pool_pre_ping:     Validates connections before use
    pool_recycle=3600: Recycles connections every hour

    SQLite URLs (tests, local experiments) use SQLAlchemy's default pool for
    the dialect, which does not accept the sizing arguments.
"""

from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from heritage.config import settings


def _engine_options() -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": settings.log_level == "DEBUG"}
    if not settings.is_sqlite:
        options.update(
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=settings.db_pool_pre_ping,
            pool_recycle=3600,
        )
    return options


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit, so response
# serialization never triggers a lazy refresh outside the session
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Registers every model with a single metadata object, which Alembic
    reads for migrations and the test suite uses for create_all().
    """
    pass


def utcnow() -> datetime:
    """Timezone-aware "now" used for every timestamp default."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime read back from the database to aware UTC.

    PostgreSQL returns aware values for TIMESTAMP WITH TIME ZONE; SQLite
    drops the offset. Comparisons against utcnow() need both sides aware.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (services flush, never commit)
        3. On success: commits the transaction
        4. On error: rolls back the transaction and re-raises
        5. Always: closes the session (returns connection to pool)

    Example usage in a route:
        @router.get("/families/mine")
        async def my_families(db: AsyncSession = Depends(get_db_session)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Close all pooled connections. Called during application shutdown."""
    await engine.dispose()
