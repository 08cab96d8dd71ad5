"""
WiseNotes API — Database Session Management
============================================

What:  Async SQLAlchemy engine, session factory, and FastAPI dependency.
Why:   Centralizes all database connection logic in one place.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system.
When:  Engine is created at module import; sessions are created per-request.

Transaction scope:
    One session per request. Every load, mutation and flush of a single
    Notebook/Note operation runs inside that session's transaction, so an
    operation is either fully committed or fully rolled back. Write
    operations commit themselves before returning: the commit after `yield`
    in get_db_session runs only once the response is sent, too late to
    report a failure to the client. Concurrent writers are serialized by
    the store's own row locking.

SQLite:
    Pool sizing arguments are skipped and `PRAGMA foreign_keys=ON` is issued
    on every new connection so `ON DELETE CASCADE` on notes.notebook_id holds.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from wisenotes.config import settings


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


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """Turns on FK enforcement for each DBAPI connection of a SQLite engine."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(settings.database_url, **_engine_options())
if settings.is_sqlite:
    enable_sqlite_foreign_keys(engine)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


# Primary keys are 32-bit INTEGER columns on every supported store
MAX_ROW_ID = 2**31 - 1


def is_storable_id(value: int) -> bool:
    """False for ids no row can have; such values must never reach the driver."""
    return 1 <= value <= MAX_ROW_ID


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler (the handler performs queries)
        3. On success: commits whatever a read-only handler left open
           (writes are already committed by the services)
        4. On error: rolls back the transaction (no partial writes)
        5. Always: closes the session (returns connection to pool)

    Raises:
        Any exception is re-raised after rollback so the global error
        handler can respond.
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
async def create_schema(bind: AsyncEngine = engine) -> None:
    """
    What:  Creates any missing tables for the registered models.
    When:  During startup when DB_CREATE_ALL is enabled, and in tests.
    """
    # Registers Notebook and Note with Base.metadata
    import wisenotes.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """
    What:  Gracefully closes all connections in the pool.
    When:  Called during application shutdown (lifespan handler).
    """
    await engine.dispose()
