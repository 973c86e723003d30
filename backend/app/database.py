"""
PlaceShare Backend - Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, FastAPI session dependency
       and the explicit Transaction capability used for multi-row writes.
How:   Creates an async engine with connection pooling, provides a session
       dependency that auto-commits on success and auto-rolls-back on error.
Who:   Used by route handlers via FastAPI's dependency injection system and
       by the place service for its all-or-nothing writes.
When:  Engine is created at module import; sessions are created per-request.

Connection Pooling:
    pool_size=20, max_overflow=10 → at most 30 connections
    pool_pre_ping validates connections before use
    pool_recycle=3600 recycles connections every hour
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

logger = logging.getLogger(__name__)


# ── Engine Configuration ──────────────────────────────────────────────────
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=settings.db_pool_pre_ping,
    pool_recycle=3600,
    echo=settings.log_level == "DEBUG",
)

# ── Session Factory ───────────────────────────────────────────────────────
# expire_on_commit=False: attributes stay readable after commit without a
# new round-trip (lazy loads are not possible outside the async context)
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Base Model ────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy ORM models.

    Every model registers with this metadata, which Alembic reads for
    migrations and the test suite uses for `create_all`.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    How it works:
        1. Creates a new session from the factory
        2. Yields it to the route handler
        3. On success: commits anything still pending
        4. On error: rolls back the transaction
        5. Always: closes the session (returns connection to pool)

    Writes that must be atomic across tables open their own
    `begin_transaction()` block inside the request; this outer commit is then
    a no-op for them.
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


# ── Transaction Capability ────────────────────────────────────────────────
class Transaction:
    """
    An open all-or-nothing unit of work over one session.

    Passed explicitly to every write that must land together (a place row and
    its owner link). Holders write through `session`; only the
    `begin_transaction()` block that created it decides commit or abort.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.finished = False

    async def commit(self) -> None:
        await self.session.commit()
        self.finished = True

    async def abort(self) -> None:
        await self.session.rollback()
        self.finished = True


@asynccontextmanager
async def begin_transaction(session: AsyncSession) -> AsyncIterator[Transaction]:
    """
    Run a block of writes as one transaction.

    Commits when the block exits cleanly. Any exception aborts the
    transaction (rolling back every write made through it) before the
    exception propagates, so no partial state is ever committed.

    Usage:
        async with begin_transaction(db) as tx:
            tx.session.add(place)
            await link_on_create(tx, user, place)
    """
    tx = Transaction(session)
    try:
        yield tx
    except BaseException:
        if not tx.finished:
            await tx.abort()
        raise
    else:
        if not tx.finished:
            await tx.commit()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def dispose_engine() -> None:
    """Closes all pooled connections. Called during application shutdown."""
    await engine.dispose()
