"""
Async SQLAlchemy access to the recipient store.

SQLite through aiosqlite by default (DATABASE_URL); PostgreSQL URLs are
switched to the asyncpg driver. The engine is created lazily and shared by
the whole process.
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import get_database_url
from .tables import metadata

_engine: AsyncEngine | None = None


def _async_url(database_url: str) -> str:
    """Pick the async driver for plain postgresql:// URLs."""
    if database_url.startswith("postgresql://"):
        return "postgresql+asyncpg://" + database_url[len("postgresql://"):]
    return database_url


def _engine_options(database_url: str) -> dict:
    options = {"echo": os.environ.get("SQL_ECHO", "").lower() == "true"}
    # SQLite gets SQLAlchemy's default pool; sizing only applies to servers
    if not database_url.startswith("sqlite"):
        options.update(pool_size=5, max_overflow=10, pool_timeout=30, pool_recycle=1800)
    return options


def get_engine() -> AsyncEngine:
    """The shared engine, created on first call."""
    global _engine
    if _engine is None:
        url = _async_url(get_database_url())
        _engine = create_async_engine(url, **_engine_options(url))
    return _engine


def set_engine(engine: AsyncEngine | None) -> None:
    """Install an engine (tests point this at a temporary SQLite file)."""
    global _engine
    _engine = engine


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """Read-only work: a pooled connection, no transaction management."""
    async with get_engine().connect() as conn:
        yield conn


@asynccontextmanager
async def get_transaction() -> AsyncGenerator[AsyncConnection, None]:
    """
    A connection inside a transaction.

    Commits when the block exits normally, rolls back if it raises.
    """
    async with get_engine().begin() as conn:
        yield conn


async def create_tables() -> None:
    """Create any missing tables. Runs once at startup."""
    async with get_transaction() as conn:
        await conn.run_sync(metadata.create_all)


async def close_engine() -> None:
    """Dispose of pooled connections at shutdown."""
    global _engine
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
