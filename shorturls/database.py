"""Database engine and session management for the URL shortener.

This module provides SQLAlchemy async engine setup, session factories
and database lifecycle operations. SQLite (via aiosqlite) is the default
backend; PostgreSQL (via asyncpg) works by pointing ``DATABASE_URL`` at it.

Flow Diagram — Database Lifecycle
=================================
::
    ┌──────────────┐
    │ ServiceManager│
    │ initialize() │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ create_engine│
    │ _from_url()  │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ init_db()    │
    │ create tables│
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ LinkStore    │
    │ sessions     │
    └──────┬───────┘
           ▼
    ┌──────────────┐
    │ close_db()   │
    │ dispose      │
    └──────────────┘

How to Use
===========
**Step 1 — Create the engine on startup**::
    engine = create_engine_from_url(settings.DATABASE_URL)
    await init_db(engine)

**Step 2 — Hand a session factory to the store**::
    store = LinkStore(create_session_factory(engine))

**Step 3 — Cleanup on shutdown**::
    await close_db(engine)

Key Behaviours
===============
- SQLite connections turn on ``PRAGMA foreign_keys`` so click rows cascade
  with their link and cannot reference a missing shortcode.
- Connection pool sizing only applies to server databases.
- ``UTCDateTime`` stores every instant in UTC and always returns aware
  datetimes, so expiry checks compare real instants, never strings.

Classes:
    Base:  SQLAlchemy declarative base for all models.
    UTCDateTime:  Column type for timezone-aware UTC instants.

Functions:
    create_engine_from_url():  Builds the async engine.
    create_session_factory():  Builds an ``async_sessionmaker``.
    init_db():  Creates all tables on startup.
    close_db():  Disposes the engine on shutdown.
"""

import datetime
from pathlib import Path

from sqlalchemy import DateTime, event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

__all__ = [
    "Base",
    "UTCDateTime",
    "create_engine_from_url",
    "create_session_factory",
    "init_db",
    "close_db",
]


class Base(DeclarativeBase):
    pass


class UTCDateTime(TypeDecorator):
    """Timezone-aware datetime column normalised to UTC.

    SQLite has no native timezone support and hands back naive values, so
    the offset is re-attached on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError(f"naive datetime not allowed: {value!r}")
        value = value.astimezone(datetime.timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(datetime.timezone.utc)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine_from_url(database_url: str, echo: bool = False) -> AsyncEngine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        engine = create_async_engine(database_url, echo=echo)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_async_engine(
        database_url,
        echo=echo,
        pool_size=20,
        max_overflow=10,
        pool_pre_ping=True,
    )


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def init_db(engine: AsyncEngine) -> None:
    # Imported for its side effect of registering the tables on Base.metadata
    from shorturls import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine) -> None:
    await engine.dispose()
