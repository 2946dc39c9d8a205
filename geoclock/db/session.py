"""
Async SQLAlchemy engine & session factory.

PostgreSQL (asyncpg) in production; SQLite (aiosqlite) for local runs and
tests, where pooling options do not apply.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from geoclock.core.config import settings

engine_args: dict = {"echo": False}

if settings.DATABASE_URL.startswith("postgresql"):
    engine_args.update(
        {
            "pool_pre_ping": True,
            "pool_size": 20,
            "max_overflow": 10,
            "pool_recycle": 300,
        }
    )

engine = create_async_engine(settings.DATABASE_URL, **engine_args)

# expire_on_commit=False: handlers read committed rows after the commit
async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
