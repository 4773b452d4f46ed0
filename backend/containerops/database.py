"""Database engine, session factory, and declarative base.

A single relational store backs the whole service.  Every request gets one
AsyncSession from get_db(); the session commits when the handler returns
and rolls back on any exception, so all ledger appends and entity
mutations of one logical operation land together or not at all.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from containerops.config import settings


def _engine_options(url: str) -> dict:
    # SQLite (local tooling) has no connection pool sizing
    if url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {"echo": settings.debug, "pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


# ── Base class ──────────────────────────────────────────────

class Base(DeclarativeBase):
    """Declarative base for every ledger and entity table."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a session wrapped in one transaction per request."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
