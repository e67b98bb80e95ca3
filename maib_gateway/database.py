"""
Database engine and session management.

Payments are written by the return callback and by merchant operations
on separate sessions, so SQLite connections wait on a held write lock
instead of failing with "database is locked".
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from maib_gateway.config import settings
from maib_gateway.models.payment import Base

SQLITE_LOCK_TIMEOUT = 15  # Seconds


def build_engine(url: str) -> AsyncEngine:
    connect_args = {"timeout": SQLITE_LOCK_TIMEOUT} if url.startswith("sqlite") else {}
    return create_async_engine(url, echo=False, connect_args=connect_args)


def build_sessionmaker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Handlers return payments after committing; keep them readable.
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)
async_session = build_sessionmaker(engine)


async def init_db(bind: AsyncEngine = engine) -> None:
    """Create the orders, payments and audit tables if they don't exist."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(bind: AsyncEngine = engine) -> None:
    await bind.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with async_session() as session:
        yield session
