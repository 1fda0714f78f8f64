"""Async engine, session factory and the get_db dependency.

PostgreSQL in production (schema via Alembic); SQLite for local runs and tests.
"""

from collections.abc import AsyncGenerator
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from plzdm.config import get_settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    if not url.startswith("sqlite"):
        return create_async_engine(url, echo=echo, pool_pre_ping=True)

    if url.startswith("sqlite:///"):
        url = url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    db_path = url.split("///")[-1]
    connect_args = {"check_same_thread": False}
    if db_path in ("", ":memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        return create_async_engine(url, echo=echo, connect_args=connect_args, poolclass=StaticPool)

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(url, echo=echo, connect_args=connect_args)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request.

    The RecordStore commits each write itself, so nothing is committed here.
    """
    async with async_session_factory() as session:
        yield session
