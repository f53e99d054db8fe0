"""Async SQLAlchemy engine and session factory."""

from __future__ import annotations

from pathlib import Path
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from evdispatch.config import get_settings

_SQLITE_PREFIX = "sqlite+aiosqlite:///"


def make_engine(database_url: str) -> AsyncEngine:
    """Create an engine, making the parent directory of a file-backed SQLite DB."""
    if database_url.startswith(_SQLITE_PREFIX):
        db_path = database_url[len(_SQLITE_PREFIX):]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    return create_async_engine(database_url, echo=False)


def make_session_factory(eng: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(eng, class_=AsyncSession, expire_on_commit=False)


engine = make_engine(get_settings().database_url)
async_session_factory = make_session_factory(engine)
