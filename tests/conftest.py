"""Shared fixtures: a throwaway SQLite database per test and seeding helpers."""

from __future__ import annotations

import pytest_asyncio

from evdispatch.config import Settings
from evdispatch.db import crud
from evdispatch.db.engine import make_engine, make_session_factory
from evdispatch.models import Base
from evdispatch.services.dispatch import DispatchContext


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    # A file DB so concurrent sessions see the same data.
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield make_session_factory(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def ctx(session_factory):
    context = DispatchContext(session_factory, Settings())
    yield context
    await context.close()


@pytest_asyncio.fixture
async def staff(session_factory):
    """An admin, a super admin and two workers."""
    async with session_factory() as db:
        return {
            "admin": await crud.create_staff_user(db, "Dana Dispatcher", role="admin"),
            "super": await crud.create_staff_user(db, "Sam Super", role="super_admin"),
            "worker": await crud.create_staff_user(db, "Riley Roadside", role="worker"),
            "worker2": await crud.create_staff_user(db, "Jordan Charger", role="worker"),
        }
