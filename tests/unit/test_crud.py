import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from evdispatch.db import crud
from evdispatch.models import Base


@pytest_asyncio.fixture
async def db():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


async def test_create_and_get_service_request(db):
    req = await crud.create_service_request(
        db, "Dead battery", "Mike Driver", 30.2669, -97.7729, type="charging", assigned_staff=["w1"],
    )
    assert req.id is not None
    assert req.status == "pending"

    fetched = await crud.get_service_request(db, req.id)
    assert fetched is not None
    assert fetched.title == "Dead battery"
    assert fetched.assigned_staff == ["w1"]
    assert fetched.messages == []


async def test_list_service_requests_by_tenant(db):
    await crud.create_service_request(db, "A", "Ann", 1.0, 1.0, tenant_id="t1")
    await crud.create_service_request(db, "B", "Bea", 1.0, 1.0, tenant_id="t2")
    assert [r.title for r in await crud.list_service_requests(db, "t1")] == ["A"]
    assert len(await crud.list_service_requests(db)) == 2


async def test_update_service_request_skips_none(db):
    req = await crud.create_service_request(db, "A", "Ann", 1.0, 1.0, assigned_staff=["w1"])
    updated = await crud.update_service_request(db, req, assigned_staff=["w2"], status=None)
    assert updated.assigned_staff == ["w2"]
    assert updated.status == "pending"


async def test_transition_status_is_compare_and_set(db):
    req = await crud.create_service_request(db, "A", "Ann", 1.0, 1.0)
    assert await crud.transition_status(db, req.id, "pending", "scheduled") is True
    assert await crud.transition_status(db, req.id, "pending", "scheduled") is False
    assert await crud.transition_status(db, "missing", "pending", "scheduled") is False


async def test_list_admins_only_returns_active_admin_roles(db):
    await crud.create_staff_user(db, "Dana", role="admin", tenant_id="t1")
    await crud.create_staff_user(db, "Sam", role="super_admin", tenant_id="t1")
    await crud.create_staff_user(db, "Riley", role="worker", tenant_id="t1")
    await crud.create_staff_user(db, "Other", role="admin", tenant_id="t2")

    names = sorted(a.full_name for a in await crud.list_admins(db, "t1"))
    assert names == ["Dana", "Sam"]


async def test_notifications_round_trip(db):
    user = await crud.create_staff_user(db, "Riley", role="worker")
    await crud.create_notifications(db, [
        {"user_id": user.id, "type": "message", "title": "Hi", "message": "m", "related_id": None},
    ])
    [n] = await crud.list_notifications_for_user(db, user.id)
    assert n.read is False
    assert n.title == "Hi"
    assert await crud.list_notifications_for_user(db, "someone-else") == []
