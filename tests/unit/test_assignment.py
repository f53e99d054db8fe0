import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from evdispatch.db import crud
from evdispatch.errors import NotFoundError, PersistenceError, PreconditionError
from evdispatch.schemas import GeoCoordinates
from evdispatch.services.acceptance_log import AcceptanceLogStore
from evdispatch.services.assignment import AssignmentStateMachine, can_accept
from tests.helpers import NEAR_AUSTIN, make_request

COORDS = GeoCoordinates(latitude=NEAR_AUSTIN[0], longitude=NEAR_AUSTIN[1], accuracy=6.0)


@pytest.fixture
def machine(session_factory):
    return AssignmentStateMachine(session_factory, AcceptanceLogStore(session_factory))


def _job(status="pending", staff=("w1",)):
    return SimpleNamespace(id="job", status=status, assigned_staff=list(staff))


def _user(uid="w1", role="worker"):
    return SimpleNamespace(id=uid, role=role, full_name="Test User")


@pytest.mark.parametrize("job,user,expected", [
    (_job(), _user(), True),
    (_job(), _user("w2"), False),
    (_job(), _user("boss", "admin"), True),
    (_job(), _user("root", "super_admin"), True),
    (_job(), _user("cust", "user"), False),
    (_job(status="scheduled"), _user(), False),
    (_job(status="completed"), _user("boss", "admin"), False),
    (_job(status="canceled"), _user(), False),
    (_job(), None, False),
])
def test_can_accept(job, user, expected):
    assert can_accept(job, user) is expected


async def test_accept_appends_log_then_schedules(machine, session_factory, staff):
    worker = staff["worker"]
    job = await make_request(session_factory, assigned_staff=[worker.id])

    result = await machine.accept(job.id, worker, COORDS, "android")

    assert result.request.status == "scheduled"
    [log] = result.request.acceptance_logs
    assert log.coordinates == COORDS
    assert log.platform == "android"
    assert log.accepted_by.id == worker.id
    assert log.accepted_by.name == "Riley Roadside"


async def test_accept_notifies_every_admin(machine, session_factory, staff):
    worker = staff["worker"]
    job = await make_request(session_factory, assigned_staff=[worker.id])

    result = await machine.accept(job.id, worker, COORDS)

    recipients = [r for r, _ in result.notifications]
    assert sorted(recipients) == sorted([staff["admin"].id, staff["super"].id])
    payload = result.notifications[0][1]
    assert payload.type == "task_assignment"
    assert payload.title == "Assignment Accepted"
    assert payload.message == "Riley Roadside accepted: Flat tire on I-35"
    assert payload.related_id == job.id


async def test_admin_may_accept_without_assignment(machine, session_factory, staff):
    job = await make_request(session_factory, assigned_staff=[staff["worker"].id])
    result = await machine.accept(job.id, staff["admin"], COORDS)
    assert result.request.status == "scheduled"


async def test_unassigned_worker_is_refused_and_nothing_is_logged(machine, session_factory, staff):
    job = await make_request(session_factory, assigned_staff=[staff["worker"].id])

    with pytest.raises(PreconditionError):
        await machine.accept(job.id, staff["worker2"], COORDS)

    assert await machine.store.list_for(job.id) == []


async def test_second_accept_fails(machine, session_factory, staff):
    worker = staff["worker"]
    job = await make_request(session_factory, assigned_staff=[worker.id])

    await machine.accept(job.id, worker, COORDS)
    with pytest.raises(PreconditionError) as exc:
        await machine.accept(job.id, worker, COORDS)

    assert "scheduled" in exc.value.message
    assert len(await machine.store.list_for(job.id)) == 1


async def test_racing_accepts_schedule_exactly_once(machine, session_factory, staff):
    w1, w2 = staff["worker"], staff["worker2"]
    job = await make_request(session_factory, assigned_staff=[w1.id, w2.id])

    results = await asyncio.gather(
        machine.accept(job.id, w1, COORDS),
        machine.accept(job.id, w2, COORDS),
        return_exceptions=True,
    )

    wins = [r for r in results if not isinstance(r, Exception)]
    losses = [r for r in results if isinstance(r, Exception)]
    assert len(wins) == 1
    assert len(losses) == 1 and isinstance(losses[0], PreconditionError)
    assert wins[0].request.status == "scheduled"
    assert len(await machine.store.list_for(job.id)) == 1


async def test_accept_unknown_job(machine, staff):
    with pytest.raises(NotFoundError):
        await machine.accept("01NOSUCHJOB00000000000000", staff["admin"], COORDS)


async def test_decline_removes_only_the_decliner(machine, session_factory, staff):
    w1, w2 = staff["worker"], staff["worker2"]
    job = await make_request(session_factory, assigned_staff=[w1.id, w2.id, "external-7"])

    result = await machine.decline(job.id, w1)

    assert result.request.assigned_staff == [w2.id, "external-7"]
    assert result.request.status == "pending"
    assert {r for r, _ in result.notifications} == {staff["admin"].id, staff["super"].id}
    assert result.notifications[0][1].title == "Assignment Declined"
    assert result.notifications[0][1].message == "Riley Roadside declined: Flat tire on I-35"


async def test_decline_by_unassigned_user_is_a_noop(machine, session_factory, staff):
    job = await make_request(session_factory, assigned_staff=[staff["worker"].id])

    result = await machine.decline(job.id, staff["worker2"])

    assert result.request.assigned_staff == [staff["worker"].id]
    assert result.notifications == []


async def test_assign_staff_notifies_only_new_members(machine, session_factory, staff):
    w1, w2 = staff["worker"], staff["worker2"]
    job = await make_request(session_factory, assigned_staff=[w1.id])

    result = await machine.assign_staff(job.id, [w1.id, w2.id, w2.id])

    assert result.request.assigned_staff == [w1.id, w2.id]
    assert [r for r, _ in result.notifications] == [w2.id]
    payload = result.notifications[0][1]
    assert payload.title == "New Task Assignment"
    assert payload.message == "You have been assigned to: Flat tire on I-35"


async def test_assign_staff_can_clear_assignment(machine, session_factory, staff):
    job = await make_request(session_factory, assigned_staff=[staff["worker"].id])
    result = await machine.assign_staff(job.id, [])
    assert result.request.assigned_staff == []
    assert result.notifications == []


async def test_admin_message_notifies_assigned_staff(machine, session_factory, staff):
    w1, w2 = staff["worker"], staff["worker2"]
    job = await make_request(session_factory, assigned_staff=[w1.id, w2.id])

    result = await machine.add_message(job.id, "  Customer is at the gas station  ", "admin")

    [message] = result.request.messages
    assert message.text == "Customer is at the gas station"
    assert message.sender == "admin"
    assert [r for r, _ in result.notifications] == [w1.id, w2.id]
    assert result.notifications[0][1].type == "message"


async def test_user_message_notifies_nobody(machine, session_factory, staff):
    job = await make_request(session_factory, assigned_staff=[staff["worker"].id])
    result = await machine.add_message(job.id, "On my way", "user")
    assert len(result.request.messages) == 1
    assert result.notifications == []


async def test_empty_message_is_rejected(machine, session_factory):
    job = await make_request(session_factory)
    with pytest.raises(PreconditionError):
        await machine.add_message(job.id, "   ")


async def test_accept_storage_failure_leaves_no_log(machine, session_factory, staff, monkeypatch):
    worker = staff["worker"]
    job = await make_request(session_factory, assigned_staff=[worker.id])

    async def broken_transition(*args, **kwargs):
        raise OperationalError("UPDATE service_requests", {}, Exception("database is locked"))

    monkeypatch.setattr(crud, "transition_status", broken_transition)

    with pytest.raises(PersistenceError):
        await machine.accept(job.id, worker, COORDS)

    assert await machine.store.list_for(job.id) == []
    async with session_factory() as db:
        assert (await crud.get_service_request(db, job.id)).status == "pending"
