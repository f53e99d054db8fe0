"""Job lifecycle transitions triggered by staff accept / decline / assign.

Transitions never send anything themselves: each returns the list of
``(recipient_id, payload)`` pairs for :mod:`evdispatch.services.notifications`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ulid import ULID

from evdispatch.db import crud
from evdispatch.errors import NotFoundError, PersistenceError, PreconditionError
from evdispatch.schemas.geo import GeoCoordinates
from evdispatch.schemas.notification import NotificationPayload
from evdispatch.schemas.service_request import ServiceRequestRead
from evdispatch.services.acceptance_log import AcceptanceLogStore, new_acceptance_log

logger = logging.getLogger(__name__)


@dataclass
class TransitionResult:
    request: ServiceRequestRead
    notifications: list[tuple[str, NotificationPayload]] = field(default_factory=list)


def can_accept(job, user) -> bool:
    if user is None or job.status != "pending":
        return False
    return user.id in (job.assigned_staff or []) or user.role in crud.ADMIN_ROLES


class AssignmentStateMachine:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession], store: AcceptanceLogStore):
        self._session_factory = session_factory
        self.store = store

    can_accept = staticmethod(can_accept)

    # ── transitions ──────────────────────────────────────

    async def accept(self, job_id: str, user, coordinates: GeoCoordinates, platform: str = "unknown") -> TransitionResult:
        async with self.store.guard(job_id):
            job = await self._load(job_id)
            if not can_accept(job, user):
                raise PreconditionError(self._refusal(job, user))

            entry = new_acceptance_log(coordinates, platform, user)
            await self.store.append_locked(job_id, entry, advance_status=("pending", "scheduled"))
            job = await self._load(job_id)

        logger.info("Request %s accepted by %s (log %s)", job_id, user.id, entry.id)
        name = user.full_name or "Staff member"
        payload = NotificationPayload(
            type="task_assignment",
            title="Assignment Accepted",
            message=f"{name} accepted: {job.title}",
            related_id=job_id,
        )
        return TransitionResult(await self._read(job), await self._to_admins(job, payload))

    async def decline(self, job_id: str, user) -> TransitionResult:
        async with self.store.guard(job_id):
            job = await self._load(job_id)
            staff = list(job.assigned_staff or [])
            if user.id not in staff:
                return TransitionResult(await self._read(job))
            job = await self._update(job_id, assigned_staff=[s for s in staff if s != user.id])

        logger.info("Request %s declined by %s", job_id, user.id)
        name = user.full_name or "Staff member"
        payload = NotificationPayload(
            type="task_assignment",
            title="Assignment Declined",
            message=f"{name} declined: {job.title}",
            related_id=job_id,
        )
        return TransitionResult(await self._read(job), await self._to_admins(job, payload))

    async def assign_staff(self, job_id: str, staff_ids) -> TransitionResult:
        new_staff = list(dict.fromkeys(staff_ids))
        async with self.store.guard(job_id):
            job = await self._load(job_id)
            previous = set(job.assigned_staff or [])
            job = await self._update(job_id, assigned_staff=new_staff)

        added = [s for s in new_staff if s not in previous]
        logger.info("Request %s assigned to %s (new: %s)", job_id, new_staff, added)
        payload = NotificationPayload(
            type="task_assignment",
            title="New Task Assignment",
            message=f"You have been assigned to: {job.title}",
            related_id=job_id,
        )
        return TransitionResult(await self._read(job), [(s, payload) for s in added])

    async def add_message(self, job_id: str, text: str, sender: str = "admin") -> TransitionResult:
        text = text.strip()
        if not text:
            raise PreconditionError("Message text is empty")
        message = {
            "id": str(ULID()),
            "text": text,
            "sender": sender,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        async with self.store.guard(job_id):
            job = await self._load(job_id)
            job = await self._update(job_id, messages=[*(job.messages or []), message])

        notifications = []
        if sender == "admin":
            payload = NotificationPayload(type="message", title=f"New Message: {job.title}", message=text, related_id=job_id)
            notifications = [(s, payload) for s in job.assigned_staff or []]
        return TransitionResult(await self._read(job), notifications)

    # ── helpers ──────────────────────────────────────────

    @staticmethod
    def _refusal(job, user) -> str:
        if job.status != "pending":
            return f"Request {job.id} is {job.status}, only pending requests can be accepted"
        return f"User {getattr(user, 'id', None)} is not assigned to request {job.id}"

    async def _run(self, fn, *args):
        try:
            async with self._session_factory() as db:
                return await fn(db, *args)
        except SQLAlchemyError as exc:
            logger.exception("Storage failure in %s", fn.__name__)
            raise PersistenceError("Service request store unavailable") from exc

    async def _load(self, job_id: str):
        job = await self._run(crud.get_service_request, job_id)
        if job is None:
            raise NotFoundError(f"Service request {job_id} not found")
        return job

    async def _update(self, job_id: str, **fields):
        async def _apply(db, job_id):
            job = await crud.get_service_request(db, job_id)
            if job is None:
                raise NotFoundError(f"Service request {job_id} not found")
            return await crud.update_service_request(db, job, **fields)
        return await self._run(_apply, job_id)

    async def _to_admins(self, job, payload: NotificationPayload) -> list[tuple[str, NotificationPayload]]:
        admins = await self._run(crud.list_admins, job.tenant_id)
        return [(a.id, payload) for a in admins]

    async def _read(self, job) -> ServiceRequestRead:
        return ServiceRequestRead.from_row(job, await self.store.list_for(job.id))
