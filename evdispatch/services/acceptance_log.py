"""Append-only store of job acceptance logs.

Appends for one job are serialized by an in-process lock per job id; the
``(request_id, sequence)`` unique constraint catches writers in other
processes. Every storage failure surfaces as :class:`PersistenceError`.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from ulid import ULID

from evdispatch.db import crud
from evdispatch.errors import NotFoundError, PersistenceError, PreconditionError
from evdispatch.models import AcceptanceLog, ServiceRequest
from evdispatch.schemas.acceptance_log import AcceptedBy, JobAcceptanceLog
from evdispatch.schemas.geo import GeoCoordinates
from evdispatch.services.geo_capture import validate_coordinates

logger = logging.getLogger(__name__)


def new_acceptance_log(coordinates: GeoCoordinates, platform: str = "unknown", user=None) -> JobAcceptanceLog:
    """Build a log entry for an acceptance happening now."""
    accepted_by = None
    if user is not None:
        accepted_by = AcceptedBy(id=user.id, name=user.full_name, role=user.role)
    return JobAcceptanceLog(
        id=str(ULID()),
        accepted_at=datetime.now(timezone.utc),
        accepted_by=accepted_by,
        coordinates=coordinates,
        platform=platform,
    )


class AcceptanceLogStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def guard(self, job_id: str):
        """Hold the per-job lock. Use :meth:`append_locked` inside it.

        The lock is dropped once no task holds or waits for it.
        """
        lock = self._locks.get(job_id)
        if lock is None:
            lock = self._locks[job_id] = asyncio.Lock()
        self._holders[job_id] = self._holders.get(job_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[job_id] -= 1
            if not self._holders[job_id]:
                del self._holders[job_id]
                del self._locks[job_id]

    async def append(self, job_id: str, entry: JobAcceptanceLog) -> JobAcceptanceLog:
        async with self.guard(job_id):
            return await self.append_locked(job_id, entry)

    async def append_locked(
        self, job_id: str, entry: JobAcceptanceLog, advance_status: tuple[str, str] | None = None,
    ) -> JobAcceptanceLog:
        """Append ``entry``; the caller must hold ``guard(job_id)``.

        ``advance_status=(from_status, to_status)`` moves the request in the
        same transaction as the insert. If the request is no longer in
        ``from_status`` nothing is written and :class:`PreconditionError`
        is raised.
        """
        coords = validate_coordinates(entry.coordinates.latitude, entry.coordinates.longitude, entry.coordinates.accuracy)
        accepted_by = entry.accepted_by or AcceptedBy()
        try:
            async with self._session_factory() as db:
                if await db.get(ServiceRequest, job_id) is None:
                    raise NotFoundError(f"Service request {job_id} not found")
                last = await db.scalar(
                    select(func.max(AcceptanceLog.sequence)).where(AcceptanceLog.request_id == job_id)
                )
                db.add(AcceptanceLog(
                    id=entry.id,
                    request_id=job_id,
                    sequence=(last or 0) + 1,
                    accepted_at=entry.accepted_at,
                    accepted_by_id=accepted_by.id,
                    accepted_by_name=accepted_by.name,
                    accepted_by_role=accepted_by.role,
                    latitude=coords.latitude,
                    longitude=coords.longitude,
                    accuracy=coords.accuracy,
                    platform=entry.platform,
                ))
                await db.flush()
                if advance_status is not None:
                    from_status, to_status = advance_status
                    if not await crud.transition_status(db, job_id, from_status, to_status, commit=False):
                        await db.rollback()
                        raise PreconditionError(f"Request {job_id} is no longer {from_status}")
                await db.commit()
        except SQLAlchemyError as exc:
            logger.exception("Failed to append acceptance log %s to request %s", entry.id, job_id)
            raise PersistenceError(f"Could not save acceptance log for request {job_id}") from exc

        logger.info("Appended acceptance log %s to request %s", entry.id, job_id)
        return entry

    async def list_for(self, job_id: str) -> list[JobAcceptanceLog]:
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(AcceptanceLog)
                    .where(AcceptanceLog.request_id == job_id)
                    .order_by(AcceptanceLog.sequence)
                )
                rows = result.scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to read acceptance logs for request %s", job_id)
            raise PersistenceError(f"Could not read acceptance logs for request {job_id}") from exc
        return [JobAcceptanceLog.from_row(r) for r in rows]

    async def list_all(self, tenant_id: str | None = None) -> dict[str, list[JobAcceptanceLog]]:
        stmt = select(AcceptanceLog).order_by(AcceptanceLog.request_id, AcceptanceLog.sequence)
        if tenant_id is not None:
            stmt = stmt.join(ServiceRequest, ServiceRequest.id == AcceptanceLog.request_id).where(
                ServiceRequest.tenant_id == tenant_id
            )
        try:
            async with self._session_factory() as db:
                rows = (await db.execute(stmt)).scalars().all()
        except SQLAlchemyError as exc:
            logger.exception("Failed to read acceptance logs")
            raise PersistenceError("Could not read acceptance logs") from exc

        logs: dict[str, list[JobAcceptanceLog]] = {}
        for row in rows:
            logs.setdefault(row.request_id, []).append(JobAcceptanceLog.from_row(row))
        return logs
