"""Dispatch context: the injected object every entry point works through.

It owns no external resources; :meth:`DispatchContext.init` creates the
schema once and :meth:`DispatchContext.close` has nothing to release.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from evdispatch.config import Settings, get_settings
from evdispatch.db import crud
from evdispatch.errors import NotFoundError, PersistenceError
from evdispatch.models import Base
from evdispatch.schemas.acceptance_log import JobAcceptanceLog
from evdispatch.schemas.geo import GeoCoordinates
from evdispatch.schemas.report import MileageReport
from evdispatch.schemas.service_request import DistanceRead, ServiceRequestRead
from evdispatch.services import mileage_report
from evdispatch.services.acceptance_log import AcceptanceLogStore
from evdispatch.services.assignment import AssignmentStateMachine, TransitionResult
from evdispatch.services.geo_capture import PositionProvider, capture_coordinates, validate_coordinates
from evdispatch.services.notifications import ConnectionManager, NotificationDispatcher

logger = logging.getLogger(__name__)


class DispatchContext:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings | None = None,
        connections: ConnectionManager | None = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.store = AcceptanceLogStore(session_factory)
        self.machine = AssignmentStateMachine(session_factory, self.store)
        self.dispatcher = NotificationDispatcher(session_factory, connections)

    async def init(self) -> None:
        async with self.session_factory() as db:
            conn = await db.connection()
            await conn.run_sync(Base.metadata.create_all)
            await db.commit()

    async def close(self) -> None:
        return None

    # ── lookups ──────────────────────────────────────────

    async def get_user(self, user_id: str):
        try:
            async with self.session_factory() as db:
                user = await crud.get_staff_user(db, user_id)
        except SQLAlchemyError as exc:
            raise PersistenceError("Staff directory unavailable") from exc
        if user is None or not user.is_active:
            raise NotFoundError(f"User {user_id} not found")
        return user

    async def get_request(self, job_id: str) -> ServiceRequestRead:
        try:
            async with self.session_factory() as db:
                job = await crud.get_service_request(db, job_id)
        except SQLAlchemyError as exc:
            raise PersistenceError("Service request store unavailable") from exc
        if job is None:
            raise NotFoundError(f"Service request {job_id} not found")
        return ServiceRequestRead.from_row(job, await self.store.list_for(job_id))

    async def acceptance_logs(self, job_id: str) -> list[JobAcceptanceLog]:
        await self.get_request(job_id)
        return await self.store.list_for(job_id)

    # ── operations ───────────────────────────────────────

    async def accept_job(self, job_id: str, user_id: str, coordinates: GeoCoordinates, platform: str = "unknown") -> ServiceRequestRead:
        coords = validate_coordinates(coordinates.latitude, coordinates.longitude, coordinates.accuracy)
        user = await self.get_user(user_id)
        result = await self.machine.accept(job_id, user, coords, platform)
        return await self._deliver(result)

    async def capture_and_accept(self, job_id: str, user_id: str, provider: PositionProvider) -> ServiceRequestRead:
        """Full device-side flow: take a GPS fix, then accept with it."""
        coords = await capture_coordinates(provider)
        return await self.accept_job(job_id, user_id, coords, provider.platform)

    async def decline_job(self, job_id: str, user_id: str) -> ServiceRequestRead:
        user = await self.get_user(user_id)
        return await self._deliver(await self.machine.decline(job_id, user))

    async def assign_staff(self, job_id: str, staff_ids: list[str]) -> ServiceRequestRead:
        return await self._deliver(await self.machine.assign_staff(job_id, staff_ids))

    async def add_message(self, job_id: str, text: str, sender: str = "admin") -> ServiceRequestRead:
        return await self._deliver(await self.machine.add_message(job_id, text, sender))

    async def calculate_distance(self, job_id: str, coordinates: GeoCoordinates) -> DistanceRead:
        coords = validate_coordinates(coordinates.latitude, coordinates.longitude, coordinates.accuracy)
        try:
            async with self.session_factory() as db:
                job = await crud.get_service_request(db, job_id)
        except SQLAlchemyError as exc:
            raise PersistenceError("Service request store unavailable") from exc
        if job is None:
            raise NotFoundError(f"Service request {job_id} not found")
        return mileage_report.calculate_distance(job, coords, self.settings.report.km_to_miles)

    async def get_mileage_report(
        self, status: str | None = None, search: str = "", sort_by: str | None = None, tenant_id: str | None = None,
    ) -> MileageReport:
        entries = await mileage_report.load_entries(
            self.session_factory, self.store, tenant_id, self.settings.report.km_to_miles,
        )
        return mileage_report.mileage_report(entries, status, search, sort_by or self.settings.report.default_sort)

    async def _deliver(self, result: TransitionResult) -> ServiceRequestRead:
        await self.dispatcher.dispatch(result.notifications)
        return result.request
