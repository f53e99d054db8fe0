"""Mileage report: join requests to their acceptance logs, filter, sort, measure.

Everything here except :func:`load_entries` is a pure function of its
arguments.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from evdispatch.db import crud
from evdispatch.errors import PersistenceError
from evdispatch.schemas.acceptance_log import JobAcceptanceLog
from evdispatch.schemas.geo import GeoCoordinates
from evdispatch.schemas.report import MileageLogEntry, MileageReport
from evdispatch.schemas.service_request import DistanceRead, DistanceValue, RequestLocation
from evdispatch.services.acceptance_log import AcceptanceLogStore
from evdispatch.services.geo import KM_TO_MILES, haversine_km, km_to_miles

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("date", "distance", "customer", "status")
ACTIVE_STATUSES = ("pending", "scheduled")


def service_type_label(request_type: str) -> str:
    return "Roadside Assistance" if request_type == "roadside" else "EV Charging"


def distance_km(location: RequestLocation, log: JobAcceptanceLog) -> float:
    return haversine_km(location.latitude, location.longitude, log.coordinates.latitude, log.coordinates.longitude)


def build_entries(requests, logs_by_request: dict[str, list[JobAcceptanceLog]], miles_factor: float = KM_TO_MILES) -> list[MileageLogEntry]:
    """One entry per request that has at least one acceptance log."""
    entries = []
    for req in requests:
        logs = logs_by_request.get(req.id) or []
        if not logs:
            continue
        location = RequestLocation(latitude=req.latitude, longitude=req.longitude, address=req.address)
        per_log = [distance_km(location, log) for log in logs]
        entries.append(MileageLogEntry(
            request_id=req.id,
            request_title=req.title,
            customer_name=req.name,
            service_type=service_type_label(req.type),
            request_location=location,
            status=req.status,
            created_at=req.created_at,
            acceptance_logs=logs,
            distance_km=per_log[-1],
            distance_miles=km_to_miles(per_log[-1], miles_factor),
            log_distances_km=per_log,
        ))
    return entries


def filter_entries(entries: list[MileageLogEntry], status: str | None = None, search: str = "") -> list[MileageLogEntry]:
    if status and status != "all":
        entries = [e for e in entries if e.status == status]
    if search and search.strip():
        query = search.lower()
        entries = [
            e for e in entries
            if query in e.request_title.lower() or query in e.customer_name.lower()
        ]
    return entries


def sort_entries(entries: list[MileageLogEntry], sort_by: str = "date") -> list[MileageLogEntry]:
    """Order entries by their latest acceptance log (date/distance) or by field."""
    if sort_by == "date":
        return sorted(entries, key=lambda e: e.latest_log.accepted_at, reverse=True)
    if sort_by == "distance":
        return sorted(entries, key=lambda e: distance_km(e.request_location, e.latest_log), reverse=True)
    if sort_by == "customer":
        return sorted(entries, key=lambda e: e.customer_name)
    if sort_by == "status":
        return sorted(entries, key=lambda e: e.status)
    raise ValueError(f"Unknown sort option {sort_by!r}; expected one of {', '.join(SORT_OPTIONS)}")


def build_report(entries: list[MileageLogEntry], status: str | None = None, search: str = "", sort_by: str = "date") -> list[MileageLogEntry]:
    return sort_entries(filter_entries(entries, status, search), sort_by)


def summarize(entries: list[MileageLogEntry]) -> dict[str, int]:
    return {
        "total": len(entries),
        "completed_count": sum(1 for e in entries if e.status == "completed"),
        "active_count": sum(1 for e in entries if e.status in ACTIVE_STATUSES),
    }


def mileage_report(entries: list[MileageLogEntry], status: str | None = None, search: str = "", sort_by: str = "date") -> MileageReport:
    """Filtered, sorted logs plus summary counts over the unfiltered set."""
    return MileageReport(mileage_logs=build_report(entries, status, search, sort_by), **summarize(entries))


def calculate_distance(request, coordinates: GeoCoordinates, miles_factor: float = KM_TO_MILES) -> DistanceRead:
    location = RequestLocation(latitude=request.latitude, longitude=request.longitude, address=request.address)
    km = haversine_km(location.latitude, location.longitude, coordinates.latitude, coordinates.longitude)
    logger.info("Distance for request %s: %.2f km", request.id, km)
    return DistanceRead(
        request_id=request.id,
        request_location=location,
        acceptor_location=coordinates,
        distance=DistanceValue(kilometers=round(km, 2), miles=round(km_to_miles(km, miles_factor), 2)),
    )


async def load_entries(
    session_factory: async_sessionmaker[AsyncSession], store: AcceptanceLogStore,
    tenant_id: str | None = None, miles_factor: float = KM_TO_MILES,
) -> list[MileageLogEntry]:
    try:
        async with session_factory() as db:
            requests = await crud.list_service_requests(db, tenant_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to load service requests for mileage report")
        raise PersistenceError("Could not load service requests") from exc
    logs = await store.list_all(tenant_id)
    entries = build_entries(requests, logs, miles_factor)
    logger.info("Mileage report: %d of %d requests have acceptance logs", len(entries), len(requests))
    return entries
