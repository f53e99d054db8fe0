from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field
from evdispatch.schemas.acceptance_log import JobAcceptanceLog
from evdispatch.schemas.geo import GeoCoordinates, Platform

RequestStatus = Literal["pending", "scheduled", "completed", "canceled"]


class RequestLocation(BaseModel):
    latitude: float
    longitude: float
    address: str | None = None


class MessageRead(BaseModel):
    id: str
    text: str
    sender: Literal["admin", "user"]
    timestamp: datetime


class ServiceRequestRead(BaseModel):
    id: str
    tenant_id: str | None = None
    type: str
    name: str
    title: str
    description: str = ""
    location: RequestLocation
    status: RequestStatus
    assigned_staff: list[str] = []
    messages: list[MessageRead] = []
    acceptance_logs: list[JobAcceptanceLog] = []
    created_at: datetime

    @classmethod
    def from_row(cls, row, acceptance_logs: list[JobAcceptanceLog] | None = None) -> "ServiceRequestRead":
        return cls(
            id=row.id,
            tenant_id=row.tenant_id,
            type=row.type,
            name=row.name,
            title=row.title,
            description=row.description or "",
            location=RequestLocation(latitude=row.latitude, longitude=row.longitude, address=row.address),
            status=row.status,
            assigned_staff=list(row.assigned_staff or []),
            messages=list(row.messages or []),
            acceptance_logs=acceptance_logs or [],
            created_at=row.created_at,
        )


class AcceptJobBody(BaseModel):
    coordinates: GeoCoordinates
    platform: Platform = "unknown"


class AssignStaffBody(BaseModel):
    staff_ids: list[str] = Field(default_factory=list)


class MessageCreate(BaseModel):
    text: str = Field(min_length=1)


class DistanceBody(BaseModel):
    latitude: float
    longitude: float


class DistanceValue(BaseModel):
    kilometers: float
    miles: float


class DistanceRead(BaseModel):
    request_id: str
    request_location: RequestLocation
    acceptor_location: GeoCoordinates
    distance: DistanceValue
