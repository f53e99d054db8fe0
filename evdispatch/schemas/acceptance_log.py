from __future__ import annotations
from datetime import datetime, timezone
from pydantic import BaseModel, field_validator
from evdispatch.schemas.geo import GeoCoordinates, Platform


class AcceptedBy(BaseModel):
    id: str | None = None
    name: str | None = None
    role: str | None = None

    model_config = {"frozen": True}


class JobAcceptanceLog(BaseModel):
    id: str
    accepted_at: datetime
    accepted_by: AcceptedBy | None = None
    coordinates: GeoCoordinates
    platform: Platform = "unknown"

    model_config = {"frozen": True}

    @field_validator("accepted_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # SQLite hands timestamps back without tzinfo.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def from_row(cls, row) -> "JobAcceptanceLog":
        accepted_by = None
        if row.accepted_by_id or row.accepted_by_name:
            accepted_by = AcceptedBy(id=row.accepted_by_id, name=row.accepted_by_name, role=row.accepted_by_role)
        return cls(
            id=row.id,
            accepted_at=row.accepted_at,
            accepted_by=accepted_by,
            coordinates=GeoCoordinates(latitude=row.latitude, longitude=row.longitude, accuracy=row.accuracy),
            platform=row.platform,
        )
