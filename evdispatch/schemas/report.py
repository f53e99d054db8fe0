from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel
from evdispatch.schemas.acceptance_log import JobAcceptanceLog
from evdispatch.schemas.service_request import RequestLocation

SortOption = Literal["date", "distance", "customer", "status"]
FilterOption = Literal["all", "pending", "scheduled", "completed", "canceled"]


class MileageLogEntry(BaseModel):
    request_id: str
    request_title: str
    customer_name: str
    service_type: str
    request_location: RequestLocation
    status: str
    created_at: datetime
    acceptance_logs: list[JobAcceptanceLog]
    # Filled from the latest acceptance log.
    distance_km: float | None = None
    distance_miles: float | None = None
    log_distances_km: list[float] = []

    @property
    def latest_log(self) -> JobAcceptanceLog:
        return self.acceptance_logs[-1]


class MileageReport(BaseModel):
    mileage_logs: list[MileageLogEntry]
    total: int
    completed_count: int
    active_count: int
