"""Pydantic request/response schemas."""

from evdispatch.schemas.geo import GeoCoordinates, Platform
from evdispatch.schemas.acceptance_log import AcceptedBy, JobAcceptanceLog
from evdispatch.schemas.service_request import (
    RequestLocation, MessageRead, ServiceRequestRead,
    AcceptJobBody, AssignStaffBody, MessageCreate,
    DistanceBody, DistanceValue, DistanceRead,
)
from evdispatch.schemas.report import MileageLogEntry, MileageReport, SortOption, FilterOption
from evdispatch.schemas.notification import NotificationPayload, NotificationRead

__all__ = [
    "GeoCoordinates", "Platform",
    "AcceptedBy", "JobAcceptanceLog",
    "RequestLocation", "MessageRead", "ServiceRequestRead",
    "AcceptJobBody", "AssignStaffBody", "MessageCreate",
    "DistanceBody", "DistanceValue", "DistanceRead",
    "MileageLogEntry", "MileageReport", "SortOption", "FilterOption",
    "NotificationPayload", "NotificationRead",
]
