"""SQLAlchemy ORM models."""

from evdispatch.models.base import Base
from evdispatch.models.service_request import ServiceRequest
from evdispatch.models.acceptance_log import AcceptanceLog
from evdispatch.models.staff_user import StaffUser
from evdispatch.models.notification import StaffNotification

__all__ = ["Base", "ServiceRequest", "AcceptanceLog", "StaffUser", "StaffNotification"]
