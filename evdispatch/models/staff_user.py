"""Staff directory model: workers, admins and super admins."""

from __future__ import annotations

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from evdispatch.models.base import Base, TenantMixin, ULIDMixin


class StaffUser(Base, ULIDMixin, TenantMixin):
    __tablename__ = "staff_users"

    full_name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), default="")
    role: Mapped[str] = mapped_column(String(20), default="worker")  # super_admin | admin | worker | user
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
