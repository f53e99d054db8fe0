"""Service request model: a dispatched roadside or charging job."""

from __future__ import annotations

from sqlalchemy import String, Float, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from evdispatch.models.base import Base, TenantMixin, ULIDMixin


class ServiceRequest(Base, ULIDMixin, TenantMixin):
    __tablename__ = "service_requests"

    type: Mapped[str] = mapped_column(String(20), default="roadside")  # roadside | charging
    name: Mapped[str] = mapped_column(String(200))  # customer name
    phone: Mapped[str] = mapped_column(String(50), default="")
    email: Mapped[str] = mapped_column(String(255), default="")
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[str] = mapped_column(Text, default="")
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)
    status: Mapped[str] = mapped_column(String(20), default="pending")  # pending | scheduled | completed | canceled
    assigned_staff: Mapped[list] = mapped_column(JSON, default=list)
    messages: Mapped[list] = mapped_column(JSON, default=list)
