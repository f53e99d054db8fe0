"""Staff notification model: persisted inbox entries."""

from __future__ import annotations

from sqlalchemy import String, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from evdispatch.models.base import Base, ULIDMixin


class StaffNotification(Base, ULIDMixin):
    __tablename__ = "staff_notifications"

    user_id: Mapped[str] = mapped_column(String(26), index=True)
    type: Mapped[str] = mapped_column(String(30))  # task_assignment | message
    title: Mapped[str] = mapped_column(String(300))
    message: Mapped[str] = mapped_column(Text, default="")
    related_id: Mapped[str | None] = mapped_column(String(26), nullable=True, default=None)
    read: Mapped[bool] = mapped_column(Boolean, default=False)
