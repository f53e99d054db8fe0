"""Acceptance log model: append-only GPS proof that a worker accepted a job."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String, Float, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from evdispatch.models.base import Base, new_id, utcnow


class AcceptanceLog(Base):
    __tablename__ = "acceptance_logs"
    __table_args__ = (UniqueConstraint("request_id", "sequence", name="uq_acceptance_log_sequence"),)

    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=new_id)
    request_id: Mapped[str] = mapped_column(String(26), ForeignKey("service_requests.id"), index=True)
    sequence: Mapped[int] = mapped_column(Integer)
    accepted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    accepted_by_id: Mapped[str | None] = mapped_column(String(26), nullable=True, default=None)
    accepted_by_name: Mapped[str | None] = mapped_column(String(200), nullable=True, default=None)
    accepted_by_role: Mapped[str | None] = mapped_column(String(20), nullable=True, default=None)
    latitude: Mapped[float] = mapped_column(Float)
    longitude: Mapped[float] = mapped_column(Float)
    accuracy: Mapped[float | None] = mapped_column(Float, nullable=True, default=None)
    platform: Mapped[str] = mapped_column(String(20), default="unknown")
