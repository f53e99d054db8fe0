from __future__ import annotations
from datetime import datetime
from typing import Literal
from pydantic import BaseModel


class NotificationPayload(BaseModel):
    type: Literal["task_assignment", "message"]
    title: str
    message: str
    related_id: str | None = None

    model_config = {"frozen": True}


class NotificationRead(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    related_id: str | None = None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}
