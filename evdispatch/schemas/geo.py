from __future__ import annotations
from typing import Literal
from pydantic import BaseModel

Platform = Literal["ios", "android", "web", "macos", "windows", "unknown"]


class GeoCoordinates(BaseModel):
    latitude: float
    longitude: float
    accuracy: float | None = None  # meters

    model_config = {"frozen": True}
