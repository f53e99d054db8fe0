"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class GeoCaptureConfig(BaseSettings):
    timeout_seconds: float = 10.0
    settle_delay_seconds: float = 0.5
    high_accuracy: bool = True


class ReportConfig(BaseSettings):
    default_sort: str = "date"
    km_to_miles: float = 0.621371


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/evdispatch.db"
    log_level: str = "INFO"
    geo_capture: GeoCaptureConfig = Field(default_factory=GeoCaptureConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "EVDISPATCH_"}


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    geo = GeoCaptureConfig(**y.get("geo_capture", {}))
    report = ReportConfig(**y.get("report", {}))
    overrides = {"geo_capture": geo, "report": report}
    db_url = y.get("database", {}).get("url")
    if db_url:
        overrides["database_url"] = db_url
    if y.get("log_level"):
        overrides["log_level"] = y["log_level"]
    settings = Settings(**overrides)
    # Environment wins over the YAML file for the top-level scalars.
    env = Settings()
    for field in ("database_url", "log_level"):
        if field in env.model_fields_set:
            setattr(settings, field, getattr(env, field))
    return settings
