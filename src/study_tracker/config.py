"""Application configuration.

Values come from, in increasing priority:
1. Defaults in AppConfig
2. Environment variables (STUDY_TRACKER_*)
3. Explicit overrides passed to ``resolve_config``
"""
from pathlib import Path
from typing import Any, Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from study_tracker.db import DEFAULT_DB_PATH


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STUDY_TRACKER_", extra="ignore")

    db_path: Path = Path(DEFAULT_DB_PATH)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    planned_minutes: int = 25

    @field_validator("db_path", mode="before")
    @classmethod
    def expand_db_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: Any) -> str:
        return str(v).upper()

    @field_validator("planned_minutes")
    @classmethod
    def check_planned_minutes(cls, v: int) -> int:
        if not 1 <= v <= 120:
            raise ValueError("planned_minutes must be between 1 and 120")
        return v


def resolve_config(overrides: dict[str, Any] | None = None) -> AppConfig:
    """Build the config; non-None overrides win over the environment."""
    return AppConfig(**{k: v for k, v in (overrides or {}).items() if v is not None})
