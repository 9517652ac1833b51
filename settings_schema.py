import os
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError

DEFAULT_WEEKLY_GOAL = 4


class SettingsSchema(BaseModel):
    weekly_goal: int = Field(default=DEFAULT_WEEKLY_GOAL, ge=2, le=7)
    weight_unit: Literal["kg", "lb"] = "kg"
    timezone: str = "UTC"
    log_level: str = "INFO"
    log_file: Optional[str] = None


def validate_settings(data: dict) -> None:
    try:
        SettingsSchema(**data)
    except ValidationError as e:
        raise ValueError(str(e))


def load_settings(data: dict | None = None) -> SettingsSchema:
    """Validate YAML settings, letting ``LOG_LEVEL`` override the file."""
    values = dict(data or {})
    if os.environ.get("LOG_LEVEL"):
        values["log_level"] = os.environ["LOG_LEVEL"]
    validate_settings(values)
    return SettingsSchema(**values)
