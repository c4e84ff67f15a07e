#!filepath: autoperf/config/scheduler_config.py
from typing import Dict

from pydantic import BaseModel, Field, field_validator


class SchedulerConfig(BaseModel):
    # label -> minutes, merged over Hourly / Daily / Weekly / Bi-weekly / Monthly
    frequencies: Dict[str, int] = Field(default_factory=dict)

    @field_validator("frequencies")
    @classmethod
    def _positive(cls, value: Dict[str, int]) -> Dict[str, int]:
        for label, minutes in value.items():
            if minutes <= 0:
                raise ValueError(f"frequency {label!r} must be > 0 minutes")
        return value
