# backend/physio/schemas/schedule.py

import re
from typing import Literal, Optional
from pydantic import BaseModel, field_validator

Weekday = Literal["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

# 24:00 is allowed as an end of day
_TIME_RE = re.compile(r"^(([01]\d|2[0-3]):[0-5]\d|24:00)$")


class WeeklyScheduleUpdate(BaseModel):
    """Partial update: only explicitly set fields are written."""
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not _TIME_RE.match(v):
            raise ValueError("Time must be a valid HH:MM between 00:00 and 24:00")
        return v


class WeeklyScheduleRead(BaseModel):
    weekday: Weekday
    start_time: str
    end_time: str
    is_active: bool

    model_config = {"from_attributes": True}
