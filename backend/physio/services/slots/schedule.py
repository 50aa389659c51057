# backend/physio/services/slots/schedule.py
"""
Weekly schedule template: operating hours per weekday.

Seven rows (mon..sun) seed slot generation. Changing a row does not
touch slots that were already generated for a date.
"""

import logging

from sqlalchemy.orm import Session

from ...errors import NotFoundError, ValidationFailedError
from ...models.generated import WeeklySchedule
from ...schemas.schedule import WeeklyScheduleUpdate
from .config import WEEKDAY_KEYS, time_str_to_minutes

logger = logging.getLogger(__name__)

DEFAULT_HOURS = {
    "mon": ("18:00", "22:00"),
    "tue": ("18:00", "22:00"),
    "wed": ("18:00", "22:00"),
    "thu": ("18:00", "22:00"),
    "fri": ("08:00", "22:00"),
    "sat": ("08:00", "22:00"),
    "sun": ("18:00", "22:00"),
}


class WeeklyScheduleRepository:
    """Read/update access to the weekly schedule rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> list[WeeklySchedule]:
        rows = self.db.query(WeeklySchedule).all()
        return sorted(rows, key=lambda r: WEEKDAY_KEYS.index(r.weekday))

    def get_by_weekday(self, weekday: str) -> WeeklySchedule | None:
        return (
            self.db.query(WeeklySchedule)
            .filter(WeeklySchedule.weekday == weekday.lower())
            .first()
        )

    def _get_or_raise(self, weekday: str) -> WeeklySchedule:
        row = self.get_by_weekday(weekday)
        if not row:
            raise NotFoundError(f"No schedule for weekday '{weekday}'")
        return row

    def update(self, weekday: str, data: WeeklyScheduleUpdate) -> WeeklySchedule:
        row = self._get_or_raise(weekday)
        changes = data.model_dump(exclude_unset=True)

        start = changes.get("start_time") or row.start_time
        end = changes.get("end_time") or row.end_time
        if time_str_to_minutes(start) >= time_str_to_minutes(end):
            raise ValidationFailedError("Start time must be before end time")

        if "start_time" in changes and changes["start_time"] is not None:
            row.start_time = changes["start_time"]
        if "end_time" in changes and changes["end_time"] is not None:
            row.end_time = changes["end_time"]
        if "is_active" in changes and changes["is_active"] is not None:
            row.is_active = 1 if changes["is_active"] else 0

        self.db.flush()
        logger.info(
            f"Weekly schedule updated: {row.weekday} "
            f"{row.start_time}-{row.end_time} active={row.is_active}"
        )
        return row

    def toggle_active(self, weekday: str) -> WeeklySchedule:
        row = self._get_or_raise(weekday)
        row.is_active = 0 if row.is_active else 1
        self.db.flush()
        logger.info(f"Weekly schedule {row.weekday} active={row.is_active}")
        return row

    def seed_defaults(self) -> int:
        """Create missing weekday rows with default hours. Returns rows created."""
        existing = {r.weekday for r in self.db.query(WeeklySchedule).all()}
        created = 0
        for weekday in WEEKDAY_KEYS:
            if weekday in existing:
                continue
            start, end = DEFAULT_HOURS[weekday]
            self.db.add(WeeklySchedule(
                weekday=weekday,
                start_time=start,
                end_time=end,
                is_active=1,
            ))
            created += 1
        self.db.flush()
        return created
