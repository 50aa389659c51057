# backend/physio/services/slots/generator.py
"""
Slot generation from the weekly schedule.

For a date:
  weekday → schedule row → fixed-duration slots from start_time to end_time.

✓ Only whole slots are produced (no partial trailing slot)
✓ Inactive or missing weekday → no slots
✓ Idempotent: a date that already has slots is left as it is

Does NOT:
✗ Regenerate a date after the schedule changed
✗ Touch booked / blocked / holiday slots
"""

import logging
from datetime import date, timedelta

from sqlalchemy.orm import Session

from ...errors import ValidationFailedError
from ...models.generated import Slots
from .config import (
    BookingConfig,
    get_booking_config,
    iter_dates,
    minutes_to_time_str,
    time_str_to_minutes,
    weekday_key,
)
from .schedule import WeeklyScheduleRepository
from .store import SlotStore

logger = logging.getLogger(__name__)

MAX_RANGE_DAYS = 62


def build_time_slots(start_time: str, end_time: str, duration_minutes: int) -> list[tuple[str, str]]:
    """
    Walk [start_time, end_time) in duration steps.

    Returns:
        List of ("HH:MM", "HH:MM") start/end pairs.
    """
    start_min = time_str_to_minutes(start_time)
    end_min = time_str_to_minutes(end_time)

    slots: list[tuple[str, str]] = []
    t = start_min
    while t + duration_minutes <= end_min:
        slots.append((minutes_to_time_str(t), minutes_to_time_str(t + duration_minutes)))
        t += duration_minutes
    return slots


class SlotGenerator:
    """Turns weekly schedule rows into persisted slots."""

    def __init__(
        self,
        db: Session,
        config: BookingConfig | None = None,
        store: SlotStore | None = None,
        schedule: WeeklyScheduleRepository | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.store = store or SlotStore(db)
        self.schedule = schedule or WeeklyScheduleRepository(db)

    def slots_for_date(self, target_date: date) -> list[tuple[str, str]]:
        """Slots the schedule would produce for a date (nothing persisted)."""
        entry = self.schedule.get_by_weekday(weekday_key(target_date))
        if not entry or not entry.is_active:
            return []
        return build_time_slots(
            entry.start_time,
            entry.end_time,
            self.config.slot_duration_minutes,
        )

    def generate_for_date(self, target_date: date) -> list[Slots]:
        """Generate slots for a date unless the date already has some."""
        if self.store.exists_for_date(target_date):
            return [slot for slot, _ in self.store.list_for_date(target_date)]

        slots = self.slots_for_date(target_date)
        if not slots:
            return []

        inserted = self.store.insert_missing(target_date, slots)
        self.db.flush()
        logger.info(f"Generated {inserted} slot(s) for {target_date.isoformat()}")
        return [slot for slot, _ in self.store.list_for_date(target_date)]

    def generate_for_range(self, start_date: date, end_date: date) -> list[dict]:
        """Generate day by day; returns [{"date": ..., "count": ...}]."""
        if end_date < start_date:
            raise ValidationFailedError("End date must not be before start date")
        if end_date - start_date > timedelta(days=MAX_RANGE_DAYS):
            raise ValidationFailedError(f"Range cannot exceed {MAX_RANGE_DAYS} days")

        results = []
        for dt in iter_dates(start_date, end_date):
            slots = self.generate_for_date(dt)
            results.append({"date": dt, "count": len(slots)})
        return results
