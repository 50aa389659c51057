# backend/physio/services/slots/availability.py
"""
Availability queries over the slot store.

Patient view: available slots whose start is beyond now + lead time.
Admin view: every slot of a date with the owning booking code.
Calendar: dates in a window that still have at least one bookable slot.
"""

from datetime import date, datetime, timedelta
from typing import Callable

from sqlalchemy.orm import Session

from ...models.generated import Slots
from .config import BookingConfig, get_booking_config, iter_dates, slot_datetime
from .generator import SlotGenerator
from .store import SlotStore


class AvailabilityService:
    """Lazy-generating availability queries."""

    def __init__(
        self,
        db: Session,
        config: BookingConfig | None = None,
        now: Callable[[], datetime] = datetime.now,
        store: SlotStore | None = None,
        generator: SlotGenerator | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.now = now
        self.store = store or SlotStore(db)
        self.generator = generator or SlotGenerator(db, self.config, store=self.store)

    def _ensure_generated(self, target_date: date) -> None:
        self.generator.generate_for_date(target_date)
        self.db.commit()

    def available_slots(self, target_date: date) -> list[Slots]:
        """Available slots of a date that still respect the lead time."""
        self._ensure_generated(target_date)

        min_start = self.now() + self.config.lead_time
        return [
            slot
            for slot in self.store.list_available(target_date)
            if slot_datetime(slot.date, slot.start_time) > min_start
        ]

    def slots_by_date(self, target_date: date) -> list[tuple[Slots, str | None]]:
        """Every slot of a date (any status) with its booking code, no filtering."""
        self._ensure_generated(target_date)
        return self.store.list_for_date(target_date)

    def available_dates(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[dict]:
        """
        Dates in [start_date, end_date] with at least one bookable slot.

        Returns:
            [{"date": date, "available_slots": int}, ...]
        """
        today = self.now().date()
        if start_date is None:
            start_date = today
        if end_date is None:
            end_date = today + timedelta(days=self.config.advance_days)

        days = []
        for dt in iter_dates(start_date, end_date):
            slots = self.available_slots(dt)
            if slots:
                days.append({"date": dt, "available_slots": len(slots)})
        return days
