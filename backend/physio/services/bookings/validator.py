# backend/physio/services/bookings/validator.py
"""
Gate executed before a booking is persisted.

Checks, in order:
1. Service exists and is active
2. Lead time:       booking_at >= now + min_hours_before_booking
3. Advance window:  booking_at <= now + advance_days
4. Daily quota:     active bookings on the date < max_per_day
5. Slot:            target slot is currently available

Every failure is final for the request; nothing is retried. Check 5 is
advisory: the conditional claim that follows is what closes the race.
"""

from datetime import date, datetime
from typing import Callable

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError, ValidationFailedError
from ...models.generated import Bookings, Services
from ..catalog import ServiceCatalog
from ..slots.config import BookingConfig, get_booking_config, slot_datetime
from ..slots.store import AVAILABLE, SlotStore
from .constants import INACTIVE_STATUSES


class BookingValidator:

    def __init__(
        self,
        db: Session,
        config: BookingConfig | None = None,
        now: Callable[[], datetime] = datetime.now,
        store: SlotStore | None = None,
        catalog: ServiceCatalog | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.now = now
        self.store = store or SlotStore(db)
        self.catalog = catalog or ServiceCatalog(db)

    def validate(self, service_id: int, target_date: date, start_time: str) -> Services:
        """Run every check; returns the service on success."""
        service = self.check_service(service_id)
        booking_at = slot_datetime(target_date, start_time)
        self.check_booking_time(booking_at)
        self.check_quota(target_date)
        self.check_slot(target_date, start_time)
        return service

    def check_service(self, service_id: int) -> Services:
        service = self.catalog.get_service(service_id)
        if not service:
            raise NotFoundError("Service not found")
        if not service.is_active:
            raise ValidationFailedError("Service is not available for booking")
        return service

    def check_booking_time(self, booking_at: datetime) -> None:
        now = self.now()
        if booking_at < now + self.config.lead_time:
            raise ValidationFailedError(
                f"Bookings must be made at least "
                f"{self.config.min_hours_before_booking} hours in advance"
            )
        if booking_at > now + self.config.advance_window:
            raise ValidationFailedError(
                f"Bookings can be made at most {self.config.advance_days} days ahead"
            )

    def count_active(self, target_date: date) -> int:
        return (
            self.db.query(Bookings)
            .filter(
                Bookings.date == target_date.isoformat(),
                Bookings.status.notin_([s.value for s in INACTIVE_STATUSES]),
            )
            .count()
        )

    def check_quota(self, target_date: date) -> None:
        if self.count_active(target_date) >= self.config.max_per_day:
            raise ConflictError("Booking quota for this date is full")

    def check_slot(self, target_date: date, start_time: str) -> None:
        slot = self.store.find(target_date, start_time)
        if not slot or slot.status != AVAILABLE:
            raise ConflictError("The selected time slot is not available")
