# backend/physio/services/bookings/state_machine.py
"""
Booking status state machine.

A transition is checked against ALLOWED_TRANSITIONS, committed, and only
then are side effects fired:

  always                         → patient notification
  rejected / cancelled_*         → slot released
  confirmed / rejected           → patient e-mail

Side effects never undo the committed status; failures are logged.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ...errors import InvalidTransitionError
from ...models.generated import Bookings
from ...schemas.bookings import BookingStatusExtra
from ..mailer import BookingMailer
from ..notifications import TYPE_BOOKING, NotificationService
from ..slots.store import SlotStore
from .constants import (
    ALLOWED_TRANSITIONS,
    DEFAULT_REJECTION_REASON,
    EMAIL_ON_STATUS,
    RELEASE_STATUSES,
    STATUS_MESSAGES,
    BookingStatus,
)

logger = logging.getLogger(__name__)


def booking_snapshot(booking: Bookings) -> dict:
    """Plain dict of a booking for notifications and e-mails."""
    patient = booking.patient
    service = booking.service
    return {
        "id": booking.id,
        "booking_code": booking.booking_code,
        "status": booking.status,
        "date": booking.date,
        "start_time": booking.start_time,
        "address": booking.address,
        "complaint": booking.complaint,
        "coordinates": booking.coordinates,
        "patient_id": booking.patient_id,
        "patient_name": patient.name if patient else None,
        "patient_email": patient.email if patient else None,
        "service_name": service.name if service else None,
        "service_price": service.price if service else None,
    }


def run_side_effect(db: Session, what: str, booking_id: int, fn: Callable, *args) -> None:
    """Run fn; on failure roll back its work, log, and carry on."""
    try:
        fn(*args)
    except Exception:
        db.rollback()
        logger.exception(f"{what} failed for booking {booking_id}")


class BookingStateMachine:

    def __init__(
        self,
        db: Session,
        store: SlotStore | None = None,
        notifier: NotificationService | None = None,
        mailer: BookingMailer | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.store = store or SlotStore(db)
        self.notifier = notifier or NotificationService(db)
        self.mailer = mailer or BookingMailer()
        self.now = now

    @staticmethod
    def can_transition(current: str, target: str) -> bool:
        try:
            current_status = BookingStatus(current)
            target_status = BookingStatus(target)
        except ValueError:
            return False
        return target_status in ALLOWED_TRANSITIONS[current_status]

    def ensure_transition(self, current: str, target: str) -> None:
        if not self.can_transition(current, target):
            raise InvalidTransitionError(str(current), BookingStatus(target).value)

    def transition(
        self,
        booking: Bookings,
        target: BookingStatus,
        extra: Optional[BookingStatusExtra] = None,
    ) -> Bookings:
        target = BookingStatus(target)
        extra = extra or BookingStatusExtra()
        previous = booking.status

        self.ensure_transition(previous, target)

        stamp = self.now().isoformat(timespec="seconds")
        booking.status = target.value
        booking.updated_at = stamp
        if target == BookingStatus.CONFIRMED:
            booking.confirmed_at = stamp
        elif target == BookingStatus.COMPLETED:
            booking.completed_at = stamp
        elif target == BookingStatus.REJECTED:
            booking.rejection_reason = extra.rejection_reason or DEFAULT_REJECTION_REASON
        elif target in RELEASE_STATUSES and extra.cancel_reason:
            booking.cancel_reason = extra.cancel_reason
        if extra.admin_notes:
            booking.admin_notes = extra.admin_notes

        self.db.commit()
        logger.info(f"Booking {booking.booking_code}: {previous} → {target.value}")

        self._fire_side_effects(booking, target)
        return booking

    # ── Side effects ─────────────────────────────────────────────────────

    def _fire_side_effects(self, booking: Bookings, target: BookingStatus) -> None:
        booking_id = booking.id
        snapshot = booking_snapshot(booking)
        snapshot["rejection_reason"] = booking.rejection_reason

        if target in RELEASE_STATUSES:
            run_side_effect(self.db, "Slot release", booking_id, self._release_slot, booking_id)

        run_side_effect(self.db, "Status notification", booking_id, self._notify, snapshot, target)

        kind = EMAIL_ON_STATUS.get(target)
        if kind:
            run_side_effect(
                self.db, "Status e-mail", booking_id,
                self.mailer.send_booking_email,
                snapshot, kind, {"rejection_reason": snapshot["rejection_reason"]},
            )

    def _release_slot(self, booking_id: int) -> None:
        self.store.release(booking_id)
        self.db.commit()

    def _notify(self, snapshot: dict, target: BookingStatus) -> None:
        title, template = STATUS_MESSAGES[target]
        message = template.format(
            code=snapshot["booking_code"],
            date=snapshot["date"],
            time=snapshot["start_time"],
            reason=snapshot.get("rejection_reason") or DEFAULT_REJECTION_REASON,
        )
        self.notifier.notify(
            user_id=snapshot["patient_id"],
            booking_id=snapshot["id"],
            type=TYPE_BOOKING,
            title=title,
            message=message,
            link=f"/booking/{snapshot['booking_code']}",
        )
