# backend/physio/services/bookings/service.py
"""
Booking use cases.

Create flow (one transaction):
  lazy slot generation → validator → booking row (code) → payment row
  → conditional slot claim → commit → notification + admin alert

A lost claim rolls the whole transaction back, so a booking never
exists without its slot. Status changes are delegated to the state
machine; patient cancellation and rating add their own preconditions.
"""

import logging
from datetime import date, datetime
from typing import Callable, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnprocessableError,
    ValidationFailedError,
)
from ...identity import Actor
from ...models.generated import Bookings, Payments, Users
from ...schemas.bookings import BookingCreate, BookingStatusExtra
from ..mailer import NEW_BOOKING_ADMIN_ALERT, BookingMailer
from ..notifications import TYPE_BOOKING, TYPE_RATING, NotificationService
from ..slots.config import BookingConfig, get_booking_config, normalize_time_str, slot_datetime
from ..slots.generator import SlotGenerator
from ..slots.store import SlotStore
from .constants import (
    PATIENT_CANCELLABLE,
    UPCOMING_STATUSES,
    BookingStatus,
    PaymentStatus,
)
from .state_machine import BookingStateMachine, booking_snapshot, run_side_effect
from .validator import BookingValidator

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 3
UPCOMING_LIMIT = 5


class BookingService:

    def __init__(
        self,
        db: Session,
        config: BookingConfig | None = None,
        now: Callable[[], datetime] = datetime.now,
        store: SlotStore | None = None,
        notifier: NotificationService | None = None,
        mailer: BookingMailer | None = None,
    ):
        self.db = db
        self.config = config or get_booking_config()
        self.now = now
        self.store = store or SlotStore(db)
        self.notifier = notifier or NotificationService(db)
        self.mailer = mailer or BookingMailer()
        self.generator = SlotGenerator(db, self.config, store=self.store)
        self.validator = BookingValidator(db, self.config, now=now, store=self.store)
        self.state_machine = BookingStateMachine(
            db, store=self.store, notifier=self.notifier, mailer=self.mailer, now=now,
        )

    # ── Create ───────────────────────────────────────────────────────────

    def create_booking(self, patient_id: int, data: BookingCreate) -> Bookings:
        target_date = data.date
        start_time = normalize_time_str(data.start_time)

        if not self.db.get(Users, patient_id):
            raise NotFoundError("Patient not found")

        self.generator.generate_for_date(target_date)
        self.db.commit()

        service = self.validator.validate(data.service_id, target_date, start_time)

        booking = self._insert_booking(patient_id, data, start_time)

        payment = Payments(
            booking_id=booking.id,
            method=data.payment_method.value,
            status=PaymentStatus.AWAITING.value,
            amount=service.price,
        )
        self.db.add(payment)
        self.db.flush()

        if not self.store.claim(target_date, start_time, booking.id):
            self.db.rollback()
            raise ConflictError("The selected time slot is not available")

        self.db.commit()
        logger.info(
            f"Booking created: {booking.booking_code} patient={patient_id} "
            f"{target_date.isoformat()} {start_time}"
        )

        snapshot = booking_snapshot(booking)
        run_side_effect(
            self.db, "Creation notification", booking.id,
            self.notifier.notify,
            patient_id, booking.id, TYPE_BOOKING,
            "Booking created",
            f"Booking {booking.booking_code} on {snapshot['date']} at {start_time} "
            f"is waiting for confirmation.",
            f"/booking/{booking.booking_code}",
        )
        run_side_effect(
            self.db, "Admin alert", booking.id,
            self.mailer.send_booking_email, snapshot, NEW_BOOKING_ADMIN_ALERT,
        )
        return booking

    def _insert_booking(self, patient_id: int, data: BookingCreate, start_time: str) -> Bookings:
        """Insert the booking row, retrying when a concurrent request took the code."""
        stamp = self.now().isoformat(timespec="seconds")
        for attempt in range(1, CODE_ATTEMPTS + 1):
            booking = Bookings(
                booking_code=self.next_booking_code(data.date),
                patient_id=patient_id,
                service_id=data.service_id,
                date=data.date.isoformat(),
                start_time=start_time,
                address=data.address,
                complaint=data.complaint,
                notes=data.notes,
                coordinates=data.coordinates,
                status=BookingStatus.PENDING_CONFIRMATION.value,
                payment_method=data.payment_method.value,
                created_at=stamp,
                updated_at=stamp,
            )
            self.db.add(booking)
            try:
                self.db.flush()
                return booking
            except IntegrityError:
                self.db.rollback()
                logger.warning(f"Booking code collision on attempt {attempt}: {booking.booking_code}")

        raise ConflictError("Could not allocate a booking code, please try again")

    def next_booking_code(self, target_date: date) -> str:
        """PREFIX-YYYYMMDD-NNN, sequence per date."""
        prefix = f"{self.config.booking_code_prefix}-{target_date.strftime('%Y%m%d')}-"
        last = (
            self.db.query(Bookings.booking_code)
            .filter(Bookings.booking_code.like(f"{prefix}%"))
            .order_by(Bookings.booking_code.desc())
            .first()
        )
        seq = 1
        if last:
            try:
                seq = int(last[0][len(prefix):]) + 1
            except ValueError:
                seq = 1
        return f"{prefix}{seq:03d}"

    # ── Queries ──────────────────────────────────────────────────────────

    def _get_or_raise(self, booking_id: int) -> Bookings:
        booking = self.db.get(Bookings, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    @staticmethod
    def _check_access(booking: Bookings, actor: Actor) -> None:
        if not actor.is_admin and booking.patient_id != actor.user_id:
            raise ForbiddenError("You do not have access to this booking")

    def get_booking(self, booking_id: int, actor: Actor) -> Bookings:
        booking = self._get_or_raise(booking_id)
        self._check_access(booking, actor)
        return booking

    def get_by_code(self, code: str, actor: Actor) -> Bookings:
        booking = self.db.query(Bookings).filter(Bookings.booking_code == code).first()
        if not booking:
            raise NotFoundError("Booking not found")
        self._check_access(booking, actor)
        return booking

    def list_for_patient(
        self,
        patient_id: int,
        status: Optional[BookingStatus] = None,
        limit: int = 50,
    ) -> list[Bookings]:
        query = self.db.query(Bookings).filter(Bookings.patient_id == patient_id)
        if status:
            query = query.filter(Bookings.status == BookingStatus(status).value)
        return (
            query.order_by(Bookings.date.desc(), Bookings.start_time.desc())
            .limit(limit)
            .all()
        )

    def list_all(
        self,
        status: Optional[BookingStatus] = None,
        on_date: Optional[date] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Bookings]:
        query = self.db.query(Bookings)
        if status:
            query = query.filter(Bookings.status == BookingStatus(status).value)
        if on_date:
            query = query.filter(Bookings.date == on_date.isoformat())
        if date_from:
            query = query.filter(Bookings.date >= date_from.isoformat())
        if date_to:
            query = query.filter(Bookings.date <= date_to.isoformat())
        if search:
            query = query.filter(Bookings.booking_code.ilike(f"%{search}%"))
        return (
            query.order_by(Bookings.date.desc(), Bookings.start_time.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )

    def upcoming(self, patient_id: int) -> list[Bookings]:
        today = self.now().date().isoformat()
        return (
            self.db.query(Bookings)
            .filter(
                Bookings.patient_id == patient_id,
                Bookings.date >= today,
                Bookings.status.in_([s.value for s in UPCOMING_STATUSES]),
            )
            .order_by(Bookings.date, Bookings.start_time)
            .limit(UPCOMING_LIMIT)
            .all()
        )

    def list_ratings(self, limit: int = 20, offset: int = 0) -> list[dict]:
        bookings = (
            self.db.query(Bookings)
            .filter(Bookings.rating.isnot(None))
            .order_by(Bookings.reviewed_at.desc(), Bookings.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [
            {
                "booking_id": b.id,
                "booking_code": b.booking_code,
                "rating": b.rating,
                "review": b.review,
                "reviewed_at": b.reviewed_at,
                "patient_name": b.patient.name if b.patient else None,
                "service_name": b.service.name if b.service else None,
            }
            for b in bookings
        ]

    # ── Status changes ───────────────────────────────────────────────────

    def update_status(
        self,
        booking_id: int,
        target: BookingStatus,
        extra: Optional[BookingStatusExtra],
        actor: Actor,
    ) -> Bookings:
        target = BookingStatus(target)
        if not actor.is_admin:
            # Patients may only cancel their own booking
            if target != BookingStatus.CANCELLED_BY_PATIENT:
                raise ForbiddenError("Only administrators can change booking status")
            return self.cancel_booking(booking_id, actor, extra.cancel_reason if extra else None)

        booking = self._get_or_raise(booking_id)
        return self.state_machine.transition(booking, target, extra)

    def cancel_booking(self, booking_id: int, actor: Actor, reason: Optional[str] = None) -> Bookings:
        # Owner only; admins cancel through update_status with cancelled_by_system
        booking = self._get_or_raise(booking_id)
        if booking.patient_id != actor.user_id:
            raise ForbiddenError("Only the patient of this booking can cancel it")

        if BookingStatus(booking.status) not in PATIENT_CANCELLABLE:
            raise UnprocessableError(f"A booking with status {booking.status} cannot be cancelled")

        booking_at = slot_datetime(booking.date, booking.start_time)
        if booking_at - self.now() <= self.config.cancellation_window:
            raise UnprocessableError(
                f"Too late to cancel: bookings can be cancelled up to "
                f"{self.config.cancellation_hours} hours before the visit"
            )

        return self.state_machine.transition(
            booking, BookingStatus.CANCELLED_BY_PATIENT, BookingStatusExtra(cancel_reason=reason),
        )

    def confirm(self, booking_id: int, admin_notes: Optional[str] = None) -> Bookings:
        booking = self._get_or_raise(booking_id)
        return self.state_machine.transition(
            booking, BookingStatus.CONFIRMED, BookingStatusExtra(admin_notes=admin_notes),
        )

    def reject(self, booking_id: int, reason: Optional[str] = None) -> Bookings:
        booking = self._get_or_raise(booking_id)
        return self.state_machine.transition(
            booking, BookingStatus.REJECTED, BookingStatusExtra(rejection_reason=reason),
        )

    def complete(self, booking_id: int) -> Bookings:
        booking = self._get_or_raise(booking_id)
        return self.state_machine.transition(booking, BookingStatus.COMPLETED)

    # ── Rating ───────────────────────────────────────────────────────────

    def add_rating(self, booking_id: int, actor: Actor, rating: int, review: Optional[str] = None) -> Bookings:
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationFailedError("Rating must be an integer from 1 to 5")

        booking = self._get_or_raise(booking_id)
        if booking.patient_id != actor.user_id:
            raise ForbiddenError("Only the patient of this booking can rate it")
        if booking.status != BookingStatus.COMPLETED.value:
            raise UnprocessableError("Only completed bookings can be rated")

        result = self.db.execute(
            update(Bookings)
            .where(
                Bookings.id == booking_id,
                Bookings.status == BookingStatus.COMPLETED.value,
                Bookings.rating.is_(None),
            )
            .values(
                rating=rating,
                review=review,
                reviewed_at=self.now().isoformat(timespec="seconds"),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.rollback()
            raise ConflictError("This booking has already been rated")

        self.db.commit()
        logger.info(f"Booking {booking.booking_code} rated {rating}")

        run_side_effect(
            self.db, "Rating notification", booking_id,
            self.notifier.notify,
            booking.patient_id, booking_id, TYPE_RATING,
            "Thank you for your feedback",
            f"Your rating for booking {booking.booking_code} has been received.",
        )
        return booking

    # ── Admin ────────────────────────────────────────────────────────────

    def delete_booking(self, booking_id: int) -> None:
        booking = self._get_or_raise(booking_id)
        code = booking.booking_code

        self.store.release(booking_id)
        self.db.execute(
            delete(Payments)
            .where(Payments.booking_id == booking_id)
            .execution_options(synchronize_session=False)
        )
        self.db.expire(booking, ["payment", "slots"])
        self.db.delete(booking)
        self.db.commit()
        logger.info(f"Booking {code} deleted")
