# backend/physio/services/payments.py
"""
Payments for home visits.

One payment row per booking, created as "awaiting" together with the
booking. Money changes hands at the visit, so an admin records the
outcome afterwards; the patient may switch method while the booking
is still waiting for confirmation.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..errors import ForbiddenError, NotFoundError, UnprocessableError
from ..identity import Actor
from ..models.generated import Bookings, Payments
from .bookings.constants import BookingStatus, PaymentMethod, PaymentStatus
from .bookings.state_machine import run_side_effect
from .notifications import TYPE_PAYMENT, NotificationService

logger = logging.getLogger(__name__)

PAYMENT_MESSAGES = {
    PaymentStatus.PAID: (
        "Payment received",
        "Payment for booking {code} has been received. Thank you!",
    ),
    PaymentStatus.FAILED: (
        "Payment failed",
        "Payment for booking {code} could not be completed. Please contact us.",
    ),
}


class PaymentService:

    def __init__(
        self,
        db: Session,
        notifier: NotificationService | None = None,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.db = db
        self.notifier = notifier or NotificationService(db)
        self.now = now

    def _get_booking(self, booking_id: int) -> Bookings:
        booking = self.db.get(Bookings, booking_id)
        if not booking:
            raise NotFoundError("Booking not found")
        return booking

    def _get_payment(self, booking: Bookings) -> Payments:
        if not booking.payment:
            raise NotFoundError("Payment not found for this booking")
        return booking.payment

    def get_for_booking(self, booking_id: int, actor: Actor) -> Payments:
        booking = self._get_booking(booking_id)
        if not actor.is_admin and booking.patient_id != actor.user_id:
            raise ForbiddenError("You do not have access to this payment")
        return self._get_payment(booking)

    def list_payments(
        self,
        status: Optional[PaymentStatus] = None,
        method: Optional[PaymentMethod] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[dict]:
        query = self.db.query(Payments, Bookings.booking_code).join(
            Bookings, Payments.booking_id == Bookings.id
        )
        if status:
            query = query.filter(Payments.status == PaymentStatus(status).value)
        if method:
            query = query.filter(Payments.method == PaymentMethod(method).value)

        rows = query.order_by(Payments.id.desc()).offset(offset).limit(limit).all()
        return [
            {
                "id": p.id,
                "booking_id": p.booking_id,
                "booking_code": code,
                "method": p.method,
                "status": p.status,
                "amount": p.amount,
                "paid_at": p.paid_at,
                "note": p.note,
            }
            for p, code in rows
        ]

    def update_status(self, booking_id: int, status: PaymentStatus, note: Optional[str] = None) -> Payments:
        status = PaymentStatus(status)
        booking = self._get_booking(booking_id)
        payment = self._get_payment(booking)

        payment.status = status.value
        if status == PaymentStatus.PAID:
            payment.paid_at = self.now().isoformat(timespec="seconds")
        if note is not None:
            payment.note = note
        self.db.commit()
        logger.info(f"Payment of booking {booking.booking_code} → {status.value}")

        if status in PAYMENT_MESSAGES:
            title, template = PAYMENT_MESSAGES[status]
            run_side_effect(
                self.db, "Payment notification", booking_id,
                self.notifier.notify,
                booking.patient_id, booking_id, TYPE_PAYMENT,
                title, template.format(code=booking.booking_code),
                f"/booking/{booking.booking_code}",
            )
        return payment

    def update_method(self, booking_id: int, method: PaymentMethod, actor: Actor) -> Payments:
        method = PaymentMethod(method)
        booking = self._get_booking(booking_id)
        if not actor.is_admin and booking.patient_id != actor.user_id:
            raise ForbiddenError("You do not have access to this payment")
        if booking.status != BookingStatus.PENDING_CONFIRMATION.value:
            raise UnprocessableError("Payment method can only be changed before the booking is confirmed")

        payment = self._get_payment(booking)
        payment.method = method.value
        booking.payment_method = method.value
        booking.updated_at = self.now().isoformat(timespec="seconds")
        self.db.commit()
        logger.info(f"Payment method of booking {booking.booking_code} → {method.value}")
        return payment
