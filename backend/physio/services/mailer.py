"""
Booking e-mails.

Builds subject and body for a booking snapshot and queues the job on
Redis for the mail worker. Delivery is never awaited and a failed
enqueue is logged, not raised.
"""

import logging
from typing import Optional

from redis import Redis

from ..config import Settings, settings as default_settings
from .events import enqueue_email

logger = logging.getLogger(__name__)

NEW_BOOKING_ADMIN_ALERT = "new_booking_admin_alert"
CONFIRMED = "confirmed"
REJECTED = "rejected"

EMAIL_KINDS = (NEW_BOOKING_ADMIN_ALERT, CONFIRMED, REJECTED)

DEFAULT_REJECTION_REASON = "The requested time is not available"


def maps_link(coordinates: Optional[str]) -> Optional[str]:
    """Google Maps URL for a stored link or "lat,lng" pair."""
    if not coordinates:
        return None
    if coordinates.startswith("http"):
        return coordinates
    return f"https://www.google.com/maps?q={coordinates.replace(' ', '')}"


class BookingMailer:

    def __init__(self, redis: Redis | None = None, settings: Settings | None = None):
        self.redis = redis
        self.settings = settings or default_settings

    def send_booking_email(self, booking: dict, kind: str, extra: Optional[dict] = None) -> bool:
        """Queue a booking e-mail. Returns True when queued."""
        if kind not in EMAIL_KINDS:
            logger.error(f"Unknown booking e-mail kind: {kind}")
            return False

        message = self.build_message(booking, kind, extra or {})
        if not message["to"]:
            logger.warning(f"No recipient for {kind} e-mail of booking {booking.get('booking_code')}")
            return False

        try:
            enqueue_email(message, redis=self.redis)
            return True
        except Exception:
            logger.exception(f"Failed to queue {kind} e-mail for booking {booking.get('booking_code')}")
            return False

    def build_message(self, booking: dict, kind: str, extra: dict) -> dict:
        code = booking.get("booking_code")
        when = f"{booking.get('date')} {booking.get('start_time')}"
        link = f"{self.settings.frontend_url}/booking/{code}"

        if kind == NEW_BOOKING_ADMIN_ALERT:
            to = self.settings.admin_email
            subject = f"[{self.settings.provider_name}] New booking: {code}"
            body = (
                f"A new booking is waiting for confirmation.\n\n"
                f"Code: {code}\n"
                f"Service: {booking.get('service_name')}\n"
                f"Patient: {booking.get('patient_name')}\n"
                f"Schedule: {when}\n"
                f"Address: {booking.get('address')}\n"
                f"Complaint: {booking.get('complaint')}\n"
            )
            maps = maps_link(booking.get("coordinates"))
            if maps:
                body += f"Maps: {maps}\n"
        elif kind == CONFIRMED:
            to = booking.get("patient_email")
            subject = f"Booking {code} confirmed"
            body = (
                f"Your booking {code} for {booking.get('service_name')} on {when} is confirmed.\n"
                f"Our physiotherapist will visit {booking.get('address')}.\n\n"
                f"Contact: {self.settings.provider_name}, {self.settings.provider_phone}\n"
                f"Details: {link}\n"
            )
        else:
            reason = extra.get("rejection_reason") or DEFAULT_REJECTION_REASON
            to = booking.get("patient_email")
            subject = f"Booking {code} could not be accepted"
            body = (
                f"We are sorry, your booking {code} on {when} could not be accepted.\n"
                f"Reason: {reason}\n\n"
                f"Please choose another time: {self.settings.frontend_url}\n"
            )

        return {
            "kind": kind,
            "to": to,
            "subject": subject,
            "body": body,
            "booking_code": code,
        }
