# backend/physio/services/bookings/constants.py
"""
Booking statuses and the legal transition table.
"""

from enum import Enum


class BookingStatus(str, Enum):
    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    EN_ROUTE = "en_route"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED_BY_PATIENT = "cancelled_by_patient"
    CANCELLED_BY_SYSTEM = "cancelled_by_system"


class PaymentMethod(str, Enum):
    CASH_ON_VISIT = "cash_on_visit"
    TRANSFER_ON_VISIT = "transfer_on_visit"


class PaymentStatus(str, Enum):
    AWAITING = "awaiting"
    PAID = "paid"
    FAILED = "failed"


S = BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    S.PENDING_CONFIRMATION: frozenset({
        S.CONFIRMED, S.REJECTED, S.CANCELLED_BY_PATIENT, S.CANCELLED_BY_SYSTEM,
    }),
    S.CONFIRMED: frozenset({
        S.SCHEDULED, S.EN_ROUTE, S.IN_PROGRESS, S.COMPLETED,
        S.CANCELLED_BY_PATIENT, S.CANCELLED_BY_SYSTEM,
    }),
    S.SCHEDULED: frozenset({
        S.EN_ROUTE, S.IN_PROGRESS, S.COMPLETED,
        S.CANCELLED_BY_PATIENT, S.CANCELLED_BY_SYSTEM,
    }),
    S.EN_ROUTE: frozenset({S.IN_PROGRESS, S.COMPLETED, S.CANCELLED_BY_SYSTEM}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
    S.REJECTED: frozenset(),
    S.CANCELLED_BY_PATIENT: frozenset(),
    S.CANCELLED_BY_SYSTEM: frozenset(),
}

# Entering one of these gives the slot back
RELEASE_STATUSES = frozenset({S.REJECTED, S.CANCELLED_BY_PATIENT, S.CANCELLED_BY_SYSTEM})

# Bookings in these statuses do not count against the daily quota
INACTIVE_STATUSES = RELEASE_STATUSES

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)

PATIENT_CANCELLABLE = frozenset({S.PENDING_CONFIRMATION, S.CONFIRMED, S.SCHEDULED})

UPCOMING_STATUSES = frozenset({S.CONFIRMED, S.SCHEDULED, S.EN_ROUTE})

# target status → e-mail kind sent to the patient
EMAIL_ON_STATUS = {
    S.CONFIRMED: "confirmed",
    S.REJECTED: "rejected",
}

DEFAULT_REJECTION_REASON = "The requested time is not available"

STATUS_MESSAGES = {
    S.CONFIRMED: (
        "Booking confirmed",
        "Booking {code} has been confirmed. The physiotherapist will visit as scheduled.",
    ),
    S.REJECTED: (
        "Booking rejected",
        "Sorry, booking {code} could not be processed. Reason: {reason}",
    ),
    S.SCHEDULED: (
        "Booking scheduled",
        "Booking {code} is scheduled for {date} at {time}.",
    ),
    S.EN_ROUTE: (
        "Physiotherapist on the way",
        "The physiotherapist is on the way to your address for booking {code}.",
    ),
    S.IN_PROGRESS: (
        "Session started",
        "The physiotherapy session for booking {code} is in progress.",
    ),
    S.COMPLETED: (
        "Session completed",
        "Thank you! Session {code} is complete. Please leave a rating.",
    ),
    S.CANCELLED_BY_PATIENT: (
        "Booking cancelled",
        "Booking {code} has been cancelled.",
    ),
    S.CANCELLED_BY_SYSTEM: (
        "Booking cancelled",
        "Booking {code} has been cancelled by the system.",
    ),
}
