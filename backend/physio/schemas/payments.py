# backend/physio/schemas/payments.py

from typing import Optional
from pydantic import BaseModel

from ..services.bookings.constants import PaymentMethod, PaymentStatus
from .bookings import PaymentRead


class PaymentStatusUpdate(BaseModel):
    status: PaymentStatus
    note: Optional[str] = None


class PaymentMethodUpdate(BaseModel):
    method: PaymentMethod


class PaymentWithBooking(PaymentRead):
    booking_code: Optional[str] = None
