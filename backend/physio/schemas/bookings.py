# backend/physio/schemas/bookings.py

import re
from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from ..services.bookings.constants import BookingStatus, PaymentMethod, PaymentStatus

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")
# Google Maps link or "lat,lng"
_COORDINATES_RE = re.compile(r"^-?\d+(\.\d+)?,\s*-?\d+(\.\d+)?$")


class BookingCreate(BaseModel):
    service_id: int
    date: date
    start_time: str = Field(description="Time in HH:MM format")
    address: str = Field(min_length=1)
    complaint: str = Field(min_length=1)
    notes: Optional[str] = None
    coordinates: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH_ON_VISIT

    @field_validator("start_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Accept HH:MM or HH:MM:SS, keep HH:MM."""
        if not _TIME_RE.match(v):
            raise ValueError("Time must be a valid HH:MM between 00:00 and 23:59")
        return v[:5]

    @field_validator("coordinates")
    @classmethod
    def validate_coordinates(cls, v: Optional[str]) -> Optional[str]:
        if not v:
            return None
        v = v.strip()
        if not (v.startswith("http") or _COORDINATES_RE.match(v)):
            raise ValueError("Coordinates must be a maps link or \"lat,lng\"")
        return v


class BookingStatusExtra(BaseModel):
    rejection_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    admin_notes: Optional[str] = None


class BookingStatusUpdate(BookingStatusExtra):
    status: BookingStatus


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingReject(BaseModel):
    reason: Optional[str] = None


class BookingRating(BaseModel):
    rating: int = Field(ge=1, le=5)
    review: Optional[str] = None


class PaymentRead(BaseModel):
    id: int
    booking_id: int
    method: PaymentMethod
    status: PaymentStatus
    amount: float
    paid_at: Optional[str] = None
    note: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingRead(BaseModel):
    id: int
    booking_code: str

    patient_id: int
    service_id: int

    date: date
    start_time: str

    address: str
    complaint: str
    notes: Optional[str] = None
    coordinates: Optional[str] = None

    status: BookingStatus
    payment_method: PaymentMethod

    rejection_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    admin_notes: Optional[str] = None
    confirmed_at: Optional[str] = None
    completed_at: Optional[str] = None

    rating: Optional[int] = None
    review: Optional[str] = None

    payment: Optional[PaymentRead] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {"from_attributes": True}


class RatingRead(BaseModel):
    booking_id: int
    booking_code: str
    rating: int
    review: Optional[str] = None
    reviewed_at: Optional[str] = None
    patient_name: Optional[str] = None
    service_name: Optional[str] = None
