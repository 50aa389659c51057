# backend/physio/schemas/slots.py
"""
Pydantic schemas for slots API.
"""

from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field

SlotStatus = Literal["available", "booked", "blocked_by_admin", "holiday"]


class SlotRead(BaseModel):
    """A single slot of a date."""
    id: int
    date: date
    start_time: str  # "HH:MM"
    end_time: str
    status: SlotStatus
    note: Optional[str] = None
    booking_code: Optional[str] = None

    model_config = {"from_attributes": True}


class AvailableDate(BaseModel):
    """A date with at least one bookable slot."""
    date: date
    available_slots: int


class SlotsDayResponse(BaseModel):
    date: date
    slots: list[SlotRead]
    min_hours_before_booking: int


class SlotBlockRequest(BaseModel):
    note: Optional[str] = None


class HolidayRequest(BaseModel):
    date: date
    note: Optional[str] = None


class DateSlotsResult(BaseModel):
    date: date
    affected_slots: int


class GenerateRangeRequest(BaseModel):
    start_date: date
    end_date: date


class GeneratedDay(BaseModel):
    date: date
    count: int = Field(description="Slots existing for the date after generation")
