# backend/physio/services/slots/config.py
"""
Booking configuration for slot generation and booking rules.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from functools import lru_cache

from ...config import settings


WEEKDAY_KEYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the slot/booking system.

    Attributes:
        slot_duration_minutes: Fixed length of every slot (15/30/60)
        max_per_day: Active bookings allowed on one calendar date
        advance_days: How many days ahead a booking may be placed
        min_hours_before_booking: Minimum notice between now and the slot start
        cancellation_hours: Patients may cancel only this long before the visit
        booking_code_prefix: Prefix of human readable booking codes
    """
    slot_duration_minutes: int = 60
    max_per_day: int = 4
    advance_days: int = 14
    min_hours_before_booking: int = 3
    cancellation_hours: int = 24
    booking_code_prefix: str = "CVA"

    def __post_init__(self):
        """Validate configuration."""
        if self.slot_duration_minutes not in (15, 30, 60):
            raise ValueError(
                f"slot_duration_minutes must be 15, 30, or 60, got {self.slot_duration_minutes}"
            )
        for name in ("max_per_day", "advance_days", "min_hours_before_booking", "cancellation_hours"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")

    @property
    def lead_time(self) -> timedelta:
        return timedelta(hours=self.min_hours_before_booking)

    @property
    def advance_window(self) -> timedelta:
        return timedelta(days=self.advance_days)

    @property
    def cancellation_window(self) -> timedelta:
        return timedelta(hours=self.cancellation_hours)


@lru_cache
def get_booking_config() -> BookingConfig:
    """Get booking configuration built from settings (singleton)."""
    return BookingConfig(
        slot_duration_minutes=settings.slot_duration_minutes,
        max_per_day=settings.max_per_day,
        advance_days=settings.advance_days,
        min_hours_before_booking=settings.min_hours_before_booking,
        cancellation_hours=settings.cancellation_hours,
        booking_code_prefix=settings.booking_code_prefix,
    )


# ── Time helpers ─────────────────────────────────────────────────────────


def time_str_to_minutes(value: str) -> int:
    """Convert "HH:MM" (or "HH:MM:SS") to minutes since midnight."""
    parts = value.split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid time string: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 24 and 0 <= minute < 60) or (hour == 24 and minute):
        raise ValueError(f"Invalid time string: {value!r}")
    return hour * 60 + minute


def minutes_to_time_str(minutes: int) -> str:
    """Convert minutes since midnight to "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str) -> str:
    """Normalize "H:MM" / "HH:MM:SS" to canonical "HH:MM"."""
    return minutes_to_time_str(time_str_to_minutes(value))


def weekday_key(target_date: date) -> str:
    """Template key for a calendar date (0 = Monday)."""
    return WEEKDAY_KEYS[target_date.weekday()]


def slot_datetime(target_date: date | str, start_time: str) -> datetime:
    """Instant a slot starts at."""
    if isinstance(target_date, str):
        target_date = date.fromisoformat(target_date)
    minutes = time_str_to_minutes(start_time)
    return datetime.combine(target_date, time.min) + timedelta(minutes=minutes)


def iter_dates(start: date, end: date):
    """Yield each calendar date in [start, end]."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)
