# backend/physio/services/slots/__init__.py
"""
Slots module.

Weekly schedule → generator → slot store (conditional writes)
→ availability queries and admin overrides.
"""

from .config import BookingConfig, get_booking_config
from .schedule import WeeklyScheduleRepository
from .store import SlotStore
from .generator import SlotGenerator, build_time_slots
from .availability import AvailabilityService
from .admin import SlotAdminService

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "WeeklyScheduleRepository",
    "SlotStore",
    "SlotGenerator",
    "build_time_slots",
    "AvailabilityService",
    "SlotAdminService",
]
