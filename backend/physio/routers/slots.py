# backend/physio/routers/slots.py
"""
Slots API endpoints.

Patient:
  GET  /slots/dates         - dates with bookable slots (calendar)
  GET  /slots/available     - bookable slots of a date

Admin:
  GET    /slots/day               - every slot of a date with booking codes
  POST   /slots/generate          - generate a date range
  POST   /slots/{id}/block        - block an available slot
  POST   /slots/{id}/unblock      - unblock
  POST   /slots/holiday           - mark a date as holiday
  DELETE /slots/holiday/{date}    - cancel a holiday
  DELETE /slots/available/{date}  - prune available slots of a date
"""

from datetime import date

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import require_admin
from ..models.generated import Slots
from ..schemas.slots import (
    AvailableDate,
    DateSlotsResult,
    GeneratedDay,
    GenerateRangeRequest,
    HolidayRequest,
    SlotBlockRequest,
    SlotRead,
    SlotsDayResponse,
)
from ..services.slots import AvailabilityService, SlotAdminService, get_booking_config

router = APIRouter(prefix="/slots", tags=["slots"])


def _slot_read(slot: Slots, booking_code: str | None = None) -> SlotRead:
    return SlotRead(
        id=slot.id,
        date=slot.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        status=slot.status,
        note=slot.note,
        booking_code=booking_code,
    )


@router.get("/dates", response_model=list[AvailableDate])
def get_available_dates(
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    """Calendar of dates that still have bookable slots."""
    return AvailabilityService(db).available_dates(start_date, end_date)


@router.get("/available", response_model=SlotsDayResponse)
def get_available_slots(date: date, db: Session = Depends(get_db)):
    config = get_booking_config()
    slots = AvailabilityService(db, config).available_slots(date)
    return SlotsDayResponse(
        date=date,
        slots=[_slot_read(s) for s in slots],
        min_hours_before_booking=config.min_hours_before_booking,
    )


@router.get("/day", response_model=SlotsDayResponse, dependencies=[Depends(require_admin)])
def get_day_slots(date: date, db: Session = Depends(get_db)):
    config = get_booking_config()
    rows = AvailabilityService(db, config).slots_by_date(date)
    return SlotsDayResponse(
        date=date,
        slots=[_slot_read(slot, code) for slot, code in rows],
        min_hours_before_booking=config.min_hours_before_booking,
    )


@router.post("/generate", response_model=list[GeneratedDay], dependencies=[Depends(require_admin)])
def generate_slots(data: GenerateRangeRequest, db: Session = Depends(get_db)):
    return SlotAdminService(db).generate_range(data.start_date, data.end_date)


@router.post("/{id}/block", response_model=SlotRead, dependencies=[Depends(require_admin)])
def block_slot(id: int, data: SlotBlockRequest, db: Session = Depends(get_db)):
    return _slot_read(SlotAdminService(db).block_slot(id, data.note))


@router.post("/{id}/unblock", response_model=SlotRead, dependencies=[Depends(require_admin)])
def unblock_slot(id: int, db: Session = Depends(get_db)):
    return _slot_read(SlotAdminService(db).unblock_slot(id))


@router.post("/holiday", response_model=DateSlotsResult, dependencies=[Depends(require_admin)])
def set_holiday(data: HolidayRequest, db: Session = Depends(get_db)):
    count = SlotAdminService(db).set_holiday(data.date, data.note)
    return DateSlotsResult(date=data.date, affected_slots=count)


@router.delete("/holiday/{date}", response_model=DateSlotsResult, dependencies=[Depends(require_admin)])
def cancel_holiday(date: date, db: Session = Depends(get_db)):
    count = SlotAdminService(db).cancel_holiday(date)
    return DateSlotsResult(date=date, affected_slots=count)


@router.delete("/available/{date}", response_model=DateSlotsResult, dependencies=[Depends(require_admin)])
def delete_available_slots(date: date, db: Session = Depends(get_db)):
    count = SlotAdminService(db).delete_available(date)
    return DateSlotsResult(date=date, affected_slots=count)
