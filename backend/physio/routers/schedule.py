# backend/physio/routers/schedule.py
# Weekly template: GET public, PATCH/toggle admin only. No create/delete (7 fixed rows)

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import require_admin
from ..schemas.schedule import Weekday, WeeklyScheduleRead, WeeklyScheduleUpdate
from ..services.slots import WeeklyScheduleRepository

router = APIRouter(prefix="/schedule", tags=["schedule"])


@router.get("/", response_model=list[WeeklyScheduleRead])
def list_schedule(db: Session = Depends(get_db)):
    return WeeklyScheduleRepository(db).get_all()


@router.patch("/{weekday}", response_model=WeeklyScheduleRead, dependencies=[Depends(require_admin)])
def update_schedule(weekday: Weekday, data: WeeklyScheduleUpdate, db: Session = Depends(get_db)):
    row = WeeklyScheduleRepository(db).update(weekday, data)
    db.commit()
    return row


@router.post("/{weekday}/toggle", response_model=WeeklyScheduleRead, dependencies=[Depends(require_admin)])
def toggle_schedule(weekday: Weekday, db: Session = Depends(get_db)):
    row = WeeklyScheduleRepository(db).toggle_active(weekday)
    db.commit()
    return row
