# backend/physio/routers/bookings.py
# Patient: create / own list / upcoming / cancel / rate. Admin: list, status, confirm, reject, complete, delete

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import Actor, get_actor, require_admin
from ..schemas.bookings import (
    BookingCancel,
    BookingCreate,
    BookingRating,
    BookingRead,
    BookingReject,
    BookingStatusExtra,
    BookingStatusUpdate,
    RatingRead,
)
from ..services.bookings.constants import BookingStatus
from ..services.bookings.service import BookingService

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("/", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return BookingService(db).create_booking(actor.user_id, data)


@router.get("/my", response_model=list[BookingRead])
def list_my_bookings(
    status: Optional[BookingStatus] = None,
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return BookingService(db).list_for_patient(actor.user_id, status, limit)


@router.get("/upcoming", response_model=list[BookingRead])
def list_upcoming(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return BookingService(db).upcoming(actor.user_id)


@router.get("/ratings", response_model=list[RatingRead])
def list_ratings(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return BookingService(db).list_ratings(limit, offset)


@router.get("/", response_model=list[BookingRead], dependencies=[Depends(require_admin)])
def list_bookings(
    status: Optional[BookingStatus] = None,
    date: Optional[date] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return BookingService(db).list_all(status, date, date_from, date_to, search, limit, offset)


@router.get("/code/{code}", response_model=BookingRead)
def get_booking_by_code(code: str, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return BookingService(db).get_by_code(code, actor)


@router.get("/{id}", response_model=BookingRead)
def get_booking(id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return BookingService(db).get_booking(id, actor)


@router.patch("/{id}/status", response_model=BookingRead)
def update_booking_status(
    id: int,
    data: BookingStatusUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    extra = BookingStatusExtra(**data.model_dump(exclude={"status"}))
    return BookingService(db).update_status(id, data.status, extra, actor)


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return BookingService(db).cancel_booking(id, actor, data.reason)


@router.post("/{id}/rating", response_model=BookingRead)
def rate_booking(
    id: int,
    data: BookingRating,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return BookingService(db).add_rating(id, actor, data.rating, data.review)


@router.post("/{id}/confirm", response_model=BookingRead, dependencies=[Depends(require_admin)])
def confirm_booking(id: int, db: Session = Depends(get_db)):
    return BookingService(db).confirm(id)


@router.post("/{id}/reject", response_model=BookingRead, dependencies=[Depends(require_admin)])
def reject_booking(id: int, data: BookingReject, db: Session = Depends(get_db)):
    return BookingService(db).reject(id, data.reason)


@router.post("/{id}/complete", response_model=BookingRead, dependencies=[Depends(require_admin)])
def complete_booking(id: int, db: Session = Depends(get_db)):
    return BookingService(db).complete(id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=[Depends(require_admin)])
def delete_booking(id: int, db: Session = Depends(get_db)):
    BookingService(db).delete_booking(id)
