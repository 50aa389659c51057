# backend/physio/routers/payments.py
# One payment per booking; no create/delete (created with the booking)

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import Actor, get_actor, require_admin
from ..schemas.bookings import PaymentRead
from ..schemas.payments import PaymentMethodUpdate, PaymentStatusUpdate, PaymentWithBooking
from ..services.bookings.constants import PaymentMethod, PaymentStatus
from ..services.payments import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=list[PaymentWithBooking], dependencies=[Depends(require_admin)])
def list_payments(
    status: Optional[PaymentStatus] = None,
    method: Optional[PaymentMethod] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return PaymentService(db).list_payments(status, method, limit, offset)


@router.get("/booking/{booking_id}", response_model=PaymentRead)
def get_payment(booking_id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return PaymentService(db).get_for_booking(booking_id, actor)


@router.patch("/booking/{booking_id}/status", response_model=PaymentRead, dependencies=[Depends(require_admin)])
def update_payment_status(booking_id: int, data: PaymentStatusUpdate, db: Session = Depends(get_db)):
    return PaymentService(db).update_status(booking_id, data.status, data.note)


@router.patch("/booking/{booking_id}/method", response_model=PaymentRead)
def update_payment_method(
    booking_id: int,
    data: PaymentMethodUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return PaymentService(db).update_method(booking_id, data.method, actor)
