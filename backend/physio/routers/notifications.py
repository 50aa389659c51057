# backend/physio/routers/notifications.py
# Patient inbox; every route is scoped to the caller

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..identity import Actor, get_actor
from ..schemas.notifications import MarkAllResult, NotificationRead, UnreadCount
from ..services.notifications import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=list[NotificationRead])
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    return NotificationService(db).list_for_user(actor.user_id, unread_only, limit)


@router.get("/unread-count", response_model=UnreadCount)
def unread_count(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return {"unread": NotificationService(db).unread_count(actor.user_id)}


@router.post("/read-all", response_model=MarkAllResult)
def mark_all_read(actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return {"updated": NotificationService(db).mark_all_read(actor.user_id)}


@router.post("/{id}/read", response_model=NotificationRead)
def mark_read(id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    return NotificationService(db).mark_read(id, actor.user_id)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(id: int, actor: Actor = Depends(get_actor), db: Session = Depends(get_db)):
    NotificationService(db).delete(id, actor.user_id)
