"""
Patient notifications.

`notify` is the sink the booking flow writes to: the row is stored and a
`notification_created` event is pushed for live delivery. The remaining
methods back the patient's notification inbox.
"""

import logging
from typing import Optional

from redis import Redis
from sqlalchemy import update
from sqlalchemy.orm import Session

from ..errors import ForbiddenError, NotFoundError
from ..models.generated import Notifications
from .events import emit_event

logger = logging.getLogger(__name__)

TYPE_BOOKING = "booking"
TYPE_PAYMENT = "payment"
TYPE_RATING = "rating"


class NotificationService:

    def __init__(self, db: Session, redis: Redis | None = None):
        self.db = db
        self.redis = redis

    def notify(
        self,
        user_id: int,
        booking_id: Optional[int],
        type: str,
        title: str,
        message: str,
        link: Optional[str] = None,
    ) -> Notifications:
        notification = Notifications(
            user_id=user_id,
            booking_id=booking_id,
            type=type,
            title=title,
            message=message,
            link=link,
        )
        self.db.add(notification)
        self.db.commit()

        emit_event("notification_created", {
            "notification_id": notification.id,
            "user_id": user_id,
            "booking_id": booking_id,
            "title": title,
        }, redis=self.redis)
        return notification

    # ── Inbox ────────────────────────────────────────────────────────────

    def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> list[Notifications]:
        query = self.db.query(Notifications).filter(Notifications.user_id == user_id)
        if unread_only:
            query = query.filter(Notifications.is_read == 0)
        return (
            query.order_by(Notifications.id.desc())
            .limit(limit)
            .all()
        )

    def unread_count(self, user_id: int) -> int:
        return (
            self.db.query(Notifications)
            .filter(Notifications.user_id == user_id, Notifications.is_read == 0)
            .count()
        )

    def _owned(self, notification_id: int, user_id: int) -> Notifications:
        notification = self.db.get(Notifications, notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification.user_id != user_id:
            raise ForbiddenError("You do not have access to this notification")
        return notification

    def mark_read(self, notification_id: int, user_id: int) -> Notifications:
        notification = self._owned(notification_id, user_id)
        notification.is_read = 1
        self.db.commit()
        return notification

    def mark_all_read(self, user_id: int) -> int:
        result = self.db.execute(
            update(Notifications)
            .where(Notifications.user_id == user_id, Notifications.is_read == 0)
            .values(is_read=1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def delete(self, notification_id: int, user_id: int) -> None:
        notification = self._owned(notification_id, user_id)
        self.db.delete(notification)
        self.db.commit()
