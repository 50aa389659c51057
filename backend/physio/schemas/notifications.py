# backend/physio/schemas/notifications.py

from typing import Optional
from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: int
    user_id: int
    booking_id: Optional[int] = None
    type: str
    title: str
    message: str
    link: Optional[str] = None
    is_read: bool
    created_at: Optional[str] = None

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int


class MarkAllResult(BaseModel):
    updated: int
