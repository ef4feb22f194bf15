"""Pydantic schemas for notifications."""
from datetime import datetime

from pydantic import BaseModel


class NotificationResponse(BaseModel):
    id: int
    donation_id: int | None
    type: str
    message: str
    is_read: bool
    created_at: datetime

    class Config:
        from_attributes = True
