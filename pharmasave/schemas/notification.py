from typing import Optional, Dict, Any
from datetime import datetime

from pydantic import BaseModel


class Notification(BaseModel):
    id: str
    pharmacy_id: str
    type: str
    title: str
    message: str
    data: Optional[Dict[str, Any]] = None
    is_read: bool
    read_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationCount(BaseModel):
    unread_count: int
    refresh_interval_seconds: int
