from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel


class NotificationRead(BaseModel):
    id: UUID
    user_id: UUID
    kind: str
    calendar_id: UUID | None
    event_id: UUID | None
    title: str
    message: str
    is_read: bool
    created_at: datetime
    read_at: datetime | None

    model_config = {"from_attributes": True}


class NotificationUpdate(BaseModel):
    is_read: bool
