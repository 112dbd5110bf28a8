from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class Notification(SQLModel, table=True):
    """In-app notification produced by the notification task."""

    __tablename__ = "notifications"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    kind: str = Field(max_length=50)
    calendar_id: UUID | None = Field(default=None, nullable=True, index=True)
    event_id: UUID | None = Field(default=None, nullable=True, index=True)
    title: str = Field(max_length=255)
    message: str = Field(max_length=1000)
    is_read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)
    read_at: datetime | None = Field(default=None, nullable=True)
