from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class Event(SQLModel, table=True):
    """Calendar event."""

    __tablename__ = "events"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    creator_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: str = Field(default="#2563eb", max_length=16)
    category_id: Optional[UUID] = Field(
        default=None, foreign_key="event_categories.id", nullable=True, index=True
    )
    starts_at: datetime = Field(nullable=False, index=True)
    ends_at: datetime = Field(nullable=False, index=True)
    is_completed: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = utcnow()
