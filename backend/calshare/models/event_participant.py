from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class EventParticipant(SQLModel, table=True):
    """Event participant with confirmation flag."""

    __tablename__ = "event_participants"
    __table_args__ = {"sqlite_autoincrement": False}

    event_id: UUID = Field(
        foreign_key="events.id", primary_key=True, nullable=False
    )
    user_id: UUID = Field(foreign_key="users.id", primary_key=True, nullable=False)
    has_confirmed: bool = Field(default=False)
    added_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = utcnow()
