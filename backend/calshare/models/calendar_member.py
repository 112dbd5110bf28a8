from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class ParticipantRole(str, Enum):
    ADMIN = "admin"  # manages calendar settings, sharing and all events
    CREATOR = "creator"  # creates events and edits their own
    READER = "reader"  # view only


class CalendarMember(SQLModel, table=True):
    """Calendar membership with per-user role. The owner never has a row."""

    __tablename__ = "calendar_members"
    __table_args__ = {"sqlite_autoincrement": False}

    calendar_id: UUID = Field(
        foreign_key="calendars.id", primary_key=True, nullable=False
    )
    user_id: UUID = Field(foreign_key="users.id", primary_key=True, nullable=False)
    role: ParticipantRole = Field(default=ParticipantRole.READER)
    added_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = utcnow()
