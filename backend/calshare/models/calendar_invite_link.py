from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .calendar_member import ParticipantRole
from .timestamps import as_utc, utcnow


class CalendarInviteLink(SQLModel, table=True):
    """Anonymous, multi-use invite link. The id doubles as the token."""

    __tablename__ = "calendar_invite_links"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    role: ParticipantRole = Field(default=ParticipantRole.READER)
    expires_at: Optional[datetime] = Field(default=None, nullable=True)
    created_by: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.expires_at is not None and as_utc(self.expires_at) < as_utc(now)
