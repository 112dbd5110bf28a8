from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .calendar_member import ParticipantRole
from .timestamps import as_utc, utcnow


class CalendarEmailInvite(SQLModel, table=True):
    """Single-use invite addressed to one email; deleted on acceptance."""

    __tablename__ = "calendar_email_invites"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    calendar_id: UUID = Field(foreign_key="calendars.id", nullable=False, index=True)
    # stored lower-case
    email: str = Field(max_length=255, index=True)
    role: ParticipantRole = Field(default=ParticipantRole.READER)
    token: str = Field(max_length=128, unique=True, index=True)
    expires_at: Optional[datetime] = Field(default=None, nullable=True)
    invited_by: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.expires_at is not None and as_utc(self.expires_at) < as_utc(now)
