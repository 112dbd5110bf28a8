from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .timestamps import as_utc, utcnow


class EventEmailInvite(SQLModel, table=True):
    """Invite promoting an existing calendar participant into an event."""

    __tablename__ = "event_email_invites"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    event_id: UUID = Field(foreign_key="events.id", nullable=False, index=True)
    email: str = Field(max_length=255, index=True)
    user_id: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    token: str = Field(max_length=128, unique=True, index=True)
    expires_at: Optional[datetime] = Field(default=None, nullable=True)
    invited_by: Optional[UUID] = Field(
        default=None, foreign_key="users.id", nullable=True
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False)

    def is_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.expires_at is not None and as_utc(self.expires_at) < as_utc(now)
