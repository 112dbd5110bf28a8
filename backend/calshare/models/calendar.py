from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from .timestamps import utcnow


class Calendar(SQLModel, table=True):
    """Calendar owned by exactly one user and shared through memberships."""

    __tablename__ = "calendars"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    color: str = Field(default="#2563eb", max_length=16)
    # Personal calendar, one per user, never shared
    is_main: bool = Field(default=False, index=True)
    # System calendar with public holidays, read only
    is_holiday: bool = Field(default=False)
    is_visible: bool = Field(default=True)
    owner_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False)

    @property
    def is_shareable(self) -> bool:
        return not (self.is_main or self.is_holiday)

    def touch(self) -> None:
        self.updated_at = utcnow()
