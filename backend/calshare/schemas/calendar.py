from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from calshare.models.calendar_member import ParticipantRole


class CalendarBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    color: str = Field(default="#2563eb", max_length=16)


class CalendarCreate(CalendarBase):
    pass


class CalendarUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=500)
    color: Optional[str] = Field(default=None, max_length=16)


class VisibilityUpdate(BaseModel):
    is_visible: bool


class CalendarRead(CalendarBase):
    id: UUID
    owner_id: UUID
    is_main: bool
    is_holiday: bool
    is_visible: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarReadWithRole(CalendarRead):
    # "owner" or one of the participant roles
    current_user_role: Optional[str] = None


class CalendarMemberRead(BaseModel):
    user_id: UUID
    email: str
    username: str
    full_name: Optional[str] = None
    role: str
    added_at: Optional[datetime] = None


class CalendarMemberUpdate(BaseModel):
    role: ParticipantRole
