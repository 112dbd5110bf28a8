"""Request and response bodies for the three invitation channels."""

from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from calshare.models.calendar_member import ParticipantRole


class InviteLinkCreate(BaseModel):
    # None means the link never expires
    expire_in_days: Optional[int] = Field(default=None, ge=1)
    role: Optional[ParticipantRole] = None


class InviteLinkRead(BaseModel):
    id: UUID
    calendar_id: UUID
    role: ParticipantRole
    expires_at: Optional[datetime] = None
    created_by: Optional[UUID] = None
    created_at: datetime
    invite_url: str = ""

    model_config = ConfigDict(from_attributes=True)


class InviteLinkInfo(BaseModel):
    calendar_id: UUID
    name: str
    description: Optional[str] = None
    color: str
    owner_name: Optional[str] = None
    role: ParticipantRole
    participant_count: int
    expires_at: Optional[datetime] = None


class CalendarEmailInviteCreate(BaseModel):
    email: EmailStr
    role: Optional[ParticipantRole] = None
    expire_in_days: Optional[int] = Field(default=None, ge=1)


class CalendarEmailInviteRead(BaseModel):
    id: UUID
    calendar_id: UUID
    email: str
    role: ParticipantRole
    expires_at: Optional[datetime] = None
    invited_by: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CalendarEmailInviteInfo(BaseModel):
    calendar_id: UUID
    calendar_name: str
    calendar_description: Optional[str] = None
    calendar_color: str
    email: str
    role: ParticipantRole
    invited_by: Optional[str] = None
    expires_at: Optional[datetime] = None


class EventEmailInviteCreate(BaseModel):
    emails: list[EmailStr] = Field(min_length=1)
    expire_in_days: Optional[int] = Field(default=None, ge=1)


class EventEmailInviteRead(BaseModel):
    id: UUID
    event_id: UUID
    email: str
    user_id: Optional[UUID] = None
    expires_at: Optional[datetime] = None
    invited_by: Optional[UUID] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventEmailInviteInfo(BaseModel):
    event_id: UUID
    event_name: str
    description: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    calendar_id: UUID
    calendar_name: str
    email: str
    invited_by: Optional[str] = None
    expires_at: Optional[datetime] = None
