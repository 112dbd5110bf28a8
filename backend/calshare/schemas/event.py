from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from calshare.models.timestamps import as_utc


class EventBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: str = Field(default="#2563eb", max_length=16)
    category_id: Optional[UUID] = None
    starts_at: datetime
    ends_at: datetime

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, starts_at: datetime) -> datetime:
        return as_utc(starts_at)

    @field_validator("ends_at")
    @classmethod
    def check_ends_after_start(cls, ends_at: datetime, info: ValidationInfo) -> datetime:
        ends_at = as_utc(ends_at)
        starts_at: datetime | None = info.data.get("starts_at")
        if starts_at and ends_at < starts_at:
            raise ValueError("ends_at must be greater than or equal to starts_at")
        return ends_at


class EventCreate(EventBase):
    calendar_id: UUID


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    color: Optional[str] = Field(default=None, max_length=16)
    category_id: Optional[UUID] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_completed: Optional[bool] = None

    @field_validator("starts_at")
    @classmethod
    def normalize_starts_at(cls, starts_at: datetime | None) -> datetime | None:
        return as_utc(starts_at)

    @field_validator("ends_at")
    @classmethod
    def check_ends_after_start(
        cls, ends_at: datetime | None, info: ValidationInfo
    ) -> datetime | None:
        ends_at = as_utc(ends_at)
        starts_at: datetime | None = info.data.get("starts_at")
        if starts_at and ends_at and ends_at < starts_at:
            raise ValueError("ends_at must be greater than or equal to starts_at")
        return ends_at


class EventRead(EventBase):
    id: UUID
    calendar_id: UUID
    creator_id: UUID
    is_completed: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class EventParticipantRead(BaseModel):
    user_id: UUID
    email: str
    username: str
    full_name: Optional[str] = None
    has_confirmed: bool
    is_creator: bool = False


class ConfirmationUpdate(BaseModel):
    has_confirmed: bool
