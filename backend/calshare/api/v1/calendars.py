from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from calshare.api.deps import get_current_user
from calshare.db import SessionDep
from calshare.models import User
from calshare.schemas import (
    CalendarCreate,
    CalendarMemberRead,
    CalendarMemberUpdate,
    CalendarReadWithRole,
    CalendarUpdate,
    EventRead,
    VisibilityUpdate,
)
from calshare.services import calendars as calendar_service
from calshare.services import memberships
from calshare.services.events import list_calendar_events
from calshare.services.permissions import get_user_calendar_role

router = APIRouter()


@router.get(
    "/",
    response_model=List[CalendarReadWithRole],
    summary="List calendars",
)
def list_calendars(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[CalendarReadWithRole]:
    return calendar_service.list_user_calendars(session, current_user)


@router.post(
    "/",
    response_model=CalendarReadWithRole,
    status_code=status.HTTP_201_CREATED,
    summary="Create calendar",
)
def create_calendar(
    payload: CalendarCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    calendar = calendar_service.create_calendar(session, current_user, payload)
    return calendar_service.serialize_calendar(calendar, role="owner")


@router.get(
    "/{calendar_id}",
    response_model=CalendarReadWithRole,
    summary="Get calendar by id",
)
def get_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    return calendar_service.get_calendar(session, current_user, calendar_id)


@router.put(
    "/{calendar_id}",
    response_model=CalendarReadWithRole,
    summary="Update calendar",
)
def update_calendar(
    calendar_id: UUID,
    payload: CalendarUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    calendar = calendar_service.update_calendar(session, current_user, calendar_id, payload)
    role = get_user_calendar_role(session, calendar, current_user.id)
    return calendar_service.serialize_calendar(calendar, role=role)


@router.patch(
    "/{calendar_id}/visibility",
    response_model=CalendarReadWithRole,
    summary="Show or hide calendar",
)
def toggle_visibility(
    calendar_id: UUID,
    payload: VisibilityUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    calendar = calendar_service.toggle_calendar_visibility(
        session, current_user, calendar_id, payload.is_visible
    )
    role = get_user_calendar_role(session, calendar, current_user.id)
    return calendar_service.serialize_calendar(calendar, role=role)


@router.delete(
    "/{calendar_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete calendar",
)
def delete_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    calendar_service.delete_calendar(session, current_user, calendar_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/{calendar_id}/events",
    response_model=List[EventRead],
    summary="List calendar events",
)
def list_events(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    starts_after: Optional[datetime] = Query(default=None, description="Only events ending after this moment"),
    ends_before: Optional[datetime] = Query(default=None, description="Only events starting before this moment"),
) -> List[EventRead]:
    return list_calendar_events(
        session,
        current_user,
        calendar_id,
        starts_after=starts_after,
        ends_before=ends_before,
    )


@router.get(
    "/{calendar_id}/participants",
    response_model=List[CalendarMemberRead],
    summary="List calendar participants",
)
def list_participants(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[CalendarMemberRead]:
    return memberships.list_calendar_participants(session, current_user, calendar_id)


@router.put(
    "/{calendar_id}/participants/{user_id}",
    response_model=List[CalendarMemberRead],
    summary="Change participant role",
)
def update_participant_role(
    calendar_id: UUID,
    user_id: UUID,
    payload: CalendarMemberUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[CalendarMemberRead]:
    memberships.update_participant_role(
        session, current_user, calendar_id, user_id, payload.role
    )
    return memberships.list_calendar_participants(session, current_user, calendar_id)


@router.delete(
    "/{calendar_id}/participants/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove participant",
)
def remove_participant(
    calendar_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    memberships.remove_participant(session, current_user, calendar_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{calendar_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Leave a shared calendar",
)
def leave_calendar(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    memberships.leave_calendar(session, current_user, calendar_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
