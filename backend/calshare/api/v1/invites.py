"""
Invitation endpoints.

Management routes live under the calendar or event they belong to and need
sharing rights. The ``/invites/...`` routes are what an invitee opens: the
info routes are public previews, accepting requires a logged in user.
"""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from calshare.api.deps import get_current_user
from calshare.db import SessionDep
from calshare.models import CalendarInviteLink, User
from calshare.schemas import (
    CalendarEmailInviteCreate,
    CalendarEmailInviteInfo,
    CalendarEmailInviteRead,
    CalendarReadWithRole,
    EventEmailInviteCreate,
    EventEmailInviteInfo,
    EventEmailInviteRead,
    EventParticipantRead,
    InviteLinkCreate,
    InviteLinkInfo,
    InviteLinkRead,
)
from calshare.services import calendar_email_invites, event_email_invites, invite_links
from calshare.services.calendars import serialize_calendar
from calshare.services.participation import list_event_participants
from calshare.services.permissions import get_user_calendar_role

router = APIRouter()


def _serialize_link(link: CalendarInviteLink) -> InviteLinkRead:
    base = InviteLinkRead.model_validate(link)
    return base.model_copy(update={"invite_url": invite_links.build_invite_url(link)})


# Invite links


@router.post(
    "/calendars/{calendar_id}/invite-links",
    response_model=InviteLinkRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create invite link",
)
def create_invite_link(
    calendar_id: UUID,
    payload: InviteLinkCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> InviteLinkRead:
    link = invite_links.create_invite_link(
        session,
        current_user,
        calendar_id,
        expire_in_days=payload.expire_in_days,
        role=payload.role,
    )
    return _serialize_link(link)


@router.get(
    "/calendars/{calendar_id}/invite-links",
    response_model=List[InviteLinkRead],
    summary="List invite links",
)
def list_invite_links(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[InviteLinkRead]:
    links = invite_links.list_invite_links(session, current_user, calendar_id)
    return [_serialize_link(link) for link in links]


@router.delete(
    "/calendars/{calendar_id}/invite-links/{link_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete invite link",
)
def delete_invite_link(
    calendar_id: UUID,
    link_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    invite_links.delete_invite_link(session, current_user, calendar_id, link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/invites/links/{link_id}",
    response_model=InviteLinkInfo,
    summary="Preview the calendar behind an invite link",
)
def get_invite_link_info(link_id: UUID, session: SessionDep) -> InviteLinkInfo:
    return invite_links.get_invite_link_info(session, link_id)


@router.post(
    "/invites/links/{link_id}/accept",
    response_model=CalendarReadWithRole,
    summary="Join a calendar through an invite link",
)
def accept_invite_link(
    link_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    calendar = invite_links.accept_invite_link(session, current_user, link_id)
    role = get_user_calendar_role(session, calendar, current_user.id)
    return serialize_calendar(calendar, role=role)


# Calendar email invites


@router.post(
    "/calendars/{calendar_id}/email-invites",
    response_model=CalendarEmailInviteRead,
    status_code=status.HTTP_201_CREATED,
    summary="Invite someone to a calendar by email",
)
def create_calendar_email_invite(
    calendar_id: UUID,
    payload: CalendarEmailInviteCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarEmailInviteRead:
    return calendar_email_invites.create_calendar_email_invite(
        session,
        current_user,
        calendar_id,
        payload.email,
        role=payload.role,
        expire_in_days=payload.expire_in_days,
    )


@router.get(
    "/calendars/{calendar_id}/email-invites",
    response_model=List[CalendarEmailInviteRead],
    summary="List pending calendar email invites",
)
def list_calendar_email_invites(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[CalendarEmailInviteRead]:
    return calendar_email_invites.list_calendar_email_invites(session, current_user, calendar_id)


@router.delete(
    "/calendars/{calendar_id}/email-invites/{invite_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel a calendar email invite",
)
def delete_calendar_email_invite(
    calendar_id: UUID,
    invite_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    calendar_email_invites.delete_calendar_email_invite(
        session, current_user, calendar_id, invite_id
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/invites/calendar/{token}",
    response_model=CalendarEmailInviteInfo,
    summary="Preview a calendar email invite",
)
def get_calendar_email_invite_info(token: str, session: SessionDep) -> CalendarEmailInviteInfo:
    return calendar_email_invites.get_calendar_email_invite_info(session, token)


@router.post(
    "/invites/calendar/{token}/accept",
    response_model=CalendarReadWithRole,
    summary="Accept a calendar email invite",
)
def accept_calendar_email_invite(
    token: str,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> CalendarReadWithRole:
    calendar = calendar_email_invites.accept_calendar_email_invite(session, current_user, token)
    role = get_user_calendar_role(session, calendar, current_user.id)
    return serialize_calendar(calendar, role=role)


# Event email invites


@router.post(
    "/events/{event_id}/email-invites",
    response_model=List[EventEmailInviteRead],
    status_code=status.HTTP_201_CREATED,
    summary="Invite calendar participants to an event",
)
def create_event_email_invites(
    event_id: UUID,
    payload: EventEmailInviteCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventEmailInviteRead]:
    return event_email_invites.create_event_email_invites(
        session,
        current_user,
        event_id,
        payload.emails,
        expire_in_days=payload.expire_in_days,
    )


@router.get(
    "/events/{event_id}/email-invites",
    response_model=List[EventEmailInviteRead],
    summary="List pending event invites",
)
def list_event_email_invites(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventEmailInviteRead]:
    return event_email_invites.list_event_email_invites(session, current_user, event_id)


@router.delete(
    "/events/{event_id}/email-invites/{invite_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel an event invite",
)
def delete_event_email_invite(
    event_id: UUID,
    invite_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    event_email_invites.delete_event_email_invite(session, current_user, event_id, invite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/invites/event/{token}",
    response_model=EventEmailInviteInfo,
    summary="Preview an event invite",
)
def get_event_email_invite_info(token: str, session: SessionDep) -> EventEmailInviteInfo:
    return event_email_invites.get_event_email_invite_info(session, token)


@router.post(
    "/invites/event/{token}/accept",
    response_model=List[EventParticipantRead],
    summary="Accept an event invite",
)
def accept_event_email_invite(
    token: str,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventParticipantRead]:
    participant = event_email_invites.accept_event_email_invite(session, current_user, token)
    return list_event_participants(session, current_user, participant.event_id)
