"""
Calendar invite links.

A link is anonymous and multi-use: anyone holding its id may join the calendar
with the link's role, once per user, until the link expires or is deleted.
Accepting a link never deletes it.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.config import settings
from calshare.core.errors import ForbiddenError, NotFoundError
from calshare.db import commit_or_conflict
from calshare.models import (
    Calendar,
    CalendarInviteLink,
    CalendarMember,
    ParticipantRole,
    User,
)
from calshare.schemas import InviteLinkInfo
from calshare.services.authorization import CalendarAction
from calshare.services.expiry import ensure_not_expired, expires_at_from_days
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import add_calendar_member, ensure_calendar_access

logger = logging.getLogger(__name__)

LINK_NOT_FOUND = "Invite link not found or invalid"
LINK_EXPIRED = "Invite link has expired"
LINK_CALENDAR_MISSING = "Calendar associated with this invite link was not found"


def build_invite_url(link: CalendarInviteLink) -> str:
    return f"{settings.FRONTEND_URL}/calendar/invite/{link.id}"


def create_invite_link(
    session: Session,
    user: User,
    calendar_id: UUID,
    *,
    expire_in_days: int | None = None,
    role: ParticipantRole | None = None,
) -> CalendarInviteLink:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_SHARING)

    link = CalendarInviteLink(
        calendar_id=calendar_id,
        role=role or settings.DEFAULT_INVITE_ROLE,
        expires_at=expires_at_from_days(expire_in_days),
        created_by=user.id,
    )
    session.add(link)
    session.commit()
    session.refresh(link)

    logger.info(f"User {user.id} created invite link {link.id} for calendar {calendar_id}")
    return link


def list_invite_links(
    session: Session, user: User, calendar_id: UUID
) -> list[CalendarInviteLink]:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_SHARING)
    return list(
        session.exec(
            select(CalendarInviteLink)
            .where(CalendarInviteLink.calendar_id == calendar_id)
            .order_by(CalendarInviteLink.created_at.desc())
        ).all()
    )


def delete_invite_link(
    session: Session, user: User, calendar_id: UUID, link_id: UUID
) -> None:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_SHARING)

    link = session.get(CalendarInviteLink, link_id)
    if not link or link.calendar_id != calendar_id:
        raise NotFoundError("Invite link not found")

    session.delete(link)
    session.commit()
    logger.info(f"User {user.id} deleted invite link {link_id}")


def _get_live_link(session: Session, link_id: UUID) -> tuple[CalendarInviteLink, Calendar]:
    link = session.get(CalendarInviteLink, link_id)
    if not link:
        raise NotFoundError(LINK_NOT_FOUND)
    ensure_not_expired(link, LINK_EXPIRED)

    calendar = session.get(Calendar, link.calendar_id)
    if not calendar:
        raise NotFoundError(LINK_CALENDAR_MISSING)
    return link, calendar


def get_invite_link_info(session: Session, link_id: UUID) -> InviteLinkInfo:
    """Public preview of the calendar behind a link; no authentication needed."""
    link, calendar = _get_live_link(session, link_id)
    owner = session.get(User, calendar.owner_id)
    participant_count = len(
        session.exec(
            select(CalendarMember.user_id).where(
                CalendarMember.calendar_id == calendar.id
            )
        ).all()
    )
    return InviteLinkInfo(
        calendar_id=calendar.id,
        name=calendar.name,
        description=calendar.description,
        color=calendar.color,
        owner_name=owner.display_name if owner else None,
        role=link.role,
        participant_count=participant_count,
        expires_at=link.expires_at,
    )


def accept_invite_link(session: Session, user: User, link_id: UUID) -> Calendar:
    link, calendar = _get_live_link(session, link_id)
    if not calendar.is_shareable:
        raise ForbiddenError("This calendar cannot be shared")

    membership = add_calendar_member(
        session,
        calendar=calendar,
        user_id=user.id,
        role=link.role,
    )
    commit_or_conflict(session, "You are already a participant in this calendar")
    session.refresh(calendar)

    logger.info(
        f"User {user.id} joined calendar {calendar.id} as {membership.role.value} "
        f"via invite link {link_id}"
    )
    dispatch_notification(
        NotificationKind.PARTICIPANT_ADDED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={
            "user_id": str(user.id),
            "user_name": user.display_name,
            "role": membership.role.value,
        },
    )
    return calendar
