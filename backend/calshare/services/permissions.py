"""
Explicit fetch step between the database and the authorization engine.

Loads calendars, events and the actor's membership role, turns them into the
value objects ``authorize`` understands and raises the matching domain error
when access is denied.
"""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlmodel import Session

from calshare.core.errors import ConflictError, ForbiddenError, NotFoundError
from calshare.models import (
    Calendar,
    CalendarMember,
    Event,
    ParticipantRole,
    User,
)
from calshare.services.authorization import (
    CalendarAccess,
    CalendarAction,
    Decision,
    EventAccess,
    authorize,
)

logger = logging.getLogger(__name__)

OWNER_ROLE = "owner"


def calendar_access_condition(user_id: UUID):
    member_subquery = (
        select(CalendarMember.calendar_id).where(CalendarMember.user_id == user_id)
    )
    return or_(Calendar.owner_id == user_id, Calendar.id.in_(member_subquery))


def get_calendar_or_404(session: Session, calendar_id: UUID) -> Calendar:
    calendar = session.get(Calendar, calendar_id)
    if not calendar:
        raise NotFoundError("Calendar not found")
    return calendar


def get_event_or_404(session: Session, event_id: UUID) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise NotFoundError("Event not found")
    return event


def get_membership(
    session: Session, calendar_id: UUID, user_id: UUID
) -> Optional[CalendarMember]:
    return session.get(CalendarMember, (calendar_id, user_id))


def get_user_calendar_role(
    session: Session,
    calendar: Calendar,
    user_id: UUID,
) -> str | None:
    """Return ``"owner"``, the membership role value, or ``None``."""
    if calendar.owner_id == user_id:
        return OWNER_ROLE
    membership = get_membership(session, calendar.id, user_id)
    return membership.role.value if membership else None


def load_calendar_access(
    session: Session, calendar: Calendar, user_id: UUID
) -> CalendarAccess:
    role: Optional[ParticipantRole] = None
    if calendar.owner_id != user_id:
        membership = get_membership(session, calendar.id, user_id)
        role = membership.role if membership else None
    return CalendarAccess(
        calendar_id=calendar.id,
        owner_id=calendar.owner_id,
        is_main=calendar.is_main,
        is_holiday=calendar.is_holiday,
        actor_role=role,
    )


def load_event_access(
    session: Session, event: Event, calendar: Calendar, user_id: UUID
) -> EventAccess:
    return EventAccess(
        event_id=event.id,
        creator_id=event.creator_id,
        calendar=load_calendar_access(session, calendar, user_id),
    )


def require(decision: Decision, *, user_id: UUID, action: CalendarAction) -> None:
    if not decision:
        logger.info(f"Denied {action.value} for user {user_id}: {decision.reason}")
        raise ForbiddenError(decision.reason or "Not authorized")


def ensure_calendar_access(
    session: Session,
    calendar_id: UUID,
    user: User,
    action: CalendarAction = CalendarAction.VIEW,
    *,
    target_user_id: UUID | None = None,
) -> Calendar:
    calendar = get_calendar_or_404(session, calendar_id)
    access = load_calendar_access(session, calendar, user.id)
    require(
        authorize(user.id, access, action, target_user_id=target_user_id),
        user_id=user.id,
        action=action,
    )
    return calendar


def ensure_event_access(
    session: Session,
    event_id: UUID,
    user: User,
    action: CalendarAction = CalendarAction.VIEW_EVENT,
    *,
    target_user_id: UUID | None = None,
) -> tuple[Event, Calendar]:
    event = get_event_or_404(session, event_id)
    calendar = get_calendar_or_404(session, event.calendar_id)
    access = load_event_access(session, event, calendar, user.id)
    require(
        authorize(user.id, access, action, target_user_id=target_user_id),
        user_id=user.id,
        action=action,
    )
    return event, calendar


def add_calendar_member(
    session: Session,
    *,
    calendar: Calendar,
    user_id: UUID,
    role: ParticipantRole,
) -> CalendarMember:
    """Stage a membership row; the owner can never become a member."""
    if calendar.owner_id == user_id:
        raise ConflictError("You are already the owner of this calendar")
    if get_membership(session, calendar.id, user_id):
        raise ConflictError("You are already a participant in this calendar")

    membership = CalendarMember(
        calendar_id=calendar.id,
        user_id=user_id,
        role=role,
    )
    session.add(membership)
    return membership
