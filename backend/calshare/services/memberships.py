"""
Membership mutations on shared calendars.

The owner never has a membership row, so none of these functions can touch
ownership: role changes and removals aimed at the owner are rejected before
the actor's own role is even looked at.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.errors import ForbiddenError, NotFoundError
from calshare.models import (
    Calendar,
    CalendarMember,
    Event,
    EventParticipant,
    ParticipantRole,
    User,
)
from calshare.schemas import CalendarMemberRead
from calshare.services.authorization import CalendarAction
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import (
    OWNER_ROLE,
    ensure_calendar_access,
    get_calendar_or_404,
    get_membership,
)

logger = logging.getLogger(__name__)

MEMBERSHIP_NOT_FOUND = "Participant not found in this calendar"


def _drop_event_participations(session: Session, calendar_id: UUID, user_id: UUID) -> int:
    participations = session.exec(
        select(EventParticipant)
        .join(Event, Event.id == EventParticipant.event_id)
        .where(
            Event.calendar_id == calendar_id,
            EventParticipant.user_id == user_id,
        )
    ).all()
    for participation in participations:
        session.delete(participation)
    return len(participations)


def update_participant_role(
    session: Session,
    user: User,
    calendar_id: UUID,
    target_user_id: UUID,
    new_role: ParticipantRole,
) -> CalendarMember:
    calendar = ensure_calendar_access(
        session,
        calendar_id,
        user,
        CalendarAction.CHANGE_PARTICIPANT_ROLE,
        target_user_id=target_user_id,
    )
    membership = get_membership(session, calendar.id, target_user_id)
    if not membership:
        raise NotFoundError(MEMBERSHIP_NOT_FOUND)

    previous_role = membership.role
    membership.role = new_role
    membership.touch()
    session.add(membership)
    session.commit()
    session.refresh(membership)

    if previous_role == new_role:
        logger.debug(f"Role of {target_user_id} in {calendar.id} unchanged ({new_role.value})")
        return membership

    logger.info(
        f"User {user.id} changed role of {target_user_id} in calendar {calendar.id} "
        f"from {previous_role.value} to {new_role.value}"
    )
    dispatch_notification(
        NotificationKind.ROLE_CHANGED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={
            "user_id": str(target_user_id),
            "role": new_role.value,
            "previous_role": previous_role.value,
        },
    )
    return membership


def remove_participant(
    session: Session,
    user: User,
    calendar_id: UUID,
    target_user_id: UUID,
) -> None:
    calendar = ensure_calendar_access(
        session,
        calendar_id,
        user,
        CalendarAction.REMOVE_PARTICIPANT,
        target_user_id=target_user_id,
    )
    membership = get_membership(session, calendar.id, target_user_id)
    if not membership:
        raise NotFoundError(MEMBERSHIP_NOT_FOUND)

    removed_user = session.get(User, target_user_id)
    dropped = _drop_event_participations(session, calendar.id, target_user_id)
    session.delete(membership)
    session.commit()

    logger.info(
        f"User {user.id} removed {target_user_id} from calendar {calendar.id} "
        f"({dropped} event participation(s) dropped)"
    )
    dispatch_notification(
        NotificationKind.PARTICIPANT_REMOVED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={
            "user_id": str(target_user_id),
            "user_name": removed_user.display_name if removed_user else None,
        },
    )


def leave_calendar(session: Session, user: User, calendar_id: UUID) -> None:
    calendar = get_calendar_or_404(session, calendar_id)
    if calendar.owner_id == user.id:
        raise ForbiddenError("The owner cannot leave their own calendar")

    membership = get_membership(session, calendar.id, user.id)
    if not membership:
        raise NotFoundError("You are not a participant of this calendar")

    dropped = _drop_event_participations(session, calendar.id, user.id)
    session.delete(membership)
    session.commit()

    logger.info(
        f"User {user.id} left calendar {calendar.id} "
        f"({dropped} event participation(s) dropped)"
    )
    dispatch_notification(
        NotificationKind.PARTICIPANT_REMOVED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={"user_id": str(user.id), "user_name": user.display_name},
    )


def _member_read(user: User, role: str, added_at=None) -> CalendarMemberRead:
    return CalendarMemberRead(
        user_id=user.id,
        email=user.email,
        username=user.username,
        full_name=user.full_name,
        role=role,
        added_at=added_at,
    )


def list_calendar_participants(
    session: Session, user: User, calendar_id: UUID
) -> list[CalendarMemberRead]:
    """Owner first, then members in the order they joined."""
    calendar: Calendar = ensure_calendar_access(session, calendar_id, user)

    participants: list[CalendarMemberRead] = []
    owner = session.get(User, calendar.owner_id)
    if owner:
        participants.append(_member_read(owner, OWNER_ROLE, calendar.created_at))

    rows = session.exec(
        select(CalendarMember, User)
        .join(User, User.id == CalendarMember.user_id)
        .where(CalendarMember.calendar_id == calendar.id)
        .order_by(CalendarMember.added_at)
    ).all()
    for membership, member in rows:
        participants.append(_member_read(member, membership.role.value, membership.added_at))
    return participants
