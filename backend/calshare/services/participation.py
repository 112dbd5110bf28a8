"""
Event participation confirmation.

A participation row exists once a user accepted an event invite (or created
the event). The only state it carries is ``has_confirmed``, flipped in place
with no history.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.errors import ForbiddenError, NotFoundError
from calshare.models import Event, EventParticipant, User
from calshare.schemas import EventParticipantRead
from calshare.services.authorization import CalendarAction, authorize
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import (
    ensure_event_access,
    get_calendar_or_404,
    get_event_or_404,
    load_event_access,
)

logger = logging.getLogger(__name__)

NOT_INVITED = "You are not invited to this event"


def _set_confirmation(
    session: Session,
    participant: EventParticipant,
    has_confirmed: bool,
) -> bool:
    """Write the flag and report whether it actually changed."""
    changed = participant.has_confirmed != has_confirmed
    participant.has_confirmed = has_confirmed
    participant.touch()
    session.add(participant)
    session.commit()
    session.refresh(participant)
    return changed


def _notify_response(user: User, event: Event, has_confirmed: bool) -> None:
    # The task skips the creator when they are the one responding.
    dispatch_notification(
        NotificationKind.PARTICIPANT_RESPONSE,
        initiator_id=user.id,
        target_id=event.id,
        payload={"has_confirmed": has_confirmed},
    )


def confirm_event_participation(
    session: Session,
    user: User,
    event_id: UUID,
    has_confirmed: bool,
) -> EventParticipant:
    event = get_event_or_404(session, event_id)
    participant = session.get(EventParticipant, (event.id, user.id))
    if not participant:
        raise NotFoundError(NOT_INVITED)

    if _set_confirmation(session, participant, has_confirmed):
        logger.info(
            f"User {user.id} set confirmation on event {event.id} to {has_confirmed}"
        )
        if event.creator_id != user.id:
            _notify_response(user, event, has_confirmed)
    return participant


def set_participant_confirmation(
    session: Session,
    user: User,
    event_id: UUID,
    target_user_id: UUID,
    has_confirmed: bool,
) -> EventParticipant:
    event, _ = ensure_event_access(
        session,
        event_id,
        user,
        CalendarAction.SET_PARTICIPANT_CONFIRMATION,
        target_user_id=target_user_id,
    )
    participant = session.get(EventParticipant, (event.id, target_user_id))
    if not participant:
        raise NotFoundError("Participant not found in this event")

    if _set_confirmation(session, participant, has_confirmed):
        logger.info(
            f"User {user.id} set confirmation of {target_user_id} on event {event.id} "
            f"to {has_confirmed}"
        )
    return participant


def remove_event_participant(
    session: Session,
    user: User,
    event_id: UUID,
    target_user_id: UUID,
) -> None:
    ensure_event_access(
        session,
        event_id,
        user,
        CalendarAction.REMOVE_EVENT_PARTICIPANT,
        target_user_id=target_user_id,
    )

    participant = session.get(EventParticipant, (event_id, target_user_id))
    if not participant:
        raise NotFoundError("Participant not found in this event")

    session.delete(participant)
    session.commit()
    logger.info(f"User {user.id} removed {target_user_id} from event {event_id}")


def list_event_participants(
    session: Session, user: User, event_id: UUID
) -> list[EventParticipantRead]:
    """Visible to anyone who can view the event's calendar or takes part in it."""
    event = get_event_or_404(session, event_id)
    calendar = get_calendar_or_404(session, event.calendar_id)
    is_participant = session.get(EventParticipant, (event.id, user.id)) is not None
    decision = authorize(
        user.id,
        load_event_access(session, event, calendar, user.id),
        CalendarAction.VIEW_EVENT,
    )
    if not decision and not is_participant:
        raise ForbiddenError(decision.reason or "Not authorized")

    rows = session.exec(
        select(EventParticipant, User)
        .join(User, User.id == EventParticipant.user_id)
        .where(EventParticipant.event_id == event.id)
        .order_by(EventParticipant.added_at)
    ).all()
    return [
        EventParticipantRead(
            user_id=participant_user.id,
            email=participant_user.email,
            username=participant_user.username,
            full_name=participant_user.full_name,
            has_confirmed=participant.has_confirmed,
            is_creator=participant_user.id == event.creator_id,
        )
        for participant, participant_user in rows
    ]
