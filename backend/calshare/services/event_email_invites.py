"""
Event email invites.

An event invite promotes trust a user already has in the calendar to a single
event; it is never a way into the calendar itself. Only emails of current
calendar members (membership rows, the owner excluded) can be invited, and
only a current member can accept.
"""

from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.errors import ForbiddenError, NotFoundError, ValidationError
from calshare.core.security import generate_invite_token
from calshare.db import commit_or_conflict
from calshare.models import (
    Calendar,
    CalendarMember,
    Event,
    EventEmailInvite,
    EventParticipant,
    User,
)
from calshare.models.timestamps import utcnow
from calshare.schemas import EventEmailInviteInfo
from calshare.services.authorization import CalendarAction
from calshare.services.calendar_email_invites import normalize_email
from calshare.services.expiry import ensure_not_expired, expires_at_from_days
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import ensure_event_access, get_membership

logger = logging.getLogger(__name__)

NO_ELIGIBLE_PARTICIPANTS = "No valid calendar participants to invite"
ALL_ALREADY_PARTICIPANTS = "All selected users are already participants"


def _normalize_emails(emails: Iterable[str]) -> list[str]:
    result: list[str] = []
    for email in emails:
        normalized = normalize_email(email)
        if normalized and normalized not in result:
            result.append(normalized)
    return result


def _calendar_member_users(session: Session, calendar_id: UUID) -> dict[str, User]:
    rows = session.exec(
        select(User)
        .join(CalendarMember, CalendarMember.user_id == User.id)
        .where(CalendarMember.calendar_id == calendar_id)
    ).all()
    return {user.email.lower(): user for user in rows}


def _event_participant_emails(session: Session, event_id: UUID) -> set[str]:
    rows = session.exec(
        select(User.email)
        .join(EventParticipant, EventParticipant.user_id == User.id)
        .where(EventParticipant.event_id == event_id)
    ).all()
    return {email.lower() for email in rows}


def create_event_email_invites(
    session: Session,
    user: User,
    event_id: UUID,
    emails: Iterable[str],
    *,
    expire_in_days: int | None = None,
) -> list[EventEmailInvite]:
    """
    Invite calendar members to an event by email.

    Emails that do not belong to a calendar member are dropped silently, as
    are emails with a live invite already pending. Returns only the invites
    created by this call.
    """
    event, calendar = ensure_event_access(
        session, event_id, user, CalendarAction.INVITE_TO_EVENT
    )
    expires_at = expires_at_from_days(expire_in_days)
    requested = _normalize_emails(emails)

    members = _calendar_member_users(session, calendar.id)
    eligible = [email for email in requested if email in members]
    if not eligible:
        raise ValidationError(NO_ELIGIBLE_PARTICIPANTS)

    already_participating = _event_participant_emails(session, event.id)
    eligible = [email for email in eligible if email not in already_participating]
    if not eligible:
        raise ValidationError(ALL_ALREADY_PARTICIPANTS)

    pending = session.exec(
        select(EventEmailInvite).where(
            EventEmailInvite.event_id == event.id,
            EventEmailInvite.email.in_(eligible),
        )
    ).all()
    now = utcnow()
    live_emails = set()
    for invite in pending:
        if invite.is_expired(now):
            session.delete(invite)
        else:
            live_emails.add(invite.email)

    created: list[EventEmailInvite] = []
    for email in eligible:
        if email in live_emails:
            logger.debug(f"Live invite for {email} on event {event.id} exists, skipping")
            continue
        invite = EventEmailInvite(
            event_id=event.id,
            email=email,
            user_id=members[email].id,
            token=generate_invite_token(),
            expires_at=expires_at,
            invited_by=user.id,
        )
        session.add(invite)
        created.append(invite)

    commit_or_conflict(session, "Could not create event invites, please retry")
    for invite in created:
        session.refresh(invite)

    logger.info(
        f"User {user.id} invited {len(created)} participant(s) to event {event.id}"
    )
    for invite in created:
        dispatch_notification(
            NotificationKind.EVENT_INVITE_SENT,
            initiator_id=user.id,
            target_id=event.id,
            payload={"email": invite.email, "token": invite.token},
        )
    return created


def list_event_email_invites(
    session: Session, user: User, event_id: UUID
) -> list[EventEmailInvite]:
    ensure_event_access(session, event_id, user, CalendarAction.INVITE_TO_EVENT)
    return list(
        session.exec(
            select(EventEmailInvite)
            .where(EventEmailInvite.event_id == event_id)
            .order_by(EventEmailInvite.created_at.desc())
        ).all()
    )


def delete_event_email_invite(
    session: Session, user: User, event_id: UUID, invite_id: UUID
) -> None:
    ensure_event_access(session, event_id, user, CalendarAction.INVITE_TO_EVENT)

    invite = session.get(EventEmailInvite, invite_id)
    if not invite or invite.event_id != event_id:
        raise NotFoundError("Invite not found")

    session.delete(invite)
    session.commit()
    logger.info(f"User {user.id} cancelled event email invite {invite_id}")


def _get_live_invite(
    session: Session, token: str
) -> tuple[EventEmailInvite, Event, Calendar]:
    invite = session.exec(
        select(EventEmailInvite).where(EventEmailInvite.token == token)
    ).one_or_none()
    if not invite:
        raise NotFoundError("Invite not found or invalid")
    ensure_not_expired(invite, "Invite has expired")

    event = session.get(Event, invite.event_id)
    if not event:
        raise NotFoundError("Event not found")
    calendar = session.get(Calendar, event.calendar_id)
    if not calendar:
        raise NotFoundError("Calendar not found")
    return invite, event, calendar


def get_event_email_invite_info(session: Session, token: str) -> EventEmailInviteInfo:
    invite, event, calendar = _get_live_invite(session, token)
    inviter = session.get(User, invite.invited_by) if invite.invited_by else None
    return EventEmailInviteInfo(
        event_id=event.id,
        event_name=event.name,
        description=event.description,
        starts_at=event.starts_at,
        ends_at=event.ends_at,
        calendar_id=calendar.id,
        calendar_name=calendar.name,
        email=invite.email,
        invited_by=inviter.display_name if inviter else None,
        expires_at=invite.expires_at,
    )


def accept_event_email_invite(
    session: Session, user: User, token: str
) -> EventParticipant:
    invite, event, calendar = _get_live_invite(session, token)

    if normalize_email(user.email) != invite.email:
        raise ForbiddenError("This invite was sent to a different email address")
    # Ownership alone does not qualify: the invite promotes a membership.
    if not get_membership(session, calendar.id, user.id):
        raise ForbiddenError(
            "You must be a participant of the calendar to join this event"
        )

    participant = session.get(EventParticipant, (event.id, user.id))
    if participant:
        participant.has_confirmed = True
        participant.touch()
    else:
        participant = EventParticipant(
            event_id=event.id,
            user_id=user.id,
            has_confirmed=True,
        )
    session.add(participant)
    session.delete(invite)
    commit_or_conflict(session, "You are already a participant of this event")
    session.refresh(participant)

    logger.info(f"User {user.id} joined event {event.id} via email invite")
    dispatch_notification(
        NotificationKind.PARTICIPANT_RESPONSE,
        initiator_id=user.id,
        target_id=event.id,
        payload={"has_confirmed": True},
    )
    return participant
