"""
Calendar email invites.

An invite targets one email address, carries the role to grant and is consumed
on acceptance. Only the holder of an account with that email may redeem it.

The duplicate checks below (existing member, live invite for the same email)
are plain reads followed by a write with no lock or unique constraint on
(calendar, email). Two concurrent requests can therefore both create an
invite for the same address; this is accepted and the checks are a
best-effort guard only.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from calshare.core.config import settings
from calshare.core.errors import ConflictError, ForbiddenError, NotFoundError
from calshare.core.security import generate_invite_token
from calshare.db import commit_or_conflict
from calshare.models import (
    Calendar,
    CalendarEmailInvite,
    ParticipantRole,
    User,
)
from calshare.models.timestamps import utcnow
from calshare.schemas import CalendarEmailInviteInfo
from calshare.services.authorization import CalendarAction
from calshare.services.expiry import ensure_not_expired, expires_at_from_days
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import (
    add_calendar_member,
    ensure_calendar_access,
    get_membership,
)

logger = logging.getLogger(__name__)

INVITE_NOT_FOUND = "Invite not found or invalid"
INVITE_EXPIRED = "Invite has expired"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def find_user_by_email(session: Session, email: str) -> User | None:
    return session.exec(
        select(User).where(func.lower(User.email) == normalize_email(email))
    ).one_or_none()


def create_calendar_email_invite(
    session: Session,
    user: User,
    calendar_id: UUID,
    email: str,
    *,
    role: ParticipantRole | None = None,
    expire_in_days: int | None = None,
) -> CalendarEmailInvite:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_SHARING
    )
    email = normalize_email(email)

    invitee = find_user_by_email(session, email)
    if invitee:
        if invitee.id == calendar.owner_id:
            raise ConflictError("User is already the owner of this calendar")
        if get_membership(session, calendar.id, invitee.id):
            raise ConflictError("User is already a participant in this calendar")

    existing = session.exec(
        select(CalendarEmailInvite).where(
            CalendarEmailInvite.calendar_id == calendar.id,
            CalendarEmailInvite.email == email,
        )
    ).all()
    now = utcnow()
    for previous in existing:
        if not previous.is_expired(now):
            raise ConflictError("An invite has already been sent to this email")
        session.delete(previous)

    invite = CalendarEmailInvite(
        calendar_id=calendar.id,
        email=email,
        role=role or settings.DEFAULT_INVITE_ROLE,
        token=generate_invite_token(),
        expires_at=expires_at_from_days(expire_in_days),
        invited_by=user.id,
    )
    session.add(invite)
    commit_or_conflict(session, "An invite has already been sent to this email")
    session.refresh(invite)

    logger.info(f"User {user.id} invited {email} to calendar {calendar.id}")
    dispatch_notification(
        NotificationKind.CALENDAR_INVITE_SENT,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={"email": email, "role": invite.role.value, "token": invite.token},
    )
    return invite


def list_calendar_email_invites(
    session: Session, user: User, calendar_id: UUID
) -> list[CalendarEmailInvite]:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_SHARING)
    return list(
        session.exec(
            select(CalendarEmailInvite)
            .where(CalendarEmailInvite.calendar_id == calendar_id)
            .order_by(CalendarEmailInvite.created_at.desc())
        ).all()
    )


def delete_calendar_email_invite(
    session: Session, user: User, calendar_id: UUID, invite_id: UUID
) -> None:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.MANAGE_SHARING)

    invite = session.get(CalendarEmailInvite, invite_id)
    if not invite or invite.calendar_id != calendar_id:
        raise NotFoundError("Invite not found")

    session.delete(invite)
    session.commit()
    logger.info(f"User {user.id} cancelled calendar email invite {invite_id}")


def _get_live_invite(
    session: Session, token: str
) -> tuple[CalendarEmailInvite, Calendar]:
    invite = session.exec(
        select(CalendarEmailInvite).where(CalendarEmailInvite.token == token)
    ).one_or_none()
    if not invite:
        raise NotFoundError(INVITE_NOT_FOUND)
    ensure_not_expired(invite, INVITE_EXPIRED)

    calendar = session.get(Calendar, invite.calendar_id)
    if not calendar:
        raise NotFoundError("Calendar associated with this invite was not found")
    return invite, calendar


def get_calendar_email_invite_info(
    session: Session, token: str
) -> CalendarEmailInviteInfo:
    invite, calendar = _get_live_invite(session, token)
    inviter = session.get(User, invite.invited_by) if invite.invited_by else None
    return CalendarEmailInviteInfo(
        calendar_id=calendar.id,
        calendar_name=calendar.name,
        calendar_description=calendar.description,
        calendar_color=calendar.color,
        email=invite.email,
        role=invite.role,
        invited_by=inviter.display_name if inviter else None,
        expires_at=invite.expires_at,
    )


def accept_calendar_email_invite(session: Session, user: User, token: str) -> Calendar:
    invite, calendar = _get_live_invite(session, token)

    if normalize_email(user.email) != invite.email:
        raise ForbiddenError("This invite was sent to a different email address")
    if not calendar.is_shareable:
        raise ForbiddenError("This calendar cannot be shared")

    membership = add_calendar_member(
        session,
        calendar=calendar,
        user_id=user.id,
        role=invite.role,
    )
    session.delete(invite)
    commit_or_conflict(session, "You are already a participant in this calendar")
    session.refresh(calendar)

    logger.info(
        f"User {user.id} joined calendar {calendar.id} as {membership.role.value} "
        f"via email invite"
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
