"""
Notification outbox.

Services call :func:`dispatch_notification` *after* committing a state change.
Dispatch only queues a Celery task; the task later resolves recipients and
writes :class:`Notification` rows with :func:`create_notifications`. Nothing in
this path may fail the mutation that triggered it.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from calshare.core.celery_utils import safe_celery_delay
from calshare.models import (
    Calendar,
    CalendarMember,
    Event,
    Notification,
    User,
)

logger = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    PARTICIPANT_ADDED = "participant_added"
    PARTICIPANT_REMOVED = "participant_removed"
    ROLE_CHANGED = "role_changed"
    CALENDAR_UPDATED = "calendar_updated"
    EVENT_CREATED = "event_created"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"
    PARTICIPANT_RESPONSE = "participant_response"
    CALENDAR_INVITE_SENT = "calendar_invite_sent"
    EVENT_INVITE_SENT = "event_invite_sent"


# Kinds whose target is a calendar and whose audience is everyone in it.
_CALENDAR_BROADCAST_KINDS = frozenset(
    {
        NotificationKind.PARTICIPANT_ADDED,
        NotificationKind.PARTICIPANT_REMOVED,
        NotificationKind.CALENDAR_UPDATED,
        NotificationKind.EVENT_CREATED,
        NotificationKind.EVENT_UPDATED,
        NotificationKind.EVENT_DELETED,
    }
)


def dispatch_notification(
    kind: NotificationKind,
    *,
    initiator_id: UUID,
    target_id: UUID,
    payload: dict[str, Any] | None = None,
) -> None:
    """Queue delivery of a notification. Never raises."""
    from calshare.tasks.notifications import deliver_notification_task

    safe_celery_delay(
        deliver_notification_task,
        kind.value,
        str(initiator_id),
        str(target_id),
        payload or {},
    )


def get_calendar_audience(session: Session, calendar: Calendar) -> list[User]:
    """Owner first, then every member, without duplicates."""
    audience: list[User] = []
    owner = session.get(User, calendar.owner_id)
    if owner:
        audience.append(owner)
    members = session.exec(
        select(User)
        .join(CalendarMember, CalendarMember.user_id == User.id)
        .where(CalendarMember.calendar_id == calendar.id)
        .order_by(CalendarMember.added_at)
    ).all()
    seen = {user.id for user in audience}
    for user in members:
        if user.id not in seen:
            audience.append(user)
            seen.add(user.id)
    return audience


def _format_fields(fields: list[str]) -> str:
    return ", ".join(field.replace("_", " ") for field in fields) or "details"


def _calendar_message(
    kind: NotificationKind,
    calendar: Calendar,
    initiator_name: str,
    recipient: User,
    payload: dict[str, Any],
) -> tuple[str, str]:
    if kind == NotificationKind.PARTICIPANT_ADDED:
        if str(recipient.id) == payload.get("user_id"):
            return (
                f"Welcome to {calendar.name}",
                f"You have been added to the calendar «{calendar.name}» "
                f"with the role {payload.get('role')}",
            )
        return (
            f"New participant in {calendar.name}",
            f"{payload.get('user_name', 'A user')} joined «{calendar.name}» "
            f"with the role {payload.get('role')}",
        )
    if kind == NotificationKind.PARTICIPANT_REMOVED:
        if str(recipient.id) == payload.get("user_id"):
            return (
                f"Removed from {calendar.name}",
                f"You no longer have access to the calendar «{calendar.name}»",
            )
        return (
            f"Participant left {calendar.name}",
            f"{payload.get('user_name', 'A user')} is no longer a participant "
            f"of «{calendar.name}»",
        )
    if kind == NotificationKind.CALENDAR_UPDATED:
        return (
            f"Calendar updated: {calendar.name}",
            f"{initiator_name} changed {_format_fields(payload.get('changed_fields', []))} "
            f"of «{calendar.name}»",
        )
    if kind == NotificationKind.EVENT_CREATED:
        return (
            f"New event: {payload.get('event_name')}",
            f"{initiator_name} added «{payload.get('event_name')}» to «{calendar.name}»",
        )
    if kind == NotificationKind.EVENT_UPDATED:
        return (
            f"Event updated: {payload.get('event_name')}",
            f"{initiator_name} changed {_format_fields(payload.get('changed_fields', []))} "
            f"of «{payload.get('event_name')}»",
        )
    return (
        f"Event deleted: {payload.get('event_name')}",
        f"{initiator_name} deleted «{payload.get('event_name')}» from «{calendar.name}»",
    )


def _broadcast_to_calendar(
    session: Session,
    kind: NotificationKind,
    initiator: User | None,
    calendar_id: UUID,
    payload: dict[str, Any],
) -> list[Notification]:
    calendar = session.get(Calendar, calendar_id)
    if not calendar:
        logger.warning(f"Calendar {calendar_id} not found for {kind.value} notification")
        return []

    recipients = get_calendar_audience(session, calendar)
    if kind == NotificationKind.PARTICIPANT_REMOVED and payload.get("user_id"):
        removed = session.get(User, UUID(payload["user_id"]))
        if removed and removed.id not in {user.id for user in recipients}:
            recipients.append(removed)

    initiator_name = initiator.display_name if initiator else "Someone"
    event_id = payload.get("event_id")
    if kind == NotificationKind.EVENT_DELETED:
        event_id = None

    notifications: list[Notification] = []
    for recipient in recipients:
        if initiator and recipient.id == initiator.id:
            continue  # don't notify yourself
        title, message = _calendar_message(kind, calendar, initiator_name, recipient, payload)
        notifications.append(
            Notification(
                user_id=recipient.id,
                kind=kind.value,
                calendar_id=calendar.id,
                event_id=UUID(event_id) if event_id else None,
                title=title,
                message=message,
            )
        )
    return notifications


def _role_changed(
    session: Session,
    initiator: User | None,
    calendar_id: UUID,
    payload: dict[str, Any],
) -> list[Notification]:
    calendar = session.get(Calendar, calendar_id)
    user_id = payload.get("user_id")
    if not calendar or not user_id:
        return []
    initiator_name = initiator.display_name if initiator else "Someone"
    return [
        Notification(
            user_id=UUID(user_id),
            kind=NotificationKind.ROLE_CHANGED.value,
            calendar_id=calendar.id,
            title=f"Your role in {calendar.name} changed",
            message=(
                f"{initiator_name} changed your role in «{calendar.name}» "
                f"from {payload.get('previous_role')} to {payload.get('role')}"
            ),
        )
    ]


def _participant_response(
    session: Session,
    initiator: User | None,
    event_id: UUID,
    payload: dict[str, Any],
) -> list[Notification]:
    event = session.get(Event, event_id)
    if not event or not initiator or event.creator_id == initiator.id:
        return []
    verb = "confirmed" if payload.get("has_confirmed") else "declined"
    return [
        Notification(
            user_id=event.creator_id,
            kind=NotificationKind.PARTICIPANT_RESPONSE.value,
            calendar_id=event.calendar_id,
            event_id=event.id,
            title="Invitation response",
            message=f"{initiator.display_name} {verb} participation in «{event.name}»",
        )
    ]


def _invite_sent(
    session: Session,
    kind: NotificationKind,
    initiator: User | None,
    target_id: UUID,
    payload: dict[str, Any],
) -> list[Notification]:
    email = (payload.get("email") or "").lower()
    invitee = session.exec(
        select(User).where(func.lower(User.email) == email)
    ).one_or_none()
    if not invitee:
        # Unregistered address: only the mail collaborator can reach it.
        logger.info(f"Invite for unregistered address {email}, no in-app notification")
        return []

    initiator_name = initiator.display_name if initiator else "Someone"
    if kind == NotificationKind.CALENDAR_INVITE_SENT:
        calendar = session.get(Calendar, target_id)
        if not calendar:
            return []
        return [
            Notification(
                user_id=invitee.id,
                kind=kind.value,
                calendar_id=calendar.id,
                title=f"Invitation to {calendar.name}",
                message=f"{initiator_name} invited you to the calendar «{calendar.name}»",
            )
        ]

    event = session.get(Event, target_id)
    if not event:
        return []
    return [
        Notification(
            user_id=invitee.id,
            kind=kind.value,
            calendar_id=event.calendar_id,
            event_id=event.id,
            title=f"Invitation to {event.name}",
            message=f"{initiator_name} invited you to the event «{event.name}»",
        )
    ]


def create_notifications(
    session: Session,
    kind: NotificationKind,
    initiator_id: UUID,
    target_id: UUID,
    payload: dict[str, Any] | None = None,
) -> list[Notification]:
    """Resolve recipients for ``kind`` and stage one Notification per recipient."""
    payload = payload or {}
    initiator = session.get(User, initiator_id)

    if kind in _CALENDAR_BROADCAST_KINDS:
        notifications = _broadcast_to_calendar(session, kind, initiator, target_id, payload)
    elif kind == NotificationKind.ROLE_CHANGED:
        notifications = _role_changed(session, initiator, target_id, payload)
    elif kind == NotificationKind.PARTICIPANT_RESPONSE:
        notifications = _participant_response(session, initiator, target_id, payload)
    else:
        notifications = _invite_sent(session, kind, initiator, target_id, payload)

    for notification in notifications:
        session.add(notification)
    return notifications
