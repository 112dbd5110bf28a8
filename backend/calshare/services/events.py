from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.errors import ValidationError
from calshare.models import Event, EventEmailInvite, EventParticipant, User
from calshare.models.timestamps import as_utc
from calshare.schemas import EventCreate, EventUpdate
from calshare.services.authorization import CalendarAction
from calshare.services.categories import ensure_category_in_calendar
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import ensure_calendar_access, ensure_event_access

logger = logging.getLogger(__name__)


def delete_event_rows(session: Session, event_ids: list[UUID]) -> None:
    """Stage deletion of events and everything hanging off them."""
    if not event_ids:
        return
    for model, column in (
        (EventParticipant, EventParticipant.event_id),
        (EventEmailInvite, EventEmailInvite.event_id),
        (Event, Event.id),
    ):
        for row in session.exec(select(model).where(column.in_(event_ids))).all():
            session.delete(row)


def create_event(session: Session, user: User, payload: EventCreate) -> Event:
    calendar = ensure_calendar_access(
        session, payload.calendar_id, user, CalendarAction.CREATE_EVENT
    )
    ensure_category_in_calendar(session, payload.category_id, calendar.id)

    event = Event(**payload.model_dump(), creator_id=user.id)
    session.add(event)
    session.flush()
    # The creator always takes part in their own event.
    session.add(EventParticipant(event_id=event.id, user_id=user.id, has_confirmed=True))
    session.commit()
    session.refresh(event)

    logger.info(f"User {user.id} created event {event.id} in calendar {calendar.id}")
    dispatch_notification(
        NotificationKind.EVENT_CREATED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={"event_id": str(event.id), "event_name": event.name},
    )
    return event


def list_calendar_events(
    session: Session,
    user: User,
    calendar_id: UUID,
    *,
    starts_after: Optional[datetime] = None,
    ends_before: Optional[datetime] = None,
) -> list[Event]:
    """Events of a calendar, optionally only those overlapping a date range."""
    calendar = ensure_calendar_access(session, calendar_id, user)

    statement = select(Event).where(Event.calendar_id == calendar.id)
    if starts_after:
        statement = statement.where(Event.ends_at >= as_utc(starts_after))
    if ends_before:
        statement = statement.where(Event.starts_at <= as_utc(ends_before))
    return list(session.exec(statement.order_by(Event.starts_at)).all())


def get_event(session: Session, user: User, event_id: UUID) -> Event:
    event, _ = ensure_event_access(session, event_id, user)
    return event


def update_event(
    session: Session, user: User, event_id: UUID, payload: EventUpdate
) -> Event:
    event, calendar = ensure_event_access(
        session, event_id, user, CalendarAction.UPDATE_EVENT
    )

    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in ("description", "category_id")
    }
    if "category_id" in updates:
        ensure_category_in_calendar(session, updates["category_id"], calendar.id)
    starts_at = as_utc(updates.get("starts_at", event.starts_at))
    ends_at = as_utc(updates.get("ends_at", event.ends_at))
    if ends_at < starts_at:
        raise ValidationError("ends_at must be greater than or equal to starts_at")

    changed_fields: list[str] = []
    for field, value in updates.items():
        current = getattr(event, field)
        if isinstance(current, datetime):
            current = as_utc(current)
        if current != value:
            setattr(event, field, value)
            changed_fields.append(field)
    if not changed_fields:
        return event

    event.touch()
    session.add(event)
    session.commit()
    session.refresh(event)

    logger.info(f"User {user.id} updated event {event.id}: {', '.join(changed_fields)}")
    dispatch_notification(
        NotificationKind.EVENT_UPDATED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={
            "event_id": str(event.id),
            "event_name": event.name,
            "changed_fields": changed_fields,
        },
    )
    return event


def delete_event(session: Session, user: User, event_id: UUID) -> None:
    event, calendar = ensure_event_access(
        session, event_id, user, CalendarAction.DELETE_EVENT
    )
    event_name = event.name
    delete_event_rows(session, [event.id])
    session.commit()

    logger.info(f"User {user.id} deleted event {event_id}")
    dispatch_notification(
        NotificationKind.EVENT_DELETED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={"event_id": str(event_id), "event_name": event_name},
    )
