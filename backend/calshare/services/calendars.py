from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.models import (
    Calendar,
    CalendarEmailInvite,
    CalendarInviteLink,
    CalendarMember,
    Event,
    EventCategory,
    User,
)
from calshare.schemas import CalendarCreate, CalendarReadWithRole, CalendarUpdate
from calshare.services.authorization import CalendarAction
from calshare.services.categories import seed_default_categories
from calshare.services.events import delete_event_rows
from calshare.services.notifications import NotificationKind, dispatch_notification
from calshare.services.permissions import (
    OWNER_ROLE,
    calendar_access_condition,
    ensure_calendar_access,
    get_user_calendar_role,
)

logger = logging.getLogger(__name__)


def serialize_calendar(calendar: Calendar, *, role: str | None) -> CalendarReadWithRole:
    base = CalendarReadWithRole.model_validate(calendar, from_attributes=True)
    return base.model_copy(update={"current_user_role": role})


def create_calendar(session: Session, user: User, payload: CalendarCreate) -> Calendar:
    calendar = Calendar(**payload.model_dump(), owner_id=user.id)
    session.add(calendar)
    session.flush()
    seed_default_categories(session, calendar)
    session.commit()
    session.refresh(calendar)
    logger.info(f"User {user.id} created calendar {calendar.id}")
    return calendar


def list_user_calendars(session: Session, user: User) -> list[CalendarReadWithRole]:
    """Owned and shared calendars, each with the user's role in it."""
    calendars = session.exec(
        select(Calendar)
        .where(calendar_access_condition(user.id))
        .order_by(Calendar.is_main.desc(), Calendar.created_at)
    ).all()

    membership_map = {
        member.calendar_id: member.role.value
        for member in session.exec(
            select(CalendarMember).where(CalendarMember.user_id == user.id)
        )
    }
    return [
        serialize_calendar(
            calendar,
            role=OWNER_ROLE if calendar.owner_id == user.id else membership_map.get(calendar.id),
        )
        for calendar in calendars
    ]


def get_calendar(session: Session, user: User, calendar_id: UUID) -> CalendarReadWithRole:
    calendar = ensure_calendar_access(session, calendar_id, user)
    return serialize_calendar(calendar, role=get_user_calendar_role(session, calendar, user.id))


def update_calendar(
    session: Session, user: User, calendar_id: UUID, payload: CalendarUpdate
) -> Calendar:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.UPDATE_CALENDAR
    )

    # Only description may be cleared; null for the other fields means "unchanged".
    updates = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field == "description"
    }

    changed_fields: list[str] = []
    for field, value in updates.items():
        if getattr(calendar, field) != value:
            setattr(calendar, field, value)
            changed_fields.append(field)
    if not changed_fields:
        return calendar

    calendar.touch()
    session.add(calendar)
    session.commit()
    session.refresh(calendar)

    logger.info(f"User {user.id} updated calendar {calendar.id}: {', '.join(changed_fields)}")
    dispatch_notification(
        NotificationKind.CALENDAR_UPDATED,
        initiator_id=user.id,
        target_id=calendar.id,
        payload={"changed_fields": changed_fields},
    )
    return calendar


def toggle_calendar_visibility(
    session: Session, user: User, calendar_id: UUID, is_visible: bool
) -> Calendar:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.TOGGLE_VISIBILITY
    )
    calendar.is_visible = is_visible
    calendar.touch()
    session.add(calendar)
    session.commit()
    session.refresh(calendar)
    logger.info(f"User {user.id} set visibility of calendar {calendar.id} to {is_visible}")
    return calendar


def delete_calendar(session: Session, user: User, calendar_id: UUID) -> None:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.DELETE_CALENDAR
    )

    event_ids = session.exec(select(Event.id).where(Event.calendar_id == calendar.id)).all()
    delete_event_rows(session, list(event_ids))
    for model in (CalendarInviteLink, CalendarEmailInvite, CalendarMember, EventCategory):
        rows = session.exec(select(model).where(model.calendar_id == calendar.id)).all()
        for row in rows:
            session.delete(row)
    session.delete(calendar)
    session.commit()

    logger.info(f"User {user.id} deleted calendar {calendar_id} with {len(event_ids)} event(s)")
