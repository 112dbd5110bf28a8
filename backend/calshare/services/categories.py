"""
Event categories.

Categories belong to one calendar. Anyone with access to the calendar can
read them; only the owner can change them. New calendars start with a small
default set.
"""

from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.errors import ConflictError, NotFoundError, ValidationError
from calshare.models import Calendar, Event, EventCategory, User
from calshare.schemas import CategoryCreate, CategoryUpdate
from calshare.services.authorization import CalendarAction
from calshare.services.permissions import ensure_calendar_access

logger = logging.getLogger(__name__)

DEFAULT_CATEGORIES = (
    ("Arrangement", "For appointments and meetings", "#4285F4"),
    ("Reminder", "For reminders and alerts", "#EA4335"),
    ("Task", "For to-dos and tasks", "#FBBC05"),
)


def seed_default_categories(session: Session, calendar: Calendar) -> list[EventCategory]:
    """Stage the default categories for a new calendar. The caller commits."""
    categories = [
        EventCategory(calendar_id=calendar.id, name=name, description=description, color=color)
        for name, description, color in DEFAULT_CATEGORIES
    ]
    for category in categories:
        session.add(category)
    return categories


def get_category_or_404(session: Session, category_id: UUID) -> EventCategory:
    category = session.get(EventCategory, category_id)
    if not category:
        raise NotFoundError("Category not found")
    return category


def ensure_category_in_calendar(
    session: Session, category_id: UUID | None, calendar_id: UUID
) -> None:
    if category_id is None:
        return
    category = session.get(EventCategory, category_id)
    if not category or category.calendar_id != calendar_id:
        raise ValidationError("Category does not belong to this calendar")


def list_categories(session: Session, user: User, calendar_id: UUID) -> list[EventCategory]:
    ensure_calendar_access(session, calendar_id, user, CalendarAction.VIEW_CATEGORIES)
    return list(
        session.exec(
            select(EventCategory)
            .where(EventCategory.calendar_id == calendar_id)
            .order_by(EventCategory.name)
        ).all()
    )


def get_category(session: Session, user: User, category_id: UUID) -> EventCategory:
    category = get_category_or_404(session, category_id)
    ensure_calendar_access(
        session, category.calendar_id, user, CalendarAction.VIEW_CATEGORIES
    )
    return category


def create_category(
    session: Session, user: User, calendar_id: UUID, payload: CategoryCreate
) -> EventCategory:
    calendar = ensure_calendar_access(
        session, calendar_id, user, CalendarAction.MANAGE_CATEGORIES
    )
    category = EventCategory(**payload.model_dump(), calendar_id=calendar.id)
    session.add(category)
    session.commit()
    session.refresh(category)
    logger.info(f"User {user.id} created category {category.id} in calendar {calendar.id}")
    return category


def update_category(
    session: Session, user: User, category_id: UUID, payload: CategoryUpdate
) -> EventCategory:
    category = get_category_or_404(session, category_id)
    ensure_calendar_access(
        session, category.calendar_id, user, CalendarAction.MANAGE_CATEGORIES
    )

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(category, field, value)
    category.touch()
    session.add(category)
    session.commit()
    session.refresh(category)
    return category


def delete_category(session: Session, user: User, category_id: UUID) -> None:
    category = get_category_or_404(session, category_id)
    ensure_calendar_access(
        session, category.calendar_id, user, CalendarAction.MANAGE_CATEGORIES
    )

    in_use = session.exec(
        select(Event.id).where(Event.category_id == category.id).limit(1)
    ).first()
    if in_use:
        raise ConflictError("Cannot delete category with associated events")

    session.delete(category)
    session.commit()
    logger.info(f"User {user.id} deleted category {category_id}")
