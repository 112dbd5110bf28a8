"""
Personal ("main") calendars.

Every user gets exactly one, provisioned at registration. It is owned by the
user, flagged ``is_main`` and excluded from every sharing operation.
"""
from __future__ import annotations

import logging
from uuid import UUID

from sqlmodel import Session, select

from calshare.core.config import settings
from calshare.core.errors import NotFoundError
from calshare.models import Calendar, User
from calshare.services.categories import seed_default_categories

logger = logging.getLogger(__name__)


def get_personal_calendar(session: Session, user_id: UUID) -> Calendar | None:
    return session.exec(
        select(Calendar).where(
            Calendar.owner_id == user_id,
            Calendar.is_main == True,  # noqa: E712
        )
    ).first()


def ensure_personal_calendar(session: Session, user_id: UUID) -> Calendar:
    """
    Create or return the user's personal calendar.

    Calling it again for the same user returns the existing calendar.
    """
    existing_calendar = get_personal_calendar(session, user_id)
    if existing_calendar:
        return existing_calendar

    user = session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found")

    personal_calendar = Calendar(
        name=settings.PERSONAL_CALENDAR_NAME,
        description=f"Personal calendar of {user.display_name}",
        owner_id=user_id,
        color=settings.PERSONAL_CALENDAR_COLOR,
        is_main=True,
        is_visible=True,
    )
    session.add(personal_calendar)
    session.flush()
    seed_default_categories(session, personal_calendar)
    session.commit()
    session.refresh(personal_calendar)

    logger.info(f"Provisioned personal calendar {personal_calendar.id} for user {user_id}")
    return personal_calendar
