from uuid import uuid4

import pytest
from sqlmodel import select

from calshare.core.errors import ForbiddenError, NotFoundError
from calshare.models import Calendar
from calshare.services import calendars
from calshare.services.calendar_email_invites import create_calendar_email_invite
from calshare.services.invite_links import create_invite_link
from calshare.services.personal_calendar import ensure_personal_calendar


def test_provisioning_is_idempotent(session, owner):
    first = ensure_personal_calendar(session, owner.id)
    second = ensure_personal_calendar(session, owner.id)

    assert first.id == second.id
    assert first.is_main
    assert first.name == "Personal"
    owned = session.exec(select(Calendar).where(Calendar.owner_id == owner.id)).all()
    assert len(owned) == 1


def test_unknown_user(session):
    with pytest.raises(NotFoundError):
        ensure_personal_calendar(session, uuid4())


def test_personal_calendar_is_never_shared(session, owner):
    personal = ensure_personal_calendar(session, owner.id)

    with pytest.raises(ForbiddenError):
        create_invite_link(session, owner, personal.id)
    with pytest.raises(ForbiddenError):
        create_calendar_email_invite(session, owner, personal.id, "friend@acme.org")
    with pytest.raises(ForbiddenError, match="Cannot delete main or holiday calendar"):
        calendars.delete_calendar(session, owner, personal.id)
