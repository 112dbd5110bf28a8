import pytest
from sqlmodel import select

from calshare.core.errors import ForbiddenError
from calshare.models import (
    Calendar,
    CalendarEmailInvite,
    CalendarInviteLink,
    CalendarMember,
    Event,
    EventParticipant,
)
from calshare.schemas import CalendarCreate, CalendarUpdate
from calshare.services import calendars
from calshare.services.calendar_email_invites import create_calendar_email_invite
from calshare.services.invite_links import create_invite_link
from calshare.services.notifications import NotificationKind
from calshare.services.personal_calendar import ensure_personal_calendar

from conftest import kinds


def test_create_calendar_owner_is_not_a_member(session, owner):
    calendar = calendars.create_calendar(session, owner, CalendarCreate(name="Family"))

    assert calendar.owner_id == owner.id
    assert session.get(CalendarMember, (calendar.id, owner.id)) is None


def test_list_user_calendars_with_roles(session, owner, reader, shared_calendar, make_calendar):
    ensure_personal_calendar(session, reader.id)
    make_calendar(owner, name="Private")

    listed = calendars.list_user_calendars(session, reader)

    roles = {c.name: c.current_user_role for c in listed}
    assert roles == {"Personal": "owner", "Team": "reader"}
    assert listed[0].is_main


def test_update_calendar_reports_changed_fields(session, admin, shared_calendar, dispatched):
    calendars.update_calendar(
        session, admin, shared_calendar.id, CalendarUpdate(name="Team", color="#000000")
    )

    assert kinds(dispatched) == [NotificationKind.CALENDAR_UPDATED]
    assert dispatched[0].payload == {"changed_fields": ["color"]}


def test_update_calendar_ignores_null_for_required_fields(session, owner, shared_calendar, dispatched):
    shared_calendar.description = "Weekly sync"
    session.add(shared_calendar)
    session.commit()

    calendar = calendars.update_calendar(
        session,
        owner,
        shared_calendar.id,
        CalendarUpdate.model_validate({"name": None, "color": None, "description": None}),
    )

    assert calendar.name == "Team"
    assert calendar.color == "#2563eb"
    assert calendar.description is None
    assert dispatched[0].payload == {"changed_fields": ["description"]}


def test_personal_calendar_metadata_is_immutable(session, owner):
    personal = ensure_personal_calendar(session, owner.id)

    with pytest.raises(ForbiddenError):
        calendars.update_calendar(session, owner, personal.id, CalendarUpdate(name="Mine"))
    with pytest.raises(ForbiddenError):
        calendars.toggle_calendar_visibility(session, owner, personal.id, False)


def test_toggle_visibility(session, admin, shared_calendar):
    calendar = calendars.toggle_calendar_visibility(session, admin, shared_calendar.id, False)

    assert calendar.is_visible is False


def test_reader_cannot_update(session, reader, shared_calendar):
    with pytest.raises(ForbiddenError):
        calendars.update_calendar(session, reader, shared_calendar.id, CalendarUpdate(name="x"))


def test_only_owner_deletes(session, admin, shared_calendar):
    with pytest.raises(ForbiddenError):
        calendars.delete_calendar(session, admin, shared_calendar.id)


def test_delete_calendar_cascades(session, owner, reader, shared_calendar, make_event):
    calendar_id = shared_calendar.id
    event = make_event(shared_calendar, owner)
    event_id = event.id
    create_invite_link(session, owner, calendar_id)
    create_calendar_email_invite(session, owner, calendar_id, "guest@acme.org")

    calendars.delete_calendar(session, owner, calendar_id)

    assert session.get(Calendar, calendar_id) is None
    assert session.get(Event, event_id) is None
    assert session.get(EventParticipant, (event_id, owner.id)) is None
    assert session.exec(select(CalendarMember).where(CalendarMember.calendar_id == calendar_id)).all() == []
    assert session.exec(select(CalendarInviteLink)).all() == []
    assert session.exec(select(CalendarEmailInvite)).all() == []
