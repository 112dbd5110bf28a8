import pytest
from sqlmodel import select

from calshare.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from calshare.models import EventCategory
from calshare.schemas import (
    CalendarCreate,
    CategoryCreate,
    CategoryUpdate,
    EventCreate,
    EventUpdate,
)
from calshare.services import calendars, categories, events
from calshare.services.personal_calendar import ensure_personal_calendar


@pytest.fixture
def category(session, owner, shared_calendar):
    return categories.create_category(
        session, owner, shared_calendar.id, CategoryCreate(name="Sprint", color="#123456")
    )


def test_new_calendars_get_default_categories(session, owner):
    team = calendars.create_calendar(session, owner, CalendarCreate(name="Team"))
    personal = ensure_personal_calendar(session, owner.id)

    for calendar in (team, personal):
        names = [c.name for c in categories.list_categories(session, owner, calendar.id)]
        assert names == ["Arrangement", "Reminder", "Task"]


def test_members_list_categories_sorted_by_name(session, reader, owner, shared_calendar, category):
    categories.create_category(session, owner, shared_calendar.id, CategoryCreate(name="Admin"))

    listed = categories.list_categories(session, reader, shared_calendar.id)

    assert [c.name for c in listed] == ["Admin", "Sprint"]
    assert categories.get_category(session, reader, category.id).color == "#123456"


def test_outsider_cannot_see_categories(session, outsider, shared_calendar, category):
    with pytest.raises(ForbiddenError):
        categories.list_categories(session, outsider, shared_calendar.id)
    with pytest.raises(ForbiddenError):
        categories.get_category(session, outsider, category.id)


def test_admin_cannot_manage_categories(session, admin, shared_calendar, category):
    with pytest.raises(ForbiddenError):
        categories.create_category(session, admin, shared_calendar.id, CategoryCreate(name="X"))
    with pytest.raises(ForbiddenError):
        categories.update_category(session, admin, category.id, CategoryUpdate(name="Y"))
    with pytest.raises(ForbiddenError):
        categories.delete_category(session, admin, category.id)


def test_update_keeps_fields_sent_as_null(session, owner, category):
    updated = categories.update_category(
        session,
        owner,
        category.id,
        CategoryUpdate.model_validate({"name": None, "color": "#abcdef", "description": None}),
    )

    assert updated.name == "Sprint"
    assert updated.color == "#abcdef"
    assert updated.description is None


def test_color_must_be_hex():
    with pytest.raises(ValueError):
        CategoryCreate(name="Bad", color="blue")


def test_category_in_use_cannot_be_deleted(session, owner, creator, shared_calendar, category):
    event = events.create_event(
        session,
        creator,
        EventCreate(
            calendar_id=shared_calendar.id,
            name="Review",
            category_id=category.id,
            starts_at="2026-03-02T09:00:00Z",
            ends_at="2026-03-02T10:00:00Z",
        ),
    )

    with pytest.raises(ConflictError, match="associated events"):
        categories.delete_category(session, owner, category.id)

    events.update_event(session, creator, event.id, EventUpdate(category_id=None))
    categories.delete_category(session, owner, category.id)
    with pytest.raises(NotFoundError):
        categories.get_category(session, owner, category.id)


def test_event_category_must_belong_to_calendar(session, owner, make_calendar, shared_calendar):
    other = make_calendar(owner, name="Elsewhere")
    foreign = categories.create_category(session, owner, other.id, CategoryCreate(name="Foreign"))

    with pytest.raises(ValidationError, match="does not belong"):
        events.create_event(
            session,
            owner,
            EventCreate(
                calendar_id=shared_calendar.id,
                name="Review",
                category_id=foreign.id,
                starts_at="2026-03-02T09:00:00Z",
                ends_at="2026-03-02T10:00:00Z",
            ),
        )


def test_deleting_calendar_drops_its_categories(session, owner, shared_calendar, category):
    calendars.delete_calendar(session, owner, shared_calendar.id)

    assert session.exec(select(EventCategory)).all() == []
