from types import SimpleNamespace

import pytest
from sqlmodel import Session, select

from calshare.core.celery_utils import safe_celery_delay
from calshare.models import Notification
from calshare.services.invite_links import accept_invite_link, create_invite_link
from calshare.services.notifications import (
    NotificationKind,
    create_notifications,
    get_calendar_audience,
)
from calshare.services.permissions import get_membership


def recipients(notifications):
    return {n.user_id for n in notifications}


def test_audience_is_owner_then_members(session, owner, admin, creator, reader, shared_calendar):
    audience = get_calendar_audience(session, shared_calendar)

    assert audience[0].id == owner.id
    assert {u.id for u in audience} == {owner.id, admin.id, creator.id, reader.id}


def test_broadcast_skips_initiator(session, owner, admin, creator, reader, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.CALENDAR_UPDATED,
        admin.id,
        shared_calendar.id,
        {"changed_fields": ["name"]},
    )

    assert recipients(notifications) == {owner.id, creator.id, reader.id}
    assert all(n.kind == "calendar_updated" for n in notifications)


def test_new_participant_gets_welcome(session, owner, reader, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.PARTICIPANT_ADDED,
        owner.id,
        shared_calendar.id,
        {"user_id": str(reader.id), "user_name": "Rita", "role": "reader"},
    )

    welcome = [n for n in notifications if n.user_id == reader.id]
    assert welcome[0].title == "Welcome to Team"


def test_removed_user_is_told(session, owner, outsider, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.PARTICIPANT_REMOVED,
        owner.id,
        shared_calendar.id,
        {"user_id": str(outsider.id), "user_name": "Oscar"},
    )

    assert outsider.id in recipients(notifications)


def test_role_change_reaches_only_affected_user(session, owner, reader, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.ROLE_CHANGED,
        owner.id,
        shared_calendar.id,
        {"user_id": str(reader.id), "role": "creator", "previous_role": "reader"},
    )

    assert recipients(notifications) == {reader.id}


def test_participant_response_goes_to_event_creator(
    session, creator, reader, shared_calendar, make_event
):
    event = make_event(shared_calendar, creator)

    to_creator = create_notifications(
        session, NotificationKind.PARTICIPANT_RESPONSE, reader.id, event.id, {"has_confirmed": True}
    )
    from_creator = create_notifications(
        session, NotificationKind.PARTICIPANT_RESPONSE, creator.id, event.id, {"has_confirmed": False}
    )

    assert recipients(to_creator) == {creator.id}
    assert "confirmed" in to_creator[0].message
    assert from_creator == []


def test_invite_for_unregistered_address_has_no_inbox_entry(session, owner, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.CALENDAR_INVITE_SENT,
        owner.id,
        shared_calendar.id,
        {"email": "nobody@acme.org"},
    )

    assert notifications == []


def test_invite_for_registered_address(session, owner, outsider, shared_calendar):
    notifications = create_notifications(
        session,
        NotificationKind.CALENDAR_INVITE_SENT,
        owner.id,
        shared_calendar.id,
        {"email": outsider.email.upper()},
    )

    assert recipients(notifications) == {outsider.id}


def test_queueing_failure_does_not_undo_mutation(
    monkeypatch, session, owner, outsider, make_calendar
):
    def broken_delay(*args, **kwargs):
        raise ConnectionError("broker down")

    monkeypatch.setattr("calshare.services.notifications.safe_celery_delay", safe_celery_delay)
    monkeypatch.setattr(
        "calshare.tasks.notifications.deliver_notification_task",
        SimpleNamespace(name="deliver_notification_task", delay=broken_delay),
    )
    calendar = make_calendar(owner)
    link = create_invite_link(session, owner, calendar.id)

    joined = accept_invite_link(session, outsider, link.id)

    assert joined.id == calendar.id
    assert get_membership(session, calendar.id, outsider.id) is not None


@pytest.fixture
def task_engine(monkeypatch, engine):
    monkeypatch.setattr("calshare.tasks.notifications.engine", engine)
    return engine


def test_task_writes_notifications(task_engine, owner, reader, creator, shared_calendar, make_event):
    from calshare.tasks.notifications import deliver_notification_task

    event = make_event(shared_calendar, creator)
    result = deliver_notification_task.apply(
        args=["participant_response", str(reader.id), str(event.id), {"has_confirmed": True}]
    ).get()

    assert result == {"success": True, "kind": "participant_response", "created": 1}
    with Session(task_engine) as session:
        stored = session.exec(select(Notification)).all()
    assert [n.user_id for n in stored] == [creator.id]


def test_task_drops_unknown_kind(task_engine, owner, shared_calendar):
    from calshare.tasks.notifications import deliver_notification_task

    result = deliver_notification_task.apply(
        args=["birthday", str(owner.id), str(shared_calendar.id), {}]
    ).get()

    assert result["success"] is False
