from datetime import timedelta

import pytest

from calshare.core.errors import ExpiredError, ForbiddenError, NotFoundError, ValidationError
from calshare.models import EventEmailInvite, EventParticipant
from calshare.models.timestamps import utcnow
from calshare.services import event_email_invites as invites
from calshare.services.memberships import remove_participant
from calshare.services.notifications import NotificationKind
from calshare.services.participation import list_event_participants

from conftest import kinds


@pytest.fixture
def event(make_event, shared_calendar, owner):
    return make_event(shared_calendar, owner)


def test_mixed_eligibility_creates_only_valid_invites(
    session, owner, reader, outsider, event, dispatched
):
    created = invites.create_event_email_invites(
        session,
        owner,
        event.id,
        [reader.email.upper(), outsider.email, owner.email, f" {reader.email} "],
    )

    assert [invite.email for invite in created] == [reader.email]
    assert created[0].user_id == reader.id
    assert kinds(dispatched) == [NotificationKind.EVENT_INVITE_SENT]


def test_no_calendar_participants(session, owner, outsider, event):
    with pytest.raises(ValidationError, match="No valid calendar participants to invite"):
        invites.create_event_email_invites(session, owner, event.id, [outsider.email, owner.email])


def test_everyone_already_participates(session, owner, reader, event):
    session.add(EventParticipant(event_id=event.id, user_id=reader.id))
    session.commit()

    with pytest.raises(ValidationError, match="All selected users are already participants"):
        invites.create_event_email_invites(session, owner, event.id, [reader.email])


def test_live_invite_is_skipped(session, owner, admin, reader, creator, event):
    invites.create_event_email_invites(session, owner, event.id, [reader.email])

    again = invites.create_event_email_invites(session, admin, event.id, [reader.email, creator.email])

    assert [invite.email for invite in again] == [creator.email]
    assert len(invites.list_event_email_invites(session, owner, event.id)) == 2


def test_expired_invite_is_replaced(session, owner, reader, event):
    [old] = invites.create_event_email_invites(session, owner, event.id, [reader.email], expire_in_days=1)
    old_id = old.id
    old.expires_at = utcnow() - timedelta(days=1)
    session.add(old)
    session.commit()

    [new] = invites.create_event_email_invites(session, owner, event.id, [reader.email])

    assert new.id != old_id
    assert session.get(EventEmailInvite, old_id) is None


def test_creator_role_cannot_invite(session, creator, reader, event):
    with pytest.raises(ForbiddenError):
        invites.create_event_email_invites(session, creator, event.id, [reader.email])


def test_round_trip_yields_one_confirmed_participant(session, owner, reader, event, dispatched):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])
    token = invite.token

    participant = invites.accept_event_email_invite(session, reader, token)

    assert participant.has_confirmed is True
    rows = [
        p for p in list_event_participants(session, owner, event.id) if p.user_id == reader.id
    ]
    assert len(rows) == 1 and rows[0].has_confirmed
    assert invites.list_event_email_invites(session, owner, event.id) == []
    assert kinds(dispatched)[-1] == NotificationKind.PARTICIPANT_RESPONSE
    with pytest.raises(NotFoundError):
        invites.accept_event_email_invite(session, reader, token)


def test_accept_updates_existing_unconfirmed_participation(session, owner, reader, event):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])
    session.add(EventParticipant(event_id=event.id, user_id=reader.id, has_confirmed=False))
    session.commit()

    participant = invites.accept_event_email_invite(session, reader, invite.token)

    assert participant.has_confirmed is True


def test_former_member_cannot_accept(session, owner, reader, event, shared_calendar):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])
    remove_participant(session, owner, shared_calendar.id, reader.id)

    with pytest.raises(ForbiddenError, match="participant of the calendar"):
        invites.accept_event_email_invite(session, reader, invite.token)
    assert session.get(EventParticipant, (event.id, reader.id)) is None


def test_accept_with_other_account(session, owner, reader, admin, event):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])

    with pytest.raises(ForbiddenError, match="different email"):
        invites.accept_event_email_invite(session, admin, invite.token)


def test_expired_event_invite(session, owner, reader, event):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email], expire_in_days=3)
    invite.expires_at = utcnow() - timedelta(seconds=1)
    session.add(invite)
    session.commit()

    with pytest.raises(ExpiredError):
        invites.get_event_email_invite_info(session, invite.token)


def test_event_invite_info(session, owner, reader, event):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])

    info = invites.get_event_email_invite_info(session, invite.token)

    assert info.event_name == "Standup"
    assert info.calendar_name == "Team"
    assert info.email == reader.email
    assert info.invited_by == "Olivia"


def test_delete_event_invite(session, owner, admin, reader, event):
    [invite] = invites.create_event_email_invites(session, owner, event.id, [reader.email])

    invites.delete_event_email_invite(session, admin, event.id, invite.id)

    assert invites.list_event_email_invites(session, owner, event.id) == []
