from uuid import uuid4

import pytest

from calshare.models import ParticipantRole
from calshare.services.authorization import (
    CalendarAccess,
    CalendarAction,
    Decision,
    EventAccess,
    authorize,
)

OWNER = uuid4()
ACTOR = uuid4()
OTHER = uuid4()


def calendar_as(role=None, **flags) -> CalendarAccess:
    return CalendarAccess(calendar_id=uuid4(), owner_id=OWNER, actor_role=role, **flags)


def event_as(role=None, creator_id=OTHER, **flags) -> EventAccess:
    return EventAccess(event_id=uuid4(), creator_id=creator_id, calendar=calendar_as(role, **flags))


def test_decision_is_truthy_only_when_allowed():
    assert Decision(True)
    assert not Decision(False, "nope")


@pytest.mark.parametrize(
    "action",
    [
        CalendarAction.UPDATE_CALENDAR,
        CalendarAction.TOGGLE_VISIBILITY,
        CalendarAction.MANAGE_SHARING,
        CalendarAction.CHANGE_PARTICIPANT_ROLE,
        CalendarAction.REMOVE_PARTICIPANT,
    ],
)
def test_sharing_actions_need_owner_or_admin(action):
    assert authorize(OWNER, calendar_as(), action)
    assert authorize(ACTOR, calendar_as(ParticipantRole.ADMIN), action)
    assert not authorize(ACTOR, calendar_as(ParticipantRole.CREATOR), action)
    assert not authorize(ACTOR, calendar_as(ParticipantRole.READER), action)
    assert not authorize(ACTOR, calendar_as(None), action)


def test_main_calendar_cannot_be_shared_even_by_owner():
    decision = authorize(OWNER, calendar_as(is_main=True), CalendarAction.MANAGE_SHARING)
    assert not decision
    assert decision.reason == "Main calendar cannot be modified or shared"


def test_holiday_calendar_is_immutable():
    decision = authorize(OWNER, calendar_as(is_holiday=True), CalendarAction.UPDATE_CALENDAR)
    assert not decision
    assert "Holiday" in decision.reason


def test_admin_cannot_change_owner_role():
    decision = authorize(
        ACTOR,
        calendar_as(ParticipantRole.ADMIN),
        CalendarAction.CHANGE_PARTICIPANT_ROLE,
        target_user_id=OWNER,
    )
    assert not decision
    assert decision.reason == "Cannot change the role of the calendar owner"


def test_owner_removal_guard_runs_before_role_check():
    decision = authorize(
        ACTOR,
        calendar_as(ParticipantRole.READER),
        CalendarAction.REMOVE_PARTICIPANT,
        target_user_id=OWNER,
    )
    assert decision.reason == "Cannot remove the calendar owner"


def test_only_owner_deletes_calendar():
    assert authorize(OWNER, calendar_as(), CalendarAction.DELETE_CALENDAR)
    assert not authorize(ACTOR, calendar_as(ParticipantRole.ADMIN), CalendarAction.DELETE_CALENDAR)
    decision = authorize(OWNER, calendar_as(is_main=True), CalendarAction.DELETE_CALENDAR)
    assert decision.reason == "Cannot delete main or holiday calendar"


def test_event_creation_roles():
    assert authorize(OWNER, calendar_as(), CalendarAction.CREATE_EVENT)
    assert authorize(ACTOR, calendar_as(ParticipantRole.ADMIN), CalendarAction.CREATE_EVENT)
    assert authorize(ACTOR, calendar_as(ParticipantRole.CREATOR), CalendarAction.CREATE_EVENT)
    assert not authorize(ACTOR, calendar_as(ParticipantRole.READER), CalendarAction.CREATE_EVENT)
    assert not authorize(OWNER, calendar_as(is_holiday=True), CalendarAction.CREATE_EVENT)


def test_any_role_can_view():
    for role in ParticipantRole:
        assert authorize(ACTOR, calendar_as(role), CalendarAction.VIEW)
        assert authorize(ACTOR, event_as(role), CalendarAction.VIEW_EVENT)
    assert not authorize(ACTOR, calendar_as(None), CalendarAction.VIEW)


def test_creator_edits_only_own_events():
    own = event_as(ParticipantRole.CREATOR, creator_id=ACTOR)
    foreign = event_as(ParticipantRole.CREATOR, creator_id=OTHER)
    assert authorize(ACTOR, own, CalendarAction.UPDATE_EVENT)
    assert authorize(ACTOR, own, CalendarAction.DELETE_EVENT)
    assert not authorize(ACTOR, foreign, CalendarAction.UPDATE_EVENT)
    assert not authorize(ACTOR, foreign, CalendarAction.DELETE_EVENT)


def test_owner_and_admin_edit_any_event():
    assert authorize(OWNER, event_as(), CalendarAction.UPDATE_EVENT)
    assert authorize(ACTOR, event_as(ParticipantRole.ADMIN), CalendarAction.DELETE_EVENT)


def test_event_creator_without_calendar_access_cannot_edit():
    assert not authorize(ACTOR, event_as(None, creator_id=ACTOR), CalendarAction.UPDATE_EVENT)


def test_invite_to_event_needs_owner_or_admin():
    assert authorize(OWNER, event_as(), CalendarAction.INVITE_TO_EVENT)
    assert authorize(ACTOR, event_as(ParticipantRole.ADMIN), CalendarAction.INVITE_TO_EVENT)
    assert not authorize(
        ACTOR, event_as(ParticipantRole.CREATOR, creator_id=ACTOR), CalendarAction.INVITE_TO_EVENT
    )


def test_event_participant_removal_rules():
    action = CalendarAction.REMOVE_EVENT_PARTICIPANT
    assert authorize(ACTOR, event_as(ParticipantRole.READER), action, target_user_id=ACTOR)
    assert authorize(ACTOR, event_as(ParticipantRole.ADMIN), action, target_user_id=uuid4())
    assert not authorize(ACTOR, event_as(ParticipantRole.READER), action, target_user_id=uuid4())

    creator_target = authorize(
        ACTOR, event_as(ParticipantRole.ADMIN, creator_id=OTHER), action, target_user_id=OTHER
    )
    assert creator_target.reason == "Cannot remove the event creator"

    owner_target = authorize(ACTOR, event_as(ParticipantRole.ADMIN), action, target_user_id=OWNER)
    assert owner_target.reason == "Cannot remove the calendar owner from the event"


def test_event_creator_may_leave_own_event():
    event = event_as(ParticipantRole.CREATOR, creator_id=ACTOR)
    assert authorize(ACTOR, event, CalendarAction.REMOVE_EVENT_PARTICIPANT, target_user_id=ACTOR)


def test_setting_someone_elses_confirmation():
    action = CalendarAction.SET_PARTICIPANT_CONFIRMATION
    target = uuid4()
    assert authorize(ACTOR, event_as(ParticipantRole.READER), action, target_user_id=ACTOR)
    assert authorize(ACTOR, event_as(ParticipantRole.CREATOR, creator_id=ACTOR), action, target_user_id=target)
    assert authorize(ACTOR, event_as(ParticipantRole.ADMIN), action, target_user_id=target)
    assert not authorize(ACTOR, event_as(ParticipantRole.READER), action, target_user_id=target)


def test_event_actions_on_calendar_resource_are_denied():
    decision = authorize(OWNER, calendar_as(), CalendarAction.UPDATE_EVENT)
    assert not decision
    assert decision.reason == "Not authorized"


def test_any_calendar_member_can_view_categories():
    assert authorize(OWNER, calendar_as(), CalendarAction.VIEW_CATEGORIES)
    assert authorize(ACTOR, calendar_as(ParticipantRole.READER), CalendarAction.VIEW_CATEGORIES)
    assert not authorize(ACTOR, calendar_as(None), CalendarAction.VIEW_CATEGORIES)


def test_only_owner_manages_categories():
    assert authorize(OWNER, calendar_as(), CalendarAction.MANAGE_CATEGORIES)
    assert authorize(OWNER, calendar_as(is_main=True), CalendarAction.MANAGE_CATEGORIES)
    assert not authorize(
        ACTOR, calendar_as(ParticipantRole.ADMIN), CalendarAction.MANAGE_CATEGORIES
    )
    decision = authorize(OWNER, calendar_as(is_holiday=True), CalendarAction.MANAGE_CATEGORIES)
    assert decision.reason == "Holiday calendar is read only"
