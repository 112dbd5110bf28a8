"""
Role & authorization engine.

Pure decision logic: given an actor, a resource snapshot and an action, return
a :class:`Decision`. Nothing here touches the database; callers build the
snapshots with ``calshare.services.permissions``.

Ownership and the ADMIN role are separate paths: the owner is an attribute of
the calendar and never appears as a membership role.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import UUID

from calshare.models.calendar_member import ParticipantRole

NOT_AUTHORIZED = "Not authorized"


class CalendarAction(str, Enum):
    VIEW = "view"
    UPDATE_CALENDAR = "update_calendar"
    TOGGLE_VISIBILITY = "toggle_visibility"
    MANAGE_SHARING = "manage_sharing"
    CHANGE_PARTICIPANT_ROLE = "change_participant_role"
    REMOVE_PARTICIPANT = "remove_participant"
    DELETE_CALENDAR = "delete_calendar"
    CREATE_EVENT = "create_event"
    VIEW_EVENT = "view_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    INVITE_TO_EVENT = "invite_to_event"
    REMOVE_EVENT_PARTICIPANT = "remove_event_participant"
    SET_PARTICIPANT_CONFIRMATION = "set_participant_confirmation"
    VIEW_CATEGORIES = "view_categories"
    MANAGE_CATEGORIES = "manage_categories"


# Actions that change the calendar itself or who it is shared with.
_SHARING_ACTIONS = frozenset(
    {
        CalendarAction.UPDATE_CALENDAR,
        CalendarAction.TOGGLE_VISIBILITY,
        CalendarAction.MANAGE_SHARING,
        CalendarAction.CHANGE_PARTICIPANT_ROLE,
        CalendarAction.REMOVE_PARTICIPANT,
    }
)

_EVENT_ACTIONS = frozenset(
    {
        CalendarAction.VIEW_EVENT,
        CalendarAction.UPDATE_EVENT,
        CalendarAction.DELETE_EVENT,
        CalendarAction.INVITE_TO_EVENT,
        CalendarAction.REMOVE_EVENT_PARTICIPANT,
        CalendarAction.SET_PARTICIPANT_CONFIRMATION,
    }
)


@dataclass(frozen=True)
class CalendarAccess:
    """Snapshot of a calendar and the acting user's membership role."""

    calendar_id: UUID
    owner_id: UUID
    is_main: bool = False
    is_holiday: bool = False
    actor_role: Optional[ParticipantRole] = None

    def is_owner(self, user_id: UUID) -> bool:
        return self.owner_id == user_id

    @property
    def is_immutable(self) -> bool:
        return self.is_main or self.is_holiday


@dataclass(frozen=True)
class EventAccess:
    """Snapshot of an event together with its calendar."""

    event_id: UUID
    creator_id: UUID
    calendar: CalendarAccess


Resource = Union[CalendarAccess, EventAccess]


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str = NOT_AUTHORIZED) -> Decision:
    return Decision(False, reason)


def _is_owner_or_admin(actor_id: UUID, calendar: CalendarAccess) -> bool:
    return calendar.is_owner(actor_id) or calendar.actor_role == ParticipantRole.ADMIN


def _has_access(actor_id: UUID, calendar: CalendarAccess) -> bool:
    return calendar.is_owner(actor_id) or calendar.actor_role is not None


def _authorize_calendar(
    actor_id: UUID,
    calendar: CalendarAccess,
    action: CalendarAction,
    target_user_id: Optional[UUID],
) -> Decision:
    if action == CalendarAction.VIEW:
        return ALLOW if _has_access(actor_id, calendar) else deny()

    if action == CalendarAction.DELETE_CALENDAR:
        if not calendar.is_owner(actor_id):
            return deny()
        if calendar.is_immutable:
            return deny("Cannot delete main or holiday calendar")
        return ALLOW

    if action in _SHARING_ACTIONS:
        # Target guards are structural and hold whatever the actor's role is.
        if target_user_id is not None and calendar.is_owner(target_user_id):
            if action == CalendarAction.CHANGE_PARTICIPANT_ROLE:
                return deny("Cannot change the role of the calendar owner")
            if action == CalendarAction.REMOVE_PARTICIPANT:
                return deny("Cannot remove the calendar owner")
        if calendar.is_main:
            return deny("Main calendar cannot be modified or shared")
        if calendar.is_holiday:
            return deny("Holiday calendar cannot be modified or shared")
        return ALLOW if _is_owner_or_admin(actor_id, calendar) else deny()

    if action == CalendarAction.VIEW_CATEGORIES:
        return ALLOW if _has_access(actor_id, calendar) else deny()

    if action == CalendarAction.MANAGE_CATEGORIES:
        # Owner only, ADMIN included.
        if not calendar.is_owner(actor_id):
            return deny()
        if calendar.is_holiday:
            return deny("Holiday calendar is read only")
        return ALLOW

    if action == CalendarAction.CREATE_EVENT:
        if calendar.is_holiday:
            return deny("Holiday calendar is read only")
        if calendar.is_owner(actor_id) or calendar.actor_role in (
            ParticipantRole.ADMIN,
            ParticipantRole.CREATOR,
        ):
            return ALLOW
        return deny()

    return deny()


def _authorize_event(
    actor_id: UUID,
    event: EventAccess,
    action: CalendarAction,
    target_user_id: Optional[UUID],
) -> Decision:
    calendar = event.calendar

    if action == CalendarAction.VIEW_EVENT:
        return ALLOW if _has_access(actor_id, calendar) else deny()

    if action in (CalendarAction.UPDATE_EVENT, CalendarAction.DELETE_EVENT):
        if _is_owner_or_admin(actor_id, calendar):
            return ALLOW
        # CREATOR (or a demoted member) keeps control over their own events only
        if event.creator_id == actor_id and _has_access(actor_id, calendar):
            return ALLOW
        return deny()

    if action == CalendarAction.INVITE_TO_EVENT:
        return ALLOW if _is_owner_or_admin(actor_id, calendar) else deny()

    if action == CalendarAction.REMOVE_EVENT_PARTICIPANT:
        if target_user_id is None or target_user_id == actor_id:
            return ALLOW
        if target_user_id == event.creator_id:
            return deny("Cannot remove the event creator")
        if calendar.is_owner(target_user_id):
            return deny("Cannot remove the calendar owner from the event")
        return ALLOW if _is_owner_or_admin(actor_id, calendar) else deny()

    if action == CalendarAction.SET_PARTICIPANT_CONFIRMATION:
        if target_user_id is None or target_user_id == actor_id:
            return ALLOW
        if _is_owner_or_admin(actor_id, calendar) or event.creator_id == actor_id:
            return ALLOW
        return deny()

    return deny()


def authorize(
    actor_id: UUID,
    resource: Resource,
    action: CalendarAction,
    *,
    target_user_id: Optional[UUID] = None,
) -> Decision:
    """Decide whether ``actor_id`` may perform ``action`` on ``resource``.

    ``target_user_id`` is the user an action is aimed at (role change,
    participant removal, confirmation of someone else). Anything not
    explicitly allowed is denied with ``"Not authorized"``.
    """
    if isinstance(resource, EventAccess):
        if action not in _EVENT_ACTIONS:
            return _authorize_calendar(actor_id, resource.calendar, action, target_user_id)
        return _authorize_event(actor_id, resource, action, target_user_id)
    if action in _EVENT_ACTIONS:
        return deny()
    return _authorize_calendar(actor_id, resource, action, target_user_id)
