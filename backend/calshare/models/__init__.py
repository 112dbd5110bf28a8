from .calendar import Calendar
from .calendar_email_invite import CalendarEmailInvite
from .calendar_invite_link import CalendarInviteLink
from .calendar_member import CalendarMember, ParticipantRole
from .event import Event
from .event_category import EventCategory
from .event_email_invite import EventEmailInvite
from .event_participant import EventParticipant
from .notification import Notification
from .user import User

__all__ = [
    "Calendar",
    "CalendarEmailInvite",
    "CalendarInviteLink",
    "CalendarMember",
    "Event",
    "EventCategory",
    "EventEmailInvite",
    "EventParticipant",
    "Notification",
    "ParticipantRole",
    "User",
]
