from .calendar import (
    CalendarCreate,
    CalendarMemberRead,
    CalendarMemberUpdate,
    CalendarRead,
    CalendarReadWithRole,
    CalendarUpdate,
    VisibilityUpdate,
)
from .category import CategoryCreate, CategoryRead, CategoryUpdate
from .event import (
    ConfirmationUpdate,
    EventCreate,
    EventParticipantRead,
    EventRead,
    EventUpdate,
)
from .invite import (
    CalendarEmailInviteCreate,
    CalendarEmailInviteInfo,
    CalendarEmailInviteRead,
    EventEmailInviteCreate,
    EventEmailInviteInfo,
    EventEmailInviteRead,
    InviteLinkCreate,
    InviteLinkInfo,
    InviteLinkRead,
)
from .notification import NotificationRead, NotificationUpdate
from .user import (
    RefreshTokenRequest,
    TokenPair,
    UserBase,
    UserCreate,
    UserLogin,
    UserRead,
)

__all__ = [
    "CategoryCreate",
    "CategoryRead",
    "CategoryUpdate",
    "CalendarCreate",
    "CalendarRead",
    "CalendarReadWithRole",
    "CalendarUpdate",
    "CalendarMemberRead",
    "CalendarMemberUpdate",
    "CalendarEmailInviteCreate",
    "CalendarEmailInviteInfo",
    "CalendarEmailInviteRead",
    "ConfirmationUpdate",
    "EventCreate",
    "EventRead",
    "EventParticipantRead",
    "EventUpdate",
    "EventEmailInviteCreate",
    "EventEmailInviteInfo",
    "EventEmailInviteRead",
    "InviteLinkCreate",
    "InviteLinkInfo",
    "InviteLinkRead",
    "NotificationRead",
    "NotificationUpdate",
    "TokenPair",
    "RefreshTokenRequest",
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserRead",
    "VisibilityUpdate",
]
