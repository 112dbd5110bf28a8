from __future__ import annotations

from datetime import datetime, timedelta

from calshare.core.config import settings
from calshare.core.errors import ExpiredError, ValidationError
from calshare.models.timestamps import utcnow


def expires_at_from_days(expire_in_days: int | None) -> datetime | None:
    """``None`` means the invitation never expires."""
    if expire_in_days is None:
        return None
    if expire_in_days < 1 or expire_in_days > settings.INVITE_MAX_EXPIRE_DAYS:
        raise ValidationError(
            f"expire_in_days must be between 1 and {settings.INVITE_MAX_EXPIRE_DAYS}"
        )
    return utcnow() + timedelta(days=expire_in_days)


def ensure_not_expired(invitation, detail: str) -> None:
    if invitation.is_expired():
        raise ExpiredError(detail)
