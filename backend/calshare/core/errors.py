"""Error taxonomy raised by the sharing services.

Services never raise ``HTTPException``. Every failure carries an
:class:`ErrorKind` so the HTTP layer (see ``calshare.main``) can map it to a
status code without matching on message strings.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    FORBIDDEN = "forbidden"
    CONFLICT = "conflict"
    VALIDATION = "validation"


class SharingError(Exception):
    """Base class for all domain failures."""

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, detail: str, *, kind: ErrorKind | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        if kind is not None:
            self.kind = kind

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, detail={self.detail!r})"


class NotFoundError(SharingError):
    kind = ErrorKind.NOT_FOUND


class ExpiredError(SharingError):
    kind = ErrorKind.EXPIRED


class ForbiddenError(SharingError):
    kind = ErrorKind.FORBIDDEN


class ConflictError(SharingError):
    kind = ErrorKind.CONFLICT


class ValidationError(SharingError):
    kind = ErrorKind.VALIDATION
