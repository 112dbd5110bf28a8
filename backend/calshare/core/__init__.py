from .config import settings
from .errors import (
    ConflictError,
    ErrorKind,
    ExpiredError,
    ForbiddenError,
    NotFoundError,
    SharingError,
    ValidationError,
)
from .security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_token,
    verify_password,
)

__all__ = [
    "settings",
    "ConflictError",
    "ErrorKind",
    "ExpiredError",
    "ForbiddenError",
    "NotFoundError",
    "SharingError",
    "ValidationError",
    "create_access_token",
    "create_refresh_token",
    "get_password_hash",
    "verify_token",
    "verify_password",
]
