"""Registration and credential checks behind the auth routes."""

from __future__ import annotations

import logging

from sqlalchemy import func, or_
from sqlmodel import Session, select

from calshare.core.errors import ForbiddenError, ValidationError
from calshare.core.security import (
    create_access_token,
    create_refresh_token,
    get_password_hash,
    verify_password,
)
from calshare.models import User
from calshare.schemas import TokenPair, UserCreate
from calshare.services.personal_calendar import ensure_personal_calendar

logger = logging.getLogger(__name__)

BAD_CREDENTIALS = "Incorrect email or password"


def register_user(session: Session, payload: UserCreate) -> User:
    """Create the account and its personal calendar in one transaction."""
    email = payload.email.lower()
    existing = session.exec(
        select(User).where(
            or_(func.lower(User.email) == email, User.username == payload.username)
        )
    ).first()
    if existing:
        if existing.email.lower() == email:
            raise ValidationError("Email is already registered")
        raise ValidationError("Username is already taken")

    user = User(
        email=email,
        username=payload.username,
        full_name=payload.full_name,
        hashed_password=get_password_hash(payload.password),
    )
    session.add(user)
    session.flush()
    ensure_personal_calendar(session, user.id)
    session.refresh(user)

    logger.info(f"Registered user {user.id}")
    return user


def authenticate(session: Session, email: str, password: str) -> User:
    user = session.exec(
        select(User).where(func.lower(User.email) == email.lower())
    ).one_or_none()
    if not user or not verify_password(password, user.hashed_password):
        logger.info(f"Failed login for {email}")
        raise ValidationError(BAD_CREDENTIALS)
    if not user.is_active:
        raise ForbiddenError("User is inactive")
    return user


def issue_tokens(user_id) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id),
        refresh_token=create_refresh_token(user_id),
    )
