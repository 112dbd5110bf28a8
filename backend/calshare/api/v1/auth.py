from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from calshare.core.security import verify_token
from calshare.db import SessionDep
from calshare.models import User
from calshare.schemas import (
    RefreshTokenRequest,
    TokenPair,
    UserCreate,
    UserLogin,
    UserRead,
)
from calshare.services import accounts

router = APIRouter()


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    summary="Register and provision the personal calendar",
)
def register_user(payload: UserCreate, session: SessionDep) -> User:
    return accounts.register_user(session, payload)


@router.post("/login", response_model=TokenPair, summary="Exchange credentials for tokens")
def login(payload: UserLogin, session: SessionDep) -> TokenPair:
    user = accounts.authenticate(session, payload.email, payload.password)
    return accounts.issue_tokens(user.id)


@router.post("/refresh", response_model=TokenPair, summary="Rotate the token pair")
def refresh_tokens(payload: RefreshTokenRequest) -> TokenPair:
    try:
        claims = verify_token(payload.refresh_token, token_type="refresh")
    except ValueError:
        claims = {}
    if not claims.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
        )
    return accounts.issue_tokens(claims["sub"])
