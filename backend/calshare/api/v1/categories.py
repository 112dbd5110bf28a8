from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from calshare.api.deps import get_current_user
from calshare.db import SessionDep
from calshare.models import EventCategory, User
from calshare.schemas import CategoryCreate, CategoryRead, CategoryUpdate
from calshare.services import categories

router = APIRouter()


@router.get(
    "/calendars/{calendar_id}/categories",
    response_model=List[CategoryRead],
    summary="List calendar categories",
)
def list_categories(
    calendar_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[EventCategory]:
    return categories.list_categories(session, current_user, calendar_id)


@router.post(
    "/calendars/{calendar_id}/categories",
    response_model=CategoryRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create category (owner only)",
)
def create_category(
    calendar_id: UUID,
    payload: CategoryCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventCategory:
    return categories.create_category(session, current_user, calendar_id, payload)


@router.get(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Get category by id",
)
def get_category(
    category_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventCategory:
    return categories.get_category(session, current_user, category_id)


@router.put(
    "/categories/{category_id}",
    response_model=CategoryRead,
    summary="Update category (owner only)",
)
def update_category(
    category_id: UUID,
    payload: CategoryUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> EventCategory:
    return categories.update_category(session, current_user, category_id, payload)


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete category (owner only)",
)
def delete_category(
    category_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Response:
    categories.delete_category(session, current_user, category_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
