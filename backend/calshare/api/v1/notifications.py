from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlmodel import select

from calshare.api.deps import get_current_user
from calshare.db import SessionDep
from calshare.models import Notification, User
from calshare.models.timestamps import utcnow
from calshare.schemas import NotificationRead, NotificationUpdate

router = APIRouter()


@router.get("/", response_model=List[NotificationRead], summary="List notifications")
def list_notifications(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    unread_only: bool = Query(default=False, description="Show only unread notifications"),
    limit: int = Query(default=50, ge=1, le=100, description="Maximum number of notifications"),
) -> List[Notification]:
    """Get the current user's notifications, newest first."""
    statement = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        statement = statement.where(Notification.is_read == False)  # noqa: E712
    statement = statement.order_by(Notification.created_at.desc()).limit(limit)
    return list(session.exec(statement).all())


@router.get("/unread-count", summary="Get unread notifications count")
def get_unread_count(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    count = session.exec(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,  # noqa: E712
        )
    ).one()
    return {"count": count}


@router.patch("/mark-all-read", summary="Mark all notifications as read")
def mark_all_read(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> dict:
    notifications = session.exec(
        select(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read == False,  # noqa: E712
        )
    ).all()

    now = utcnow()
    for notification in notifications:
        notification.is_read = True
        notification.read_at = now
        session.add(notification)
    session.commit()
    return {"marked": len(notifications)}


@router.patch(
    "/{notification_id}",
    response_model=NotificationRead,
    summary="Mark notification as read or unread",
)
def update_notification(
    notification_id: UUID,
    data: NotificationUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Notification:
    notification = session.get(Notification, notification_id)
    if not notification or notification.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = data.is_read
    if data.is_read and not notification.read_at:
        notification.read_at = utcnow()
    elif not data.is_read:
        notification.read_at = None

    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification
