"""Celery tasks for notifications."""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from sqlmodel import Session

from calshare.celery_app import celery_app
from calshare.db import engine
from calshare.services.notifications import NotificationKind, create_notifications

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3, default_retry_delay=60)
def deliver_notification_task(
    self,
    kind: str,
    initiator_id: str,
    target_id: str,
    payload: dict[str, Any] | None = None,
) -> dict:
    """
    Materialize a notification for every recipient of ``kind``.

    Args:
        kind: NotificationKind value
        initiator_id: User who caused the change
        target_id: Calendar or event the change happened on
        payload: Kind-specific details (affected user, changed fields, ...)

    Returns:
        dict: Result with the number of notifications created or an error
    """
    try:
        notification_kind = NotificationKind(kind)
    except ValueError:
        logger.error(f"Unknown notification kind {kind!r}, dropping")
        return {"success": False, "error": "Unknown notification kind"}

    try:
        with Session(engine) as session:
            notifications = create_notifications(
                session,
                notification_kind,
                UUID(initiator_id),
                UUID(target_id),
                payload or {},
            )
            session.commit()

            logger.info(
                f"Created {len(notifications)} {kind} notification(s) "
                f"for target {target_id}"
            )

            return {
                "success": True,
                "kind": kind,
                "created": len(notifications),
            }
    except Exception as exc:
        logger.error(
            f"Error in deliver_notification_task for {kind} on {target_id}: {exc}",
            exc_info=True,
        )
        raise self.retry(exc=exc)
