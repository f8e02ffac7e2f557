"""In-app notification records."""

import logging
from typing import Callable, Optional

from revvdoc.models.notification import Notification, NotificationType
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


def build_notification(
    user_id: str,
    notification_type: NotificationType,
    title: str,
    body: str,
    related_booking_id: Optional[str] = None,
    related_job_id: Optional[str] = None,
) -> Notification:
    return Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        body=body,
        read=False,
        related_booking_id=related_booking_id,
        related_job_id=related_job_id,
    )


async def create_notification(
    session_factory: Callable[[], AsyncSession],
    user_id: str,
    notification_type: NotificationType,
    title: str,
    body: str,
    related_booking_id: Optional[str] = None,
    related_job_id: Optional[str] = None,
) -> str:
    """
    Persist a notification in its own session.

    Intended to run as a best-effort background task; errors propagate to
    the task's failure boundary.

    Returns:
        The new notification id
    """
    async with session_factory() as db:
        notification = build_notification(
            user_id,
            notification_type,
            title,
            body,
            related_booking_id=related_booking_id,
            related_job_id=related_job_id,
        )
        db.add(notification)
        await db.commit()

    logger.info(f"Notification {notification.type.value} created for user {user_id}")
    return notification.id
