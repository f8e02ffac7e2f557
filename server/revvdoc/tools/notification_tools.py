"""In-app notification reads and read-state updates."""

import logging
from typing import Any, Dict, List

from revvdoc.errors import ForbiddenError, NotFoundError
from revvdoc.models.notification import Notification
from revvdoc.utils.timeutils import isoformat_or_none
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50


def serialize_notification(notification: Notification) -> Dict[str, Any]:
    return {
        "notificationId": notification.id,
        "userId": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "body": notification.body,
        "read": notification.read,
        "relatedBookingId": notification.related_booking_id,
        "relatedJobId": notification.related_job_id,
        "createdAt": isoformat_or_none(notification.created_at),
    }


async def list_notifications(
    db: AsyncSession, user_id: str, unread_only: bool = False, limit: int = DEFAULT_LIMIT
) -> List[Dict[str, Any]]:
    """The caller's notifications, newest first."""
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc()).limit(limit)

    result = await db.execute(stmt)
    return [serialize_notification(n) for n in result.scalars().all()]


async def mark_notification_read(db: AsyncSession, notification_id: str, user_id: str) -> Dict[str, Any]:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    if notification.user_id != user_id:
        raise ForbiddenError("Forbidden: not your notification")

    notification.read = True
    await db.commit()
    return serialize_notification(notification)


async def mark_all_read(db: AsyncSession, user_id: str) -> int:
    """Mark every unread notification of the user as read; returns how many changed."""
    result = await db.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    logger.info(f"Marked {result.rowcount} notifications read for user {user_id}")
    return result.rowcount
