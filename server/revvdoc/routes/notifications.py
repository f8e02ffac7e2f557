"""In-app notification endpoints."""

from fastapi import APIRouter, Depends, Query
from revvdoc.services.auth import get_current_user_id
from revvdoc.services.database import get_db
from revvdoc.tools import notification_tools
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter()


@router.get("/notifications")
async def list_notifications(
    unread_only: bool = Query(default=False, alias="unreadOnly"),
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    notifications = await notification_tools.list_notifications(db, caller_id, unread_only=unread_only)
    return {"notifications": notifications, "count": len(notifications)}


@router.post("/notifications/read-all")
async def mark_all_read(
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return {"updated": await notification_tools.mark_all_read(db, caller_id)}


@router.post("/notifications/{notification_id}/read")
async def mark_read(
    notification_id: str,
    caller_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await notification_tools.mark_notification_read(db, notification_id, caller_id)
