"""In-app notification endpoints"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.models import Notification, User
from ...core.schemas.notification import NotificationList, NotificationResponse
from ...core.storage.repositories import NotificationRepository
from ..dependencies import get_current_user, get_session

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/notifications", response_model=NotificationList)
async def list_notifications(
    unread_only: bool = Query(False, description="Only unread notifications"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    """The caller's notifications, newest first."""
    notifications = await NotificationRepository(session).list_for_user(user.id, unread_only)
    result = await session.execute(
        select(func.count(Notification.id)).where(
            Notification.user_id == user.id, Notification.is_read.is_(False)
        )
    )
    return NotificationList(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread=result.scalar_one(),
    )


@router.post("/notifications/read-all")
async def mark_all_read(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    user_id = user.id
    try:
        result = await session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await session.commit()
        return {"updated": result.rowcount}
    except Exception as e:
        await session.rollback()
        logger.error(f"Error marking notifications read for user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
):
    notification = await session.get(Notification, notification_id)
    if not notification or notification.user_id != user.id:
        raise HTTPException(status_code=404, detail="Notification not found")
    notification.is_read = True
    await session.commit()
    await session.refresh(notification)
    return notification
