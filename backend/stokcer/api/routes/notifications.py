from fastapi import APIRouter, Depends, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from stokcer.api.deps import get_db, get_current_user
from stokcer.schemas.notification import NotificationListResponse
from stokcer.services.notification_service import NotificationService

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def get_notifications(
    limit: int = Query(50, ge=1, le=100),
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """
    Get the activity feed of the current user, newest first, with the unread count.
    """
    user_id = str(current_user["_id"])
    notifications = await NotificationService.get_recent(user_id, db, limit=limit)
    unread_count = await NotificationService.get_unread_count(user_id, db)

    return NotificationListResponse(notifications=notifications, unread_count=unread_count)


@router.post("/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notifications_read(
    current_user: dict = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db)
):
    """Mark every notification of the current user as read."""
    await NotificationService.mark_all_read(str(current_user["_id"]), db)
