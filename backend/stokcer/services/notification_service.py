"""
Notification log - fire-and-forget audit trail shown in the dashboard activity feed.
"""

import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from stokcer.utils.helpers import format_document, get_current_timestamp

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("success", "info", "warning", "error")


class NotificationService:
    """Writes and reads the per-user notification log."""

    @staticmethod
    async def log_notification(
        user_id: Optional[str],
        title: str,
        message: str,
        db: AsyncIOMotorDatabase,
        type: str = "info",
        metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Append a notification for a user.

        Never raises: a failed write is logged and reported as False.
        """
        if not user_id:
            return False

        if type not in NOTIFICATION_TYPES:
            type = "info"

        try:
            await db.notification_logs.insert_one({
                "user_id": user_id,
                "title": title,
                "message": message,
                "type": type,
                "metadata": metadata or {},
                "is_read": False,
                "created_at": get_current_timestamp()
            })
        except PyMongoError as e:
            logger.error(f"Failed to log notification for {user_id}: {str(e)}")
            return False

        return True

    @staticmethod
    async def get_unread_count(user_id: str, db: AsyncIOMotorDatabase) -> int:
        if not user_id:
            return 0
        try:
            return await db.notification_logs.count_documents({"user_id": user_id, "is_read": False})
        except PyMongoError as e:
            logger.error(f"Failed to count notifications for {user_id}: {str(e)}")
            return 0

    @staticmethod
    async def get_recent(user_id: str, db: AsyncIOMotorDatabase, limit: int = 50) -> List[dict]:
        if not user_id:
            return []
        try:
            docs = await db.notification_logs.find({"user_id": user_id}).sort("created_at", -1).limit(limit).to_list(length=limit)
        except PyMongoError as e:
            logger.error(f"Failed to load notifications for {user_id}: {str(e)}")
            return []
        return [format_document(doc) for doc in docs]

    @staticmethod
    async def mark_all_read(user_id: str, db: AsyncIOMotorDatabase) -> None:
        if not user_id:
            return
        try:
            await db.notification_logs.update_many(
                {"user_id": user_id, "is_read": False},
                {"$set": {"is_read": True}}
            )
        except PyMongoError as e:
            logger.error(f"Failed to mark notifications read for {user_id}: {str(e)}")
