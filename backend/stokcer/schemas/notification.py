from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class NotificationItem(BaseModel):
    """Schema for one activity feed entry."""
    id: str
    title: str
    message: str
    type: str = "info"
    metadata: Dict[str, Any] = Field(default_factory=dict)
    is_read: bool = False
    created_at: Optional[datetime] = None


class NotificationListResponse(BaseModel):
    """Schema for the activity feed."""
    notifications: List[NotificationItem]
    unread_count: int
