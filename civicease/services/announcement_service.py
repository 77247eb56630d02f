from typing import Any, Dict, List, Optional
import logging
import uuid

from ..core.exceptions import NotFoundError, StorageError, ValidationError
from ..database.collections import COLLECTIONS
from ..database.database_service import database_service
from ..models.database_models import Announcement, AnnouncementPriority
from .complaint_lifecycle import utc_now

logger = logging.getLogger(__name__)


class AnnouncementService:
    """Service for managing announcements shown on the public and role dashboards"""

    def __init__(self):
        self.db = database_service

    async def get_announcements(self, active_only: bool = True) -> List[Dict[str, Any]]:
        """Announcements newest first; only active ones unless ``active_only`` is False."""
        filters = [("isActive", "==", True)] if active_only else []
        success, announcements, error = await self.db.query_documents(COLLECTIONS['announcements'], filters)
        if not success:
            raise StorageError(f"Failed to load announcements: {error}")

        return sorted(announcements, key=lambda a: a.get("createdAt") or "", reverse=True)

    async def get_announcement(self, announcement_id: str) -> Optional[Dict[str, Any]]:
        success, announcement, error = await self.db.get_document(COLLECTIONS['announcements'], announcement_id)
        if not success:
            raise StorageError(f"Failed to load announcement: {error}")
        return announcement

    async def save_announcement(self, user: dict, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Create or update an announcement.

        A payload carrying an ``id`` updates that announcement (404 if it does not
        exist); without one a new announcement is created.
        """
        now = utc_now()
        announcement_id = data.get("id")
        existing = None
        if announcement_id:
            existing = await self.get_announcement(announcement_id)
            if not existing:
                raise NotFoundError("Announcement not found")

        priority = data.get("priority") or (existing or {}).get("priority") or AnnouncementPriority.NORMAL.value
        try:
            priority = AnnouncementPriority(priority).value
        except ValueError:
            raise ValidationError(f"Invalid priority '{priority}'")

        if existing:
            existing.update({
                "title": data.get("title") or existing.get("title"),
                "message": data.get("message") or existing.get("message"),
                "priority": priority,
                "isActive": existing.get("isActive", True) if data.get("isActive") is None else data["isActive"],
                "updatedAt": now,
            })
            announcement = Announcement(**existing).model_dump()
        else:
            if not data.get("title") or not data.get("message"):
                raise ValidationError("Missing required fields: title, message")
            announcement = Announcement(
                id=str(uuid.uuid4()),
                title=data["title"],
                message=data["message"],
                priority=priority,
                isActive=True if data.get("isActive") is None else data["isActive"],
                createdBy=user.get("uid"),
                createdByName=user.get("name"),
                createdAt=now,
                updatedAt=now,
            ).model_dump()

        success, error = await self.db.set_document(COLLECTIONS['announcements'], announcement["id"], announcement)
        if not success:
            raise StorageError(f"Failed to save announcement: {error}")

        logger.info(f"Announcement {'updated' if announcement_id else 'created'}: {announcement['id']} by {user.get('uid')}")
        return announcement

    async def delete_announcement(self, announcement_id: str) -> None:
        if not await self.get_announcement(announcement_id):
            raise NotFoundError("Announcement not found")

        success, error = await self.db.delete_document(COLLECTIONS['announcements'], announcement_id)
        if not success:
            raise StorageError(f"Failed to delete announcement: {error}")
        logger.info(f"Announcement deleted: {announcement_id}")


announcement_service = AnnouncementService()
