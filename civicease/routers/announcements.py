from fastapi import APIRouter, HTTPException, Depends, Path
from typing import Optional
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import require_authority
from ..core.exceptions import CivicEaseError
from ..services.announcement_service import announcement_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/announcements", tags=["announcements"])

# Request Models
class SaveAnnouncementRequest(BaseModel):
    id: Optional[str] = Field(None, description="Present to update, absent to create")
    title: Optional[str] = Field(None, max_length=200)
    message: Optional[str] = None
    priority: Optional[str] = Field(None, description="normal or high")
    isActive: Optional[bool] = None

# API Endpoints

@router.get("")
async def get_announcements():
    """Active announcements, visible without signing in"""
    try:
        return {"announcements": await announcement_service.get_announcements(active_only=True)}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Error fetching announcements: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get announcements: {str(e)}")

@router.get("/all")
async def get_all_announcements(current_user: dict = Depends(require_authority)):
    """Every announcement including inactive ones (Admin / Sub-admin)"""
    try:
        return {"announcements": await announcement_service.get_announcements(active_only=False)}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Error fetching announcements: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get announcements: {str(e)}")

@router.post("")
async def save_announcement(
    request: SaveAnnouncementRequest,
    current_user: dict = Depends(require_authority)
):
    """Create or update an announcement (Admin / Sub-admin)"""
    try:
        announcement = await announcement_service.save_announcement(
            current_user, request.model_dump(exclude_none=True)
        )
        return {"success": True, "announcement": announcement}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Error saving announcement: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to save announcement: {str(e)}")

@router.delete("/{announcement_id}")
async def delete_announcement(
    announcement_id: str = Path(..., description="Announcement ID"),
    current_user: dict = Depends(require_authority)
):
    try:
        await announcement_service.delete_announcement(announcement_id)
        logger.info(f"Announcement {announcement_id} deleted by {current_user.get('uid')}")
        return {"success": True, "id": announcement_id}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Error deleting announcement: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to delete announcement: {str(e)}")
