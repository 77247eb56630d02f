from fastapi import APIRouter, HTTPException, Depends
import logging

from ..auth.dependencies import get_current_user, require_role
from ..core.exceptions import CivicEaseError
from ..models.user import DepartmentReassignment, UserRole
from ..services.user_service import user_service

router = APIRouter(tags=["users"])

logger = logging.getLogger(__name__)

require_main_admin = require_role([UserRole.ADMIN], detail="Only admin can view sub-admins")


@router.get("/profile")
async def get_profile(current_user: dict = Depends(get_current_user)):
    try:
        return {"user": await user_service.get_profile(current_user["uid"])}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Get profile error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get profile: {str(e)}")

@router.get("/contractors")
async def get_contractors(current_user: dict = Depends(get_current_user)):
    """Contractors available for assignment"""
    try:
        return {"contractors": await user_service.list_by_role(UserRole.CONTRACTOR)}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Get contractors error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get contractors: {str(e)}")

@router.get("/subadmins")
async def get_subadmins(current_user: dict = Depends(require_main_admin)):
    try:
        return {"subadmins": await user_service.list_by_role(UserRole.SUBADMIN)}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Get sub-admins error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get sub-admins: {str(e)}")

@router.patch("/subadmins/{subadmin_id}/department")
async def reassign_subadmin_department(
    subadmin_id: str,
    request: DepartmentReassignment,
    current_user: dict = Depends(require_role([UserRole.ADMIN], detail="Only admin can reassign sub-admins"))
):
    try:
        subadmin = await user_service.reassign_subadmin_department(subadmin_id, request.departmentId)
        return {"success": True, "subadmin": subadmin}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Reassign sub-admin error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to reassign sub-admin: {str(e)}")
