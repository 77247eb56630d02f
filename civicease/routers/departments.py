from fastapi import APIRouter, HTTPException, Depends
from typing import Optional
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import require_role
from ..core.exceptions import CivicEaseError
from ..models.user import UserRole
from ..services.department_service import department_service

router = APIRouter(prefix="/departments", tags=["departments"])

logger = logging.getLogger(__name__)

require_main_admin = require_role([UserRole.ADMIN], detail="Only main admin can add departments")


class CreateDepartmentRequest(BaseModel):
    name: str = Field(..., min_length=1)
    customerCarePhone: Optional[str] = None
    customerCareEmail: Optional[str] = None


@router.get("")
async def get_departments():
    """All departments, public"""
    try:
        return {"departments": await department_service.list_departments()}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Get departments error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to get departments: {str(e)}")

@router.post("")
async def add_department(
    request: CreateDepartmentRequest,
    current_user: dict = Depends(require_main_admin)
):
    try:
        department = await department_service.create_department(
            request.name,
            phone=request.customerCarePhone,
            email=request.customerCareEmail,
        )
        return {"success": True, "department": department}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        logger.error(f"Add department error: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to add department: {str(e)}")
