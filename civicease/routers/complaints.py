from fastapi import APIRouter, HTTPException, Depends, Query
from typing import List, Optional
from pydantic import BaseModel, Field
import logging

from ..auth.dependencies import get_current_user
from ..core.exceptions import CivicEaseError
from ..services.complaint_service import complaint_service

router = APIRouter(prefix="/complaints", tags=["complaints"])

logger = logging.getLogger(__name__)

# Request Models
class CreateComplaintRequest(BaseModel):
    departmentId: str = Field(..., min_length=1)
    complaintType: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    location: str = Field(..., min_length=1)  # free-text address
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    photos: Optional[List[str]] = []  # base64 data URIs

class SetPriorityRequest(BaseModel):
    priority: str  # urgent, high, normal, low

class AssignSubAdminRequest(BaseModel):
    subAdminId: str = Field(..., min_length=1)

class AssignContractorRequest(BaseModel):
    contractorId: str = Field(..., min_length=1)
    estimatedFees: Optional[float] = None
    estimatedTime: Optional[str] = None
    description: Optional[str] = None

class ContractorResponseRequest(BaseModel):
    action: str  # accept, reject

class CompleteWorkRequest(BaseModel):
    completionNotes: Optional[str] = None
    completionPhotos: Optional[List[str]] = []

class FeedbackRequest(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = None
    satisfied: bool

class CloseComplaintRequest(BaseModel):
    reason: str = Field(..., min_length=1)


def _failed(action: str, e: Exception) -> HTTPException:
    logger.error(f"{action} error: {str(e)}")
    return HTTPException(status_code=500, detail=f"Failed to {action.lower()}: {str(e)}")


@router.post("")
async def register_complaint(
    request: CreateComplaintRequest,
    current_user: dict = Depends(get_current_user)
):
    """Register a complaint (citizens only)"""
    try:
        complaint = await complaint_service.register_complaint(current_user, request.model_dump())
        return {"success": True, "complaint": complaint, "token": complaint["token"]}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Register complaint", e)

@router.get("")
async def list_complaints(
    status: Optional[str] = Query(None, description="Only complaints with this status"),
    current_user: dict = Depends(get_current_user)
):
    """
    Complaints visible to the caller:
    - Citizens see their own complaints
    - Contractors see complaints assigned to them
    - Sub-admins see every complaint of their department
    - Admin sees everything
    """
    try:
        complaints = await complaint_service.list_complaints(current_user, status=status)
        return {"complaints": complaints}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Get complaints", e)

@router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: str,
    current_user: dict = Depends(get_current_user)
):
    """Complaint details with its assignment and feedback"""
    try:
        return await complaint_service.get_complaint_detail(current_user, complaint_id)
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Get complaint", e)

@router.patch("/{complaint_id}/priority")
async def update_priority(
    complaint_id: str,
    request: SetPriorityRequest,
    current_user: dict = Depends(get_current_user)
):
    try:
        complaint = await complaint_service.set_priority(current_user, complaint_id, request.priority)
        return {"success": True, "complaint": complaint}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Update priority", e)

@router.post("/{complaint_id}/assign-subadmin")
async def assign_to_subadmin(
    complaint_id: str,
    request: AssignSubAdminRequest,
    current_user: dict = Depends(get_current_user)
):
    try:
        complaint, assignment = await complaint_service.assign_subadmin(
            current_user, complaint_id, request.subAdminId
        )
        return {"success": True, "complaint": complaint, "assignment": assignment}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Assign", e)

@router.post("/{complaint_id}/assign-contractor")
async def assign_to_contractor(
    complaint_id: str,
    request: AssignContractorRequest,
    current_user: dict = Depends(get_current_user)
):
    try:
        complaint, assignment = await complaint_service.assign_contractor(
            current_user,
            complaint_id,
            request.contractorId,
            estimated_fees=request.estimatedFees,
            estimated_time=request.estimatedTime,
            description=request.description,
        )
        return {"success": True, "complaint": complaint, "assignment": assignment}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Assign", e)

@router.post("/{complaint_id}/contractor-response")
async def contractor_response(
    complaint_id: str,
    request: ContractorResponseRequest,
    current_user: dict = Depends(get_current_user)
):
    """Assigned contractor accepts or rejects the work"""
    try:
        complaint, assignment = await complaint_service.respond_to_assignment(
            current_user, complaint_id, request.action
        )
        return {"success": True, "complaint": complaint, "assignment": assignment}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Respond", e)

@router.post("/{complaint_id}/complete")
async def complete_work(
    complaint_id: str,
    request: CompleteWorkRequest,
    current_user: dict = Depends(get_current_user)
):
    try:
        complaint, assignment = await complaint_service.complete_work(
            current_user,
            complaint_id,
            completion_notes=request.completionNotes,
            completion_photos=request.completionPhotos,
        )
        return {"success": True, "complaint": complaint, "assignment": assignment}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Complete", e)

@router.post("/{complaint_id}/feedback")
async def submit_feedback(
    complaint_id: str,
    request: FeedbackRequest,
    current_user: dict = Depends(get_current_user)
):
    """Complainant rates the completed work; satisfied closes it, unsatisfied reopens it"""
    try:
        feedback, complaint = await complaint_service.submit_feedback(
            current_user,
            complaint_id,
            rating=request.rating,
            satisfied=request.satisfied,
            comment=request.comment,
        )
        return {"success": True, "feedback": feedback, "complaint": complaint}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Submit feedback", e)

@router.post("/{complaint_id}/close")
async def close_complaint(
    complaint_id: str,
    request: CloseComplaintRequest,
    current_user: dict = Depends(get_current_user)
):
    """Admin / department sub-admin closes a complaint with a reason"""
    try:
        complaint = await complaint_service.close_complaint(current_user, complaint_id, request.reason)
        return {"success": True, "complaint": complaint}
    except (HTTPException, CivicEaseError):
        raise
    except Exception as e:
        raise _failed("Close complaint", e)
