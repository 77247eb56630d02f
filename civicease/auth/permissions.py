"""
Per-role visibility and ownership rules for complaints.

    citizen     complaints they filed
    contractor  complaints whose assignment names them
    subadmin    every complaint of their department, any status
    admin       everything
"""

from typing import Callable, Dict, Optional
import logging

from ..core.exceptions import ForbiddenError, NotFoundError
from ..models.user import UserRole

logger = logging.getLogger(__name__)


def _citizen_can_view(user: dict, complaint: dict, assignment: Optional[dict]) -> bool:
    return complaint.get("citizenId") == user.get("uid")

def _contractor_can_view(user: dict, complaint: dict, assignment: Optional[dict]) -> bool:
    return bool(assignment) and assignment.get("contractorId") == user.get("uid")

def _subadmin_can_view(user: dict, complaint: dict, assignment: Optional[dict]) -> bool:
    department_id = user.get("departmentId")
    return bool(department_id) and complaint.get("departmentId") == department_id

def _admin_can_view(user: dict, complaint: dict, assignment: Optional[dict]) -> bool:
    return True


VIEW_RULES: Dict[UserRole, Callable[[dict, dict, Optional[dict]], bool]] = {
    UserRole.CITIZEN: _citizen_can_view,
    UserRole.CONTRACTOR: _contractor_can_view,
    UserRole.SUBADMIN: _subadmin_can_view,
    UserRole.ADMIN: _admin_can_view,
}


def can_view_complaint(user: dict, complaint: dict, assignment: Optional[dict] = None) -> bool:
    role = UserRole.parse(user.get("role"))
    if role is None:
        return False
    return VIEW_RULES[role](user, complaint, assignment)


def ensure_can_view(user: dict, complaint: dict, assignment: Optional[dict] = None) -> None:
    if not can_view_complaint(user, complaint, assignment):
        logger.warning(f"User {user.get('uid')} ({user.get('role')}) denied access to complaint {complaint.get('id')}")
        raise ForbiddenError("You are not allowed to view this complaint")


def ensure_department_owner(user: dict, complaint: dict) -> None:
    """Sub-admins may only act on complaints of their own department."""
    if UserRole.parse(user.get("role")) != UserRole.SUBADMIN:
        return
    if not _subadmin_can_view(user, complaint, None):
        raise ForbiddenError("Complaint does not belong to your department")


def ensure_assignee(user: dict, assignment: Optional[dict]) -> dict:
    """The caller must be the contractor named on the assignment."""
    if not assignment or not assignment.get("contractorId"):
        raise NotFoundError("Assignment not found")
    if assignment.get("contractorId") != user.get("uid"):
        raise ForbiddenError("You are not the assigned contractor for this complaint")
    return assignment


def ensure_complainant(user: dict, complaint: dict) -> None:
    if complaint.get("citizenId") != user.get("uid"):
        raise ForbiddenError("Not authorized")
