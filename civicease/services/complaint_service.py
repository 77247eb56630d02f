from typing import Any, Callable, Awaitable, Dict, List, Optional, Tuple
import logging
import uuid

from ..auth.permissions import (
    ensure_assignee,
    ensure_can_view,
    ensure_complainant,
    ensure_department_owner,
)
from ..core.exceptions import ForbiddenError, NotFoundError, StorageError, ValidationError
from ..database.collections import COLLECTIONS
from ..database.database_service import database_service
from ..models.database_models import (
    Assignment,
    Complaint,
    ComplaintPriority,
    ComplaintStatus,
    ContractorStatus,
    Feedback,
    PRIORITY_UPDATED,
)
from ..models.user import UserRole
from .complaint_lifecycle import (
    LifecycleAction,
    advance_contractor_status,
    append_timeline,
    apply_transition,
    ensure_actor,
    ensure_can_transition,
    utc_now,
)
from .complaint_token_service import complaint_token_service
from .department_service import department_service
from .user_service import user_service

logger = logging.getLogger(__name__)


def _archived_rounds(previous: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Earlier feedback rounds, oldest first, kept unchanged on the newest record."""
    if not previous:
        return []
    kept = {k: previous.get(k) for k in ("round", "rating", "comment", "satisfied", "submittedAt")}
    kept["round"] = kept["round"] or 1
    return list(previous.get("previousRounds") or []) + [kept]


class ComplaintService:
    """Registers complaints and drives them through their lifecycle."""

    def __init__(self):
        self.db = database_service
        self.tokens = complaint_token_service
        self.departments = department_service
        self.users = user_service

    # ──────────────────────────────────────────────────────────────────────
    # Storage helpers
    # ──────────────────────────────────────────────────────────────────────

    async def _get_complaint(self, complaint_id: str) -> Dict[str, Any]:
        success, complaint, error = await self.db.get_document(COLLECTIONS['complaints'], complaint_id)
        if not success:
            raise StorageError(f"Failed to load complaint: {error}")
        if not complaint:
            raise NotFoundError("Complaint not found")
        return complaint

    async def _get_assignment(self, complaint_id: str) -> Optional[Dict[str, Any]]:
        success, assignment, error = await self.db.get_document(COLLECTIONS['assignments'], complaint_id)
        if not success:
            raise StorageError(f"Failed to load assignment: {error}")
        return assignment

    async def _get_feedback(self, complaint_id: str) -> Optional[Dict[str, Any]]:
        success, feedback, error = await self.db.get_document(COLLECTIONS['feedback'], complaint_id)
        if not success:
            raise StorageError(f"Failed to load feedback: {error}")
        return feedback

    async def _save(self, complaint: Dict[str, Any], assignment: Optional[Dict[str, Any]] = None,
                    feedback: Optional[Dict[str, Any]] = None) -> None:
        """Write the complaint and its companion records in one atomic batch."""
        complaint_id = complaint["id"]
        writes = [(COLLECTIONS['complaints'], complaint_id, complaint, False)]
        if assignment is not None:
            writes.append((COLLECTIONS['assignments'], complaint_id, assignment, False))
        if feedback is not None:
            writes.append((COLLECTIONS['feedback'], complaint_id, feedback, False))

        success, error = await self.db.commit_batch(writes)
        if not success:
            raise StorageError(f"Failed to save complaint {complaint_id}: {error}")

    async def _with_department_names(self, complaints: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        names: Dict[str, Optional[str]] = {}
        for complaint in complaints:
            department_id = complaint.get("departmentId")
            if not department_id or complaint.get("departmentName"):
                continue
            if department_id not in names:
                department = await self.departments.get_department(department_id)
                names[department_id] = department.get("name") if department else None
            if names[department_id]:
                complaint["departmentName"] = names[department_id]
        return complaints

    @staticmethod
    def _log_transition(complaint_id: str, old_status: str, new_status: str, user: dict) -> None:
        logger.info(f"Complaint {complaint_id}: {old_status} -> {new_status} by {user.get('uid')} ({user.get('role')})")

    # ──────────────────────────────────────────────────────────────────────
    # Registration
    # ──────────────────────────────────────────────────────────────────────

    async def register_complaint(self, user: dict, complaint_data: dict) -> Dict[str, Any]:
        if UserRole.parse(user.get("role")) != UserRole.CITIZEN:
            raise ForbiddenError("Only citizens can register complaints")

        missing = [f for f in ("departmentId", "complaintType", "description", "location") if not complaint_data.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        department = await self.departments.get_department(complaint_data["departmentId"])
        if not department:
            raise NotFoundError("Department not found")

        now = utc_now()
        complaint = Complaint(
            id=str(uuid.uuid4()),
            token=await self.tokens.generate_complaint_token(),
            citizenId=user["uid"],
            citizenName=user.get("name"),
            citizenPhone=user.get("phone"),
            departmentId=department["id"],
            complaintType=complaint_data["complaintType"],
            description=complaint_data["description"],
            location=complaint_data["location"],
            latitude=complaint_data.get("latitude"),
            longitude=complaint_data.get("longitude"),
            photos=complaint_data.get("photos") or [],
            status=ComplaintStatus.PENDING.value,
            priority=ComplaintPriority.NORMAL.value,
            timeline=[],
            createdAt=now,
            updatedAt=now,
        ).model_dump(exclude={"departmentName"})
        append_timeline(complaint, ComplaintStatus.PENDING.value, "Complaint registered successfully", now)

        success, _, error = await self.db.create_document(
            COLLECTIONS['complaints'], complaint, document_id=complaint["id"]
        )
        if not success:
            raise StorageError(f"Failed to register complaint: {error}")

        logger.info(f"Complaint {complaint['token']} registered by {user['uid']} for department {department['id']}")
        complaint["departmentName"] = department.get("name")
        return complaint

    # ──────────────────────────────────────────────────────────────────────
    # Queries
    # ──────────────────────────────────────────────────────────────────────

    async def _query(self, collection: str, filters: List[Tuple[str, str, Any]]) -> List[Dict[str, Any]]:
        success, documents, error = await self.db.query_documents(COLLECTIONS[collection], filters)
        if not success:
            raise StorageError(f"Failed to query {collection}: {error}")
        return documents

    async def _citizen_complaints(self, user: dict) -> List[Dict[str, Any]]:
        return await self._query('complaints', [("citizenId", "==", user.get("uid"))])

    async def _contractor_complaints(self, user: dict) -> List[Dict[str, Any]]:
        assignments = await self._query('assignments', [("contractorId", "==", user.get("uid"))])
        complaints = []
        for assignment in assignments:
            success, complaint, error = await self.db.get_document(COLLECTIONS['complaints'], assignment["complaintId"])
            if not success:
                raise StorageError(f"Failed to load complaint {assignment['complaintId']}: {error}")
            if complaint:
                complaints.append(complaint)
        return complaints

    async def _subadmin_complaints(self, user: dict) -> List[Dict[str, Any]]:
        department_id = user.get("departmentId")
        if not department_id:
            return []
        return await self._query('complaints', [("departmentId", "==", department_id)])

    async def _admin_complaints(self, user: dict) -> List[Dict[str, Any]]:
        return await self._query('complaints', [])

    async def list_complaints(self, user: dict, status: Optional[str] = None) -> List[Dict[str, Any]]:
        """Complaints visible to ``user``, newest first."""
        loaders: Dict[UserRole, Callable[[dict], Awaitable[List[Dict[str, Any]]]]] = {
            UserRole.CITIZEN: self._citizen_complaints,
            UserRole.CONTRACTOR: self._contractor_complaints,
            UserRole.SUBADMIN: self._subadmin_complaints,
            UserRole.ADMIN: self._admin_complaints,
        }
        role = UserRole.parse(user.get("role"))
        if role is None:
            raise NotFoundError("User not found")

        complaints = await loaders[role](user)
        if status:
            complaints = [c for c in complaints if c.get("status") == status]

        complaints.sort(key=lambda c: c.get("createdAt") or "", reverse=True)
        logger.info(f"Returning {len(complaints)} complaints for role: {role.value}")
        return await self._with_department_names(complaints)

    async def list_pending_complaints(self) -> List[Dict[str, Any]]:
        complaints = await self._query('complaints', [("status", "==", ComplaintStatus.PENDING.value)])
        complaints.sort(key=lambda c: c.get("createdAt") or "", reverse=True)
        return complaints

    async def get_complaint_detail(self, user: dict, complaint_id: str) -> Dict[str, Any]:
        complaint = await self._get_complaint(complaint_id)
        assignment = await self._get_assignment(complaint_id)
        ensure_can_view(user, complaint, assignment)

        await self._with_department_names([complaint])
        return {
            "complaint": complaint,
            "assignment": assignment,
            "feedback": await self._get_feedback(complaint_id),
        }

    # ──────────────────────────────────────────────────────────────────────
    # Lifecycle actions
    # ──────────────────────────────────────────────────────────────────────

    async def set_priority(self, user: dict, complaint_id: str, priority: str) -> Dict[str, Any]:
        ensure_actor(LifecycleAction.SET_PRIORITY, user.get("role"))
        try:
            priority = ComplaintPriority(priority).value
        except ValueError:
            raise ValidationError(f"Invalid priority '{priority}'")

        complaint = await self._get_complaint(complaint_id)
        ensure_can_transition(LifecycleAction.SET_PRIORITY, complaint)

        complaint["priority"] = priority
        append_timeline(complaint, PRIORITY_UPDATED, f"Priority set to {priority}")
        await self._save(complaint)

        logger.info(f"Complaint {complaint_id}: priority set to {priority} by {user.get('uid')}")
        return complaint

    async def assign_subadmin(self, user: dict, complaint_id: str, subadmin_id: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        ensure_actor(LifecycleAction.ASSIGN_SUBADMIN, user.get("role"))
        complaint = await self._get_complaint(complaint_id)

        subadmin = await self.users.get_profile(subadmin_id)
        if not subadmin or subadmin.get("role") != UserRole.SUBADMIN.value:
            raise NotFoundError("Sub-admin not found")

        old_status = complaint.get("status")
        now = utc_now()
        # Routing to a sub-admin of another department moves the complaint there
        if subadmin.get("departmentId"):
            complaint["departmentId"] = subadmin["departmentId"]
        apply_transition(
            LifecycleAction.ASSIGN_SUBADMIN,
            complaint,
            f"Assigned to {subadmin.get('name')} ({subadmin.get('departmentName')})",
            timestamp=now,
        )

        assignment = await self._get_assignment(complaint_id) or {"complaintId": complaint_id, "createdAt": now}
        assignment.update({
            "subAdminId": subadmin_id,
            "subAdminName": subadmin.get("name"),
            "subAdminAssignedAt": now,
            "updatedAt": now,
        })
        assignment = Assignment(**assignment).model_dump()

        await self._save(complaint, assignment)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return complaint, assignment

    async def assign_contractor(
        self,
        user: dict,
        complaint_id: str,
        contractor_id: str,
        estimated_fees: Optional[float] = None,
        estimated_time: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        ensure_actor(LifecycleAction.ASSIGN_CONTRACTOR, user.get("role"))
        complaint = await self._get_complaint(complaint_id)
        ensure_department_owner(user, complaint)

        contractor = await self.users.get_profile(contractor_id)
        if not contractor or contractor.get("role") != UserRole.CONTRACTOR.value:
            raise NotFoundError("Contractor not found")

        old_status = complaint.get("status")
        now = utc_now()
        apply_transition(
            LifecycleAction.ASSIGN_CONTRACTOR,
            complaint,
            f"Assigned to contractor {contractor.get('name')}",
            timestamp=now,
        )

        assignment = await self._get_assignment(complaint_id) or {"complaintId": complaint_id, "createdAt": now}
        assignment.update({
            "contractorId": contractor_id,
            "contractorName": contractor.get("name"),
            "contractorPhone": contractor.get("phone"),
            "contractorAssignedAt": now,
            "estimatedFees": estimated_fees,
            "estimatedTime": estimated_time,
            "assignmentDescription": description,
            "contractorStatus": ContractorStatus.PENDING.value,
            "workStartedAt": None,
            "rejectedAt": None,
            "updatedAt": now,
        })
        assignment = Assignment(**assignment).model_dump()

        await self._save(complaint, assignment)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return complaint, assignment

    async def respond_to_assignment(self, user: dict, complaint_id: str, action: str) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        if action not in ("accept", "reject"):
            raise ValidationError("Action must be 'accept' or 'reject'")
        lifecycle_action = LifecycleAction.ACCEPT if action == "accept" else LifecycleAction.REJECT

        ensure_actor(lifecycle_action, user.get("role"))
        complaint = await self._get_complaint(complaint_id)
        assignment = ensure_assignee(user, await self._get_assignment(complaint_id))
        ensure_can_transition(lifecycle_action, complaint)

        old_status = complaint.get("status")
        now = utc_now()
        if lifecycle_action == LifecycleAction.ACCEPT:
            advance_contractor_status(assignment, ContractorStatus.ACCEPTED)
            assignment["workStartedAt"] = now
            message = "Work started by contractor"
        else:
            advance_contractor_status(assignment, ContractorStatus.REJECTED)
            assignment["rejectedAt"] = now
            message = "Contractor rejected the assignment"
        assignment["updatedAt"] = now
        apply_transition(lifecycle_action, complaint, message, timestamp=now)

        await self._save(complaint, assignment)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return complaint, assignment

    async def complete_work(
        self,
        user: dict,
        complaint_id: str,
        completion_notes: Optional[str] = None,
        completion_photos: Optional[List[str]] = None,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        ensure_actor(LifecycleAction.COMPLETE, user.get("role"))
        complaint = await self._get_complaint(complaint_id)
        assignment = ensure_assignee(user, await self._get_assignment(complaint_id))
        ensure_can_transition(LifecycleAction.COMPLETE, complaint)

        old_status = complaint.get("status")
        now = utc_now()
        advance_contractor_status(assignment, ContractorStatus.COMPLETED)
        assignment.update({
            "completedAt": now,
            "completionNotes": completion_notes,
            "completionPhotos": completion_photos or [],
            "updatedAt": now,
        })
        apply_transition(LifecycleAction.COMPLETE, complaint, "Work completed by contractor", timestamp=now)

        await self._save(complaint, assignment)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return complaint, assignment

    async def submit_feedback(
        self,
        user: dict,
        complaint_id: str,
        rating: int,
        satisfied: bool,
        comment: Optional[str] = None,
    ) -> Tuple[Dict[str, Any], Dict[str, Any]]:
        ensure_actor(LifecycleAction.SUBMIT_FEEDBACK, user.get("role"))
        complaint = await self._get_complaint(complaint_id)
        ensure_complainant(user, complaint)

        # One feedback per completion round; a satisfied round is final
        previous = await self._get_feedback(complaint_id)
        if previous and previous.get("satisfied"):
            raise ValidationError("Feedback already submitted for this complaint")
        ensure_can_transition(LifecycleAction.SUBMIT_FEEDBACK, complaint)
        if not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        old_status = complaint.get("status")
        now = utc_now()
        feedback = Feedback(
            complaintId=complaint_id,
            citizenId=user["uid"],
            rating=rating,
            comment=comment,
            satisfied=satisfied,
            submittedAt=now,
            round=previous.get("round", 1) + 1 if previous else 1,
            previousRounds=_archived_rounds(previous),
        ).model_dump()

        message = "Complaint closed with feedback" if satisfied else "Complaint reopened - citizen not satisfied"
        apply_transition(LifecycleAction.SUBMIT_FEEDBACK, complaint, message, satisfied=satisfied, timestamp=now)

        await self._save(complaint, feedback=feedback)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return feedback, complaint

    async def close_complaint(self, user: dict, complaint_id: str, reason: str) -> Dict[str, Any]:
        role = ensure_actor(LifecycleAction.CLOSE, user.get("role"))
        if not reason or not reason.strip():
            raise ValidationError("Missing required fields: reason")

        complaint = await self._get_complaint(complaint_id)
        ensure_department_owner(user, complaint)

        old_status = complaint.get("status")
        apply_transition(LifecycleAction.CLOSE, complaint, f"Closed by {role.value}: {reason}")
        complaint["closureReason"] = reason
        complaint["closedBy"] = user.get("uid")

        await self._save(complaint)
        self._log_transition(complaint_id, old_status, complaint["status"], user)
        return complaint


complaint_service = ComplaintService()
