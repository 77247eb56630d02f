"""
Complaint status state machine.

    pending -> assigned_to_subadmin -> assigned_to_contractor -> in_progress
            -> completed -> closed | reopened

plus ``closed_by_authority`` (admin/sub-admin override from any non-terminal
status) and ``contractor_rejected`` (sub-admin may hand the complaint to
another contractor). Every rule lives in ``TRANSITIONS``; the service layer
only asks this module whether an action is allowed and what it leads to.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Optional

from ..core.exceptions import ForbiddenError, InvalidTransitionError, ValidationError
from ..models.database_models import ComplaintStatus, ContractorStatus, PRIORITY_UPDATED
from ..models.user import UserRole


class LifecycleAction(str, Enum):
    ASSIGN_SUBADMIN = "assign_subadmin"
    ASSIGN_CONTRACTOR = "assign_contractor"
    ACCEPT = "accept"
    REJECT = "reject"
    COMPLETE = "complete"
    SUBMIT_FEEDBACK = "submit_feedback"
    CLOSE = "close"
    SET_PRIORITY = "set_priority"


TERMINAL_STATUSES: FrozenSet[ComplaintStatus] = frozenset({
    ComplaintStatus.CLOSED,
    ComplaintStatus.CLOSED_BY_AUTHORITY,
})

NON_TERMINAL_STATUSES: FrozenSet[ComplaintStatus] = frozenset(ComplaintStatus) - TERMINAL_STATUSES


@dataclass(frozen=True)
class TransitionRule:
    actors: FrozenSet[UserRole]
    from_statuses: FrozenSet[ComplaintStatus]
    to_status: Optional[ComplaintStatus]  # None: resolved per call, or no status change
    denied_message: str


TRANSITIONS: Dict[LifecycleAction, TransitionRule] = {
    LifecycleAction.ASSIGN_SUBADMIN: TransitionRule(
        actors=frozenset({UserRole.ADMIN}),
        from_statuses=frozenset({ComplaintStatus.PENDING, ComplaintStatus.REOPENED}),
        to_status=ComplaintStatus.ASSIGNED_TO_SUBADMIN,
        denied_message="Only admin can assign to sub-admin",
    ),
    LifecycleAction.ASSIGN_CONTRACTOR: TransitionRule(
        actors=frozenset({UserRole.SUBADMIN}),
        from_statuses=frozenset({
            ComplaintStatus.ASSIGNED_TO_SUBADMIN,
            ComplaintStatus.CONTRACTOR_REJECTED,
            ComplaintStatus.REOPENED,
        }),
        to_status=ComplaintStatus.ASSIGNED_TO_CONTRACTOR,
        denied_message="Only sub-admin can assign to contractor",
    ),
    LifecycleAction.ACCEPT: TransitionRule(
        actors=frozenset({UserRole.CONTRACTOR}),
        from_statuses=frozenset({ComplaintStatus.ASSIGNED_TO_CONTRACTOR}),
        to_status=ComplaintStatus.IN_PROGRESS,
        denied_message="Only contractor can respond",
    ),
    LifecycleAction.REJECT: TransitionRule(
        actors=frozenset({UserRole.CONTRACTOR}),
        from_statuses=frozenset({ComplaintStatus.ASSIGNED_TO_CONTRACTOR}),
        to_status=ComplaintStatus.CONTRACTOR_REJECTED,
        denied_message="Only contractor can respond",
    ),
    LifecycleAction.COMPLETE: TransitionRule(
        actors=frozenset({UserRole.CONTRACTOR}),
        from_statuses=frozenset({ComplaintStatus.IN_PROGRESS}),
        to_status=ComplaintStatus.COMPLETED,
        denied_message="Only contractor can mark complete",
    ),
    LifecycleAction.SUBMIT_FEEDBACK: TransitionRule(
        actors=frozenset({UserRole.CITIZEN}),
        from_statuses=frozenset({ComplaintStatus.COMPLETED}),
        to_status=None,
        denied_message="Only citizens can submit feedback",
    ),
    LifecycleAction.CLOSE: TransitionRule(
        actors=frozenset({UserRole.ADMIN, UserRole.SUBADMIN}),
        from_statuses=NON_TERMINAL_STATUSES,
        to_status=ComplaintStatus.CLOSED_BY_AUTHORITY,
        denied_message="Not authorized",
    ),
    LifecycleAction.SET_PRIORITY: TransitionRule(
        actors=frozenset({UserRole.ADMIN}),
        from_statuses=frozenset(ComplaintStatus),
        to_status=None,
        denied_message="Only admin can set priority",
    ),
}

# contractorStatus moves forward only; a (re)assignment resets it to pending
CONTRACTOR_STATUS_TRANSITIONS: Dict[ContractorStatus, FrozenSet[ContractorStatus]] = {
    ContractorStatus.PENDING: frozenset({ContractorStatus.ACCEPTED, ContractorStatus.REJECTED}),
    ContractorStatus.ACCEPTED: frozenset({ContractorStatus.COMPLETED}),
    ContractorStatus.REJECTED: frozenset(),
    ContractorStatus.COMPLETED: frozenset(),
}


def utc_now() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2025-01-01T10:00:00.000Z"""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def _status_of(record: dict) -> Optional[ComplaintStatus]:
    try:
        return ComplaintStatus(record.get("status"))
    except ValueError:
        return None


def ensure_actor(action: LifecycleAction, role) -> UserRole:
    rule = TRANSITIONS[action]
    parsed = UserRole.parse(role)
    if parsed not in rule.actors:
        raise ForbiddenError(rule.denied_message)
    return parsed


def ensure_can_transition(action: LifecycleAction, complaint: dict) -> None:
    rule = TRANSITIONS[action]
    if _status_of(complaint) not in rule.from_statuses:
        raise InvalidTransitionError(action.value, complaint.get("status"))


def resolve_target(action: LifecycleAction, satisfied: Optional[bool] = None) -> Optional[ComplaintStatus]:
    if action == LifecycleAction.SUBMIT_FEEDBACK:
        if satisfied is None:
            raise ValidationError("Missing required fields: satisfied")
        return ComplaintStatus.CLOSED if satisfied else ComplaintStatus.REOPENED
    return TRANSITIONS[action].to_status


def advance_contractor_status(assignment: dict, new_status: ContractorStatus) -> dict:
    current = assignment.get("contractorStatus")
    current_status = ContractorStatus(current) if current else None
    if new_status not in CONTRACTOR_STATUS_TRANSITIONS.get(current_status, frozenset()):
        raise InvalidTransitionError(
            f"move_assignment_to_{new_status.value}", current or "unassigned"
        )
    assignment["contractorStatus"] = new_status.value
    return assignment


def append_timeline(complaint: dict, status: str, message: str, timestamp: Optional[str] = None) -> dict:
    """Append one timeline entry and refresh ``updatedAt``; sets ``status`` unless it is a priority marker."""
    timestamp = timestamp or utc_now()
    complaint.setdefault("timeline", []).append({
        "status": status,
        "timestamp": timestamp,
        "message": message,
    })
    if status != PRIORITY_UPDATED:
        complaint["status"] = status
    complaint["updatedAt"] = timestamp
    return complaint


def apply_transition(
    action: LifecycleAction,
    complaint: dict,
    message: str,
    satisfied: Optional[bool] = None,
    timestamp: Optional[str] = None,
) -> ComplaintStatus:
    """Check the from-status, then move the complaint and log the timeline entry."""
    ensure_can_transition(action, complaint)
    target = resolve_target(action, satisfied)
    append_timeline(complaint, target.value, message, timestamp)
    return target
