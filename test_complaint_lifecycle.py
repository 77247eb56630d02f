import pytest

from civicease.auth.permissions import VIEW_RULES
from civicease.core.exceptions import ForbiddenError, InvalidTransitionError, ValidationError
from civicease.models.database_models import ComplaintStatus, ContractorStatus, PRIORITY_UPDATED
from civicease.models.user import UserRole
from civicease.services.complaint_lifecycle import (
    CONTRACTOR_STATUS_TRANSITIONS,
    LifecycleAction,
    TERMINAL_STATUSES,
    TRANSITIONS,
    advance_contractor_status,
    append_timeline,
    apply_transition,
    ensure_actor,
    ensure_can_transition,
    resolve_target,
)
from civicease.services.complaint_token_service import ComplaintTokenService, TOKEN_PATTERN


def complaint_with(status):
    return {"id": "c1", "status": status, "timeline": [{"status": status, "timestamp": "t0", "message": "m"}]}


@pytest.mark.parametrize("action, role", [
    (LifecycleAction.ASSIGN_SUBADMIN, "admin"),
    (LifecycleAction.ASSIGN_CONTRACTOR, "subadmin"),
    (LifecycleAction.ACCEPT, "contractor"),
    (LifecycleAction.REJECT, "contractor"),
    (LifecycleAction.COMPLETE, "contractor"),
    (LifecycleAction.SUBMIT_FEEDBACK, "citizen"),
    (LifecycleAction.CLOSE, "admin"),
    (LifecycleAction.CLOSE, "subadmin"),
    (LifecycleAction.SET_PRIORITY, "admin"),
])
def test_allowed_actor_passes(action, role):
    assert ensure_actor(action, role) == UserRole(role)


@pytest.mark.parametrize("action, role", [
    (LifecycleAction.ASSIGN_SUBADMIN, "subadmin"),
    (LifecycleAction.ASSIGN_CONTRACTOR, "admin"),
    (LifecycleAction.ACCEPT, "citizen"),
    (LifecycleAction.COMPLETE, "subadmin"),
    (LifecycleAction.SUBMIT_FEEDBACK, "admin"),
    (LifecycleAction.CLOSE, "contractor"),
    (LifecycleAction.SET_PRIORITY, "subadmin"),
    (LifecycleAction.SET_PRIORITY, None),
])
def test_wrong_actor_is_forbidden(action, role):
    with pytest.raises(ForbiddenError):
        ensure_actor(action, role)


def test_happy_path_statuses():
    complaint = complaint_with("pending")
    steps = [
        (LifecycleAction.ASSIGN_SUBADMIN, None, "assigned_to_subadmin"),
        (LifecycleAction.ASSIGN_CONTRACTOR, None, "assigned_to_contractor"),
        (LifecycleAction.ACCEPT, None, "in_progress"),
        (LifecycleAction.COMPLETE, None, "completed"),
        (LifecycleAction.SUBMIT_FEEDBACK, True, "closed"),
    ]
    for action, satisfied, expected in steps:
        apply_transition(action, complaint, f"{action.value} done", satisfied=satisfied)
        assert complaint["status"] == expected
        assert complaint["timeline"][-1]["status"] == expected

    assert len(complaint["timeline"]) == 6


def test_unsatisfied_feedback_reopens():
    assert resolve_target(LifecycleAction.SUBMIT_FEEDBACK, satisfied=False) == ComplaintStatus.REOPENED
    assert resolve_target(LifecycleAction.SUBMIT_FEEDBACK, satisfied=True) == ComplaintStatus.CLOSED


def test_feedback_without_satisfaction_flag_is_rejected():
    with pytest.raises(ValidationError):
        resolve_target(LifecycleAction.SUBMIT_FEEDBACK)


@pytest.mark.parametrize("action, status", [
    (LifecycleAction.ASSIGN_SUBADMIN, "in_progress"),
    (LifecycleAction.ASSIGN_CONTRACTOR, "pending"),
    (LifecycleAction.ACCEPT, "assigned_to_subadmin"),
    (LifecycleAction.COMPLETE, "assigned_to_contractor"),
    (LifecycleAction.SUBMIT_FEEDBACK, "in_progress"),
    (LifecycleAction.CLOSE, "closed"),
    (LifecycleAction.CLOSE, "closed_by_authority"),
])
def test_illegal_transition_leaves_complaint_untouched(action, status):
    complaint = complaint_with(status)
    with pytest.raises(InvalidTransitionError):
        apply_transition(action, complaint, "nope", satisfied=True)
    assert complaint["status"] == status
    assert len(complaint["timeline"]) == 1


def test_close_allowed_from_every_non_terminal_status():
    for status in ComplaintStatus:
        if status in TERMINAL_STATUSES:
            continue
        ensure_can_transition(LifecycleAction.CLOSE, complaint_with(status.value))


def test_rejected_complaint_can_be_reassigned():
    ensure_can_transition(LifecycleAction.ASSIGN_CONTRACTOR, complaint_with("contractor_rejected"))


def test_priority_marker_does_not_change_status():
    complaint = complaint_with("in_progress")
    append_timeline(complaint, PRIORITY_UPDATED, "Priority set to urgent", "2025-01-02T00:00:00.000Z")
    assert complaint["status"] == "in_progress"
    assert complaint["timeline"][-1]["status"] == "priority_updated"
    assert complaint["updatedAt"] == "2025-01-02T00:00:00.000Z"


def test_contractor_status_moves_forward_only():
    assignment = {"contractorStatus": "pending"}
    advance_contractor_status(assignment, ContractorStatus.ACCEPTED)
    advance_contractor_status(assignment, ContractorStatus.COMPLETED)
    assert assignment["contractorStatus"] == "completed"

    with pytest.raises(InvalidTransitionError):
        advance_contractor_status({"contractorStatus": "pending"}, ContractorStatus.COMPLETED)
    with pytest.raises(InvalidTransitionError):
        advance_contractor_status({"contractorStatus": "rejected"}, ContractorStatus.ACCEPTED)
    with pytest.raises(InvalidTransitionError):
        advance_contractor_status({"contractorStatus": "accepted"}, ContractorStatus.PENDING)
    with pytest.raises(InvalidTransitionError):
        advance_contractor_status({}, ContractorStatus.ACCEPTED)


def test_token_format():
    for _ in range(20):
        assert TOKEN_PATTERN.match(ComplaintTokenService.new_token())


def test_every_action_has_a_rule():
    assert set(TRANSITIONS) == set(LifecycleAction)


def test_every_contractor_status_has_successors_defined():
    assert set(CONTRACTOR_STATUS_TRANSITIONS) == set(ContractorStatus)


def test_every_role_has_a_visibility_rule():
    assert set(VIEW_RULES) == set(UserRole)
